"""
Settings for Interview Prep Coach, read from the environment and an optional .env file
"""

import os
from typing import Any, Dict, List, Optional
from dotenv import load_dotenv

load_dotenv()


class Config:
    """
    Application settings.

    Build one instance at startup and hand it to the services that need it.
    """

    def __init__(self):
        # AWS credentials are picked up by boto3; they are read here to report what is missing
        self.aws_region = self._get_env_var("AWS_REGION", "us-east-1")
        self.aws_access_key_id = self._get_env_var("AWS_ACCESS_KEY_ID")
        self.aws_secret_access_key = self._get_env_var("AWS_SECRET_ACCESS_KEY")

        # Bedrock
        self.bedrock_model_id = self._get_env_var("BEDROCK_MODEL_ID", "anthropic.claude-3-haiku-20240307-v1:0")
        self.bedrock_max_tokens = self._get_int("BEDROCK_MAX_TOKENS", 2048)

        # Resume and cover letter blobs
        self.s3_bucket_name = self._get_env_var("S3_BUCKET_NAME")
        self.s3_url_expiry_seconds = self._get_int("S3_URL_EXPIRY_SECONDS", 3600)

        # Postgres; a Supabase URL takes precedence
        self.database_url = self._get_env_var("DATABASE_URL")
        self.supabase_database_url = self._get_env_var("SUPABASE_DATABASE_URL")
        self.db_connection_string = self.supabase_database_url or self.database_url

        # Practice sessions and answers
        self.questions_per_session = self._get_int("QUESTIONS_PER_SESSION", 5)
        self.default_answer_tag = self._get_env_var("DEFAULT_ANSWER_TAG", "interview")
        self.generation_claim_ttl_seconds = self._get_int("GENERATION_CLAIM_TTL_SECONDS", 120)

        # Characters of resume text sent for extraction
        self.resume_text_limit = self._get_int("RESUME_TEXT_LIMIT", 12000)

        self._validate_config()

    def _get_env_var(self, var_name: str, default: Optional[str] = None) -> Optional[str]:
        """Read a variable; blank values count as unset"""
        value = os.getenv(var_name)
        if value is None or not value.strip():
            return default
        return value.strip()

    def _get_int(self, var_name: str, default: int) -> int:
        value = self._get_env_var(var_name)
        if value is None:
            return default
        try:
            number = int(value)
        except ValueError:
            raise ValueError(f"{var_name} must be an integer, got {value!r}")
        if number <= 0:
            raise ValueError(f"{var_name} must be positive, got {number}")
        return number

    @property
    def missing_settings(self) -> List[str]:
        """Names of required settings that are not set"""
        required = {
            "AWS_ACCESS_KEY_ID": self.aws_access_key_id,
            "AWS_SECRET_ACCESS_KEY": self.aws_secret_access_key,
            "S3_BUCKET_NAME": self.s3_bucket_name,
            "DATABASE_URL or SUPABASE_DATABASE_URL": self.db_connection_string,
        }
        return [name for name, value in required.items() if not value]

    def _validate_config(self):
        missing = self.missing_settings
        if not missing:
            print("✅ All required environment variables are set")
            return
        print("⚠️ Missing required environment variables:")
        for name in missing:
            print(f"   - {name}")

    @property
    def is_configured(self) -> bool:
        return not self.missing_settings

    def get_config_status(self) -> Dict[str, Any]:
        """Non-secret settings, for the debug panel"""
        return {
            "aws_region": self.aws_region,
            "bedrock_model_id": self.bedrock_model_id,
            "s3_bucket_name": self.s3_bucket_name,
            "database_configured": bool(self.db_connection_string),
            "questions_per_session": self.questions_per_session,
            "missing": self.missing_settings,
            "fully_configured": self.is_configured,
        }
