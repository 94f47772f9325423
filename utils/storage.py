"""
S3 storage for resumes and cover letters
"""

import boto3
from typing import Any, Optional
from botocore.exceptions import BotoCoreError, ClientError


class StorageError(Exception):
    """Raised when a blob cannot be written or linked"""


class S3Storage:
    """Write blobs by path and hand out download URLs"""

    def __init__(self, bucket_name: str, region_name: str = "us-east-1",
                 url_expiry_seconds: int = 3600, client: Any = None):
        """
        Initialize S3 storage

        Args:
            bucket_name: Target bucket
            region_name: AWS region
            url_expiry_seconds: Lifetime of presigned download URLs
            client: Optional pre-built s3 client
        """
        if not bucket_name:
            raise ValueError("S3 bucket name not provided")
        self.bucket_name = bucket_name
        self.url_expiry_seconds = url_expiry_seconds
        self.s3_client = client or boto3.client('s3', region_name=region_name)

    def upload(self, path: str, data: bytes, content_type: Optional[str] = None) -> None:
        extra = {"ContentType": content_type} if content_type else {}
        try:
            self.s3_client.put_object(Bucket=self.bucket_name, Key=path, Body=data, **extra)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to upload s3://{self.bucket_name}/{path}: {str(e)}") from e
        print(f"✅ Uploaded s3://{self.bucket_name}/{path}")

    def get_download_url(self, path: str) -> str:
        try:
            return self.s3_client.generate_presigned_url(
                'get_object',
                Params={"Bucket": self.bucket_name, "Key": path},
                ExpiresIn=self.url_expiry_seconds
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to sign URL for s3://{self.bucket_name}/{path}: {str(e)}") from e

    def upload_resume(self, uid: str, filename: str, data: bytes) -> str:
        """
        Store a resume under resumes/{uid}/

        Returns:
            Download URL
        """
        path = f"resumes/{uid}/{filename}"
        self.upload(path, data, content_type="application/pdf")
        return self.get_download_url(path)

    def upload_cover_letter(self, uid: str, job_id: str, filename: str, data: bytes) -> str:
        """
        Store a cover letter under coverLetters/{uid}/{job_id}/

        Returns:
            Download URL
        """
        path = f"coverLetters/{uid}/{job_id}/{filename}"
        self.upload(path, data)
        return self.get_download_url(path)
