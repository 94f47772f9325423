import pytest

from config import Config


@pytest.mark.unit
class TestConfig:
    def test_defaults(self, config):
        assert config.is_configured
        assert config.bedrock_model_id == "anthropic.claude-3-haiku-20240307-v1:0"
        assert config.questions_per_session == 5
        assert config.default_answer_tag == "interview"
        assert config.generation_claim_ttl_seconds == 120
        assert config.resume_text_limit == 12000
        assert config.db_connection_string == "postgresql://localhost/interview_prep_test"

    def test_supabase_url_wins(self, config, monkeypatch):
        monkeypatch.setenv("SUPABASE_DATABASE_URL", "postgresql://supabase/db")
        assert Config().db_connection_string == "postgresql://supabase/db"

    def test_missing_values_are_reported(self, config, monkeypatch, capsys):
        monkeypatch.delenv("S3_BUCKET_NAME")
        monkeypatch.setenv("QUESTIONS_PER_SESSION", "3")
        missing = Config()

        assert not missing.is_configured
        assert missing.questions_per_session == 3
        assert "S3_BUCKET_NAME" in capsys.readouterr().out
        assert missing.get_config_status()["fully_configured"] is False

    @pytest.mark.parametrize("value", ["five", "0", "-3"])
    def test_bad_numbers_are_rejected(self, config, monkeypatch, value):
        monkeypatch.setenv("QUESTIONS_PER_SESSION", value)
        with pytest.raises(ValueError):
            Config()

    def test_blank_value_falls_back_to_default(self, config, monkeypatch):
        monkeypatch.setenv("RESUME_TEXT_LIMIT", "  ")
        assert Config().resume_text_limit == 12000
