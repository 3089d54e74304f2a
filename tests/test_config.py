"""Tests for configuration parsing."""

from unittest.mock import patch

from carecompanion.config import Config, Tokens, load_config, parse_config


class TestParseConfig:
    def test_defaults(self):
        assert parse_config("") == Config()

    def test_values(self):
        config = parse_config(
            """
            # CareCompanion
            API_URL=https://care.example.com/
            PATIENT_ID="p1"  # the patient
            USER_ID=u1 # me
            TIMEZONE='Europe/Paris'
            DUE_NOW_MINUTES=15
            UPCOMING_MINUTES=45
            CALENDAR_DAYS=14
            """
        )
        assert config.api_url == "https://care.example.com"
        assert config.patient_id == "p1"
        assert config.user_id == "u1"
        assert config.timezone == "Europe/Paris"
        assert (config.due_now_minutes, config.upcoming_minutes, config.calendar_days) == (15, 45, 14)

    def test_bad_integer_keeps_default(self, caplog):
        config = parse_config("DUE_NOW_MINUTES=soon\nnot a setting\nCOLOR=blue")
        assert config.due_now_minutes == 30
        assert "DUE_NOW_MINUTES" in caplog.text


class TestLoad:
    def test_missing_file(self, tmp_path):
        with patch("carecompanion.config.CONFIG_FILE", tmp_path / "missing.conf"):
            assert load_config() == Config()

    def test_reads_file(self, tmp_path):
        config_file = tmp_path / "carecompanion.conf"
        config_file.write_text("PATIENT_ID=p9\n")
        with patch("carecompanion.config.CONFIG_FILE", config_file):
            assert load_config().patient_id == "p9"

    def test_tokens_round_trip(self, tmp_path):
        token_file = tmp_path / "config" / ".tokens.json"
        with patch("carecompanion.config.TOKEN_FILE", token_file):
            assert Tokens.load() == Tokens()
            Tokens(access_token="abc").save()
            assert Tokens.load().access_token == "abc"
            assert token_file.stat().st_mode & 0o777 == 0o600
