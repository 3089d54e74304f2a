"""Configuration management for CareCompanion."""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

CARECOMPANION_HOME = Path(os.environ.get("CARECOMPANION_HOME", Path.home() / "carecompanion"))
CONFIG_FILE = CARECOMPANION_HOME / "config" / "carecompanion.conf"
TOKEN_FILE = CARECOMPANION_HOME / "config" / ".tokens.json"


@dataclass
class Config:
    """CareCompanion configuration."""

    api_url: str = "http://localhost:3000"
    patient_id: str = ""
    # Only tasks assigned to this user (or unassigned) are shown when set
    user_id: str = ""
    timezone: str = "America/Toronto"
    due_now_minutes: int = 30
    upcoming_minutes: int = 30
    calendar_days: int = 7


@dataclass
class Tokens:
    """Session token issued by the identity provider."""

    access_token: str = ""

    def save(self) -> None:
        """Save tokens to file."""
        TOKEN_FILE.parent.mkdir(parents=True, exist_ok=True)
        TOKEN_FILE.write_text(json.dumps({"access_token": self.access_token}))
        TOKEN_FILE.chmod(0o600)

    @classmethod
    def load(cls) -> "Tokens":
        """Load tokens from file."""
        if not TOKEN_FILE.exists():
            return cls()
        try:
            data = json.loads(TOKEN_FILE.read_text())
            return cls(access_token=data.get("access_token", ""))
        except (json.JSONDecodeError, AttributeError):
            return cls()


def _parse_int(key: str, value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring non-integer value for {key.upper()}: {value!r}")
        return default


def parse_config(text: str) -> Config:
    """Parse key=value configuration text into a Config."""
    config = Config()

    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = value.strip()

        # Handle quoted values with inline comments: "value" # comment
        if value[:1] in ('"', "'"):
            quote = value[0]
            end_quote = value.find(quote, 1)
            value = value[1:end_quote] if end_quote != -1 else value[1:]
        elif "#" in value:
            value = value.split("#")[0].strip()

        match key:
            case "api_url":
                config.api_url = value.rstrip("/")
            case "patient_id":
                config.patient_id = value
            case "user_id":
                config.user_id = value
            case "timezone":
                config.timezone = value
            case "due_now_minutes":
                config.due_now_minutes = _parse_int(key, value, config.due_now_minutes)
            case "upcoming_minutes":
                config.upcoming_minutes = _parse_int(key, value, config.upcoming_minutes)
            case "calendar_days":
                config.calendar_days = _parse_int(key, value, config.calendar_days)
            case _:
                logger.debug(f"Unknown config key: {key}")

    return config


def load_config() -> Config:
    """Load configuration from carecompanion.conf file."""
    if not CONFIG_FILE.exists():
        return Config()
    return parse_config(CONFIG_FILE.read_text())
