from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

TELEGRAM_API_BASE = "https://api.telegram.org/bot"
SOLAR_DATA_URL = "https://www.hamqsl.com/solarvhf.php"

REQUIRED_VARIABLES = {
    "TELEGRAM_BOT_TOKEN": "Telegram bot token",
    "TARGET_CHAT_ID": "Target chat ID",
    "MASTER_ID": "Master user ID for error notifications",
}


class ConfigurationError(Exception):
    """Raised when required environment values are missing or malformed"""

    def __init__(self, message: str, missing: Optional[list[str]] = None):
        super().__init__(message)
        self.missing = missing or []


class Settings(BaseSettings):
    """Project configuration loaded from environment and .env file."""

    telegram_bot_token: str = ""
    target_chat_id: str = ""
    master_id: str = ""
    request_timeout: str = ""  # seconds; empty means wait for the HTTP stack indefinitely
    report_schedule: str = "0 6 * * *"  # crontab syntax
    timezone: str = "UTC"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


class Config(BaseModel):
    """Per-invocation configuration record."""

    token: str
    target_chat_id: str
    master_id: int
    solar_data_url: str = SOLAR_DATA_URL
    api_base: str = TELEGRAM_API_BASE
    request_timeout: Optional[float] = None

    model_config = ConfigDict(frozen=True)


def load_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def load_environment() -> dict[str, Optional[str]]:
    """Collect the raw values resolve_config expects from the process environment."""
    settings = load_settings()
    return {
        "TELEGRAM_BOT_TOKEN": settings.telegram_bot_token,
        "TARGET_CHAT_ID": settings.target_chat_id,
        "MASTER_ID": settings.master_id,
        "REQUEST_TIMEOUT": settings.request_timeout,
    }


def _parse_master_id(value: str) -> int:
    try:
        return int(value.strip(), 10)
    except ValueError:
        raise ConfigurationError(f"MASTER_ID must be an integer chat id, got {value!r}")


def resolve_config(env: Mapping[str, Optional[str]]) -> Config:
    """Build a Config from a mapping of environment variable names to values.

    All missing required variables are listed in a single ConfigurationError.
    Blank values count as missing.
    """
    missing = [key for key in REQUIRED_VARIABLES if not (env.get(key) or "").strip()]
    if missing:
        details = "\n- ".join(f"{key} ({REQUIRED_VARIABLES[key]})" for key in missing)
        raise ConfigurationError(f"Missing required environment variables:\n- {details}", missing=missing)

    timeout = (env.get("REQUEST_TIMEOUT") or "").strip() or None
    try:
        return Config(
            token=env["TELEGRAM_BOT_TOKEN"].strip(),
            target_chat_id=env["TARGET_CHAT_ID"].strip(),
            master_id=_parse_master_id(env["MASTER_ID"]),
            request_timeout=timeout,
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")
