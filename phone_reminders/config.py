"""Environment configuration for the Phone Reminders service."""

import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


class NotifierConfigurationError(ValueError):
    """Raised when the notification transport cannot be configured."""


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self) -> None:
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./reminders.db")
        self.AUTH_SECRET: str = os.getenv("AUTH_SECRET", "")
        self.FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")
        self.JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")

        # Background scheduler
        self.SCHEDULER_ENABLED: bool = _get_bool("SCHEDULER_ENABLED", True)
        self.SCHEDULER_INTERVAL_SECONDS: int = int(os.getenv("SCHEDULER_INTERVAL_SECONDS", "60"))
        self.SCHEDULER_BATCH_SIZE: int = int(os.getenv("SCHEDULER_BATCH_SIZE", "100"))

        # Twilio transport
        self.TWILIO_ACCOUNT_SID: str = os.getenv("TWILIO_ACCOUNT_SID", "")
        self.TWILIO_AUTH_TOKEN: str = os.getenv("TWILIO_AUTH_TOKEN", "")
        self.TWILIO_PHONE_NUMBER: str = os.getenv("TWILIO_PHONE_NUMBER", "")
        self.TWILIO_VOICE: str = os.getenv("TWILIO_VOICE", "alice")
        self.NOTIFIER_TIMEOUT_SECONDS: float = float(os.getenv("NOTIFIER_TIMEOUT_SECONDS", "10"))
        self.DEFAULT_COUNTRY_CODE: str = os.getenv("DEFAULT_COUNTRY_CODE", "1")

    def validate(self) -> None:
        """Validate that required environment variables are set."""
        if not self.DATABASE_URL:
            raise ValueError("DATABASE_URL environment variable is required")
        if not self.AUTH_SECRET:
            raise ValueError("AUTH_SECRET environment variable is required")

    def validate_notifier(self) -> None:
        """Validate that the Twilio credentials are present.

        Raises:
            NotifierConfigurationError: If any credential is missing
        """
        missing = [
            name
            for name in ("TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_PHONE_NUMBER")
            if not getattr(self, name)
        ]
        if missing:
            raise NotifierConfigurationError(
                f"Missing Twilio credentials: {', '.join(missing)} required"
            )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()
    return settings
