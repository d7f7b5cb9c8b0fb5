import os
from pydantic import BaseModel

from .errors import ConfigurationError

class Settings(BaseModel):
    # Basic
    ENV: str = os.getenv("ENV", "dev")

    # Estimation model
    MODEL_PROVIDER: str = os.getenv("MODEL_PROVIDER", "gemini")  # gemini | mock
    GEMINI_API_KEY: str | None = os.getenv("GEMINI_API_KEY")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    GEMINI_BASE_URL: str | None = os.getenv("GEMINI_BASE_URL")  # proxy override; SDK default when unset
    MODEL_TIMEOUT_SECONDS: float = float(os.getenv("MODEL_TIMEOUT_SECONDS", "120"))

    # Opt-in recovery policies (both off by default)
    MODEL_MAX_RETRIES: int = int(os.getenv("MODEL_MAX_RETRIES", "0"))
    MODEL_RETRY_BACKOFF_SECONDS: float = float(os.getenv("MODEL_RETRY_BACKOFF_SECONDS", "1.0"))
    MODEL_REPAIR_ATTEMPTS: int = int(os.getenv("MODEL_REPAIR_ATTEMPTS", "0"))

    # Upload limits
    MAX_PHOTOS: int = int(os.getenv("MAX_PHOTOS", "20"))
    MAX_PHOTO_BYTES: int = int(os.getenv("MAX_PHOTO_BYTES", str(15 * 1024 * 1024)))

    # Allowed drift between total_estimated_cost and the sum of room totals
    RECONCILIATION_TOLERANCE: float = float(os.getenv("RECONCILIATION_TOLERANCE", "0.10"))

    # Notification relay
    TELEGRAM_BOT_TOKEN: str | None = os.getenv("TELEGRAM_BOT_TOKEN")
    TELEGRAM_CHAT_ID: str | None = os.getenv("REMINDER_TELEGRAM_CHAT_ID") or os.getenv("TELEGRAM_CHAT_ID")
    TELEGRAM_API_URL: str = os.getenv("TELEGRAM_API_URL", "https://api.telegram.org")

    # Security
    API_KEY: str | None = os.getenv("API_KEY")
    RATE_LIMIT_RPM: int = int(os.getenv("RATE_LIMIT_RPM", "30"))
    RATE_LIMIT_WINDOW_SECONDS: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))

    # CORS
    ALLOW_ORIGINS: str = os.getenv("ALLOW_ORIGINS", "*")

    # Counter store
    USE_REDIS: bool = os.getenv("USE_REDIS", "false").lower() == "true"
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # Metrics
    PROMETHEUS_ENABLED: bool = os.getenv("PROMETHEUS_ENABLED", "true").lower() == "true"

    def require_gemini_api_key(self) -> str:
        """Startup check for the model credential. There is no fallback key."""
        if not self.GEMINI_API_KEY or not self.GEMINI_API_KEY.strip():
            raise ConfigurationError("GEMINI_API_KEY is required when MODEL_PROVIDER=gemini")
        return self.GEMINI_API_KEY.strip()

settings = Settings()
