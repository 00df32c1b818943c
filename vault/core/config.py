from functools import lru_cache
import logging
from pathlib import Path
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from vault.core.logger import setup_logger, init_sentry


class Settings(BaseSettings):
    # Application settings
    ENVIRONMENT: str = "development"  # Options: development, production, test
    API_DOMAIN: str = "http://localhost:8000"
    APP_NAME: str = "College Vault"
    APP_VERSION: str = "1.0.0"
    APP_DESCRIPTION: str = """
College Vault is a personal document vault for students: certificates, fee receipts,
transcripts and ID cards, organised by semester and year.

## Secure downloads

Documents marked **secure** can only be downloaded after a step-up check:

1. Re-enter your password via `POST /auth/step-up`
2. Receive a **6-digit code** by email and SMS (valid for 5 minutes)
3. Submit it via `POST /auth/step-up/verify`
4. Use the returned short-lived `download_url`

## Authentication

Most endpoints require a **Bearer JWT** obtained via `/auth/login` or `/auth/register`.
"""
    DEBUG: bool = False
    LOG_DIR: str = "logs"

    # CORS settings
    CORS_ALLOW_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:8080"]
    CORS_ALLOW_CREDENTIALS: bool = True

    # JWT (session) settings
    JWT_SECRET_KEY: str = "vault_jwt_secret_change_in_production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_HOURS: int = 24

    # Database settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./vault.db"

    # Redis settings
    REDIS_URL: str = "redis://localhost:6379/0"

    # Rate limiting settings
    RATE_LIMIT_BACKEND: Literal["memory", "redis"] = "memory"
    RATE_LIMIT_DEFAULT_REQUESTS: int = 100
    RATE_LIMIT_DEFAULT_WINDOW: int = 60  # seconds
    AUTH_RATE_LIMIT_REQUESTS: int = 10
    AUTH_RATE_LIMIT_WINDOW: int = 60  # seconds

    # One-time code (step-up) settings
    OTP_LENGTH: int = 6
    OTP_EXPIRY_MINUTES: int = 5
    OTP_HMAC_SECRET: str = "otp_hmac_secret_key_change_in_production"
    OTP_MAX_FAILED_ATTEMPTS: int = 5
    OTP_ATTEMPT_WINDOW_SECONDS: int = 15 * 60
    STEP_UP_INVALIDATE_PREVIOUS_CODES: bool = False

    # Download authorization settings
    DOWNLOAD_TOKEN_SECRET: str = "download_token_secret_change_in_production"
    DOWNLOAD_TOKEN_EXPIRY_MINUTES: int = 5

    # Delivery settings
    DELIVERY_TIMEOUT_SECONDS: float = 10.0

    # Brevo (email) settings; an empty API key leaves the email channel unconfigured
    BREVO_API_KEY: str = ""
    BREVO_BASE_URL: str = "https://api.brevo.com/v3"
    BREVO_SENDER_EMAIL: str = "no-reply@collegevault.local"
    BREVO_SENDER_NAME: str = "College Vault"

    # Twilio (SMS) settings; all three are required for the SMS channel
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_PHONE_NUMBER: str = ""

    # Storage settings
    UPLOAD_DIR: str = "uploads"
    STORAGE_QUOTA_BYTES: int = 5 * 1024 * 1024 * 1024
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024
    TEMPLATE_DIR: str = str(Path(__file__).resolve().parent.parent / "templates")

    # Infrastructure flags
    ENABLE_SCHEDULER: bool = True
    OTC_SWEEP_INTERVAL_MINUTES: int = 60

    # Sentry settings
    SENTRY_DSN: str = ""
    SENTRY_ENVIRONMENT: str = "development"
    SENTRY_TRACES_SAMPLE_RATE: float = 0.1

    model_config: SettingsConfigDict = SettingsConfigDict(  # type: ignore
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _validate_production_secrets(self) -> "Settings":
        """Ensure insecure default secrets are overridden in production."""
        if self.ENVIRONMENT != "production":
            return self

        insecure_defaults: dict[str, str] = {
            "JWT_SECRET_KEY": "vault_jwt_secret_change_in_production",
            "OTP_HMAC_SECRET": "otp_hmac_secret_key_change_in_production",
            "DOWNLOAD_TOKEN_SECRET": "download_token_secret_change_in_production",
        }

        still_default = [
            name
            for name, default_val in insecure_defaults.items()
            if getattr(self, name) == default_val
        ]

        if still_default:
            raise ValueError(
                f"ENVIRONMENT is 'production' but the following secrets still "
                f"have their insecure default values: {', '.join(still_default)}. "
                f"Set them via environment variables or .env file."
            )

        if self.DOWNLOAD_TOKEN_SECRET == self.JWT_SECRET_KEY:
            raise ValueError(
                "DOWNLOAD_TOKEN_SECRET must differ from JWT_SECRET_KEY in production."
            )

        return self


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

if not settings.DEBUG:
    init_sentry(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
    )


def _component_logger(name: str, file_name: str, tag: str) -> logging.Logger:
    return setup_logger(
        name=name,
        log_file=f"{settings.LOG_DIR}/{file_name}",
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        sentry_tag=tag,
    )


# One logger per component, each with its own file and Sentry tag
app_logger = _component_logger("app_logger", "app.log", "app")
database_logger = _component_logger("database_logger", "database.log", "database")
request_logger = _component_logger("request_logger", "requests.log", "request")
auth_logger = _component_logger("auth_logger", "auth.log", "auth")
step_up_logger = _component_logger("step_up_logger", "step_up.log", "step_up")
brevo_logger = _component_logger("brevo_logger", "brevo.log", "email")
sms_logger = _component_logger("sms_logger", "sms.log", "sms")
delivery_logger = _component_logger("delivery_logger", "delivery.log", "delivery")
scheduler_logger = _component_logger("scheduler_logger", "scheduler.log", "scheduler")
utils_logger = _component_logger("utils_logger", "utils.log", "utils")
redis_logger = _component_logger("redis_logger", "redis.log", "redis")
rate_limit_logger = _component_logger(
    "rate_limit_logger", "rate_limit.log", "rate_limit"
)
document_logger = _component_logger("document_logger", "documents.log", "documents")
storage_logger = _component_logger("storage_logger", "storage.log", "storage")

__all__ = [
    "Settings",
    "get_settings",
    "settings",
    "app_logger",
    "database_logger",
    "request_logger",
    "auth_logger",
    "step_up_logger",
    "brevo_logger",
    "sms_logger",
    "delivery_logger",
    "scheduler_logger",
    "utils_logger",
    "redis_logger",
    "rate_limit_logger",
    "document_logger",
    "storage_logger",
]
