import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_ECHO = _get_bool(os.getenv("DATABASE_ECHO"), default=False)
UPSTREAM_QUERY_TIMEOUT_SECONDS = int(os.getenv("UPSTREAM_QUERY_TIMEOUT_SECONDS", "5"))

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

CORS_ALLOW_ORIGINS = _get_list(os.getenv("CORS_ALLOW_ORIGINS"), ["http://localhost:3000"])

STORAGE_ROOT = os.getenv("STORAGE_ROOT", "./storage")
DOCTOR_CACHE_TTL_SECONDS = int(os.getenv("DOCTOR_CACHE_TTL_SECONDS", "3600"))
DOCTOR_CACHE_MAX_SIZE = int(os.getenv("DOCTOR_CACHE_MAX_SIZE", "256"))

VIDEO_TOKEN_TTL_SECONDS = 3600


def get_video_credentials() -> tuple[str | None, str | None, str | None]:
    # Read per request so rotated credentials apply without a restart.
    return (
        os.getenv("TWILIO_ACCOUNT_SID"),
        os.getenv("TWILIO_API_KEY"),
        os.getenv("TWILIO_API_SECRET"),
    )


def validate_runtime_config() -> None:
    if not DATABASE_URL:
        raise RuntimeError("DATABASE_URL must be set.")
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
