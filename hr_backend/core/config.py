"""
Configuration for the HR records backend.

Static settings (database connection) are loaded once through Pydantic
Settings from environment variables or a `.env` file. Tunables that tests
and operators change at runtime (upload limits, exclusive document types,
storage location) are read through small helpers on every call.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pathlib import Path
from dotenv import load_dotenv
import logging
import os

ENV_PATH = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(ENV_PATH, override=False)


DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024

ALLOWED_MIME_TYPES = frozenset(
    {
        "application/pdf",
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
    }
)

DEFAULT_EMPLOYEE_DOCUMENT_TYPES = (
    "id_or_residency",
    "employment_letter",
    "bank_iban",
    "primary_qualification",
    "employment_contract",
    "additional_courses",
    "passport",
    "professional_license",
    "experience_certificate",
    "classification",
    "speech_therapy_course",
    "physical_therapy_course",
)


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    # Database connection string. Default is a local SQLite file.
    database_url: str = Field(
        default="sqlite+pysqlite:///./hr_records.db",
        env="DATABASE_URL",
    )

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings = Settings()


def get_app_env() -> str:
    raw = os.getenv("HR_ENV") or os.getenv("APP_ENV") or "dev"
    env = raw.strip().lower()
    if env not in {"dev", "prod"}:
        logging.getLogger("config").warning("Unknown HR_ENV=%s; defaulting to dev", raw)
        env = "dev"
    return env


def env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


def _csv_env(name: str, default: tuple[str, ...]) -> frozenset[str]:
    raw = os.getenv(name)
    if raw is None:
        return frozenset(default)
    return frozenset(part.strip().lower() for part in raw.split(",") if part.strip())


def max_upload_bytes() -> int:
    raw = os.getenv("MAX_UPLOAD_BYTES", str(DEFAULT_MAX_UPLOAD_BYTES))
    try:
        val = int(raw)
    except Exception:
        val = DEFAULT_MAX_UPLOAD_BYTES
    return max(val, 1024)


def exclusive_document_types() -> frozenset[str]:
    """Document types for which only one active record per owner may exist."""
    return _csv_env("EXCLUSIVE_DOCUMENT_TYPES", ("license",))


def employee_document_types() -> frozenset[str]:
    return _csv_env("EMPLOYEE_DOCUMENT_TYPES", DEFAULT_EMPLOYEE_DOCUMENT_TYPES)


def document_storage_dir() -> Path:
    base_dir = os.getenv("DOCUMENT_STORAGE_DIR")
    if base_dir:
        return Path(base_dir).expanduser()
    return Path(__file__).resolve().parents[2] / "data" / "documents"


def _is_weak_secret(secret: str | None) -> bool:
    if not secret:
        return True
    secret = secret.strip()
    if len(secret) < 20:
        return True
    weak = {"change-me", "changeme", "password", "admin", "secret"}
    return secret.lower() in weak


def validate_runtime_settings() -> None:
    env = get_app_env()
    logger = logging.getLogger("config")

    jwt_secret = (os.getenv("HR_JWT_SECRET") or "").strip()
    admin_password = (os.getenv("HR_ADMIN_PASSWORD") or "").strip()
    if env == "prod":
        if _is_weak_secret(jwt_secret):
            raise RuntimeError("HR_JWT_SECRET must be set to a strong value in prod.")
        if env_flag("AUTO_SEED_ADMIN_USER", "true") and not admin_password:
            raise RuntimeError("HR_ADMIN_PASSWORD must be set in prod.")
        if env_flag("AUTO_CREATE_DB", "true"):
            logger.warning("AUTO_CREATE_DB is enabled in prod. Consider setting it to false.")
    elif _is_weak_secret(jwt_secret):
        logger.warning("HR_JWT_SECRET is weak or missing; dev fallback will be used.")


validate_runtime_settings()
