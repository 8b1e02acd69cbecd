from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

SUPPORTED_DB_TYPES = {"memory", "mongodb"}
SUPPORTED_STORAGE_BACKENDS = {"local", "s3"}

DEFAULT_PLACE_IMAGE = (
    "https://images.pexels.com/photos/63553/pexels-photo-63553.jpeg"
    "?auto=compress&cs=tinysrgb&dpr=2&h=750&w=1260"
)
DEFAULT_GEOCODE_CACHE_TTL_SECONDS = 60 * 60 * 24 * 15


def _split_csv(value: str | None) -> tuple[str, ...]:
    if not value:
        return tuple()
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _env(name: str) -> str | None:
    raw_value = os.getenv(name)
    if raw_value is None:
        return None
    normalized = raw_value.strip()
    return normalized or None


def _is_truthy(value: str | None) -> bool:
    return (value or "").lower() in {"1", "true", "yes"}


def collect_missing_required_env_vars() -> list[str]:
    missing: list[str] = []

    for var_name in ("SECRET_KEY", "GOOGLE_MAPS_API_KEY"):
        if _env(var_name) is None:
            missing.append(var_name)

    db_type = (_env("DB_TYPE") or "memory").lower()
    if db_type == "mongodb":
        if _env("MONGO_URL") is None:
            missing.append("MONGO_URL")
        if _env("DB_NAME") is None:
            missing.append("DB_NAME")

    storage_backend = (_env("STORAGE_BACKEND") or "local").lower()
    if storage_backend == "s3" and _env("S3_BUCKET_NAME") is None:
        missing.append("S3_BUCKET_NAME")

    return sorted(set(missing))


def collect_invalid_env_values() -> list[str]:
    invalid_values: list[str] = []

    db_type = (_env("DB_TYPE") or "memory").lower()
    if db_type not in SUPPORTED_DB_TYPES:
        invalid_values.append("DB_TYPE must be one of: memory, mongodb")

    storage_backend = (_env("STORAGE_BACKEND") or "local").lower()
    if storage_backend not in SUPPORTED_STORAGE_BACKENDS:
        invalid_values.append("STORAGE_BACKEND must be one of: local, s3")

    geocode_timeout = _env("GEOCODE_TIMEOUT_SECONDS")
    if geocode_timeout is not None:
        try:
            if float(geocode_timeout) <= 0:
                raise ValueError("must be positive")
        except ValueError:
            invalid_values.append("GEOCODE_TIMEOUT_SECONDS must be a positive number")

    cache_ttl = _env("GEOCODE_CACHE_TTL_SECONDS")
    if cache_ttl is not None:
        try:
            if int(cache_ttl) < 0:
                raise ValueError("must not be negative")
        except ValueError:
            invalid_values.append("GEOCODE_CACHE_TTL_SECONDS must be a non-negative integer")

    return invalid_values


def validate_required_environment() -> None:
    missing_vars = collect_missing_required_env_vars()
    invalid_values = collect_invalid_env_values()
    if not missing_vars and not invalid_values:
        return

    message_lines = ["Application startup blocked by invalid environment configuration."]
    if missing_vars:
        message_lines.append("")
        message_lines.append("Missing required environment variables:")
        message_lines.extend(f"- {name}" for name in missing_vars)
    if invalid_values:
        message_lines.append("")
        message_lines.append("Invalid environment values:")
        message_lines.extend(f"- {message}" for message in invalid_values)
    raise RuntimeError("\n".join(message_lines))


@dataclass(frozen=True)
class Settings:
    env: str
    secret_key: str
    google_maps_api_key: str
    cors_origins: tuple[str, ...]
    debug_include_error_details: bool
    log_level: str
    log_format: str
    db_type: str
    mongo_url: str | None
    db_name: str | None
    redis_url: str
    geocode_timeout_seconds: float
    geocode_cache_ttl_seconds: int
    default_place_image: str
    s3_bucket_name: str | None
    s3_region: str | None
    s3_endpoint_url: str | None
    storage_backend: str
    storage_local_root: str

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    validate_required_environment()

    env = os.getenv("ENV", "development")

    default_redis = (
        os.getenv("REDIS_URL")
        or f"redis://{os.getenv('REDIS_HOST', '127.0.0.1')}:{os.getenv('REDIS_PORT', '6379')}/0"
    )

    settings = Settings(
        env=env,
        secret_key=os.getenv("SECRET_KEY", ""),
        google_maps_api_key=os.getenv("GOOGLE_MAPS_API_KEY", ""),
        cors_origins=_split_csv(os.getenv("CORS_ORIGINS")),
        debug_include_error_details=_is_truthy(os.getenv("DEBUG_INCLUDE_ERROR_DETAILS", "false")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_format=os.getenv("LOG_FORMAT", "json" if env.lower() == "production" else "text").lower(),
        db_type=(_env("DB_TYPE") or "memory").lower(),
        mongo_url=_env("MONGO_URL"),
        db_name=_env("DB_NAME"),
        redis_url=default_redis,
        geocode_timeout_seconds=float(_env("GEOCODE_TIMEOUT_SECONDS") or 10),
        geocode_cache_ttl_seconds=int(
            _env("GEOCODE_CACHE_TTL_SECONDS") or DEFAULT_GEOCODE_CACHE_TTL_SECONDS
        ),
        default_place_image=_env("DEFAULT_PLACE_IMAGE") or DEFAULT_PLACE_IMAGE,
        s3_bucket_name=os.getenv("S3_BUCKET_NAME"),
        s3_region=os.getenv("S3_REGION"),
        s3_endpoint_url=os.getenv("S3_ENDPOINT_URL"),
        storage_backend=os.getenv("STORAGE_BACKEND", "local").lower(),
        storage_local_root=os.getenv("STORAGE_LOCAL_ROOT", "uploads"),
    )

    if settings.is_production and not settings.secret_key:
        raise RuntimeError("SECRET_KEY is required when ENV=production")

    return settings
