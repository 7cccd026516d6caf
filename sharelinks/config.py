import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _resolve_database_url() -> str:
    database_url = os.getenv("DATABASE_URL")
    if database_url:
        return database_url

    environment = os.getenv("ENVIRONMENT", "").strip().lower()
    if environment == "development":
        return "postgresql+psycopg://localhost:5434/sharelinks"

    raise ValueError(
        "DATABASE_URL is not set. Set DATABASE_URL for non-development "
        "environments or set ENVIRONMENT=development for local defaults."
    )


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    environment: str = os.getenv("ENVIRONMENT", "production")
    service_name: str = os.getenv("SERVICE_NAME", "sharelinks")

    database_url: str = _resolve_database_url()
    db_pool_size: int = int(os.getenv("DB_POOL_SIZE", "5"))
    db_max_overflow: int = int(os.getenv("DB_MAX_OVERFLOW", "10"))
    db_pool_timeout: int = int(os.getenv("DB_POOL_TIMEOUT", "30"))
    db_pool_recycle: int = int(os.getenv("DB_POOL_RECYCLE", "1800"))

    # Links
    link_base_url: str = os.getenv("LINK_BASE_URL", "https://sharelinks.example.com")

    # Auth
    jwt_secret: str = os.getenv("JWT_SECRET", "")
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")

    # Policy defaults, seeded when no policy row exists yet
    policy_max_days_internal: int = int(os.getenv("POLICY_MAX_DAYS_INTERNAL", "90"))
    policy_max_days_external: int = int(os.getenv("POLICY_MAX_DAYS_EXTERNAL", "30"))
    policy_allow_public_sharing: bool = _env_bool("POLICY_ALLOW_PUBLIC_SHARING", "true")

    # Scheduling
    celery_broker_url: str = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    celery_result_backend: str = os.getenv(
        "CELERY_RESULT_BACKEND", "redis://localhost:6379/1"
    )
    sync_cron_schedule: str = os.getenv("SYNC_CRON_SCHEDULE", "0 * * * *")
    # lease on the shared sync lock; a crashed holder blocks others at most this long
    sync_lock_ttl: int = int(os.getenv("SYNC_LOCK_TTL", "1800"))
    expiration_cron_schedule: str = os.getenv("EXPIRATION_CRON_SCHEDULE", "0 9 * * *")
    expiration_notification_days: int = int(
        os.getenv("EXPIRATION_NOTIFICATION_DAYS", "7")
    )

    # Microsoft Graph (remote link source)
    graph_base_url: str = os.getenv(
        "GRAPH_BASE_URL", "https://graph.microsoft.com/v1.0"
    )
    graph_tenant_id: str = os.getenv("GRAPH_TENANT_ID", "")
    graph_client_id: str = os.getenv("GRAPH_CLIENT_ID", "")
    graph_client_secret: str = os.getenv("GRAPH_CLIENT_SECRET", "")
    graph_drive_id: str = os.getenv("GRAPH_DRIVE_ID", "")
    graph_timeout: float = float(os.getenv("GRAPH_TIMEOUT", "30"))

    # Email
    smtp_host: str = os.getenv("SMTP_HOST", "")
    smtp_port: int = int(os.getenv("SMTP_PORT", "587"))
    smtp_user: str = os.getenv("SMTP_USER", "")
    smtp_password: str = os.getenv("SMTP_PASSWORD", "")
    smtp_use_tls: bool = _env_bool("SMTP_USE_TLS", "true")
    email_from: str = os.getenv("EMAIL_FROM", "noreply@sharelinks.example.com")

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_format: str = os.getenv("LOG_FORMAT", "json")


settings = Settings()
