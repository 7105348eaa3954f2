"""
Football Academy Backend — Application Configuration
======================================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; checked again in the app lifespan.
"""

from decimal import Decimal
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

DEFAULT_JWT_SECRET = "change-me-in-production"
DEFAULT_ADMIN_PASSWORD = "admin123"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have development defaults. Production deployments must
    override JWT_SECRET_KEY, ADMIN_PASSWORD and CORS_ORIGINS.
    """

    # ── Database ──────────────────────────────────────────────────────────
    # Format: sqlite+aiosqlite:///path or postgresql+asyncpg://user:pw@host/db
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/academy.db",
        description="Async SQLAlchemy connection URL",
    )

    # Pool sizing is ignored for SQLite (single-file database, no server pool)
    db_pool_size: int = Field(default=10, ge=1, le=100)
    db_max_overflow: int = Field(default=10, ge=0, le=50)
    db_pool_pre_ping: bool = Field(default=True)

    # What: Create missing tables on startup (SQLite development convenience)
    # Alembic remains the source of truth for server databases
    db_create_all: bool = Field(default=True)

    # ── Authentication ────────────────────────────────────────────────────
    jwt_secret_key: str = Field(default=DEFAULT_JWT_SECRET, min_length=8)
    jwt_algorithm: str = Field(default="HS256")
    jwt_issuer: str = Field(default="football-academy")
    access_token_expire_hours: int = Field(default=24, ge=1, le=720)
    refresh_token_expire_days: int = Field(default=7, ge=1, le=90)
    # bcrypt work factor; the test suite drops this to 4
    bcrypt_rounds: int = Field(default=12, ge=4, le=16)

    # ── Bootstrap Admin ───────────────────────────────────────────────────
    # Seeded on startup when no admin account exists yet
    admin_username: str = Field(default="admin")
    admin_email: str = Field(default="admin@footballacademy.com")
    admin_password: str = Field(default=DEFAULT_ADMIN_PASSWORD, min_length=6)
    admin_full_name: str = Field(default="Academy Administrator")

    # ── File Storage ──────────────────────────────────────────────────────
    # Player profile photos live under <storage_root>/players/YYYY/MM/
    storage_root: str = Field(default="./storage")

    # Default: 5MB. Valid range: 100KB to 20MB
    max_file_size: int = Field(default=5_242_880, ge=102_400, le=20_971_520)

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Billing ───────────────────────────────────────────────────────────
    default_currency: str = Field(default="HUF", min_length=3, max_length=3)
    invoice_due_days: int = Field(default=15, ge=0, le=120)
    # Fraction, e.g. 0.27 for 27% VAT. Zero means invoices carry no tax line
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=1)

    # ── QR Check-in ───────────────────────────────────────────────────────
    qr_token_ttl_hours: int = Field(default=24, ge=1, le=168)
    checkin_open_minutes_before: int = Field(default=30, ge=0, le=240)
    checkin_close_minutes_after: int = Field(default=15, ge=0, le=240)

    # ── Retry Configuration ───────────────────────────────────────────────
    # Tenacity settings for invoice/payment number allocation under lock contention
    retry_max_attempts: int = Field(default=3, ge=1, le=10)
    retry_min_wait: float = Field(default=0.1, ge=0, le=30)
    retry_max_wait: float = Field(default=2.0, ge=0.1, le=120)

    # ── Rate Limiting ─────────────────────────────────────────────────────
    rate_limit_requests: int = Field(default=1000, ge=10, le=100000)
    rate_limit_window: int = Field(default=3600, ge=60, le=86400)  # seconds
    # Stricter window for POST /api/auth/login (credential guessing)
    login_rate_limit_requests: int = Field(default=10, ge=1, le=1000)
    login_rate_limit_window: int = Field(default=300, ge=10, le=86400)

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def validate_required_for_production(self) -> None:
        """
        Raises ValueError listing every insecure default still in use.
        Called during app startup (lifespan).
        """
        errors = []
        if self.jwt_secret_key == DEFAULT_JWT_SECRET:
            errors.append("JWT_SECRET_KEY is using the development default.")
        if self.admin_password == DEFAULT_ADMIN_PASSWORD:
            errors.append("ADMIN_PASSWORD is using the development default.")
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


settings = Settings()
