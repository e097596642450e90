"""
Mutual Fund Tracking Backend — Application Configuration
=========================================================

What:  Every tunable of the service in one pydantic-settings model.
How:   Values come from environment variables or a .env file, are range
       checked at import, and are exposed through the module-level `settings`.
Who:   Imported by the application factory, the database layer and Alembic.

Database Connection:
    The connection string is assembled from discrete fields (engine kind,
    credentials, host, port, database name, TLS toggle) so each part can be
    overridden independently. Setting DATABASE_URL replaces the assembled
    value entirely (used by tests to point at SQLite).
"""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for local development against the
    docker-compose PostgreSQL instance.
    """

    # ── Database ──────────────────────────────────────────────────────────
    # What: Engine kind; combined with the asyncpg driver for PostgreSQL
    db_type: str = Field(default="postgresql")
    db_user: str = Field(default="postgres")
    db_password: str = Field(default="root")
    db_host: str = Field(default="localhost")
    db_port: int = Field(default=6543, ge=1, le=65535)
    db_name: str = Field(default="mf")

    # What: Connection pool bounds
    # pool_size is the number of persistent connections, max_overflow the
    # temporary extras allowed during spikes
    db_pool_size: int = Field(default=10, ge=1, le=100)
    db_max_overflow: int = Field(default=10, ge=0, le=50)
    db_pool_pre_ping: bool = Field(default=True)

    # What: Disables TLS on the database connection (local development only)
    db_disable_tls: bool = Field(default=True)

    # What: Full SQLAlchemy URL; when set, the discrete fields above are ignored
    database_url: Optional[str] = Field(
        default=None,
        description="Complete async SQLAlchemy URL overriding the db_* fields",
    )

    @property
    def database_dsn(self) -> str:
        """
        What: The SQLAlchemy URL the engine connects to.
        How:  DATABASE_URL verbatim if set, otherwise assembled from db_* fields.
        """
        if self.database_url:
            return self.database_url
        return URL.create(
            drivername=f"{self.db_type.lower()}+asyncpg",
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        ).render_as_string(hide_password=False)

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="localhost")
    backend_port: int = Field(default=8080, ge=1024, le=65535)

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalizes to an upper-case stdlib logging level name."""
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}, got '{v}'")
        return level

    # ── Startup Retry ─────────────────────────────────────────────────────
    # What: Tenacity settings for the database ping performed before serving
    # After the last attempt fails the process exits
    retry_max_attempts: int = Field(default=3, ge=1, le=10)
    retry_min_wait: int = Field(default=1, ge=0, le=30)
    retry_max_wait: int = Field(default=5, ge=1, le=120)

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Singleton instance used when create_app() is called without explicit settings
settings = Settings()
