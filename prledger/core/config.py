"""Application configuration from environment variables."""

from functools import lru_cache
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings, SettingsConfigDict

from prledger.core.enums import ExerciseModality, ProgressionModelName


class Settings(BaseSettings):
    """Settings loaded from environment (and .env file)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PRLEDGER_",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "PR Ledger API"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # API
    api_v1_prefix: str = "/api/v1"
    cors_origins: str = ""  # comma-separated, used outside development

    # Database. PRLEDGER_DB_URL wins when set (e.g. sqlite+aiosqlite:///./prledger.db)
    db_url: str | None = None
    database_host: str = "localhost"
    database_port: int = 5432
    database_user: str = "prledger"
    database_password: str = ""  # Set in .env - never commit
    database_name: str = "prledger"
    database_ssl_mode: str = "disable"

    # Pool (ignored for sqlite)
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # PR detection
    pr_tolerance: float = 0.1
    rep_specific_max_reps: int = 10
    epley_coefficient: float = 0.0333

    # Progression
    progression_increment: float = 5.0
    double_progression_min_reps: int = 8
    double_progression_max_reps: int = 12
    linear_target_reps: int | None = None  # None: reuse the last logged reps
    bodyweight_add_weight: bool = False  # False: bodyweight double progression only ever adds reps
    # Modalities missing here fall back on the last reps (double inside the double band, else linear)
    default_progression_models: dict[ExerciseModality, ProgressionModelName] = {
        ExerciseModality.BODYWEIGHT: ProgressionModelName.DOUBLE,
        ExerciseModality.BANDED: ProgressionModelName.BANDED,
    }

    # Bands, lightest resistance first
    band_order: list[str] = ["red", "blue", "green", "black"]
    band_max_reps: int = 15
    band_reset_reps: int = 8

    def _build_db_url(self, scheme: str = "postgresql", ssl_query: str = "sslmode=disable") -> str:
        user = quote_plus(self.database_user)
        password = quote_plus(self.database_password)
        return (
            f"{scheme}://{user}:{password}@{self.database_host}:{self.database_port}"
            f"/{self.database_name}?{ssl_query}"
        )

    @property
    def database_url(self) -> str:
        """Synchronous URL for Alembic and tooling."""
        if self.db_url:
            return self.db_url.replace("+aiosqlite", "").replace("+asyncpg", "+psycopg2")
        return self._build_db_url(scheme="postgresql", ssl_query=f"sslmode={self.database_ssl_mode}")

    @property
    def async_database_url(self) -> str:
        """Async URL for FastAPI (asyncpg driver) or aiosqlite for local runs."""
        if self.db_url:
            return self.db_url
        ssl = "require" if self.database_ssl_mode != "disable" else "disable"
        return self._build_db_url(scheme="postgresql+asyncpg", ssl_query=f"ssl={ssl}")


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
