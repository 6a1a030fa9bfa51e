"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Limits that the remote service enforces (e.g. the
batch-write ceiling) are validated at load time.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from firestore_explorer.core.constants import MAX_BATCH_WRITE_SIZE


class Settings(BaseSettings):
    """Settings loaded from environment and .env.

    All settings have defaults; the transfer engine reads page sizes,
    concurrency limits and retry policy from here unless the caller
    passes explicit values.
    """

    # App
    app_name: str = "firestore-explorer"
    debug: bool = False

    # Firestore REST
    firestore_base_url: str = "https://firestore.googleapis.com/v1"
    database_id: str = "(default)"
    http_timeout_seconds: float = 30.0

    # Pagination: exports use a large page to minimise round trips
    export_page_size: int = 1000
    list_page_size: int = 300

    # Bounded concurrency
    export_concurrency: int = 10
    import_concurrency: int = 5
    batch_write_limit: int = MAX_BATCH_WRITE_SIZE

    # Retry (exponential backoff, no jitter)
    retry_max_retries: int = 3
    retry_base_delay_ms: int = 1000

    # Service account: key (JSON string in env) or path (file).
    firebase_service_account_key: SecretStr | None = None
    firebase_service_account_path: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_limits(self) -> "Settings":
        """Validate page sizes, concurrency limits and retry policy."""
        for name in (
            "export_page_size",
            "list_page_size",
            "export_concurrency",
            "import_concurrency",
            "batch_write_limit",
        ):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be a positive integer")
        if self.batch_write_limit > MAX_BATCH_WRITE_SIZE:
            raise ValueError(
                f"batch_write_limit cannot exceed {MAX_BATCH_WRITE_SIZE} "
                "(remote batch-write capacity)"
            )
        if self.retry_max_retries < 0 or self.retry_base_delay_ms < 0:
            raise ValueError("retry_max_retries and retry_base_delay_ms must be >= 0")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached settings (single instance per process).

    In tests, call get_settings.cache_clear() before overriding env vars
    so the next get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
