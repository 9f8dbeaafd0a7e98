from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseModel):
    log_level: str = "INFO"
    amazon_affiliate_tag: str = "shelfscan-20"
    request_timeout: float = 60.0
    """Upper bound for resolving a whole batch of books, in seconds"""


class CacheSettings(BaseModel):
    redis_url: str | None = None
    """When unset an in-process cache is used"""
    operation_timeout: float = 2.0
    memory_max_entries: int = 10_000
    """Size cap of the in-process cache"""
    book_ttl: int = 60 * 60 * 24 * 30  # 30 days
    rating_ttl: int = 60 * 60 * 24 * 90  # 90 days


class DBSettings(BaseModel):
    url: str | None = None
    """SQLAlchemy async URL of the rating dataset, e.g. postgresql+asyncpg://..."""
    pool_size: int = 5
    max_overflow: int = 0
    pool_timeout: float = 10.0
    acquire_timeout: float = 5.0
    acquire_attempts: int = 3
    retry_delays: list[float] = [1.0, 2.0, 3.0]
    unavailable_cooldown: float = 30.0
    """Seconds to skip the store after acquisition attempts are exhausted"""


class ProviderSettings(BaseModel):
    google_books_api_key: str | None = None
    timeout: float = 10.0


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SHELFSCAN_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    app: AppSettings = AppSettings()
    cache: CacheSettings = CacheSettings()
    db: DBSettings = DBSettings()
    providers: ProviderSettings = ProviderSettings()
