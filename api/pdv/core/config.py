from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = "sqlite:///./pdv.db"
    database_echo: bool = False
    log_level: str = "INFO"
    cors_origins: list[str] = ["*"]
    # when false the caller's total_amount is stored as sent
    verify_sale_totals: bool = True
    sale_statement_timeout_ms: int = 5000
    low_stock_default: int = 0

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    return Settings()
