"""
Checkout settings (Pydantic Settings).
"""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env next to backend/ (parent of blane_checkout/)
_env_path = Path(__file__).resolve().parent.parent / ".env"


class Settings(BaseSettings):
    # Server-side persistence for TransactionStore (SqlKeyValueStore)
    database_url: str = "sqlite:///./checkout_store.db"
    # Blane front-office API: BLANE_API_URL and BLANE_API_TOKEN in .env
    blane_api_url: str = "http://127.0.0.1:8000"
    blane_api_token: str = ""
    blane_api_timeout: float = 10.0
    default_country_code: str = "212"  # Morocco

    class Config:
        env_file = _env_path
        extra = "ignore"

    @field_validator("blane_api_url", "blane_api_token", "default_country_code", mode="after")
    @classmethod
    def strip_values(cls, v: str) -> str:
        return (v or "").strip()


settings = Settings()
