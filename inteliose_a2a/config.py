"""
Runtime configuration, read from the environment and an optional .env file
"""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///inteliose.db"
    HOST: str = "127.0.0.1"
    PORT: int = 3001
    LOG_LEVEL: str = "info"

    # Market data aggregator
    DEXSCREENER_URL: str = "https://api.dexscreener.com"
    MARKET_TIMEOUT: float = 8.0

    # LLM verdicts; the health check falls back to a neutral verdict without a key
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_URL: str = "https://generativelanguage.googleapis.com"
    LLM_TIMEOUT: float = 15.0

    # Auto-publishing of completed analyses
    FARCASTER_AUTO_CAST: bool = False
    NEYNAR_API_KEY: Optional[str] = None
    NEYNAR_SIGNER_UUID: Optional[str] = None
    NEYNAR_URL: str = "https://api.neynar.com"
    PUBLISH_TIMEOUT: float = 10.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def publishing_enabled(self) -> bool:
        return bool(self.FARCASTER_AUTO_CAST and self.NEYNAR_API_KEY and self.NEYNAR_SIGNER_UUID)

@lru_cache()
def get_settings() -> Settings:
    return Settings()
