"""
Configuration management using Pydantic Settings
"""
from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# .env lives in the project root, one level above the package
ENV_FILE = Path(__file__).resolve().parent.parent / ".env"
if ENV_FILE.exists():
    load_dotenv(ENV_FILE)


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    # Application
    app_name: str = "Matchup Parser"
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["text", "json"] = Field(default="text", description="Log format")
    allowed_origins: str = Field(default="*", description="Allowed CORS origins (comma-separated)")

    # Vision model
    openai_api_key: str = Field(default="", description="OpenAI API key")
    openai_model: str = Field(default="gpt-4o-mini", description="Vision-capable chat model")
    openai_timeout_seconds: float = Field(default=60.0, gt=0, le=600, description="Vision call timeout")
    openai_temperature: float = Field(default=0.0, ge=0.0, le=2.0)

    # Key-value store
    kv_backend: Literal["memory", "upstash"] = Field(default="memory", description="History backend")
    upstash_redis_rest_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("upstash_redis_rest_url", "kv_rest_api_url"),
        description="Upstash / Vercel KV REST URL",
    )
    upstash_redis_rest_token: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("upstash_redis_rest_token", "kv_rest_api_token"),
        description="Upstash / Vercel KV REST token",
    )
    kv_key_prefix: str = Field(default="mp", min_length=1)
    kv_timeout_seconds: float = Field(default=10.0, gt=0, le=120)

    # History / normalization
    history_capacity: int = Field(default=5, ge=1, le=100, description="Entries kept per week")
    invalid_record_policy: Literal["reject", "skip"] = Field(
        default="reject",
        description="'reject' fails the whole batch on a bad record, 'skip' drops the record",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_level(cls, v):
        return str(v or "INFO").upper()

    @property
    def origins(self) -> List[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()] or ["*"]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
