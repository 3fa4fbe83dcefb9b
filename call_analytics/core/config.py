import json
from functools import lru_cache
from typing import Annotated, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Call Analytics Dashboard"
    environment: str = "development"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: Annotated[List[str], NoDecode] = ["http://localhost:3000"]

    # Required: the service refuses to start without them.
    database_url: str = Field(min_length=1)
    elevenlabs_webhook_secret: str = Field(min_length=1)
    elevenlabs_api_key: str = Field(min_length=1)
    pinecone_api_key: str = Field(min_length=1)
    pinecone_host: str = Field(min_length=1)

    webhook_signature_header: str = "ElevenLabs-Signature"
    webhook_tolerance_seconds: int = 30 * 60

    elevenlabs_base_url: str = "https://api.elevenlabs.io"
    elevenlabs_timeout_seconds: float = 5.0

    pinecone_namespace: str = "__default__"
    pinecone_api_version: str = "2025-01"
    pinecone_timeout_seconds: float = 10.0

    db_pool_size: int = 2
    db_max_overflow: int = 18
    db_pool_timeout_seconds: float = 5.0
    db_isolation_level: Optional[str] = "READ COMMITTED"
    db_echo: bool = False
    transaction_timeout_seconds: float = 10.0
    create_tables_on_startup: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("cors_origins", mode="before")
    def parse_cors_origins(cls, value: object) -> List[str]:
        if value is None:
            return []
        if isinstance(value, list):
            return value
        if isinstance(value, str):
            cleaned = value.strip()
            if cleaned == "":
                return []
            if cleaned.startswith("["):
                return json.loads(cleaned)
            return [item.strip() for item in cleaned.split(",") if item.strip()]
        return [str(value)]


@lru_cache
def get_settings() -> Settings:
    return Settings()
