import json
from typing import Annotated, Dict, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Call Center Reports"
    environment: str = "development"
    base_url: str = "https://portal.example.com"
    account_id_header: Optional[str] = None
    user_agent: str = "portal"
    portal_token: Optional[str] = None
    portal_tokens: Annotated[Dict[str, str], NoDecode] = {}
    cache_ttl_seconds: float = 300.0
    max_retries: int = 3
    retry_base_delay: float = 1.0
    http_timeout: float = 30.0
    default_row_limit: int = 1000
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 9595

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
    )

    @field_validator("portal_tokens", mode="before")
    def parse_portal_tokens(cls, value: object) -> Dict[str, str]:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {str(key): str(token) for key, token in value.items()}
        if isinstance(value, str):
            cleaned = value.strip()
            if cleaned == "":
                return {}
            if cleaned.startswith("{"):
                return json.loads(cleaned)
            tokens: Dict[str, str] = {}
            for item in cleaned.split(","):
                tenant, sep, token = item.partition("=")
                if sep and tenant.strip() and token.strip():
                    tokens[tenant.strip()] = token.strip()
            return tokens
        raise ValueError("portal_tokens must be a mapping or 'tenant=token' list")

    @field_validator("base_url")
    def strip_base_url(cls, value: str) -> str:
        return value.rstrip("/")


settings = Settings()
