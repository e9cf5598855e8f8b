# backend/wims/core/config.py

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_env: str = "dev"

    database_url: str = "sqlite:///./inventory.db"

    # auth
    jwt_secret_key: str = "dev-secret-change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 10080

    # comma-separated allowlist, falls back to frontend_url
    cors_origins: str = ""
    frontend_url: str = "http://localhost:3000"

    log_level: str = "INFO"

    # operational audit feed is capped, the movement ledger is not
    audit_log_limit: int = 100

    # strict: a PO line whose product vanished aborts the whole receipt
    receipt_policy: Literal["strict", "lenient"] = "strict"

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
