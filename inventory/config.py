from pydantic_settings import BaseSettings
from typing import List
import secrets

class Settings(BaseSettings):
    # Application
    app_name: str = "Server Inventory"
    app_env: str = "development"  # development|staging|alpha|production
    port: int = 8080
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./inventory.db"

    # Tokens
    jwt_secret: str = secrets.token_urlsafe(32)
    jwt_algorithm: str = "HS256"
    jwt_expiration_hours: int = 24

    # Encryption of server login passwords
    encryption_key: str = secrets.token_urlsafe(32)

    # CORS (comma separated lists)
    allowed_origins: str = ""
    custom_domains: str = ""
    preview_domains: str = ""
    cors_allow_all: bool = False

    # Rate limiting
    login_rate_limit: str = "10/minute"

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


def split_csv(value: str) -> List[str]:
    """Split a comma separated setting, dropping blanks"""
    return [part.strip() for part in value.split(",") if part.strip()]


# Create settings instance
settings = Settings()
