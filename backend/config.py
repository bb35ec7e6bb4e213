"""
Configuration management for the Part QA Tracker backend
"""
from urllib.parse import quote_plus
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Store (MySQL)
    db_host: str = "localhost"
    db_port: int = 3306
    db_user: str = "root"
    db_password: str = ""
    db_name: str = "atlascopco_qa"
    db_pool_size: int = 10
    db_pool_timeout: float = 30.0  # seconds a caller waits for a free connection

    # Full async URL, overrides the db_* fields (e.g. sqlite+aiosqlite:///./qa.db)
    database_url: str = ""

    # Server
    backend_host: str = "0.0.0.0"
    backend_port: int = 3001
    python_env: str = "development"

    model_config = SettingsConfigDict(
        extra="ignore",  # Ignore extra fields like REACT_APP_* from .env
        env_file=".env",
        env_file_encoding="utf-8"
    )

    # CORS
    cors_origins: list = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Query façade (HTTP transport)
    api_base_url: str = "http://localhost:3001/api"
    request_timeout: float = 30.0

    # Parts table
    items_per_page: int = 10

    # Chat assistant
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    enable_ai_assistant: bool = True

    @property
    def store_url(self) -> str:
        """SQLAlchemy async URL for the issue store"""
        if self.database_url:
            return self.database_url
        return (
            f"mysql+aiomysql://{quote_plus(self.db_user)}:{quote_plus(self.db_password)}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
