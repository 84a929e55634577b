from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Library Catalog API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "postgresql+asyncpg://postgres:postgres@db:5432/library_catalog"
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30

    # Logging
    LOG_LEVEL: str = "INFO"
    # Third-party loggers held at WARNING so request logs stay readable
    LOG_QUIET_LOGGERS: List[str] = ["uvicorn.access", "sqlalchemy.engine"]

    # Catalog limits
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100
    MAX_COPIES_PER_REQUEST: int = 100

    # Borrowing
    DEFAULT_LOAN_DAYS: int = 14

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }


settings = Settings()
