import os
from typing import List, Optional
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Always load .env from root
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(__file__)))
load_dotenv(os.path.join(BASE_DIR, ".env"))


class Settings(BaseSettings):
    JWT_SECRET: str = os.getenv("JWT_SECRET", "change-me")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRE_MINUTES: int = int(os.getenv("JWT_EXPIRE_MINUTES", 1440))  # 24 hours default

    DB_USER: Optional[str] = os.getenv("DB_USER")
    DB_PASS: Optional[str] = os.getenv("DB_PASS")
    DB_HOST: Optional[str] = os.getenv("DB_HOST", "localhost")
    DB_PORT: Optional[str] = os.getenv("DB_PORT", "5432")
    DB_NAME: Optional[str] = os.getenv("DB_NAME", "maintenance")
    DB_SSLMODE: Optional[str] = os.getenv("DB_SSLMODE")

    # full URL wins over the DB_* parts (sqlite:// for local runs and tests)
    DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")

    POOL_SIZE: int = int(os.getenv("POOL_SIZE", 5))
    MAX_OVERFLOW: int = int(os.getenv("MAX_OVERFLOW", 5))

    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8080",
    ]

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    APP_HOST: str = os.getenv("APP_HOST", "0.0.0.0")
    APP_PORT: int = int(os.getenv("APP_PORT", 8002))

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()


def build_database_url(config: Settings) -> str:
    if config.DATABASE_URL:
        return config.DATABASE_URL

    url = (
        f"postgresql+psycopg2://{config.DB_USER}:{config.DB_PASS}"
        f"@{config.DB_HOST}:{config.DB_PORT}/{config.DB_NAME}"
    )
    if config.DB_SSLMODE:
        url += f"?sslmode={config.DB_SSLMODE}"
    return url


MAINTENANCE_DATABASE_URL = build_database_url(settings)
