from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal


class Settings(BaseSettings):
    """
    Settings class to retrieve environment variables.
    """

    ENVIRONMENT: Literal["local", "development", "production"] = "local"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str
    DB_ECHO: bool = False
    AUTO_CREATE_TABLES: bool = False

    JWT_SECRET: str
    JWT_ALGORITHM: str = "HS256"

    # Shared secret the payment collaborator sends with every webhook call
    PAYMENT_WEBHOOK_SECRET: str

    CORS_ORIGINS: List[str] = [
        "http://localhost",
        "http://localhost:3000",
    ]

    model_config = SettingsConfigDict(
        env_file='.env',
        extra='ignore',
    )


Config = Settings()
