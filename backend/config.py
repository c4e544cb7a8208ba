# backend/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL
from typing import List, Optional
from pathlib import Path

from utils.errors import ConfigurationError

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

DEFAULT_MIGRATIONS_PATH = Path(__file__).parent / "migrations"

REQUIRED_DATABASE_SETTINGS = ("DB_SERVER", "DB_NAME", "DB_USER", "DB_PASSWORD")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=str(env_path), extra="ignore")

    # Connection parameters, checked only when the database is actually needed
    DB_SERVER: Optional[str] = None
    DB_NAME: Optional[str] = None
    DB_USER: Optional[str] = None
    DB_PASSWORD: Optional[str] = None
    DB_PORT: int = 1433
    DB_ENCRYPT: bool = False
    DB_TRUST_SERVER_CERTIFICATE: bool = True
    DB_DRIVER: str = "ODBC Driver 18 for SQL Server"

    SKIP_MIGRATIONS: bool = False
    MIGRATIONS_PATH: Path = DEFAULT_MIGRATIONS_PATH

    FRONTEND_URL: Optional[str] = None
    LOG_LEVEL: str = "INFO"

    # Rules the UI form applies; off by default so the API passes them to the database
    ENFORCE_MOVEMENT_RULES: bool = False

    def missing_database_settings(self) -> List[str]:
        return [name for name in REQUIRED_DATABASE_SETTINGS if not getattr(self, name)]

    def require_database(self) -> None:
        missing = self.missing_database_settings()
        if missing:
            raise ConfigurationError(
                f"Missing required database environment variables: {', '.join(missing)}"
            )

    def database_url(self) -> URL:
        self.require_database()
        return URL.create(
            "mssql+pyodbc",
            username=self.DB_USER,
            password=self.DB_PASSWORD,
            host=self.DB_SERVER,
            port=self.DB_PORT,
            database=self.DB_NAME,
            query={
                "driver": self.DB_DRIVER,
                "Encrypt": "yes" if self.DB_ENCRYPT else "no",
                "TrustServerCertificate": "yes" if self.DB_TRUST_SERVER_CERTIFICATE else "no",
            },
        )


settings = Settings()
