from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from rootsy.models.common import CloudProvider

_DEFAULT_STORAGE_DIR = Path.home() / ".rootsy"


class Settings(BaseSettings):
    PROJECT_NAME: str = "Rootsy"
    VERSION: str = "0.1.0"
    API_V1_STR: str = "/api/v1"

    STORAGE_DIR: Path = _DEFAULT_STORAGE_DIR
    DATABASE_FILENAME: str = "rootsy.db"
    DATABASE_ECHO: bool = False

    LOG_LEVEL: str = "INFO"

    DEFAULT_CLOUD_PROVIDER: CloudProvider = CloudProvider.AWS
    DEFAULT_TIME_RANGE_HOURS: int = 24

    model_config = SettingsConfigDict(env_file=".env")

    @property
    def database_path(self) -> Path:
        """Location of the SQLite file inside the storage directory."""
        return self.STORAGE_DIR / self.DATABASE_FILENAME


@lru_cache
def get_settings() -> Settings:
    return Settings()
