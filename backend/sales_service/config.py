import tempfile
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    DATABASE_URL: str = "sqlite:///./sales.db"
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8002
    FRONTEND_ORIGINS: List[str] = ["http://localhost:3000"]
    LOG_LEVEL: str = "INFO"
    RESET_DB: bool = False

    # remote collaborators
    IDENTITY_SERVICE_URL: str = "http://127.0.0.1:8001"
    CATALOG_SERVICE_URL: str = "http://127.0.0.1:8003"
    LOGISTICS_SERVICE_URL: str = "http://127.0.0.1:8003"
    REMOTE_TIMEOUT_SECONDS: float = 10.0
    USE_MOCK_SERVICES: bool = False

    # document codes: <prefix><year><month><sequence>
    ORDER_CODE_PREFIX: str = "DO"
    RETURN_CODE_PREFIX: str = "DR"

    WRITE_LOCK_DIR: str = tempfile.gettempdir()
    WRITE_LOCK_TIMEOUT_SECONDS: float = 10.0


settings = Settings()
