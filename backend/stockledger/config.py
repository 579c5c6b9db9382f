from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    app_env: str = Field("dev", alias="APP_ENV")
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_name: str = Field("stockledger", alias="DB_NAME")
    db_user: str = Field("stockledger", alias="DB_USER")
    db_password: str = Field("stockpass", alias="DB_PASSWORD")
    db_url_override: Optional[str] = Field(None, alias="DATABASE_URL")
    admin_secret: str = Field("", alias="ADMIN_SECRET")
    admin_secret_hash: Optional[str] = Field(None, alias="ADMIN_SECRET_HASH")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    rate_limit_enabled: bool = Field(True, alias="RATE_LIMIT_ENABLED")
    rate_limit_writes_per_min: int = Field(60, alias="RATE_LIMIT_WRITES_PER_MIN")

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def database_url(self) -> str:
        if self.db_url_override:
            return self.db_url_override
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]
