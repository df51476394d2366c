from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_REPLY_DELIMITER = "Reply ABOVE THIS LINE"

AddressFormatName = Literal["full", "email", "token", "hash"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = "dev"
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    log_level: str = "INFO"

    reply_delimiter: str = DEFAULT_REPLY_DELIMITER
    to_format: AddressFormatName = "token"
    from_format: AddressFormatName = "email"
    processor: str = ""

    max_body_bytes: int = 25 * 1024 * 1024

    @property
    def custom_delimiter(self) -> str | None:
        delimiter = (self.reply_delimiter or "").strip()
        if not delimiter or delimiter == DEFAULT_REPLY_DELIMITER:
            return None
        return delimiter


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
