import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ENVX_UI_",
        env_file=Path.home() / ".envx-ui" / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = "127.0.0.1"
    port: int = 0  # 0 = let the OS pick a free port
    data_dir: Path = Path("~/.envx-ui")
    log_level: str = "INFO"
    open_browser: bool = True

    max_recent: int = 10
    search_max_results: int = 15
    search_max_depth: int = 3

    dotenvx_command: str = "npx @dotenvx/dotenvx"
    dotenvx_timeout: float = 30.0

    session_secret_key: str = Field(default_factory=lambda: secrets.token_hex(32))
    auth_enabled: bool = False
    auth_username: str = "admin"
    auth_password: str = ""

    @property
    def config_path(self) -> Path:
        return self.data_dir.expanduser() / "config.json"

    @property
    def is_auth_configured(self) -> bool:
        return self.auth_enabled and bool(self.auth_username) and bool(self.auth_password)


@lru_cache
def get_settings() -> Settings:
    return Settings()
