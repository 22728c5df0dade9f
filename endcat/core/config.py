from typing import Literal

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ENDCAT_")

    db_url: str = "sqlite+aiosqlite:///data/database/endcat.db"
    env: Literal["prod", "dev"] = "prod"

    # Metadata package (names, icons, pool windows)
    metadata_dir: str | None = None
    language: str = "zh-CN"

    # Game web-view log, defaults to the Windows client location
    game_log_path: str | None = None
    log_tail_bytes: int = 2 * 1024 * 1024

    # Record API
    request_timeout: float = 30.0
    page_delay: float = 0.1  # seconds between pages
    max_records_per_pool: int = 10000

    # Presentation
    pull_list_limit: int = 10000
    top_history_limit: int = 50

    @property
    def is_dev(self) -> bool:
        return self.env == "dev"


load_dotenv()
settings = Config()
