import logging
import sys
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    port: int = 4000
    admin_user: str = "admin"
    admin_pass: str = "changeme"
    frontend_origin: str = "*"
    stripe_secret: str | None = None
    table_url_base: str | None = None

    storage_backend: Literal["sqlite", "json"] = "sqlite"
    database_url: str = "sqlite:///data.sqlite"
    data_file: str = "data.json"
    journal_compact_threshold: int = 200
    seed_on_startup: bool = True

    log_level: str = "INFO"

    class Config:
        env_file = ".env"

    @property
    def allowed_origins(self) -> list[str]:
        return [item.strip() for item in self.frontend_origin.split(",") if item.strip()] or ["*"]

    @property
    def table_base_url(self) -> str:
        return (self.table_url_base or f"http://localhost:{self.port}").rstrip("/")


@lru_cache
def get_settings() -> Settings:
    return Settings()


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
