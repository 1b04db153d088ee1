"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - get_settings() is cached (lru_cache) — single instance per process
    - Every setting has a default: the gateway starts with no .env at all

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - JSONCOMMAND_ env prefix: no collisions with the host application's variables
    - controllers as {"Name": "pkg.module:Attr"}: the static provider is configured,
      not coded (env value is a JSON object)
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="JSONCOMMAND_", case_sensitive=False,
    )

    # Command endpoint
    url_prefix: str = "/json"

    @field_validator("url_prefix")
    @classmethod
    def normalize_prefix(cls, v: str) -> str:
        """Mount points need a leading slash and no trailing one."""
        v = "/" + v.strip().strip("/")
        return v

    # Response
    compress_min_bytes: int = 512

    # Slow-call diagnostics
    slow_response_seconds: float = 2.0
    slow_payload_chars: int = 255

    # Controller providers (consulted in this order: static table, then plugins)
    controllers: dict[str, str] = {}
    enable_entry_point_controllers: bool = True
    controller_entry_point_group: str = "jsoncommand.controllers"

    # API
    cors_origins: list[str] = []

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
