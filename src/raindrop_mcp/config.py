"""Runtime configuration for the Raindrop MCP server.

Values are read from the environment; a ``.env`` file in the working
directory is loaded first when present.
"""
import logging
import os
import sys
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

VERSION = "1.0.0"

DEFAULT_API_BASE_URL = "https://api.raindrop.io/rest/v1"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    access_token: str = ""
    api_base_url: str = DEFAULT_API_BASE_URL
    http_timeout: float = 30.0
    log_level: str = "INFO"
    streaming_enabled: bool = True
    shutdown_timeout: float = 5.0

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            access_token=os.getenv("RAINDROP_ACCESS_TOKEN", ""),
            api_base_url=os.getenv("RAINDROP_API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/"),
            http_timeout=_env_float("RAINDROP_HTTP_TIMEOUT", 30.0),
            log_level=os.getenv("RAINDROP_MCP_LOG_LEVEL", "INFO").upper(),
            streaming_enabled=_env_bool("RAINDROP_MCP_STREAMING", True),
            shutdown_timeout=_env_float("RAINDROP_MCP_SHUTDOWN_TIMEOUT", 5.0),
        )


@lru_cache
def get_settings() -> Settings:
    load_dotenv()
    return Settings.from_env()


def configure_logging(level: str = "INFO") -> None:
    # stdout carries the JSON-RPC stream, so logs go to stderr
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )
