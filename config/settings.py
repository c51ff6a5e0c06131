"""Runtime settings loaded from the environment."""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from os import getenv

from dotenv import load_dotenv

from config.defaults import ANCHOR_PROVIDER, LOOKUP_BATCH_SIZE, PAGE_SIZE

load_dotenv()


@dataclass(frozen=True)
class RuntimeSettings:
    """Immutable container for repository IO and logging parameters."""

    page_size: int
    lookup_batch_size: int
    anchor_provider: str
    log_level: str


def _int_env(name: str, default: int) -> int:
    raw = getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{raw}'")
    if value < 1:
        raise ValueError(f"{name} must be >= 1, got {value}")
    return value


@lru_cache(maxsize=1)
def get_runtime_settings() -> RuntimeSettings:
    """Return runtime settings from the current environment."""

    return RuntimeSettings(
        page_size=_int_env("ENGINE_PAGE_SIZE", PAGE_SIZE),
        lookup_batch_size=_int_env("ENGINE_LOOKUP_BATCH_SIZE", LOOKUP_BATCH_SIZE),
        anchor_provider=getenv("ENGINE_ANCHOR_PROVIDER", ANCHOR_PROVIDER).strip() or ANCHOR_PROVIDER,
        log_level=getenv("ENGINE_LOG_LEVEL", "INFO").upper(),
    )
