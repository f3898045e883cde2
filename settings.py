from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    # Connection
    redis_url: str

    # Keys
    key_prefix: str

    # Debug
    debug_log_documents: bool


def get_settings(env_file: str | None = "local.env") -> Settings:
    if env_file:
        load_dotenv(env_file)

    redis_url = os.getenv("REDIS_URL", "redis://localhost:6379").strip()
    key_prefix = os.getenv("KEY_PREFIX", "").strip().rstrip(":")

    # Documents may hold personal data; keep them out of logs unless asked.
    debug_log_documents = _env_bool("DEBUG_LOG_DOCUMENTS", False)

    return Settings(
        redis_url=redis_url,
        key_prefix=key_prefix,
        debug_log_documents=debug_log_documents,
    )
