"""Network configuration constants for the quiz service."""

import os


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


DEFAULT_HOST: str = os.getenv("MANAQUIZ_HOST", "127.0.0.1")
DEFAULT_PORT: int = _env_int("MANAQUIZ_PORT", 8000)
DEFAULT_DATA_DIR: str = os.getenv("MANAQUIZ_DATA_DIR", "data")
