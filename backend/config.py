"""Environment configuration."""
from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR: Path = Path(__file__).resolve().parent
TEMPLATES_DIR: Path = BASE_DIR / "templates"
STATIC_DIR: Path = BASE_DIR / "static"

DEFAULT_DATABASE_URL = "sqlite:///./job_tracker.db"
DEFAULT_SENDER_NAME = "Kurtik"
DEFAULT_SENDER_PITCH = (
    "I am a Senior Economics and Computer Science double major from Union College, NY "
    "with strong skills in data analytics, data engineering, business intelligence, "
    "and software development."
)


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def get_int_env(key: str, default: int) -> int:
    raw = get_env(key)
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


DATABASE_URL: str = get_env("DATABASE_URL", DEFAULT_DATABASE_URL)
SESSION_COOKIE_NAME: str = get_env("SESSION_COOKIE_NAME", "tracker_session")
PASSWORD_HASH_ITERATIONS: int = get_int_env("PASSWORD_HASH_ITERATIONS", 260_000)
DASHBOARD_LIMIT: int = get_int_env("DASHBOARD_LIMIT", 3)
# Per-session list views and parked notices kept in memory; least recently used go first.
SESSION_CACHE_SIZE: int = get_int_env("SESSION_CACHE_SIZE", 256)


def sender_name() -> str:
    return get_env("MESSAGE_SENDER_NAME", DEFAULT_SENDER_NAME)


def sender_pitch() -> str:
    return get_env("MESSAGE_SENDER_PITCH", DEFAULT_SENDER_PITCH)
