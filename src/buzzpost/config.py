"""Centralised configuration loaded from environment variables and dotenv."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# ── Paths ──────────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parents[2]
FEEDS_PATH: Path = Path(os.getenv("BUZZPOST_FEEDS", str(PROJECT_ROOT / "config" / "feeds.yml")))
OUTPUT_BASE: Path = Path(os.getenv("BUZZPOST_OUTPUT_DIR", str(PROJECT_ROOT / "out")))

# ── X API ──────────────────────────────────────────────────────────────────
X_API_KEY: str = os.getenv("X_API_KEY", "")
X_API_SECRET: str = os.getenv("X_API_SECRET", "")
X_ACCESS_TOKEN: str = os.getenv("X_ACCESS_TOKEN", "")
X_ACCESS_SECRET: str = os.getenv("X_ACCESS_SECRET", "")

# ── Threads API ────────────────────────────────────────────────────────────
THREADS_ACCESS_TOKEN: str = os.getenv("THREADS_ACCESS_TOKEN", "")
THREADS_USER_ID: str = os.getenv("THREADS_USER_ID", "")
THREADS_APP_ID: str = os.getenv("THREADS_APP_ID", "")
THREADS_APP_SECRET: str = os.getenv("THREADS_APP_SECRET", "")

# ── LLM ────────────────────────────────────────────────────────────────────
LLM_PROVIDER: str = os.getenv("LLM_PROVIDER", "gemini")
GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

# ── Feeds ──────────────────────────────────────────────────────────────────
MAX_ARTICLES: int = int(os.getenv("BUZZPOST_MAX_ARTICLES", "10"))
LIMIT_PER_FEED: int = int(os.getenv("BUZZPOST_LIMIT_PER_FEED", "3"))

# ── Post limits ────────────────────────────────────────────────────────────
# The shared post is published unchanged everywhere, so it is generated
# against the tightest platform limit.
POST_MAX_LENGTH: int = int(os.getenv("BUZZPOST_MAX_LENGTH", "140"))


def env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean flag such as ``DRY_RUN=true`` from the environment."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def gemini_model_name() -> str:
    """Explicit ``GEMINI_MODEL`` wins; otherwise pick by ``APP_ENV``."""
    explicit = os.getenv("GEMINI_MODEL")
    if explicit:
        return explicit
    if os.getenv("APP_ENV", "development") == "production":
        return "gemini-2.5-flash"
    return "gemini-2.5-flash-lite"


def llm_api_key(provider: str) -> str:
    mapping: dict[str, str] = {
        "gemini": GEMINI_API_KEY,
        "openai": OPENAI_API_KEY,
    }
    return mapping.get(provider.lower(), "")


def x_options() -> dict[str, str]:
    return {
        "api_key": X_API_KEY,
        "api_secret": X_API_SECRET,
        "access_token": X_ACCESS_TOKEN,
        "access_secret": X_ACCESS_SECRET,
    }


def threads_options() -> dict[str, str]:
    return {
        "access_token": THREADS_ACCESS_TOKEN,
        "user_id": THREADS_USER_ID,
        "app_id": THREADS_APP_ID,
        "app_secret": THREADS_APP_SECRET,
    }


def platform_options() -> dict[str, dict[str, str]]:
    """Per-platform credential options keyed by registry name."""
    return {"x": x_options(), "threads": threads_options()}


def load_feed_categories(feeds_path: Path | None = None) -> dict[str, list[str]]:
    """Parse ``feeds.yml`` and return a dict of category → feed URLs.

    Expected shape::

        categories:
          ai:
            - https://example.com/feed.xml
    """
    path = feeds_path or FEEDS_PATH
    if not path.exists():
        logger.warning("Feed config not found: %s", path)
        return {}

    with open(path, encoding="utf-8") as fh:
        cfg: dict[str, Any] = yaml.safe_load(fh) or {}

    categories: dict[str, list[str]] = {}
    for name, urls in (cfg.get("categories") or {}).items():
        cleaned = [str(u).strip() for u in (urls or []) if str(u).strip()]
        if not cleaned:
            logger.warning("Skipping empty feed category: %s", name)
            continue
        categories[str(name)] = cleaned
    return categories
