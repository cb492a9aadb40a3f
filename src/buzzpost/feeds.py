"""Fetch recent articles from the configured RSS/Atom feeds."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlsplit

import feedparser
import requests
from bs4 import BeautifulSoup

from buzzpost import config
from buzzpost.models import Article

logger = logging.getLogger(__name__)

_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; buzzpost/1.0)",
    "Accept": "application/rss+xml, application/xml, text/xml",
}
_TIMEOUT = 15
_SNIPPET_CHARS = 400


class FeedError(Exception):
    """Raised when a single feed cannot be fetched or parsed."""


def fetch_feed(
    url: str,
    category: str,
    *,
    limit: int = 3,
    session: requests.Session | None = None,
) -> list[Article]:
    """Fetch one feed and return its first *limit* entries as articles."""
    http = session or requests
    try:
        resp = http.get(url, headers=_HEADERS, timeout=_TIMEOUT)
    except requests.RequestException as exc:
        raise FeedError(f"{url}: {exc}") from exc
    if resp.status_code != 200:
        raise FeedError(f"{url}: HTTP {resp.status_code}")

    parsed = feedparser.parse(resp.content)
    if parsed.get("bozo") and not parsed.get("entries"):
        raise FeedError(f"{url}: {parsed.get('bozo_exception')}")

    source = parsed.get("feed", {}).get("title") or _hostname(url)
    articles: list[Article] = []
    for entry in parsed.get("entries", [])[:limit]:
        snippet = _plain_text(entry.get("summary") or entry.get("description") or "")
        articles.append(
            Article(
                title=(entry.get("title") or "").strip(),
                content_snippet=snippet.strip()[:_SNIPPET_CHARS],
                category=category,
                source=source,
                link=entry.get("link", ""),
                pub_date=_parse_date(entry),
            )
        )
    logger.info("Fetched %d items from %s", len(articles), source)
    return articles


def fetch_articles(
    categories: dict[str, list[str]] | None = None,
    *,
    limit_per_feed: int = 3,
    max_articles: int = 10,
    session: requests.Session | None = None,
) -> list[Article]:
    """Fetch every feed concurrently, then dedupe by title and sort newest first.

    A failing feed is logged and skipped; it never fails the batch.
    """
    if categories is None:
        categories = config.load_feed_categories()

    jobs = [(category, url) for category, urls in categories.items() for url in urls]
    if not jobs:
        logger.warning("No feeds configured.")
        return []

    collected: list[Article] = []
    with ThreadPoolExecutor(max_workers=min(len(jobs), 8)) as executor:
        future_map = {
            executor.submit(fetch_feed, url, category, limit=limit_per_feed, session=session): url
            for category, url in jobs
        }
        for future in as_completed(future_map):
            url = future_map[future]
            try:
                collected.extend(future.result())
            except FeedError as exc:
                logger.error("Feed failed: %s", exc)
            except Exception:
                logger.exception("Unexpected error reading feed %s", url)

    logger.info("Total articles fetched: %d", len(collected))
    return select_articles(collected, max_articles=max_articles)


def select_articles(articles: list[Article], *, max_articles: int = 10) -> list[Article]:
    """Dedupe by title (first wins), sort by ``pub_date`` descending, cap."""
    unique: dict[str, Article] = {}
    for article in articles:
        if article.title and article.title not in unique:
            unique[article.title] = article

    epoch = datetime.min.replace(tzinfo=UTC)
    ordered = sorted(unique.values(), key=lambda a: a.pub_date or epoch, reverse=True)
    return ordered[:max_articles]


def _parse_date(entry: Any) -> datetime:
    struct = entry.get("published_parsed") or entry.get("updated_parsed")
    if not struct:
        return datetime.now(UTC)
    try:
        return datetime(*struct[:6], tzinfo=UTC)
    except (TypeError, ValueError):
        return datetime.now(UTC)


def _plain_text(html: str) -> str:
    """Feed summaries often carry markup; keep only the visible text."""
    if "<" not in html:
        return html
    text = BeautifulSoup(html, "html.parser").get_text()
    return " ".join(text.split())


def _hostname(url: str) -> str:
    return urlsplit(url).hostname or "unknown"
