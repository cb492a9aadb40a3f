"""X (Twitter) poster using the API v2 with OAuth 1.0a user context."""

from __future__ import annotations

import logging
from typing import Any

import tweepy
from pydantic import BaseModel

from buzzpost.models import CredentialCheck, ErrorKind, PublishResult
from buzzpost.posters.base import Poster, PosterConfigError

logger = logging.getLogger(__name__)

_STATUS_URL = "https://x.com/i/status/{id}"
_DUPLICATE_CODE = 187


class XCredentials(BaseModel):
    api_key: str = ""
    api_secret: str = ""
    access_token: str = ""
    access_secret: str = ""

    def missing(self) -> list[str]:
        return [name for name, value in self.model_dump().items() if not value]

    def is_complete(self) -> bool:
        return not self.missing()


class XPoster(Poster):
    """Publishes posts to X. Limit: 280 characters."""

    platform = "x"
    max_length = 280
    min_interval = 1.0

    def __init__(
        self,
        credentials: XCredentials | None = None,
        *,
        dry_run: bool = False,
        client: Any = None,
    ) -> None:
        creds = credentials or XCredentials()
        if not creds.is_complete():
            if not dry_run:
                raise PosterConfigError(
                    "X API credentials are required. Missing: "
                    + ", ".join(creds.missing())
                )
            logger.warning("X credentials missing — running in dry-run mode.")

        super().__init__(dry_run=dry_run)
        self._client = client
        if not dry_run and client is None:
            self._client = tweepy.Client(
                consumer_key=creds.api_key,
                consumer_secret=creds.api_secret,
                access_token=creds.access_token,
                access_token_secret=creds.access_secret,
            )

    @classmethod
    def from_options(cls, options: dict[str, Any], dry_run: bool) -> XPoster:
        return cls(XCredentials.model_validate(options or {}), dry_run=dry_run)

    # ── hooks ───────────────────────────────────────────────────────────

    def _check_credentials(self) -> CredentialCheck:
        self._wait_if_needed()
        try:
            resp = self._client.get_me()
        except tweepy.TweepyException as exc:
            logger.error("Failed to get X account info: %s", exc)
            return CredentialCheck(success=False, error=str(exc))

        user = resp.data
        if user is None:
            return CredentialCheck(success=False, error="X returned no user data")
        logger.info("Connected to X as @%s", user.username)
        return CredentialCheck(
            success=True,
            user={"id": str(user.id), "username": user.username},
        )

    def _publish(self, text: str) -> PublishResult:
        self._wait_if_needed()
        try:
            resp = self._client.create_tweet(text=text)
        except tweepy.TooManyRequests as exc:
            logger.error("X rate limit hit: %s", exc)
            return PublishResult(
                success=False,
                error="Rate limited",
                error_kind=ErrorKind.RATE_LIMITED,
                details=str(exc),
                retry_after=_reset_header(exc),
            )
        except tweepy.TweepyException as exc:
            codes = list(getattr(exc, "api_codes", []) or [])
            if _DUPLICATE_CODE in codes or "duplicate" in str(exc).lower():
                logger.error("X rejected duplicate post")
                return PublishResult(
                    success=False,
                    error="Duplicate post",
                    error_kind=ErrorKind.DUPLICATE,
                    details=str(exc),
                )
            logger.error("X API error: %s", exc)
            return PublishResult(
                success=False,
                error="X API error",
                error_kind=ErrorKind.API_ERROR,
                details={"message": str(exc), "codes": codes},
            )

        tweet_id = str(resp.data["id"])
        url = _STATUS_URL.format(id=tweet_id)
        logger.info("Published to X: %s", url)
        return PublishResult(success=True, id=tweet_id, url=url, details=dict(resp.data))


def _reset_header(exc: tweepy.HTTPException) -> int | None:
    """Epoch seconds from ``x-rate-limit-reset``, if X sent one."""
    response = getattr(exc, "response", None)
    if response is None:
        return None
    raw = str(response.headers.get("x-rate-limit-reset", ""))
    return int(raw) if raw.isdigit() else None
