"""Threads poster using the Meta Threads Graph API.

Publishing is a two-step flow:
    1. Create a media container (POST /{user_id}/threads)
    2. Publish the container   (POST /{user_id}/threads_publish)

Credentials: either ``access_token`` + ``user_id``, or ``app_id`` +
``app_secret`` + ``user_id`` (an app token is then fetched on first use).
"""

from __future__ import annotations

import logging
from typing import Any

import requests
from pydantic import BaseModel

from buzzpost.models import CredentialCheck, ErrorKind, PublishResult
from buzzpost.posters.base import Poster, PosterConfigError

logger = logging.getLogger(__name__)

BASE_URL = "https://graph.threads.net/v1.0"
TOKEN_URL = "https://graph.facebook.com/oauth/access_token"
_POST_URL = "https://www.threads.net/post/{id}"
_TIMEOUT = 15


class ThreadsAPIError(RuntimeError):
    """Raised when the Threads API returns a non-success status."""

    def __init__(self, status_code: int, payload: Any, retry_after: int | None = None) -> None:
        super().__init__(f"Threads API returned {status_code}: {payload}")
        self.status_code = status_code
        self.payload = payload
        self.retry_after = retry_after


class ThreadsCredentials(BaseModel):
    access_token: str = ""
    user_id: str = ""
    app_id: str = ""
    app_secret: str = ""

    def mode(self) -> str | None:
        """``"token"``, ``"app"`` or ``None`` when neither set is complete."""
        if self.access_token and self.user_id:
            return "token"
        if self.app_id and self.app_secret and self.user_id:
            return "app"
        return None


class ThreadsPoster(Poster):
    """Publishes posts to Threads. Limit: 500 characters."""

    platform = "threads"
    max_length = 500
    min_interval = 1.0

    def __init__(
        self,
        credentials: ThreadsCredentials | None = None,
        *,
        dry_run: bool = False,
        session: requests.Session | None = None,
    ) -> None:
        creds = credentials or ThreadsCredentials()
        if creds.mode() is None:
            if not dry_run:
                raise PosterConfigError(
                    "Threads API credentials are required. Set either "
                    "(THREADS_ACCESS_TOKEN + THREADS_USER_ID) or "
                    "(THREADS_APP_ID + THREADS_APP_SECRET + THREADS_USER_ID)."
                )
            logger.warning("Threads credentials missing — running in dry-run mode.")

        super().__init__(dry_run=dry_run)
        self._creds = creds
        self._access_token = creds.access_token
        self._session = session or requests.Session()

    @classmethod
    def from_options(cls, options: dict[str, Any], dry_run: bool) -> ThreadsPoster:
        return cls(ThreadsCredentials.model_validate(options or {}), dry_run=dry_run)

    # ── hooks ───────────────────────────────────────────────────────────

    def _check_credentials(self) -> CredentialCheck:
        try:
            user = self._request("GET", self._creds.user_id, {"fields": "id,username"})
        except (ThreadsAPIError, requests.RequestException) as exc:
            logger.error("Failed to get Threads user info: %s", exc)
            return CredentialCheck(success=False, error=str(exc))

        logger.info("Connected to Threads as %s", user.get("username") or user.get("id"))
        return CredentialCheck(success=True, user=user)

    def _publish(self, text: str) -> PublishResult:
        try:
            container_id = self._create_container(text)
            post_id = self._publish_container(container_id)
        except ThreadsAPIError as exc:
            return _classify(exc)
        except requests.RequestException as exc:
            logger.error("Threads request failed: %s", exc)
            return PublishResult(
                success=False,
                error="Threads API error",
                error_kind=ErrorKind.API_ERROR,
                details=str(exc),
            )

        url = _POST_URL.format(id=post_id)
        logger.info("Published to Threads: %s", url)
        return PublishResult(
            success=True,
            id=post_id,
            url=url,
            details={"container_id": container_id},
        )

    # ── private ─────────────────────────────────────────────────────────

    def _create_container(self, text: str) -> str:
        data = self._request(
            "POST", f"{self._creds.user_id}/threads", {"media_type": "TEXT", "text": text}
        )
        container_id = data.get("id")
        if not container_id:
            raise ThreadsAPIError(200, data)
        logger.debug("Threads container created: %s", container_id)
        return str(container_id)

    def _publish_container(self, container_id: str) -> str:
        data = self._request(
            "POST", f"{self._creds.user_id}/threads_publish", {"creation_id": container_id}
        )
        post_id = data.get("id")
        if not post_id:
            raise ThreadsAPIError(200, data)
        return str(post_id)

    def _ensure_token(self) -> str:
        if self._access_token:
            return self._access_token

        logger.info("Generating Threads app access token …")
        resp = self._session.get(
            TOKEN_URL,
            params={
                "client_id": self._creds.app_id,
                "client_secret": self._creds.app_secret,
                "grant_type": "client_credentials",
            },
            timeout=_TIMEOUT,
        )
        if resp.status_code != 200:
            raise ThreadsAPIError(resp.status_code, _payload(resp))
        data = _payload(resp)
        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise ThreadsAPIError(resp.status_code, "No access token returned")
        self._access_token = str(token)
        return self._access_token

    def _request(self, method: str, endpoint: str, params: dict[str, Any]) -> dict[str, Any]:
        self._wait_if_needed()
        payload = {**params, "access_token": self._ensure_token()}
        url = f"{BASE_URL}/{endpoint}"

        if method == "GET":
            resp = self._session.get(url, params=payload, timeout=_TIMEOUT)
        else:
            resp = self._session.post(url, data=payload, timeout=_TIMEOUT)

        if resp.status_code >= 400:
            retry_after = str(resp.headers.get("Retry-After", ""))
            raise ThreadsAPIError(
                resp.status_code,
                _payload(resp),
                retry_after=int(retry_after) if retry_after.isdigit() else None,
            )
        return resp.json()  # type: ignore[no-any-return]


def _payload(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text[:500]


def _classify(exc: ThreadsAPIError) -> PublishResult:
    message = str(exc).lower()
    if exc.status_code == 429:
        logger.error("Threads rate limit hit: %s", exc)
        return PublishResult(
            success=False,
            error="Rate limited",
            error_kind=ErrorKind.RATE_LIMITED,
            details=str(exc),
            retry_after=exc.retry_after,
        )
    if "duplicate" in message or "already posted" in message:
        logger.error("Threads rejected duplicate post")
        return PublishResult(
            success=False,
            error="Duplicate post",
            error_kind=ErrorKind.DUPLICATE,
            details=str(exc),
        )
    logger.error("Threads API error: %s", exc)
    return PublishResult(
        success=False,
        error="Threads API error",
        error_kind=ErrorKind.API_ERROR,
        details={"status_code": exc.status_code, "payload": exc.payload},
    )
