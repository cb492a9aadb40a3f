"""Poster contract shared by every platform adapter, plus the adapter registry."""

from __future__ import annotations

import abc
import logging
import time
from collections.abc import Callable, Iterable
from typing import Any

from buzzpost.models import CredentialCheck, ErrorKind, PublishResult, ValidationResult
from buzzpost.truncate import text_length

logger = logging.getLogger(__name__)


class PosterConfigError(ValueError):
    """Raised when a poster cannot be built for live (non-dry-run) use."""


def validate_text(text: object, max_length: int) -> ValidationResult:
    """Check *text* is a non-empty string within *max_length* characters."""
    if not isinstance(text, str):
        return ValidationResult(
            is_valid=False,
            errors=["Post text is required and must be a string"],
            length=0,
        )

    errors: list[str] = []
    length = text_length(text)
    if not text.strip():
        errors.append("Post text cannot be empty")
    if length > max_length:
        errors.append(f"Post is too long: {length} characters (max: {max_length})")
    return ValidationResult(is_valid=not errors, errors=errors, length=length)


class Poster(abc.ABC):
    """A single social platform.

    Subclasses decide at construction time whether they run live or in
    dry-run mode and implement ``_check_credentials`` and ``_publish``;
    validation, validate-only and dry-run handling live here.
    """

    platform: str = ""
    max_length: int = 0
    min_interval: float = 0.0  # seconds between outbound requests

    def __init__(self, *, dry_run: bool) -> None:
        self.dry_run = dry_run
        self._last_request: float | None = None

    # ── public ──────────────────────────────────────────────────────────

    def validate_post(self, text: object) -> ValidationResult:
        return validate_text(text, self.max_length)

    def test_credentials(self) -> CredentialCheck:
        """Cheap authenticated read. Never mutates remote state."""
        if self.dry_run:
            return CredentialCheck(success=True, dry_run=True)
        return self._check_credentials()

    def publish_post(self, text: str, *, validate_only: bool = False) -> PublishResult:
        validation = self.validate_post(text)
        if not validation.is_valid:
            logger.error("[%s] Post validation failed: %s", self.platform, validation.errors)
            return PublishResult(
                success=False,
                error="Validation failed",
                error_kind=ErrorKind.VALIDATION,
                details=validation.errors,
            )

        logger.info("[%s] Post validation passed: %d characters", self.platform, validation.length)

        if validate_only:
            return PublishResult(success=True, validated=True)

        if self.dry_run:
            logger.info("[%s] DRY RUN — would publish:\n%s", self.platform, text)
            return PublishResult(
                success=True,
                dry_run=True,
                id=f"dry-run-{self.platform}-{int(time.time() * 1000)}",
            )

        return self._publish(text)

    # ── subclass hooks ──────────────────────────────────────────────────

    @abc.abstractmethod
    def _check_credentials(self) -> CredentialCheck:
        ...

    @abc.abstractmethod
    def _publish(self, text: str) -> PublishResult:
        ...

    # ── helpers ─────────────────────────────────────────────────────────

    def _wait_if_needed(self) -> None:
        """Block until ``min_interval`` has passed since our previous request."""
        if self._last_request is not None:
            elapsed = time.monotonic() - self._last_request
            if elapsed < self.min_interval:
                time.sleep(self.min_interval - elapsed)
        self._last_request = time.monotonic()


PosterFactory = Callable[[dict[str, Any], bool], Poster]


class PosterRegistry:
    """Maps a platform name to a factory ``(options, dry_run) -> Poster``."""

    def __init__(self) -> None:
        self._factories: dict[str, PosterFactory] = {}

    def register(self, name: str, factory: PosterFactory) -> None:
        if name in self._factories:
            raise ValueError(f"Platform '{name}' already registered")
        self._factories[name] = factory

    def build(self, name: str, options: dict[str, Any], dry_run: bool) -> Poster:
        try:
            factory = self._factories[name]
        except KeyError:
            raise KeyError(f"Unknown platform '{name}'") from None
        return factory(options, dry_run)

    def names(self) -> Iterable[str]:
        return self._factories.keys()

    def __contains__(self, name: object) -> bool:
        return name in self._factories
