"""Publish one post to several platforms with independent per-platform outcomes."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any

from pydantic import BaseModel, Field

from buzzpost.models import (
    CredentialCheck,
    ErrorKind,
    PublishReport,
    PublishResult,
    ValidationResult,
)
from buzzpost.posters.base import Poster, PosterConfigError, PosterRegistry
from buzzpost.posters.registry import default_registry
from buzzpost.truncate import text_length

logger = logging.getLogger(__name__)


class MultiValidation(BaseModel):
    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    platform_validations: dict[str, ValidationResult] = Field(default_factory=dict)
    length: int = 0


class MultiPoster:
    """Fans a single post out to every configured platform.

    Flow per ``publish_post`` call:

    1. validate on every platform — any failure aborts the whole publish;
    2. optional credential pre-flight — failing platforms are skipped;
    3. publish concurrently — one platform's error never affects another;
    4. aggregate into a ``PublishReport`` (success if ≥ 1 platform succeeded).
    """

    def __init__(
        self,
        platforms: Iterable[str] | str = ("x", "threads"),
        *,
        dry_run: bool = False,
        options: Mapping[str, dict[str, Any]] | None = None,
        registry: PosterRegistry | None = None,
    ) -> None:
        self.dry_run = dry_run
        self.platforms = [platforms] if isinstance(platforms, str) else list(platforms)
        if not self.platforms:
            raise ValueError("At least one platform is required.")

        self._registry = registry or default_registry()
        options = options or {}

        posters: dict[str, Poster] = {}
        for name in self.platforms:
            if name not in self._registry:
                raise KeyError(f"Unknown platform '{name}'")
            try:
                posters[name] = self._registry.build(name, dict(options.get(name) or {}), dry_run)
            except PosterConfigError as exc:
                logger.warning("Failed to initialise %s poster: %s", name.upper(), exc)

        if not posters:
            raise PosterConfigError(
                "No valid posters could be initialized. Check your API credentials."
            )
        self.posters: dict[str, Poster] = posters

    # ── public ──────────────────────────────────────────────────────────

    def validate_post(self, text: str) -> MultiValidation:
        """Validate *text* against every platform. Pure, no network."""
        validations: dict[str, ValidationResult] = {}
        errors: list[str] = []
        for name, poster in self.posters.items():
            result = poster.validate_post(text)
            validations[name] = result
            errors.extend(f"{name.upper()}: {err}" for err in result.errors)

        return MultiValidation(
            is_valid=all(v.is_valid for v in validations.values()),
            errors=errors,
            platform_validations=validations,
            length=text_length(text) if isinstance(text, str) else 0,
        )

    def test_credentials(self, posters: Mapping[str, Poster] | None = None) -> dict[str, CredentialCheck]:
        """Run each poster's credential check; a raising check counts as failed."""
        targets = self.posters if posters is None else posters
        checks: dict[str, CredentialCheck] = {}
        for name, poster in targets.items():
            logger.info("Testing %s API credentials …", name.upper())
            try:
                check = poster.test_credentials()
            except Exception as exc:
                logger.exception("Error testing %s credentials", name.upper())
                check = CredentialCheck(success=False, error=str(exc))
            if not check.success:
                logger.error("Failed to connect to %s API: %s", name.upper(), check.error)
            checks[name] = check
        return checks

    def publish_post(
        self,
        text: str,
        *,
        validate_only: bool = False,
        skip_credential_test: bool = False,
    ) -> PublishReport:
        validation = self.validate_post(text)
        common: dict[str, Any] = {
            "post_text": text if isinstance(text, str) else "",
            "length": validation.length,
            "platform_validations": validation.platform_validations,
        }

        if not validation.is_valid:
            logger.error("Post validation failed for some platforms: %s", validation.errors)
            return PublishReport.failure("Validation failed", details=validation.errors, **common)

        logger.info("Post validation passed for all platforms: %d characters", validation.length)

        if validate_only:
            return PublishReport(success=True, validated=True, **common)

        active: Mapping[str, Poster] = self.posters
        if not self.dry_run and not skip_credential_test:
            checks = self.test_credentials()
            active = _passing(self.posters, checks)
            common["credential_tests"] = checks
            if not active:
                return PublishReport.failure("No valid API connections available", **common)

        results = self._publish_all(active, text)
        report = PublishReport.from_results(results, **common)
        logger.info(
            "Published to %d/%d platforms", report.summary.successful, report.summary.total
        )
        return report

    def platform_info(self) -> dict[str, Any]:
        initialized = list(self.posters)
        return {
            "configured": list(self.platforms),
            "initialized": initialized,
            "missing": [p for p in self.platforms if p not in initialized],
            "dry_run": self.dry_run,
        }

    # ── private ─────────────────────────────────────────────────────────

    def _publish_all(self, posters: Mapping[str, Poster], text: str) -> dict[str, PublishResult]:
        settled: dict[str, PublishResult] = {}
        with ThreadPoolExecutor(max_workers=len(posters)) as executor:
            future_map = {
                executor.submit(poster.publish_post, text): name
                for name, poster in posters.items()
            }
            for future in as_completed(future_map):
                name = future_map[future]
                try:
                    result = future.result()
                except Exception as exc:
                    logger.exception("Error publishing to %s", name.upper())
                    result = PublishResult(
                        success=False,
                        error="Unexpected error",
                        error_kind=ErrorKind.UNEXPECTED,
                        details=str(exc),
                    )
                _log_result(name, result)
                settled[name] = result

        # Report in configured order, not completion order.
        return {name: settled[name] for name in posters}


def _passing(posters: Mapping[str, Poster], checks: Mapping[str, CredentialCheck]) -> dict[str, Poster]:
    """New mapping holding only the posters whose credential check passed."""
    kept: dict[str, Poster] = {}
    for name, poster in posters.items():
        if checks.get(name) is not None and checks[name].success:
            kept[name] = poster
        else:
            logger.warning("Skipping %s due to credential failure", name.upper())
    return kept


def _log_result(name: str, result: PublishResult) -> None:
    if not result.success:
        logger.error("Failed to publish to %s: %s", name.upper(), result.error)
    elif result.dry_run:
        logger.info("%s DRY RUN completed successfully", name.upper())
    else:
        logger.info("Post published to %s: %s", name.upper(), result.url)
