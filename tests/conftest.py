"""Shared fakes for poster and generator tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from buzzpost.models import CredentialCheck, PublishResult
from buzzpost.posters.base import Poster, PosterRegistry


class FakePoster(Poster):
    """In-memory poster with configurable outcomes."""

    def __init__(
        self,
        name: str,
        *,
        dry_run: bool = False,
        max_length: int = 280,
        result: PublishResult | None = None,
        exc: Exception | None = None,
        cred_ok: bool = True,
    ) -> None:
        super().__init__(dry_run=dry_run)
        self.platform = name
        self.max_length = max_length
        self.published: list[str] = []
        self.credential_calls = 0
        self._result = result
        self._exc = exc
        self._cred_ok = cred_ok

    def _check_credentials(self) -> CredentialCheck:
        self.credential_calls += 1
        if self._cred_ok:
            return CredentialCheck(success=True, user={"id": self.platform})
        return CredentialCheck(success=False, error="bad token")

    def _publish(self, text: str) -> PublishResult:
        self.published.append(text)
        if self._exc is not None:
            raise self._exc
        return self._result or PublishResult(
            success=True,
            id=f"{self.platform}-1",
            url=f"https://example.com/{self.platform}/1",
        )


class FakeTextGenerator:
    """Returns a canned response and records every prompt it receives."""

    def __init__(self, response: str | None = None, exc: Exception | None = None) -> None:
        self.response = response
        self.exc = exc
        self.prompts: list[str] = []

    def generate_text(self, prompt: str) -> str | None:
        self.prompts.append(prompt)
        if self.exc is not None:
            raise self.exc
        return self.response


@pytest.fixture
def registry_of() -> Callable[..., PosterRegistry]:
    """Build a registry that hands out the given prebuilt posters by name."""

    def _build(**posters: Poster) -> PosterRegistry:
        registry = PosterRegistry()
        for name, poster in posters.items():
            registry.register(name, lambda options, dry_run, p=poster: p)
        return registry

    return _build
