"""Domain models used across the pipeline."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Article(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    content_snippet: str = ""
    category: str = "news"  # feed category, e.g. "ai", "business"
    source: str = ""
    link: str = ""
    pub_date: datetime | None = None


class ScoredArticle(Article):
    buzz_score: int = Field(default=0, ge=0)
    matched_keywords: list[str] = Field(default_factory=list)
    trending_topics: list[str] = Field(default_factory=list, max_length=3)


class GenerationLimits(BaseModel):
    max_length: int = Field(gt=0)
    append_link: bool = False
    max_sentences: int = 2


class ValidationResult(BaseModel):
    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    length: int = 0


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    CREDENTIAL = "credential"
    RATE_LIMITED = "rate_limited"
    DUPLICATE = "duplicate"
    API_ERROR = "api_error"
    UNEXPECTED = "unexpected"


class CredentialCheck(BaseModel):
    success: bool
    dry_run: bool = False
    error: str | None = None
    user: dict[str, Any] | None = None


class PublishResult(BaseModel):
    success: bool
    dry_run: bool = False
    id: str | None = None
    url: str | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    details: Any = None
    retry_after: int | None = None
    validated: bool = False


class PlatformSplit(BaseModel):
    successful: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)


class PublishSummary(BaseModel):
    total: int = 0
    successful: int = 0
    failed: int = 0
    platforms: PlatformSplit = Field(default_factory=PlatformSplit)


class PublishReport(BaseModel):
    success: bool
    results: dict[str, PublishResult] = Field(default_factory=dict)
    summary: PublishSummary = Field(default_factory=PublishSummary)
    error: str | None = None
    details: Any = None
    post_text: str = ""
    length: int = 0
    validated: bool = False
    platform_validations: dict[str, ValidationResult] = Field(default_factory=dict)
    credential_tests: dict[str, CredentialCheck] = Field(default_factory=dict)

    @classmethod
    def from_results(
        cls,
        results: dict[str, PublishResult],
        **extra: Any,
    ) -> PublishReport:
        """Build a report whose summary is derived from *results*.

        ``success`` is true iff at least one platform succeeded.
        """
        ok = [name for name, res in results.items() if res.success]
        bad = [name for name, res in results.items() if not res.success]
        summary = PublishSummary(
            total=len(results),
            successful=len(ok),
            failed=len(bad),
            platforms=PlatformSplit(successful=ok, failed=bad),
        )
        return cls(success=bool(ok), results=results, summary=summary, **extra)

    @classmethod
    def failure(cls, error: str, **extra: Any) -> PublishReport:
        """A terminal failure before any platform was published to."""
        return cls(success=False, error=error, **extra)
