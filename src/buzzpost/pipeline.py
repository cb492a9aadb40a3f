"""Pipeline orchestration — wires fetch → score → generate → publish → backup."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from buzzpost import config
from buzzpost.backup import format_timestamp, save_post_backup
from buzzpost.buzz import pick_top, score_all
from buzzpost.feeds import fetch_articles
from buzzpost.generator import ContentGenerator, GeneratedPost, TemplateSelector, first_template
from buzzpost.llm import LLMTextGenerator
from buzzpost.models import Article, GenerationLimits, ScoredArticle
from buzzpost.multi_poster import MultiPoster
from buzzpost.posters.base import PosterConfigError, PosterRegistry

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_NO_CONTENT = 2
EXIT_VALIDATION_FAILED = 3
EXIT_PLATFORM_FAILURE = 4


@dataclass
class PipelineOutcome:
    exit_code: int
    payload: dict[str, Any] = field(default_factory=dict)


def setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_generator(template_selector: TemplateSelector = first_template) -> ContentGenerator:
    """ContentGenerator backed by the configured LLM provider."""
    provider = config.LLM_PROVIDER
    model = config.gemini_model_name() if provider.lower() == "gemini" else config.OPENAI_MODEL
    llm = LLMTextGenerator(provider=provider, api_key=config.llm_api_key(provider), model=model)
    return ContentGenerator(llm, template_selector=template_selector)


def default_limits() -> GenerationLimits:
    return GenerationLimits(max_length=config.POST_MAX_LENGTH)


def generate_post(
    articles: Iterable[Article] | None = None,
    *,
    generator: ContentGenerator | None = None,
    limits: GenerationLimits | None = None,
) -> tuple[ScoredArticle, GeneratedPost] | None:
    """Score *articles* (fetched when omitted), pick the top one and write its post."""
    if articles is None:
        articles = fetch_articles(
            limit_per_feed=config.LIMIT_PER_FEED, max_articles=config.MAX_ARTICLES
        )

    top = pick_top(score_all(articles))
    if top is None:
        logger.warning("No articles available — nothing to post.")
        return None

    logger.info("Selected article: \"%s\" (buzz score: %d)", top.title, top.buzz_score)
    logger.info("Matched keywords: %s", ", ".join(top.matched_keywords) or "(none)")

    generator = generator or build_generator()
    post = generator.generate_with_meta(top, limits or default_limits())
    return top, post


def run_pipeline(
    *,
    platforms: Sequence[str] = ("x", "threads"),
    dry_run: bool = False,
    articles: Iterable[Article] | None = None,
    generator: ContentGenerator | None = None,
    registry: PosterRegistry | None = None,
    options: Mapping[str, dict[str, Any]] | None = None,
    backup_dir: Path | None = None,
    skip_credential_test: bool = False,
) -> PipelineOutcome:
    """Run one full generate-and-publish cycle and return a JSON-ready outcome."""
    logger.info("=== buzzpost pipeline start [platforms=%s, dry_run=%s] ===", ",".join(platforms), dry_run)
    timestamp = format_timestamp()

    try:
        generated = generate_post(articles, generator=generator)
        if generated is None:
            return PipelineOutcome(EXIT_NO_CONTENT, {"success": False, "reason": "NO_ARTICLES"})
        top, post = generated

        article_meta = {
            "title": top.title,
            "buzz_score": top.buzz_score,
            "matched_keywords": top.matched_keywords,
            "trending_topics": top.trending_topics,
            "source": top.source,
        }

        try:
            poster = MultiPoster(
                platforms,
                dry_run=dry_run,
                options=options if options is not None else config.platform_options(),
                registry=registry,
            )
        except PosterConfigError as exc:
            logger.error("%s", exc)
            return PipelineOutcome(
                EXIT_PLATFORM_FAILURE,
                {"success": False, "error": str(exc), "post_text": post.text, "article": article_meta},
            )

        report = poster.publish_post(post.text, skip_credential_test=skip_credential_test)
        save_post_backup(post.text, report, backup_dir or config.OUTPUT_BASE / "posts", timestamp)

        payload = {
            **report.model_dump(mode="json"),
            "platforms": list(poster.posters),
            "dry_run": dry_run,
            "used_fallback": post.used_fallback,
            "article": article_meta,
        }
    except Exception as exc:
        logger.exception("Unexpected pipeline error")
        return PipelineOutcome(EXIT_UNEXPECTED, {"success": False, "error": str(exc)})

    if report.error == "Validation failed":
        code = EXIT_VALIDATION_FAILED
    elif not report.success or report.summary.failed:
        code = EXIT_PLATFORM_FAILURE
    else:
        code = EXIT_OK

    logger.info(
        "=== buzzpost pipeline done — %d/%d platforms succeeded ===",
        report.summary.successful,
        report.summary.total,
    )
    return PipelineOutcome(code, payload)
