"""CLI entry-point: ``python -m buzzpost generate`` / ``python -m buzzpost post``."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from buzzpost import config
from buzzpost.backup import format_timestamp
from buzzpost.generator import random_selector
from buzzpost.pipeline import (
    EXIT_NO_CONTENT,
    EXIT_OK,
    build_generator,
    generate_post,
    run_pipeline,
    setup_logging,
)

logger = logging.getLogger(__name__)

PLATFORM_CHOICES = ["x", "threads"]


def _generate_only() -> int:
    """Score, pick and write the post to ``out/tweet-<ts>.txt`` without publishing."""
    generated = generate_post(generator=build_generator(random_selector))
    if generated is None:
        logger.error("No articles fetched. Aborting.")
        return EXIT_NO_CONTENT

    _, post = generated
    out_dir = config.OUTPUT_BASE
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / f"tweet-{format_timestamp()}.txt"
    out_path.write_text(f"{post.text}\n", encoding="utf-8")
    logger.info("Post written to: %s", out_path)
    return EXIT_OK


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="buzzpost",
        description="Pick the most shareable news item and post it to social platforms.",
    )
    sub = parser.add_subparsers(dest="command")

    # ── generate ───────────────────────────────────────────────────────
    sub.add_parser("generate", help="Fetch, score and write a post without publishing.")

    # ── post ───────────────────────────────────────────────────────────
    post_parser = sub.add_parser("post", help="Generate a post and publish it.")
    post_parser.add_argument(
        "--platforms",
        nargs="+",
        choices=PLATFORM_CHOICES,
        default=PLATFORM_CHOICES,
        help="Which platforms to publish to (default: x threads).",
    )
    post_parser.add_argument(
        "--dry-run",
        action="store_true",
        default=config.env_flag("DRY_RUN"),
        help="Validate and simulate publishing without any network call.",
    )
    post_parser.add_argument(
        "--skip-credential-test",
        action="store_true",
        help="Do not pre-flight platform credentials before publishing.",
    )

    args = parser.parse_args(argv)
    setup_logging()

    if args.command == "generate":
        sys.exit(_generate_only())
    elif args.command == "post":
        outcome = run_pipeline(
            platforms=args.platforms,
            dry_run=args.dry_run,
            generator=build_generator(random_selector),
            skip_credential_test=args.skip_credential_test,
        )
        print(json.dumps(outcome.payload, ensure_ascii=False, indent=2))
        sys.exit(outcome.exit_code)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
