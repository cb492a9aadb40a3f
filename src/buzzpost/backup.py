"""Write a JSON backup of every publish attempt."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from buzzpost.models import PublishReport
from buzzpost.truncate import text_length

logger = logging.getLogger(__name__)


def format_timestamp(moment: datetime | None = None) -> str:
    return (moment or datetime.now()).strftime("%Y%m%d-%H%M%S")


def save_post_backup(
    post_text: str,
    report: PublishReport,
    out_dir: Path,
    timestamp: str | None = None,
) -> Path | None:
    """Save ``post-<timestamp>.json`` under *out_dir*; ``None`` if writing failed."""
    results = report.results
    data = {
        "timestamp": datetime.now(UTC).isoformat(),
        "post_text": post_text,
        "report": report.model_dump(mode="json"),
        "metadata": {
            "length": text_length(post_text),
            "platforms": list(results),
            "posted": any(r.success and not r.dry_run for r in results.values()),
            "dry_run": bool(results) and all(r.dry_run for r in results.values()),
        },
    }

    path = out_dir / f"post-{timestamp or format_timestamp()}.json"
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    except OSError as exc:
        logger.error("Failed to save post backup to %s: %s", path, exc)
        return None

    logger.info("Post backup saved: %s", path)
    return path
