"""Rule-based buzz scoring for news articles."""

from __future__ import annotations

import logging
import re
import unicodedata
from dataclasses import dataclass
from typing import Iterable

from buzzpost.models import Article, ScoredArticle

logger = logging.getLogger(__name__)

THEME = "theme"
INTENT = "intent"


@dataclass(frozen=True)
class KeywordGroup:
    name: str
    kind: str  # THEME or INTENT
    weight: int
    keywords: tuple[str, ...]
    tag: str | None = None


# ── Keyword groups (scan order matters) ────────────────────────────────────
DEFAULT_GROUPS: tuple[KeywordGroup, ...] = (
    KeywordGroup(
        "asset", THEME, 2,
        (
            "新NISA", "NISA", "iDeCo", "積立投資", "投資信託", "株価",
            "円安", "円高", "利上げ", "金利",
        ),
        tag="#資産形成",
    ),
    KeywordGroup(
        "household", THEME, 2,
        (
            "ふるさと納税", "確定申告", "年末調整", "節約", "家計簿",
            "物価高", "値上げ", "電気代", "ポイ活",
        ),
        tag="#家計管理",
    ),
    KeywordGroup(
        "career", THEME, 2,
        (
            "副業", "転職", "年収", "給料", "賃上げ", "リスキリング",
            "フリーランス", "退職金",
        ),
        tag="#キャリア",
    ),
    KeywordGroup(
        "ai", THEME, 2,
        (
            "生成AI", "ChatGPT", "OpenAI", "Claude", "Gemini", "LLM",
            "人工知能", "AI",
        ),
        tag="#AI",
    ),
    KeywordGroup(
        "howto", INTENT, 1,
        (
            "違い", "比較", "始め方", "やり方", "注意点", "まとめ",
            "知らないと損", "損しない", "徹底解説", "ランキング",
        ),
    ),
)

# ── Bonuses (tuneable) ─────────────────────────────────────────────────────
CATEGORY_BONUS: dict[str, int] = {"ai": 2, "business": 1}
NUMERIC_BONUS = 2
CROSS_THEME_BONUS = 2
MAX_TOPICS = 3

_NUMERIC_RE = re.compile(r"\d+(?:億円|兆円|万円|%|倍)")

_PUNCT_TABLE = str.maketrans(
    {
        "“": '"', "”": '"', "„": '"',
        "‘": "'", "’": "'",
        "〜": "~",
        "—": "-", "–": "-", "―": "-",
    }
)


def normalize(text: str) -> str:
    """NFKC + lowercase + unified quote/dash variants."""
    return unicodedata.normalize("NFKC", text).lower().translate(_PUNCT_TABLE)


def _keyword_pattern(needle: str) -> re.Pattern[str] | None:
    """Latin keywords must stand alone, so "ai" never matches inside "detail"."""
    if not needle:
        return None
    if needle.isascii():
        return re.compile(rf"(?<![a-z0-9]){re.escape(needle)}(?![a-z0-9])")
    return re.compile(re.escape(needle))


class BuzzScorer:
    """Deterministic keyword/category/numeric scorer."""

    def __init__(
        self,
        groups: Iterable[KeywordGroup] = DEFAULT_GROUPS,
        category_bonus: dict[str, int] | None = None,
        numeric_bonus: int = NUMERIC_BONUS,
        cross_theme_bonus: int = CROSS_THEME_BONUS,
        max_topics: int = MAX_TOPICS,
    ) -> None:
        self._groups = tuple(groups)
        self._category_bonus = CATEGORY_BONUS if category_bonus is None else category_bonus
        self._numeric_bonus = numeric_bonus
        self._cross_theme_bonus = cross_theme_bonus
        self._max_topics = max_topics
        # Pre-normalise once; matching is always done on normalised text.
        self._patterns = {
            group.name: tuple(_keyword_pattern(normalize(kw)) for kw in group.keywords)
            for group in self._groups
        }

    def score(self, article: Article) -> ScoredArticle:
        scan = normalize(f"{article.title} {article.content_snippet}")

        buzz = 0
        matched: list[str] = []
        topics: list[str] = []
        kinds: set[str] = set()

        for group in self._groups:
            for keyword, pattern in zip(group.keywords, self._patterns[group.name]):
                if pattern is not None and pattern.search(scan):
                    buzz += group.weight
                    matched.append(keyword)
                    kinds.add(group.kind)
                    if group.tag and group.tag not in topics:
                        topics.append(group.tag)

        buzz += self._category_bonus.get(article.category, 0)

        if _NUMERIC_RE.search(scan):
            buzz += self._numeric_bonus

        if THEME in kinds and INTENT in kinds:
            buzz += self._cross_theme_bonus

        return ScoredArticle(
            **article.model_dump(include=set(Article.model_fields)),
            buzz_score=buzz,
            matched_keywords=matched,
            trending_topics=topics[: self._max_topics],
        )


_DEFAULT_SCORER = BuzzScorer()


def score(article: Article) -> ScoredArticle:
    """Score a single article with the default keyword table."""
    return _DEFAULT_SCORER.score(article)


def score_all(articles: Iterable[Article]) -> list[ScoredArticle]:
    scored = [score(a) for a in articles]
    logger.info(
        "Scored %d articles; top score=%d",
        len(scored),
        max((s.buzz_score for s in scored), default=0),
    )
    return scored


def pick_top(scored: Iterable[ScoredArticle]) -> ScoredArticle | None:
    """Return the highest-scoring article; the earliest one wins ties."""
    best: ScoredArticle | None = None
    for item in scored:
        if best is None or item.buzz_score > best.buzz_score:
            best = item
    return best


def rank(scored: Iterable[ScoredArticle]) -> list[ScoredArticle]:
    """Sort descending by score, keeping input order among equal scores."""
    indexed = list(enumerate(scored))
    indexed.sort(key=lambda pair: (-pair[1].buzz_score, pair[0]))
    return [item for _, item in indexed]
