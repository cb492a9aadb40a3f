"""Post text generation — LLM first, deterministic templates as fallback."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass

from buzzpost.llm import TextGenerator
from buzzpost.models import GenerationLimits, ScoredArticle
from buzzpost.truncate import text_length, truncate

logger = logging.getLogger(__name__)

TemplateSelector = Callable[[int], int]

_PROMPT_TEMPLATE = """\
あなたはニュースを分かりやすく伝えるSNS編集者です。以下のニュースから、読者が思わず反応したくなる投稿文を1つ作成してください。

【ニュース情報】
カテゴリ: {category}
タイトル: {title}
内容: {snippet}
出典: {source}
注目キーワード: {keywords}
関連ハッシュタグ: {topics}

【ルール】
- {max_length}文字以内（厳守）
- 2文以内で、文は必ず「。」で終える
- 数字や具体的な事実を1つ含める
- 最後に読者への問いかけを入れてよい
- ハッシュタグは最大2個まで

【禁止事項】
- 記事にない数字や事実を作らない
- 誇張した煽り文句（「衝撃」「ヤバい」など）を使わない
- URLや絵文字の連続を入れない
- 前置きや説明文を付けない

投稿本文のみを出力してください。"""

FALLBACK_TEMPLATES: tuple[str, ...] = (
    "{body}",
    "【注目】{body}",
    "{body} 皆さんはどう思いますか？",
)


def first_template(count: int) -> int:
    return 0


def random_selector(count: int) -> int:
    """Pick a template at random; only meant for the CLI boundary."""
    return random.randrange(count)


@dataclass(frozen=True)
class GeneratedPost:
    text: str
    used_fallback: bool
    length: int


def build_prompt(article: ScoredArticle, max_length: int) -> str:
    return _PROMPT_TEMPLATE.format(
        category=article.category.upper(),
        title=article.title,
        snippet=article.content_snippet or "(なし)",
        source=article.source or "不明",
        keywords=", ".join(article.matched_keywords) or "(なし)",
        topics=" ".join(article.trending_topics) or "(なし)",
        max_length=max_length,
    )


class ContentGenerator:
    """Generates one post for an article within a hard character budget."""

    def __init__(
        self,
        text_generator: TextGenerator,
        *,
        template_selector: TemplateSelector = first_template,
        templates: tuple[str, ...] = FALLBACK_TEMPLATES,
    ) -> None:
        if not templates:
            raise ValueError("At least one fallback template is required.")
        self._text_generator = text_generator
        self._select = template_selector
        self._templates = templates

    # ── public ──────────────────────────────────────────────────────────

    def generate(self, article: ScoredArticle, limits: GenerationLimits) -> str:
        return self.generate_with_meta(article, limits).text

    def generate_with_meta(self, article: ScoredArticle, limits: GenerationLimits) -> GeneratedPost:
        prompt = build_prompt(article, limits.max_length)
        try:
            raw = self._text_generator.generate_text(prompt)
        except Exception:
            logger.exception("Text generation failed; using a fallback template")
            raw = None

        if raw and raw.strip():
            used_fallback = False
            # Model output is not trusted to follow the sentence rule.
            text = truncate(
                raw.strip(), limits.max_length, max_sentence_units=limits.max_sentences
            )
        else:
            used_fallback = True
            text = self._fallback(article, limits)

        text = _with_topics(text, article.trending_topics, limits.max_length)
        length = text_length(text)

        if limits.append_link and article.link:
            text = f"{text}\n{article.link}"

        logger.info(
            "Generated post via %s: %d chars (limit %d)",
            "fallback template" if used_fallback else "LLM",
            length,
            limits.max_length,
        )
        return GeneratedPost(text=text, used_fallback=used_fallback, length=length)

    # ── private ─────────────────────────────────────────────────────────

    def _fallback(self, article: ScoredArticle, limits: GenerationLimits) -> str:
        """Build a post from the article alone. Never calls the LLM."""
        body = (article.content_snippet or article.title).strip()

        template = self._templates[self._select(len(self._templates)) % len(self._templates)]
        overhead = text_length(template.replace("{body}", ""))
        if overhead >= limits.max_length:
            template, overhead = "{body}", 0

        body = truncate(
            body, limits.max_length - overhead, max_sentence_units=limits.max_sentences
        )
        return template.format(body=body)


def _with_topics(text: str, topics: list[str], max_length: int) -> str:
    """Append up to two hashtags when the text has none and they still fit."""
    if "#" in text or not topics:
        return text
    for count in (2, 1):
        candidate = f"{text} {' '.join(topics[:count])}"
        if text_length(candidate) <= max_length:
            return candidate
    return text
