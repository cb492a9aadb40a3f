"""Unit tests for feed fetching (HTTP mocked, real feedparser)."""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
import requests

from buzzpost.feeds import FeedError, fetch_articles, fetch_feed, select_articles
from buzzpost.models import Article

_RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Money Wire</title>
    <link>https://wire.example.com/</link>
    <description>test feed</description>
    <item>
      <title>円安が進む</title>
      <link>https://wire.example.com/1</link>
      <description>家計への影響をまとめた。</description>
      <pubDate>Mon, 06 Jan 2025 09:00:00 +0000</pubDate>
    </item>
    <item>
      <title>新NISAの始め方</title>
      <link>https://wire.example.com/2</link>
      <description>初心者向けの解説。</description>
      <pubDate>Tue, 07 Jan 2025 09:00:00 +0000</pubDate>
    </item>
    <item>
      <title>副業の注意点</title>
      <link>https://wire.example.com/3</link>
      <pubDate>Sun, 05 Jan 2025 09:00:00 +0000</pubDate>
    </item>
  </channel>
</rss>
""".encode("utf-8")


def _session(content: bytes = _RSS, status: int = 200) -> MagicMock:
    session = MagicMock()
    session.get.return_value = MagicMock(status_code=status, content=content)
    return session


def _article(title: str, day: int) -> Article:
    return Article(title=title, pub_date=datetime(2025, 1, day, tzinfo=UTC))


class TestFetchFeed:
    def test_parses_entries(self) -> None:
        articles = fetch_feed("https://wire.example.com/rss", "business", limit=2, session=_session())

        assert [a.title for a in articles] == ["円安が進む", "新NISAの始め方"]
        first = articles[0]
        assert first.category == "business"
        assert first.source == "Money Wire"
        assert first.link == "https://wire.example.com/1"
        assert first.content_snippet == "家計への影響をまとめた。"
        assert first.pub_date == datetime(2025, 1, 6, 9, 0, tzinfo=UTC)

    def test_html_description_becomes_plain_text(self) -> None:
        rss = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Money Wire</title>
    <item>
      <title>円安が進む</title>
      <link>https://wire.example.com/1</link>
      <description><![CDATA[<p>家計への<b>影響</b>をまとめた。</p><img src="https://wire.example.com/x.png" />]]></description>
    </item>
  </channel>
</rss>
""".encode("utf-8")
        articles = fetch_feed("https://wire.example.com/rss", "business", session=_session(rss))
        assert articles[0].content_snippet == "家計への影響をまとめた。"

    def test_http_error(self) -> None:
        with pytest.raises(FeedError, match="HTTP 500"):
            fetch_feed("https://wire.example.com/rss", "ai", session=_session(status=500))

    def test_transport_error(self) -> None:
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("unreachable")
        with pytest.raises(FeedError, match="unreachable"):
            fetch_feed("https://bad.invalid/rss", "ai", session=session)


class TestFetchArticles:
    def test_sorted_newest_first(self) -> None:
        articles = fetch_articles(
            {"business": ["https://wire.example.com/rss"]},
            limit_per_feed=3,
            session=_session(),
        )
        assert [a.title for a in articles] == ["新NISAの始め方", "円安が進む", "副業の注意点"]

    def test_failing_feed_is_skipped(self) -> None:
        good = MagicMock(status_code=200, content=_RSS)

        def get(url, **kwargs):
            if "bad" in url:
                raise requests.ConnectionError("unreachable")
            return good

        session = MagicMock()
        session.get.side_effect = get
        articles = fetch_articles(
            {"ai": ["https://bad.invalid/rss"], "business": ["https://wire.example.com/rss"]},
            session=session,
        )
        assert len(articles) == 3

    def test_same_title_across_feeds_kept_once(self) -> None:
        articles = fetch_articles(
            {"ai": ["https://a.example.com/rss"], "business": ["https://b.example.com/rss"]},
            session=_session(),
        )
        assert len(articles) == 3

    def test_max_articles(self) -> None:
        articles = fetch_articles(
            {"business": ["https://wire.example.com/rss"]}, max_articles=1, session=_session()
        )
        assert [a.title for a in articles] == ["新NISAの始め方"]

    def test_no_feeds(self) -> None:
        assert fetch_articles({}) == []


class TestSelectArticles:
    def test_dedupes_and_sorts(self) -> None:
        articles = [_article("a", 1), _article("b", 3), _article("a", 5), _article("", 9)]
        selected = select_articles(articles, max_articles=10)
        assert [a.title for a in selected] == ["b", "a"]
        assert selected[1].pub_date.day == 1

    def test_caps(self) -> None:
        articles = [_article(str(day), day) for day in range(1, 8)]
        assert [a.title for a in select_articles(articles, max_articles=2)] == ["7", "6"]
