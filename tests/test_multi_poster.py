"""Unit tests for multi-platform publishing."""

import pytest

from buzzpost.models import ErrorKind, PublishResult
from buzzpost.multi_poster import MultiPoster
from buzzpost.posters.base import PosterConfigError, PosterRegistry
from buzzpost.posters.x import XPoster

from conftest import FakePoster


def _failing_factory(options: dict, dry_run: bool) -> FakePoster:
    raise PosterConfigError("missing token")


class TestDryRun:
    def test_both_platforms_succeed_without_credentials(self) -> None:
        multi = MultiPoster(["x", "threads"], dry_run=True)
        report = multi.publish_post("テスト投稿です")

        assert report.success is True
        assert report.summary.total == 2
        assert report.summary.successful == 2
        assert report.summary.failed == 0
        assert report.summary.platforms.successful == ["x", "threads"]
        for name in ("x", "threads"):
            assert report.results[name].dry_run is True
        assert report.credential_tests == {}

    def test_single_platform_string(self) -> None:
        multi = MultiPoster("threads", dry_run=True)
        assert list(multi.posters) == ["threads"]


class TestValidation:
    def test_too_long_for_one_platform_aborts_all(self, registry_of) -> None:
        x = FakePoster("x", max_length=280)
        threads = FakePoster("threads", max_length=500)
        multi = MultiPoster(["x", "threads"], registry=registry_of(x=x, threads=threads))

        report = multi.publish_post("あ" * 300)

        assert report.success is False
        assert report.error == "Validation failed"
        assert report.results == {}
        assert report.details == ["X: Post is too long: 300 characters (max: 280)"]
        assert report.platform_validations["threads"].is_valid is True
        assert x.published == [] and threads.published == []
        assert x.credential_calls == 0

    def test_validate_only_publishes_nothing(self, registry_of) -> None:
        x = FakePoster("x")
        multi = MultiPoster(["x"], registry=registry_of(x=x))

        report = multi.publish_post("テスト", validate_only=True)

        assert report.success is True
        assert report.validated is True
        assert report.length == 3
        assert x.published == []
        assert x.credential_calls == 0

    def test_validate_post_is_pure(self, registry_of) -> None:
        x = FakePoster("x")
        multi = MultiPoster(["x"], registry=registry_of(x=x))
        validation = multi.validate_post("")
        assert validation.is_valid is False
        assert validation.errors == ["X: Post text cannot be empty"]
        assert x.published == []


class TestFaultIsolation:
    def test_one_platform_failure_keeps_the_other(self, registry_of) -> None:
        x = FakePoster(
            "x",
            result=PublishResult(
                success=False, error="Rate limited", error_kind=ErrorKind.RATE_LIMITED
            ),
        )
        threads = FakePoster("threads")
        multi = MultiPoster(["x", "threads"], registry=registry_of(x=x, threads=threads))

        report = multi.publish_post("テスト")

        assert report.success is True
        assert report.summary.successful == 1
        assert report.summary.failed == 1
        assert report.summary.platforms.failed == ["x"]
        assert report.results["x"].error_kind == ErrorKind.RATE_LIMITED
        assert report.results["threads"].url == "https://example.com/threads/1"

    def test_raising_poster_is_captured(self, registry_of) -> None:
        x = FakePoster("x", exc=RuntimeError("socket closed"))
        threads = FakePoster("threads")
        multi = MultiPoster(["x", "threads"], registry=registry_of(x=x, threads=threads))

        report = multi.publish_post("テスト")

        assert report.success is True
        assert report.results["x"].error == "Unexpected error"
        assert report.results["x"].error_kind == ErrorKind.UNEXPECTED
        assert "socket closed" in report.results["x"].details
        assert threads.published == ["テスト"]

    def test_all_failed(self, registry_of) -> None:
        failed = PublishResult(success=False, error="X API error", error_kind=ErrorKind.API_ERROR)
        x = FakePoster("x", result=failed)
        multi = MultiPoster(["x"], registry=registry_of(x=x))
        report = multi.publish_post("テスト")
        assert report.success is False
        assert report.summary.failed == 1

    def test_results_follow_configured_order(self, registry_of) -> None:
        x = FakePoster("x")
        threads = FakePoster("threads")
        multi = MultiPoster(["threads", "x"], registry=registry_of(x=x, threads=threads))
        report = multi.publish_post("テスト")
        assert list(report.results) == ["threads", "x"]


class TestCredentialPreflight:
    def test_failing_platform_is_skipped(self, registry_of) -> None:
        x = FakePoster("x", cred_ok=False)
        threads = FakePoster("threads")
        multi = MultiPoster(["x", "threads"], registry=registry_of(x=x, threads=threads))

        report = multi.publish_post("テスト")

        assert report.success is True
        assert list(report.results) == ["threads"]
        assert report.credential_tests["x"].success is False
        assert x.published == []
        # skipping for one call leaves the configured posters intact
        assert set(multi.posters) == {"x", "threads"}

    def test_no_platform_passes(self, registry_of) -> None:
        x = FakePoster("x", cred_ok=False)
        multi = MultiPoster(["x"], registry=registry_of(x=x))

        report = multi.publish_post("テスト")

        assert report.success is False
        assert report.error == "No valid API connections available"
        assert report.results == {}

    def test_skip_credential_test(self, registry_of) -> None:
        x = FakePoster("x", cred_ok=False)
        multi = MultiPoster(["x"], registry=registry_of(x=x))

        report = multi.publish_post("テスト", skip_credential_test=True)

        assert report.success is True
        assert x.credential_calls == 0
        assert report.credential_tests == {}

    def test_raising_check_counts_as_failure(self, registry_of) -> None:
        def explode():
            raise RuntimeError("boom")

        x = FakePoster("x")
        x._check_credentials = explode
        multi = MultiPoster(["x"], registry=registry_of(x=x))
        checks = multi.test_credentials()
        assert checks["x"].success is False
        assert checks["x"].error == "boom"


class TestConstruction:
    def test_failed_poster_is_dropped(self, registry_of) -> None:
        registry = registry_of(threads=FakePoster("threads"))
        registry.register("x", _failing_factory)
        multi = MultiPoster(["x", "threads"], registry=registry)

        assert list(multi.posters) == ["threads"]
        info = multi.platform_info()
        assert info["configured"] == ["x", "threads"]
        assert info["initialized"] == ["threads"]
        assert info["missing"] == ["x"]
        assert info["dry_run"] is False

    def test_all_posters_failing_raises(self) -> None:
        registry = PosterRegistry()
        registry.register("x", _failing_factory)
        with pytest.raises(PosterConfigError, match="No valid posters"):
            MultiPoster(["x"], registry=registry)

    def test_live_without_credentials_raises(self) -> None:
        with pytest.raises(PosterConfigError):
            MultiPoster(["x", "threads"], dry_run=False, options={})

    def test_unknown_platform(self) -> None:
        with pytest.raises(KeyError):
            MultiPoster(["x", "mastodon"], dry_run=True)

    def test_empty_platforms(self) -> None:
        with pytest.raises(ValueError):
            MultiPoster([], dry_run=True)

    def test_options_reach_factories(self) -> None:
        options = {
            "x": {"api_key": "k", "api_secret": "s", "access_token": "t", "access_secret": "ts"},
        }
        multi = MultiPoster(["x"], options=options)
        assert isinstance(multi.posters["x"], XPoster)
        assert multi.posters["x"].dry_run is False
