"""Tests for the scraper layer (fetch, throttle & page extraction).

Mocking strategy:
- ``respx`` patches ``httpx`` at the transport layer so no real network calls
  are made during ``fetch_url`` tests.
- Throttle timing is checked through ``reserve`` (the booked wait) rather
  than wall-clock sleeps, except for the parallelism test, which only
  asserts an upper bound.
"""

from __future__ import annotations

import threading
import time
from contextlib import ExitStack
from unittest.mock import patch

import httpx
import pytest
import respx

from gover.errors import DomainNotAllowedError, FetchCancelledError
from gover.scraper.extractor import (
    OVERVIEW_CATEGORY,
    extract_change_categories,
    extract_release_dates,
    parse_release_heading,
)
from gover.scraper.fetcher import build_client, fetch_url
from gover.scraper.models import RawPage
from gover.scraper.throttle import DomainThrottle


# ---------------------------------------------------------------------------
# Fixtures / constants
# ---------------------------------------------------------------------------

_RELEASE_NOTES_HTML = """\
<!DOCTYPE html>
<html>
<head><title>Go 1.22 Release Notes</title></head>
<body>
  <main>
    <h1>Go 1.22 Release Notes</h1>
    <h2 id="introduction">Introduction to Go 1.22</h2>
    <p>The latest Go release, version 1.22, arrives six months after Go 1.21.</p>
    <h2 id="language">
      Changes to the language
    </h2>
    <pre>for i := range 10 {}</pre>
    <p>Go 1.22 makes two changes to "for" loops.</p>
  </main>
</body>
</html>
"""

_RELEASE_HISTORY_HTML = """\
<html><body>
  <h1>Release History</h1>
  <h2 id="go1.24.0">go1.24.0 (released 2025-02-11)</h2>
  <p>Go 1.24.0 is a major release of Go.</p>
  <h2 id="go1.24.1">go1.24.1 (released 2025-03-04)</h2>
  <h2 id="go1.23.0">go1.23.0 (released 2024-08-13)</h2>
  <h2 id="go1.2">go1.2 (released 2013-12-01)</h2>
  <h2 id="policy">Release Policy</h2>
</body></html>
"""


# ---------------------------------------------------------------------------
# fetch_url tests
# ---------------------------------------------------------------------------

class TestFetchUrl:
    def test_successful_fetch_returns_raw_page(self) -> None:
        with respx.mock:
            respx.get("https://go.dev/doc/go1.22").mock(
                return_value=httpx.Response(200, text=_RELEASE_NOTES_HTML)
            )
            raw = fetch_url("https://go.dev/doc/go1.22")

        assert isinstance(raw, RawPage)
        assert raw.url == "https://go.dev/doc/go1.22"
        assert raw.status_code == 200
        assert "<h1>Go 1.22 Release Notes</h1>" in raw.text

    def test_http_error_raises(self) -> None:
        with respx.mock:
            respx.get("https://go.dev/doc/go1.99").mock(
                return_value=httpx.Response(404, text="Not Found")
            )
            with pytest.raises(httpx.HTTPStatusError):
                fetch_url("https://go.dev/doc/go1.99")

    def test_shared_client_is_used(self) -> None:
        with respx.mock:
            route = respx.get("https://go.dev/doc/go1.22").mock(
                return_value=httpx.Response(200, text="ok")
            )
            with build_client() as client:
                fetch_url("https://go.dev/doc/go1.22", client=client)
                fetch_url("https://go.dev/doc/go1.22", client=client)

        assert route.call_count == 2

    def test_user_agent_header_sent(self, monkeypatch) -> None:
        monkeypatch.setattr("gover.config.settings.user_agent", "gover-test/0.1")
        with respx.mock:
            route = respx.get("https://go.dev/doc/go1.22").mock(
                return_value=httpx.Response(200, text="ok")
            )
            fetch_url("https://go.dev/doc/go1.22")

        assert route.calls.last.request.headers["User-Agent"] == "gover-test/0.1"

    def test_final_url_follows_redirect(self) -> None:
        with respx.mock:
            respx.get("https://go.dev/doc/go1").mock(
                return_value=httpx.Response(
                    301, headers={"Location": "https://go.dev/doc/go1.0"}
                )
            )
            respx.get("https://go.dev/doc/go1.0").mock(
                return_value=httpx.Response(200, text="ok")
            )
            raw = fetch_url("https://go.dev/doc/go1")

        assert raw.url == "https://go.dev/doc/go1.0"

    def test_disallowed_domain_rejected_without_request(self) -> None:
        with respx.mock(assert_all_called=False) as router:
            route = router.get("https://example.com/doc/go1.22").mock(
                return_value=httpx.Response(200, text="ok")
            )
            with pytest.raises(DomainNotAllowedError) as exc_info:
                fetch_url("https://example.com/doc/go1.22")

        assert exc_info.value.host == "example.com"
        assert not route.called

    def test_redirect_to_disallowed_domain_rejected(self) -> None:
        with respx.mock(assert_all_called=False) as router:
            router.get("https://go.dev/doc/go1.22").mock(
                return_value=httpx.Response(
                    302, headers={"Location": "https://evil.example/doc/go1.22"}
                )
            )
            evil = router.get("https://evil.example/doc/go1.22").mock(
                return_value=httpx.Response(200, text="ok")
            )
            with build_client() as client:
                with pytest.raises(DomainNotAllowedError) as exc_info:
                    fetch_url("https://go.dev/doc/go1.22", client=client)

        assert exc_info.value.host == "evil.example"
        assert not evil.called

    def test_allowed_domains_configurable(self, monkeypatch) -> None:
        monkeypatch.setattr("gover.config.settings.allowed_domains", ["example.com"])
        with respx.mock:
            respx.get("https://example.com/doc/go1.22").mock(
                return_value=httpx.Response(200, text="ok")
            )
            raw = fetch_url("https://example.com/doc/go1.22")

        assert raw.text == "ok"


class _TricklingStream(httpx.SyncByteStream):
    """Response body that arrives one small chunk at a time."""

    def __init__(self, chunks: int, pause: float) -> None:
        self._chunks = chunks
        self._pause = pause

    def __iter__(self):
        for i in range(self._chunks):
            if i:
                time.sleep(self._pause)
            yield b"<p>chunk</p>"


class TestFetchUrlDeadline:
    def test_request_timeout_shortened_to_deadline(self, monkeypatch) -> None:
        monkeypatch.setattr("gover.config.settings.request_timeout", 30.0)
        with respx.mock:
            respx.get("https://go.dev/doc/go1.22").mock(
                return_value=httpx.Response(200, text="ok")
            )
            with build_client() as client:
                with patch.object(client, "stream", wraps=client.stream) as spy:
                    raw = fetch_url(
                        "https://go.dev/doc/go1.22", client=client, deadline=time.monotonic() + 1.0
                    )

        assert raw.text == "ok"
        timeout = spy.call_args.kwargs["timeout"]
        assert 0 < timeout.read <= 1.0
        assert 0 < timeout.connect <= 1.0

    def test_passed_deadline_sends_nothing(self) -> None:
        with respx.mock(assert_all_called=False) as router:
            route = router.get("https://go.dev/doc/go1.22").mock(
                return_value=httpx.Response(200, text="ok")
            )
            with pytest.raises(FetchCancelledError):
                fetch_url("https://go.dev/doc/go1.22", deadline=time.monotonic() - 1.0)

        assert not route.called

    def test_trickling_body_cut_off_at_deadline(self) -> None:
        with respx.mock:
            respx.get("https://go.dev/doc/go1.22").mock(
                return_value=httpx.Response(200, stream=_TricklingStream(chunks=10, pause=0.2))
            )
            started = time.monotonic()
            with pytest.raises(FetchCancelledError):
                fetch_url("https://go.dev/doc/go1.22", deadline=time.monotonic() + 0.5)
            elapsed = time.monotonic() - started

        assert elapsed < 1.5

    def test_body_within_deadline_is_read_whole(self) -> None:
        with respx.mock:
            respx.get("https://go.dev/doc/go1.22").mock(
                return_value=httpx.Response(200, stream=_TricklingStream(chunks=3, pause=0))
            )
            raw = fetch_url("https://go.dev/doc/go1.22", deadline=time.monotonic() + 5.0)

        assert raw.text == "<p>chunk</p>" * 3


# ---------------------------------------------------------------------------
# Throttle tests
# ---------------------------------------------------------------------------

class TestDomainThrottle:
    def test_defaults_come_from_settings(self, monkeypatch) -> None:
        monkeypatch.setattr("gover.config.settings.max_parallelism", 4)
        monkeypatch.setattr("gover.config.settings.rate_limit_delay", 0.25)
        throttle = DomainThrottle()
        assert throttle.parallelism == 4
        assert throttle.delay == 0.25

    def test_rejects_zero_parallelism(self) -> None:
        with pytest.raises(ValueError):
            DomainThrottle(parallelism=0, delay=0)

    def test_reserve_spaces_starts_per_domain(self) -> None:
        throttle = DomainThrottle(parallelism=2, delay=1.0)
        waits = [throttle.reserve("go.dev") for _ in range(3)]

        assert waits[0] == pytest.approx(0.0, abs=0.05)
        assert waits[1] == pytest.approx(1.0, abs=0.05)
        assert waits[2] == pytest.approx(2.0, abs=0.05)

    def test_domains_do_not_share_delay(self) -> None:
        throttle = DomainThrottle(parallelism=2, delay=1.0)
        throttle.reserve("go.dev")
        throttle.reserve("go.dev")

        assert throttle.reserve("pkg.go.dev") == pytest.approx(0.0, abs=0.05)

    def test_parallelism_bounds_in_flight_requests(self) -> None:
        throttle = DomainThrottle(parallelism=2, delay=0)
        lock = threading.Lock()
        active = 0
        peak = 0

        def work(i: int) -> None:
            nonlocal active, peak
            with throttle.acquire(f"https://go.dev/doc/go1.{i}"):
                with lock:
                    active += 1
                    peak = max(peak, active)
                time.sleep(0.05)
                with lock:
                    active -= 1

        threads = [threading.Thread(target=work, args=(i,)) for i in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert 1 <= peak <= 2

    def test_other_domain_not_blocked_by_full_domain(self) -> None:
        throttle = DomainThrottle(parallelism=2, delay=0)
        entered = False
        with ExitStack() as stack:
            stack.enter_context(throttle.acquire("https://go.dev/a"))
            stack.enter_context(throttle.acquire("https://go.dev/b"))
            with throttle.acquire("https://example.com/c"):
                entered = True

        assert entered

    def test_cancel_while_waiting_for_slot(self) -> None:
        throttle = DomainThrottle(parallelism=1, delay=0)
        cancel = threading.Event()
        cancel.set()
        with throttle.acquire("https://go.dev/a"):
            with pytest.raises(FetchCancelledError):
                with throttle.acquire("https://go.dev/b", cancel):
                    pass

    def test_cancel_during_delay(self) -> None:
        throttle = DomainThrottle(parallelism=2, delay=10.0)
        throttle.reserve("go.dev")
        cancel = threading.Event()
        cancel.set()

        started = time.monotonic()
        with pytest.raises(FetchCancelledError):
            with throttle.acquire("https://go.dev/doc/go1.2", cancel):
                pass
        assert time.monotonic() - started < 1.0

    def test_slot_released_after_body_raises(self) -> None:
        throttle = DomainThrottle(parallelism=1, delay=0)
        with pytest.raises(RuntimeError):
            with throttle.acquire("https://go.dev/a"):
                raise RuntimeError("boom")

        with throttle.acquire("https://go.dev/b"):
            pass


# ---------------------------------------------------------------------------
# Extractor unit tests
# ---------------------------------------------------------------------------

class TestParseReleaseHeading:
    def test_major_release(self) -> None:
        assert parse_release_heading("go1.24.0 (released 2025-02-11)") == ("go1.24", "2025-02-11")

    def test_patch_suffix_discarded(self) -> None:
        assert parse_release_heading("go1.24.1 (released 2025-03-04)") == ("go1.24", "2025-03-04")

    def test_old_style_without_patch(self) -> None:
        assert parse_release_heading("go1.2 (released 2013-12-01)") == ("go1.2", "2013-12-01")

    def test_no_marker_returns_none(self) -> None:
        assert parse_release_heading("Release Policy") is None


class TestExtractReleaseDates:
    def test_first_seen_date_wins(self) -> None:
        dates = extract_release_dates(_RELEASE_HISTORY_HTML)
        assert dates["go1.24"] == "2025-02-11"

    def test_all_minor_versions_present(self) -> None:
        dates = extract_release_dates(_RELEASE_HISTORY_HTML)
        assert dates == {
            "go1.24": "2025-02-11",
            "go1.23": "2024-08-13",
            "go1.2": "2013-12-01",
        }

    def test_only_h2_headings_considered(self) -> None:
        html = "<html><body><h3>go1.5 (released 2015-08-19)</h3></body></html>"
        assert extract_release_dates(html) == {}

    def test_no_headings_returns_empty(self) -> None:
        assert extract_release_dates("<html><body></body></html>") == {}


class TestExtractChangeCategories:
    def test_overview_then_sections_in_document_order(self) -> None:
        categories = extract_change_categories(_RELEASE_NOTES_HTML)

        assert [c.category for c in categories] == [
            OVERVIEW_CATEGORY,
            "Introduction to Go 1.22",
            "Changes to the language",
        ]
        assert categories[0].description == "Go 1.22 Release Notes"

    def test_description_only_from_immediate_paragraph(self) -> None:
        categories = extract_change_categories(_RELEASE_NOTES_HTML)

        assert categories[1].description.startswith("The latest Go release")
        # The heading is followed by <pre>, not <p>.
        assert categories[2].description == ""

    def test_h1_and_two_h2_only_first_with_paragraph(self) -> None:
        html = (
            "<html><body>"
            "<h1>Title</h1>"
            "<h2>First</h2><p>First text.</p>"
            "<h2>Second</h2><div>not a paragraph</div>"
            "</body></html>"
        )
        categories = extract_change_categories(html)

        assert len(categories) == 3
        assert categories[1].description == "First text."
        assert categories[2].description == ""

    def test_last_heading_without_sibling(self) -> None:
        html = "<html><body><h1>T</h1><h2>Trailing</h2></body></html>"
        categories = extract_change_categories(html)
        assert categories[-1].category == "Trailing"
        assert categories[-1].description == ""

    def test_missing_h1_has_no_overview(self) -> None:
        html = "<html><body><h2>Only</h2><p>x</p></body></html>"
        categories = extract_change_categories(html)
        assert [c.category for c in categories] == ["Only"]

    def test_empty_page_yields_nothing(self) -> None:
        assert extract_change_categories("<html></html>") == []
