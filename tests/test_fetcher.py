"""Tests for the HTTP fetch layer."""

from __future__ import annotations

import pytest
import requests

from ntvsports import fetcher
from ntvsports.fetcher import RETRY_STATUSES, USER_AGENT, create_session, fetch_html
from ntvsports.settings import RETRY_COUNT


class FakeResponse:
    def __init__(self, text: str = "", status: int = 200):
        self.text = text
        self.status_code = status

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    def __init__(self, response: FakeResponse):
        self.response = response
        self.requests: list[tuple[str, dict]] = []

    def get(self, url: str, **kwargs) -> FakeResponse:
        self.requests.append((url, kwargs))
        return self.response


class TestCreateSession:
    def test_mounts_retrying_adapter(self) -> None:
        session = create_session(retries=3, backoff=0.5)
        retry = session.get_adapter("https://example.test/").max_retries
        assert retry.total == 3
        assert retry.backoff_factor == 0.5
        assert set(retry.status_forcelist) == set(RETRY_STATUSES)
        assert session.get_adapter("http://example.test/").max_retries.total == 3

    def test_browser_headers(self) -> None:
        assert create_session().headers["User-Agent"] == USER_AGENT


class TestFetchHtml:
    def test_returns_body_and_sends_referer(self) -> None:
        session = FakeSession(FakeResponse("<html>ok</html>"))
        body = fetch_html("https://a.test/page", referer="https://a.test/", session=session, timeout=4)

        assert body == "<html>ok</html>"
        [(url, kwargs)] = session.requests
        assert url == "https://a.test/page"
        assert kwargs["headers"]["Referer"] == "https://a.test/"
        assert kwargs["headers"]["User-Agent"] == USER_AGENT
        assert kwargs["timeout"] == 4

    def test_no_referer_header_by_default(self) -> None:
        session = FakeSession(FakeResponse("x"))
        fetch_html("https://a.test/page", session=session)
        assert "Referer" not in session.requests[0][1]["headers"]

    def test_http_error_is_raised(self) -> None:
        session = FakeSession(FakeResponse("blocked", status=403))
        with pytest.raises(requests.HTTPError):
            fetch_html("https://a.test/page", session=session)

    def test_default_session_retries(self) -> None:
        assert fetcher.SESSION.get_adapter("https://example.test/").max_retries.total == RETRY_COUNT

    def test_uses_shared_session_when_none_given(self, monkeypatch: pytest.MonkeyPatch) -> None:
        session = FakeSession(FakeResponse("<html>shared</html>"))
        monkeypatch.setattr(fetcher, "SESSION", session)

        assert fetch_html("https://a.test/page") == "<html>shared</html>"
        assert [url for url, _ in session.requests] == ["https://a.test/page"]
