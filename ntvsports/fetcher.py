"""HTTP GET with browser-like headers, timeout and bounded retry."""

from __future__ import annotations

import logging

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ntvsports.settings import BACKOFF_FACTOR, REQUEST_TIMEOUT, RETRY_COUNT

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}

RETRY_STATUSES = (429, 500, 502, 503, 504)


def create_session(retries: int = RETRY_COUNT, backoff: float = BACKOFF_FACTOR) -> requests.Session:
    """Create a requests session that retries failed GETs with backoff."""
    session = requests.Session()
    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        status=retries,
        backoff_factor=backoff,
        status_forcelist=RETRY_STATUSES,
        allowed_methods=frozenset({"GET", "HEAD"}),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update(DEFAULT_HEADERS)
    return session


# Shared by callers that do not bring their own session
SESSION = create_session()


def fetch_html(
    url: str,
    referer: str | None = None,
    session: requests.Session | None = None,
    timeout: float = REQUEST_TIMEOUT,
) -> str:
    """Fetch a page and return its body text.

    Raises requests.RequestException on connection errors, timeouts and
    non-2xx responses once the session's retries are exhausted.
    """
    headers = dict(DEFAULT_HEADERS)
    if referer:
        headers["Referer"] = referer

    if session is None:
        session = SESSION
    logger.debug("GET %s", url)
    response = session.get(url, headers=headers, timeout=timeout, allow_redirects=True)
    response.raise_for_status()
    return response.text
