import logging

import requests

from app.features.scan.exceptions import FetchError
from app.platform.config import settings

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


class Fetcher:
    def __init__(self, timeout: int = None, session: requests.Session = None):
        self.timeout = timeout or settings.FETCH_TIMEOUT_SECONDS
        self.session = session

    def fetch_html(self, url: str) -> bytes:
        """
        GET the page once with browser-like headers and return the raw body.

        The bytes are left undecoded so the parser can honour a <meta charset>
        when the Content-Type header names none.

        Raises:
            FetchError: transport failure or any non-2xx response
        """
        client = self.session or requests
        try:
            response = client.get(url, headers=BROWSER_HEADERS, timeout=self.timeout)
        except requests.RequestException as e:
            raise FetchError(f"Failed to fetch URL: {e}") from e

        if not 200 <= response.status_code < 300:
            raise FetchError(f"Failed to fetch URL: HTTP {response.status_code}")

        logger.info(f"Fetched {url} ({len(response.content)} bytes)")
        return response.content
