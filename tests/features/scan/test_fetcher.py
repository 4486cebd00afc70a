from unittest.mock import MagicMock

import pytest
import requests
from requests.utils import get_encoding_from_headers

from app.features.scan.exceptions import FetchError
from app.features.scan.services.analysis.cta_analyzer import analyze_cta_elements
from app.features.scan.services.fetching.fetcher import BROWSER_HEADERS, Fetcher
from app.features.scan.services.parsing.document import Document


def _response(body: bytes, status_code: int = 200, content_type: str = "text/html") -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response.headers["Content-Type"] = content_type
    response.encoding = get_encoding_from_headers(response.headers)
    response._content = body
    return response


class TestFetcher:
    @pytest.fixture
    def session(self):
        return MagicMock()

    def test_returns_raw_body_with_browser_headers(self, session):
        session.get.return_value = _response(b"<html></html>")

        html = Fetcher(timeout=7, session=session).fetch_html("https://example.com")

        assert html == b"<html></html>"
        session.get.assert_called_once_with("https://example.com", headers=BROWSER_HEADERS, timeout=7)
        assert "Mozilla/5.0" in BROWSER_HEADERS["User-Agent"]

    def test_meta_charset_wins_when_header_has_none(self, session):
        page = (
            '<html><head><meta charset="utf-8"></head>'
            '<body><a class="btn" href="/join">Café – Sign up</a></body></html>'
        )
        session.get.return_value = _response(page.encode("utf-8"))

        html = Fetcher(session=session).fetch_html("https://example.com")
        result = analyze_cta_elements(Document.from_html(html))

        assert result["cta_details"][0]["text"] == "Café – Sign up"

    def test_non_2xx_raises(self, session):
        session.get.return_value = _response(b"missing", status_code=404)

        with pytest.raises(FetchError, match="HTTP 404"):
            Fetcher(session=session).fetch_html("https://example.com/missing")

    def test_transport_error_raises(self, session):
        session.get.side_effect = requests.ConnectionError("DNS failure")

        with pytest.raises(FetchError, match="DNS failure"):
            Fetcher(session=session).fetch_html("https://nope.invalid")

    def test_timeout_raises(self, session):
        session.get.side_effect = requests.Timeout("read timed out")

        with pytest.raises(FetchError):
            Fetcher(session=session).fetch_html("https://slow.example.com")
