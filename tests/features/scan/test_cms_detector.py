import pytest

from app.features.scan.services.analysis.cms_detector import detect_cms
from app.features.scan.services.parsing.document import Document


def _cms(html: str):
    return detect_cms(Document.from_html(html))["cms_type"]


class TestCmsDetector:
    def test_generator_meta_wins(self):
        html = '<html><head><meta name="generator" content="WordPress 6.4.2"></head><body>cdn.shopify.com</body></html>'

        assert _cms(html) == "wordpress"

    @pytest.mark.parametrize("snippet, expected", [
        ('<script src="https://cdn.shopify.com/s/app.js"></script>', "shopify"),
        ('<link rel="stylesheet" href="/wp-content/themes/x/style.css">', "wordpress"),
        ('<script src="/static/frontend/Magento/luma/en_US/require.js"></script>', "magento"),
        ('<img src="https://static.wixstatic.com/media/a.png">', "wix"),
    ])
    def test_markup_markers(self, snippet, expected):
        assert _cms(f"<html><head>{snippet}</head><body></body></html>") == expected

    def test_unknown_platform_is_none(self):
        assert _cms("<html><body><p>Hand written</p></body></html>") is None
