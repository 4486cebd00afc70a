from app.features.scan.services.analysis.trust_signals import analyze_trust_signals
from app.features.scan.services.parsing.document import Document


def _signals(html: str):
    return analyze_trust_signals(Document.from_html(html))["trust_signals"]


class TestTrustSignalAnalyzer:
    def test_every_matching_phrase_is_recorded(self):
        signals = _signals("<body><p>30 day money back guarantee. Free shipping on all orders.</p></body>")

        found = {(s["category"], s["pattern"]) for s in signals}
        assert ("guarantee", "money back") in found
        assert ("guarantee", "guarantee") in found
        assert ("shipping", "free shipping") in found
        assert all(s["found"] is True for s in signals)

    def test_badge_images_match_first_pattern_only(self):
        signals = _signals('<body><img src="/img/norton-secure-seal.png" alt="Norton Secured"></body>')

        badges = [s for s in signals if s["category"] == "badge"]
        assert badges == [{
            "category": "badge",
            "pattern": "secure",
            "found": True,
            "element": "img",
            "alt": "Norton Secured",
        }]

    def test_review_schema_in_raw_html(self):
        signals = _signals(
            '<html><head><script type="application/ld+json">{"@type": "Review"}</script></head>'
            '<body><p>Hi</p></body></html>'
        )

        assert {"category": "schema", "pattern": "Review schema detected", "found": True} in signals

    def test_plain_page_has_no_signals(self):
        assert _signals("<body><p>Hello there</p></body>") == []
