from unittest.mock import patch

from app.features.scan.services.analysis.cta_analyzer import analyze_cta_elements
from app.features.scan.services.parsing.document import Document


def _analyze(body: str):
    return analyze_cta_elements(Document.from_html(f"<html><body>{body}</body></html>"))


class TestCtaAnalyzer:
    def test_no_matching_cta_scores_zero(self):
        result = _analyze('<button style="font-size: 10px">Close</button><a class="btn">Menu</a>')

        assert result == {"cta_score": 0, "cta_details": []}

    def test_no_candidates_scores_zero(self):
        assert _analyze("<p>Just text</p>")["cta_score"] == 0

    def test_single_well_formed_cta_scores_100(self):
        result = _analyze('<a class="btn" href="/pricing" style="font-size: 16px">Get Started</a>')

        assert result["cta_score"] == 100
        assert result["cta_details"] == [{"text": "Get Started", "element": "a", "issues": []}]

    def test_anchor_without_valid_href_is_penalized(self):
        result = _analyze('<a class="button" href="#">Buy now</a>')

        assert result["cta_score"] == 95
        assert result["cta_details"][0]["issues"] == ["Missing or invalid href"]

    def test_small_font_is_penalized(self):
        result = _analyze('<button style="font-size: 12px">Subscribe</button>')

        assert result["cta_score"] == 95
        assert result["cta_details"][0]["issues"] == ["Font size may be too small"]

    def test_penalties_accumulate_across_ctas(self):
        result = _analyze(
            '<a class="btn">Shop now</a>'
            '<a class="btn" href="#" style="font-size: 11px">Order now</a>'
            '<button>Download</button>'
        )

        assert result["cta_score"] == 100 - 5 - 5 - 5
        assert [detail["text"] for detail in result["cta_details"]] == ["Shop now", "Order now", "Download"]
        assert [detail["element"] for detail in result["cta_details"]] == ["a", "a", "button"]

    def test_score_is_clamped_at_zero(self):
        ctas = '<a class="btn" href="#" style="font-size: 8px">Buy</a>' * 15

        assert _analyze(ctas)["cta_score"] == 0

    def test_internal_fault_degrades_to_null_score(self):
        document = Document.from_html('<body><button>Buy</button></body>')

        with patch.object(Document, "select", side_effect=RuntimeError("boom")):
            result = analyze_cta_elements(document)

        assert result == {"cta_score": None, "cta_details": []}
