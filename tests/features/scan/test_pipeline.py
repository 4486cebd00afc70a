from unittest.mock import patch

import pytest

from app.features.scan.exceptions import AnalysisTimeoutError, FetchError, PipelineStepError
from app.features.scan.services.external.screenshot import remove_screenshot
from app.features.scan.services.orchestration.pipeline import STEPS, AnalysisPipeline
from tests.features.scan.fakes import FakeAuditor, FakeFetcher, FakeRenderer, unreachable_fetcher

URL = "https://example.com"


class SteppingClock:
    """Advances by a fixed amount every time it is read."""

    def __init__(self, step_seconds):
        self.now = 0.0
        self.step_seconds = step_seconds

    def __call__(self):
        current = self.now
        self.now += self.step_seconds
        return current


def _pipeline(**overrides):
    options = {"fetcher": FakeFetcher(), "renderer": FakeRenderer(), "auditor": FakeAuditor()}
    options.update(overrides)
    return AnalysisPipeline(**options)


class TestAnalysisPipeline:
    def test_steps_run_in_fixed_order(self):
        seen = []

        results = _pipeline().run(URL, on_step=seen.append)
        remove_screenshot(results["screenshot_path"])

        assert seen == STEPS
        assert seen[0] == "fetch_url"
        assert seen[-2:] == ["analyze_lighthouse", "capture_screenshot"]

    def test_results_from_every_step_are_merged(self):
        results = _pipeline().run(URL)
        remove_screenshot(results["screenshot_path"])

        assert results["cms_type"] == "wordpress"
        assert results["cta_score"] == 100
        assert results["form_friction_score"] == 77
        assert results["readability_score"] is not None
        assert results["mobile_issues"] == []
        assert results["lighthouse_performance"] == 90
        assert results["image_issues"][0]["src"] == "/hero.jpg"
        assert results["schema_detected"][0]["type"] == "Organization"
        assert results["screenshot_path"].startswith("screenshots/")
        assert any(signal["pattern"] == "free shipping" for signal in results["trust_signals"])

    def test_fetch_failure_is_fatal_and_attributed(self):
        fetcher = unreachable_fetcher()
        seen = []

        with pytest.raises(PipelineStepError) as exc:
            _pipeline(fetcher=fetcher).run(URL, on_step=seen.append)

        assert exc.value.step == "fetch_url"
        assert isinstance(exc.value.cause, FetchError)
        assert seen == ["fetch_url"]

    def test_unparseable_document_fails_fetch_step(self):
        with pytest.raises(PipelineStepError) as exc:
            _pipeline(fetcher=FakeFetcher(html="   ")).run(URL)

        assert exc.value.step == "fetch_url"

    def test_degraded_external_tools_do_not_fail_the_run(self):
        auditor = FakeAuditor(error=RuntimeError("lighthouse missing"))

        results = _pipeline(renderer=None, auditor=auditor).run(URL)

        assert results["lighthouse_performance"] is None
        assert results["lighthouse_seo"] is None
        assert results["screenshot_path"] is None
        assert results["cta_score"] == 100

    def test_unexpected_fault_stops_at_active_step(self):
        seen = []
        with patch(
            "app.features.scan.services.orchestration.pipeline.analyze_readability",
            side_effect=RuntimeError("unexpected"),
        ):
            with pytest.raises(PipelineStepError) as exc:
                _pipeline().run(URL, on_step=seen.append)

        assert exc.value.step == "analyze_readability"
        assert seen[-1] == "analyze_readability"
        assert "analyze_image_optimization" not in seen

    def test_deadline_is_checked_before_each_step(self):
        # Each clock read advances 40s against a 100s budget
        pipeline = _pipeline(time_limit=100, clock=SteppingClock(40))

        with pytest.raises(PipelineStepError) as exc:
            pipeline.run(URL)

        assert isinstance(exc.value.cause, AnalysisTimeoutError)
        assert exc.value.step == "analyze_cta_elements"

    def test_failed_step_callback_is_attributed(self):
        def on_step(step):
            if step == "analyze_schema_markup":
                raise RuntimeError("database went away")

        with pytest.raises(PipelineStepError) as exc:
            _pipeline().run(URL, on_step=on_step)

        assert exc.value.step == "analyze_schema_markup"
