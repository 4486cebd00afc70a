"""
Error taxonomy for page audit runs.

Only FetchError, AnalysisTimeoutError and PipelineStepError ever reach the
worker's fatal path. AnalyzerDegradation is raised and absorbed inside a
single step.
"""


class ScanError(Exception):
    """Base class for audit run errors."""


class FetchError(ScanError):
    """The target page could not be retrieved or parsed at all."""


class AnalyzerDegradation(ScanError):
    """A heuristic or external step could not produce a result."""


class AnalysisTimeoutError(ScanError, TimeoutError):
    """The whole-run deadline elapsed."""


class PipelineStepError(ScanError):
    """A fatal fault, tagged with the pipeline step that was running."""

    def __init__(self, step: str, cause: BaseException):
        self.step = step
        self.cause = cause
        super().__init__(f"Step '{step}' failed: {cause}")
