"""
Capabilities the pipeline needs from tools outside the Python process.

The orchestrator only depends on these protocols; the Lighthouse CLI and the
Selenium browser are the production implementations, tests pass fakes.
"""
from dataclasses import dataclass
from typing import Optional, Protocol

IPHONE_USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 14_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/14.0 Mobile/15E148 Safari/604.1"
)


@dataclass(frozen=True)
class Viewport:
    width: int
    height: int
    mobile: bool = False
    user_agent: Optional[str] = None


MOBILE_VIEWPORT = Viewport(width=375, height=812, mobile=True, user_agent=IPHONE_USER_AGENT)
DESKTOP_VIEWPORT = Viewport(width=1920, height=1080)


@dataclass
class RenderResult:
    scroll_width: int
    screenshot: Optional[bytes] = None


@dataclass
class AuditReport:
    performance: Optional[int] = None
    accessibility: Optional[int] = None
    seo: Optional[int] = None


class PageRenderer(Protocol):
    def render(
        self,
        url: str,
        viewport: Viewport,
        full_page: bool = False,
        capture: bool = False,
    ) -> RenderResult:
        """Load the URL, wait for the network to settle, measure and optionally screenshot."""
        ...


class AuditRunner(Protocol):
    def run_audit(self, url: str) -> AuditReport:
        """Run a performance/accessibility/SEO audit; raise on any failure."""
        ...
