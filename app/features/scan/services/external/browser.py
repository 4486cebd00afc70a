import base64
import logging
import time

from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.support.ui import WebDriverWait

from app.features.scan.services.external.base import RenderResult, Viewport
from app.platform.config import settings

logger = logging.getLogger(__name__)

# How long the resource count must stay flat before the network counts as idle
NETWORK_IDLE_SECONDS = 0.5
NETWORK_POLL_SECONDS = 0.1

_RESOURCE_COUNT_JS = "return performance.getEntriesByType('resource').length"


class SeleniumRenderer:
    """Headless Chrome driven through Selenium, one fresh browser per render."""

    def __init__(self, timeout: int = None):
        self.timeout = timeout or settings.BROWSER_TIMEOUT_SECONDS

    def build_driver(self, viewport: Viewport) -> webdriver.Chrome:
        chrome_options = Options()
        chrome_options.add_argument('--headless=new')
        chrome_options.add_argument('--no-sandbox')
        chrome_options.add_argument('--disable-dev-shm-usage')
        chrome_options.add_argument('--disable-gpu')
        chrome_options.add_argument(f'--window-size={viewport.width},{viewport.height}')

        if viewport.mobile:
            mobile_emulation = {
                "deviceMetrics": {"width": viewport.width, "height": viewport.height, "pixelRatio": 3.0},
            }
            if viewport.user_agent:
                mobile_emulation["userAgent"] = viewport.user_agent
            chrome_options.add_experimental_option("mobileEmulation", mobile_emulation)
        elif viewport.user_agent:
            chrome_options.add_argument(f'--user-agent={viewport.user_agent}')

        if settings.CHROMEDRIVER_PATH:
            driver_service = Service(executable_path=settings.CHROMEDRIVER_PATH)
            driver = webdriver.Chrome(service=driver_service, options=chrome_options)
        else:
            driver = webdriver.Chrome(options=chrome_options)

        driver.set_page_load_timeout(self.timeout)
        return driver

    def wait_for_network_idle(self, driver: webdriver.Chrome) -> None:
        """Block until the document is loaded and no new resources start for a short window."""
        WebDriverWait(driver, self.timeout).until(
            lambda d: d.execute_script("return document.readyState") == "complete"
        )

        deadline = time.monotonic() + self.timeout
        last_count = driver.execute_script(_RESOURCE_COUNT_JS)
        quiet_since = time.monotonic()

        while time.monotonic() < deadline:
            time.sleep(NETWORK_POLL_SECONDS)
            count = driver.execute_script(_RESOURCE_COUNT_JS)
            if count != last_count:
                last_count = count
                quiet_since = time.monotonic()
            elif time.monotonic() - quiet_since >= NETWORK_IDLE_SECONDS:
                return

        logger.warning("Network never went idle, continuing with the current page state")

    def capture_png(self, driver: webdriver.Chrome, full_page: bool) -> bytes:
        if not full_page:
            return driver.get_screenshot_as_png()

        metrics = driver.execute_cdp_cmd("Page.getLayoutMetrics", {})
        content = metrics.get("cssContentSize") or metrics["contentSize"]
        shot = driver.execute_cdp_cmd("Page.captureScreenshot", {
            "format": "png",
            "captureBeyondViewport": True,
            "clip": {
                "x": 0,
                "y": 0,
                "width": content["width"],
                "height": content["height"],
                "scale": 1,
            },
        })
        return base64.b64decode(shot["data"])

    def render(
        self,
        url: str,
        viewport: Viewport,
        full_page: bool = False,
        capture: bool = False,
    ) -> RenderResult:
        driver = self.build_driver(viewport)
        try:
            driver.get(url)
            self.wait_for_network_idle(driver)

            scroll_width = int(driver.execute_script("return document.documentElement.scrollWidth"))
            screenshot = self.capture_png(driver, full_page) if capture else None

            return RenderResult(scroll_width=scroll_width, screenshot=screenshot)
        finally:
            try:
                driver.quit()
            except WebDriverException as e:
                logger.debug(f"Ignoring driver shutdown error: {e}")
