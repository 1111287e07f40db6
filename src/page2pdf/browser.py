#!/usr/bin/env python3
"""
Browser Session Module

Chrome automation for page export. Drives Chrome through Selenium
WebDriver and talks to the DevTools protocol for the things WebDriver
does not cover: extra request headers, full-page screenshots and
printing to PDF.
"""

import base64
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from selenium import webdriver
from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.chrome.service import Service as ChromeService
from selenium.common.exceptions import TimeoutException, WebDriverException
from webdriver_manager.chrome import ChromeDriverManager

from .exceptions import (
    BrowserLaunchError,
    NavigationError,
    NavigationTimeoutError,
    ScreenshotError,
    RenderError,
)
from .network import FailedRequest, NetworkMonitor

logger = logging.getLogger(__name__)

MM_PER_INCH = 25.4

# Portrait (width, height) in millimetres; exports always print on A2
PAPER_SIZES_MM = {
    'A2': (420, 594),
}


@dataclass(frozen=True)
class PdfSettings:
    """Page setup used when printing to PDF."""
    paper_format: str = 'A2'
    landscape: bool = True
    print_background: bool = True
    margin_mm: float = 10.0

    def to_print_options(self) -> Dict[str, Any]:
        """Convert to ``Page.printToPDF`` parameters (inches)."""
        width_mm, height_mm = PAPER_SIZES_MM[self.paper_format.upper()]
        margin = self.margin_mm / MM_PER_INCH
        return {
            'paperWidth': width_mm / MM_PER_INCH,
            'paperHeight': height_mm / MM_PER_INCH,
            'landscape': self.landscape,
            'printBackground': self.print_background,
            'marginTop': margin,
            'marginRight': margin,
            'marginBottom': margin,
            'marginLeft': margin,
            'displayHeaderFooter': False,
            'preferCSSPageSize': False,
        }


def create_chrome_driver(browser_config: Dict[str, Any]) -> webdriver.Chrome:
    """Create Chrome WebDriver with DevTools performance logging enabled"""
    options = ChromeOptions()

    # Set custom binary path if available
    if browser_config.get('chrome_binary_path'):
        options.binary_location = browser_config['chrome_binary_path']
        logger.info(f"Using Chrome binary: {browser_config['chrome_binary_path']}")

    if browser_config.get('headless', False):
        options.add_argument('--headless=new')  # Use new headless mode

    options.add_argument('--no-sandbox')
    options.add_argument('--disable-dev-shm-usage')
    options.add_argument('--disable-gpu')
    options.add_argument('--no-first-run')
    options.add_argument('--password-store=basic')
    options.add_experimental_option("excludeSwitches", ["enable-automation"])

    # Network events are read back from the performance log
    options.set_capability('goog:loggingPrefs', {'performance': 'ALL'})

    # Set window size
    width, height = browser_config.get('window_size', (1920, 1080))
    options.add_argument(f'--window-size={width},{height}')

    # Set user agent
    if browser_config.get('user_agent'):
        options.add_argument(f'--user-agent={browser_config["user_agent"]}')

    chromedriver_path = browser_config.get('chromedriver_path')
    if not chromedriver_path:
        logger.info("Using webdriver-manager to get compatible ChromeDriver")
        chromedriver_path = ChromeDriverManager().install()

    service = ChromeService(chromedriver_path)
    driver = webdriver.Chrome(service=service, options=options)

    # Configure timeouts
    driver.set_page_load_timeout(browser_config.get('page_load_timeout', 30))

    logger.debug(f"Created Chrome WebDriver (headless={browser_config.get('headless', False)})")
    return driver


class BrowserPage:
    """
    The single tab of a browser session.

    Wraps Selenium and DevTools failures in export exceptions so callers
    deal with one error vocabulary.
    """

    def __init__(self, driver):
        self.driver = driver
        self.monitor = NetworkMonitor(driver)
        self._network_enabled = False

    def _enable_network(self):
        if not self._network_enabled:
            self.driver.execute_cdp_cmd('Network.enable', {})
            self._network_enabled = True

    def set_extra_http_headers(self, headers: Dict[str, str]):
        """Attach headers to every request made by this page"""
        self._enable_network()
        self.driver.execute_cdp_cmd('Network.setExtraHTTPHeaders', {'headers': dict(headers)})
        logger.debug(f"Extra HTTP headers set: {', '.join(headers)}")

    def on_request_failed(self, callback: Callable[[FailedRequest], None]):
        """Register an observer for requests that fail at the network layer"""
        self.monitor.on_request_failed(callback)

    def report_late_failures(self):
        """Pass failures logged since the last read to the observers"""
        try:
            self.monitor.poll()
        except WebDriverException as e:
            logger.warning(f"Could not read network log: {e.msg}")

    @property
    def url(self) -> str:
        return self.driver.current_url

    def goto(self, url: str) -> Optional[int]:
        """
        Navigate to a URL and wait for network idle

        Args:
            url: URL to load

        Returns:
            HTTP status of the main document, if it was observed

        Raises:
            NavigationError: If the page cannot be loaded or never settles
        """
        try:
            # Drop events left over from earlier activity
            self.monitor.poll()
            self.monitor.reset()

            self.driver.get(url)
            self.monitor.wait_for_idle()
        except TimeoutException as e:
            raise NavigationTimeoutError(f"Timed out loading {url}: {e.msg}") from e
        except WebDriverException as e:
            raise NavigationError(f"Could not load {url}: {e.msg}") from e

        return self.monitor.document_status

    def screenshot(self, path: str, full_page: bool = True) -> str:
        """
        Capture the page as PNG

        Args:
            path: Destination file, overwritten if present
            full_page: Capture the whole scrollable page, not just the viewport

        Returns:
            The path written
        """
        params: Dict[str, Any] = {'format': 'png'}
        try:
            if full_page:
                metrics = self.driver.execute_cdp_cmd('Page.getLayoutMetrics', {})
                size = metrics.get('cssContentSize') or metrics['contentSize']
                params['captureBeyondViewport'] = True
                params['clip'] = {
                    'x': 0,
                    'y': 0,
                    'width': size['width'],
                    'height': size['height'],
                    'scale': 1,
                }

            result = self.driver.execute_cdp_cmd('Page.captureScreenshot', params)
            with open(path, 'wb') as f:
                f.write(base64.b64decode(result['data']))
        except (WebDriverException, OSError, KeyError, ValueError) as e:
            raise ScreenshotError(f"Could not capture screenshot to {path}: {e}") from e
        finally:
            self.report_late_failures()

        return path

    def pdf(self, path: str, settings: PdfSettings) -> str:
        """
        Print the page to a PDF file

        Args:
            path: Destination file, overwritten if present
            settings: Paper, orientation, background and margin settings

        Returns:
            The path written
        """
        try:
            result = self.driver.execute_cdp_cmd('Page.printToPDF', settings.to_print_options())
            with open(path, 'wb') as f:
                f.write(base64.b64decode(result['data']))
        except (WebDriverException, OSError, KeyError, ValueError) as e:
            raise RenderError(f"Could not render PDF to {path}: {e}") from e
        finally:
            self.report_late_failures()

        return path


class BrowserSession:
    """
    One browser process, acquired on enter and released on exit.

    Usage:
        with BrowserSession(config['browser']) as session:
            page = session.new_page()
    """

    def __init__(self, browser_config: Dict[str, Any],
                 driver_factory: Callable[[Dict[str, Any]], Any] = create_chrome_driver):
        self.browser_config = browser_config
        self.driver = None
        self.page: Optional[BrowserPage] = None
        self._driver_factory = driver_factory

    def start(self) -> 'BrowserSession':
        """Start the browser"""
        if self.driver:
            logger.debug("Browser already started")
            return self

        try:
            self.driver = self._driver_factory(self.browser_config)
        except Exception as e:
            raise BrowserLaunchError(f"Could not start browser: {e}") from e

        logger.info(f"🚀 Browser started (headless={self.browser_config.get('headless', False)})")
        return self

    def new_page(self) -> BrowserPage:
        """Return the session's page (WebDriver sessions open with one tab)"""
        if not self.driver:
            raise BrowserLaunchError("Browser session is not started")
        if self.page is None:
            self.page = BrowserPage(self.driver)
        return self.page

    def close(self):
        """Stop the browser; safe to call more than once"""
        if self.driver:
            try:
                self.driver.quit()
                logger.info("🧹 Browser closed")
            except WebDriverException as e:
                logger.warning(f"Error closing browser: {e}")
            finally:
                self.driver = None
                self.page = None

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
