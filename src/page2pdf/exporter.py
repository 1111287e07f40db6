#!/usr/bin/env python3
"""
Page Exporter

Loads one authenticated page and prints it to PDF. The sequence is
fixed: launch, open page, set headers, navigate, screenshot, print,
close. Any failure ends the run; the browser is always closed.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .browser import BrowserSession, PdfSettings
from .exceptions import (
    ExportError,
    BrowserLaunchError,
    NavigationError,
    ScreenshotError,
    RenderError,
)
from .network import FailedRequest

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_PREFIX = 'output'
SCREENSHOT_PATH = 'debug-screenshot.png'

AUTHORIZATION_HEADER = 'Authorization'
CSRF_HEADER = 'X-Atlassian-Token'
CSRF_HEADER_VALUE = 'no-check'

PDF_SETTINGS = PdfSettings(paper_format='A2', landscape=True, print_background=True, margin_mm=10.0)


class ExportStatus(Enum):
    SUCCESS = "success"
    LAUNCH_FAILED = "launch_failed"
    NAVIGATION_FAILED = "navigation_failed"
    SCREENSHOT_FAILED = "screenshot_failed"
    RENDER_FAILED = "render_failed"
    FAILED = "failed"


_STATUS_BY_ERROR = (
    (BrowserLaunchError, ExportStatus.LAUNCH_FAILED),
    (NavigationError, ExportStatus.NAVIGATION_FAILED),
    (ScreenshotError, ExportStatus.SCREENSHOT_FAILED),
    (RenderError, ExportStatus.RENDER_FAILED),
)


def status_for_error(error: Exception) -> ExportStatus:
    """Map an exception to the result state it represents."""
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return ExportStatus.FAILED


def pdf_path_for(output_prefix: str) -> str:
    """``report`` -> ``report.pdf``"""
    return f"{output_prefix}.pdf"


def build_headers(auth: str) -> Dict[str, str]:
    """Headers attached to every request from the exported page."""
    return {
        AUTHORIZATION_HEADER: auth,
        CSRF_HEADER: CSRF_HEADER_VALUE,
    }


@dataclass
class ExportResult:
    """Outcome of a single export run."""
    url: str
    status: ExportStatus = ExportStatus.FAILED
    pdf_path: Optional[str] = None
    screenshot_path: Optional[str] = None
    final_url: Optional[str] = None
    document_status: Optional[int] = None
    failed_requests: List[FailedRequest] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def success(self) -> bool:
        return self.status is ExportStatus.SUCCESS


class PDFExporter:
    """
    Exports an authenticated page to PDF.

    Args:
        config: Application configuration; only the ``browser`` section is used
        session_factory: Builds the browser session from the ``browser`` section
    """

    def __init__(self, config: Dict[str, Any],
                 session_factory: Callable[[Dict[str, Any]], BrowserSession] = BrowserSession):
        self.config = config
        self.browser_config = config.get('browser', {})
        self.session_factory = session_factory

    def export(self, url: str, auth: str, output_prefix: str = DEFAULT_OUTPUT_PREFIX) -> ExportResult:
        """
        Run the export sequence once

        Args:
            url: Page to load
            auth: Value of the Authorization header, sent verbatim
            output_prefix: PDF is written to ``<output_prefix>.pdf``

        Returns:
            ExportResult describing what was produced and how the run ended
        """
        result = ExportResult(url=url)

        try:
            with self.session_factory(self.browser_config) as session:
                page = session.new_page()
                self._run(page, url, auth, output_prefix, result)
        except Exception as e:
            result.status = status_for_error(e)
            result.error = e
            logger.error(f"An error occurred: {e}")
            if not isinstance(e, ExportError):
                logger.debug("Unexpected export failure", exc_info=True)

        return result

    def _run(self, page, url: str, auth: str, output_prefix: str, result: ExportResult):
        page.set_extra_http_headers(build_headers(auth))

        def log_failed_request(failure: FailedRequest):
            result.failed_requests.append(failure)
            logger.error(f"Request failed: {failure.url} - {failure.error_text}")

        page.on_request_failed(log_failed_request)

        logger.info(f"Navigating to URL: {url}")
        result.document_status = page.goto(url)
        result.final_url = page.url
        logger.info(f"Final URL: {result.final_url}")
        if result.document_status is not None and result.document_status >= 400:
            logger.warning(f"Page responded with HTTP {result.document_status}")

        logger.info("Capturing screenshot...")
        result.screenshot_path = page.screenshot(SCREENSHOT_PATH, full_page=True)

        logger.info("Generating PDF...")
        result.pdf_path = page.pdf(pdf_path_for(output_prefix), PDF_SETTINGS)
        logger.info(f"PDF saved as '{result.pdf_path}'")

        result.status = ExportStatus.SUCCESS
