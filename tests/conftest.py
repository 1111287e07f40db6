"""
Test configuration and shared fixtures for page2pdf tests
"""
import base64
import json
import logging
import pytest
import tempfile
import shutil
from pathlib import Path
from unittest.mock import Mock

from page2pdf.utils import get_default_config


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests"""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path)


@pytest.fixture
def sample_config():
    """Default configuration for tests"""
    config = get_default_config()
    config['browser']['headless'] = True
    return config


@pytest.fixture
def restore_root_logger():
    """Undo handler changes made by setup_logging"""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def perf_log_entry(method, params):
    """Build an entry as returned by driver.get_log('performance')"""
    return {
        'level': 'INFO',
        'timestamp': 0,
        'message': json.dumps({
            'message': {'method': method, 'params': params},
            'webview': 'ABCDEF'
        })
    }


def encoded(data: bytes) -> dict:
    """DevTools response carrying base64 data"""
    return {'data': base64.b64encode(data).decode('ascii')}


@pytest.fixture
def mock_driver():
    """Mock Chrome WebDriver with DevTools responses"""
    driver = Mock()
    driver.current_url = "https://example.atlassian.net/wiki/spaces/DOC/pages/1"
    driver.get_log.return_value = []

    responses = {
        'Network.enable': {},
        'Network.setExtraHTTPHeaders': {},
        'Page.getLayoutMetrics': {
            'contentSize': {'x': 0, 'y': 0, 'width': 1920, 'height': 4000},
            'cssContentSize': {'x': 0, 'y': 0, 'width': 1280, 'height': 3000}
        },
        'Page.captureScreenshot': encoded(b'\x89PNG\r\n\x1a\nfake'),
        'Page.printToPDF': encoded(b'%PDF-1.4 fake'),
    }
    driver.execute_cdp_cmd.side_effect = lambda cmd, params: responses[cmd]
    driver.cdp_responses = responses
    return driver


class FakeSession:
    """Browser session stand-in that counts launches and releases"""

    def __init__(self, page, launch_error=None):
        self.page = page
        self.launch_error = launch_error
        self.entered = 0
        self.closed = 0

    def new_page(self):
        return self.page

    def __enter__(self):
        if self.launch_error:
            raise self.launch_error
        self.entered += 1
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.closed += 1


@pytest.fixture
def fake_page():
    """Page stand-in with successful defaults"""
    page = Mock()
    page.url = "https://example.atlassian.net/wiki/spaces/DOC/pages/1"
    page.goto.return_value = 200
    page.screenshot.side_effect = lambda path, full_page=True: path
    page.pdf.side_effect = lambda path, settings: path
    return page


@pytest.fixture
def session_factory(fake_page):
    """Session factory that records the sessions it creates"""
    sessions = []

    def factory(browser_config):
        session = FakeSession(fake_page, launch_error=factory.launch_error)
        session.browser_config = browser_config
        sessions.append(session)
        return session

    factory.launch_error = None
    factory.sessions = sessions
    return factory


@pytest.fixture
def log_entry():
    """Factory for performance log entries"""
    return perf_log_entry


@pytest.fixture
def cdp_data():
    """Factory for base64 DevTools payloads"""
    return encoded
