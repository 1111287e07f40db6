#!/usr/bin/env python3
"""
Network Activity Monitor

Follows Chrome DevTools network events through the WebDriver performance
log. Used to report failed requests and to decide when a page has
finished loading (network idle).
"""

import json
import time
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .exceptions import NavigationTimeoutError

logger = logging.getLogger(__name__)

# Idle policy: at most 2 requests in flight for 500ms
IDLE_MAX_INFLIGHT = 2
IDLE_TIME = 0.5
IDLE_TIMEOUT = 30.0
POLL_INTERVAL = 0.1


@dataclass
class FailedRequest:
    """A request that failed at the network layer."""
    url: str
    error_text: str
    canceled: bool = False


class NetworkMonitor:
    """
    Tracks in-flight requests from Chrome's performance log.

    The performance log is drained on every read, so a page should have a
    single monitor and nothing else should call ``driver.get_log('performance')``.
    """

    def __init__(self, driver):
        self.driver = driver
        self.inflight: Dict[str, str] = {}
        self.request_urls: Dict[str, str] = {}
        self.document_status: Optional[int] = None
        self._observers: List[Callable[[FailedRequest], None]] = []

    def on_request_failed(self, callback: Callable[[FailedRequest], None]):
        """Register a callback invoked for every failed request."""
        self._observers.append(callback)

    def reset(self):
        """Forget tracked requests, keeping registered observers."""
        self.inflight.clear()
        self.request_urls.clear()
        self.document_status = None

    def poll(self) -> int:
        """
        Drain the performance log and apply network events

        Returns:
            Number of network events handled
        """
        handled = 0
        for entry in self.driver.get_log('performance'):
            message = entry.get('message', {})
            if isinstance(message, str):
                try:
                    message = json.loads(message)
                except ValueError:
                    logger.debug(f"Skipping unparseable log entry: {message[:100]}")
                    continue

            event = message.get('message', {})
            method = event.get('method', '')
            if method.startswith('Network.'):
                self.handle_event(method, event.get('params', {}))
                handled += 1
        return handled

    def handle_event(self, method: str, params: Dict[str, Any]):
        """Apply a single DevTools network event."""
        request_id = params.get('requestId')
        if not request_id:
            return

        if method == 'Network.requestWillBeSent':
            url = params.get('request', {}).get('url', '')
            # Redirects reuse the request id
            self.inflight[request_id] = url
            self.request_urls[request_id] = url

        elif method == 'Network.responseReceived':
            if params.get('type') == 'Document' and self.document_status is None:
                self.document_status = params.get('response', {}).get('status')

        elif method == 'Network.loadingFinished':
            self.inflight.pop(request_id, None)

        elif method == 'Network.loadingFailed':
            self.inflight.pop(request_id, None)
            failure = FailedRequest(
                url=self.request_urls.get(request_id, ''),
                error_text=params.get('errorText', 'unknown error'),
                canceled=bool(params.get('canceled', False))
            )
            self._notify(failure)

    def _notify(self, failure: FailedRequest):
        for callback in self._observers:
            try:
                callback(failure)
            except Exception as e:
                logger.warning(f"Request failure observer raised: {e}")

    def wait_for_idle(self,
                      max_inflight: int = IDLE_MAX_INFLIGHT,
                      idle_time: float = IDLE_TIME,
                      timeout: float = IDLE_TIMEOUT,
                      poll_interval: float = POLL_INTERVAL) -> bool:
        """
        Block until network activity has been quiet long enough

        Args:
            max_inflight: Requests allowed in flight while still "quiet"
            idle_time: Seconds the quiet period must last
            timeout: Maximum seconds to wait
            poll_interval: Seconds between performance log reads

        Returns:
            True once the network is idle

        Raises:
            NavigationTimeoutError: If the network does not settle within timeout
        """
        start = time.monotonic()
        quiet_since = None

        while True:
            self.poll()
            now = time.monotonic()

            if len(self.inflight) <= max_inflight:
                if quiet_since is None:
                    quiet_since = now
                if now - quiet_since >= idle_time:
                    logger.debug(f"Network idle after {now - start:.2f}s")
                    return True
            else:
                quiet_since = None

            if now - start >= timeout:
                raise NavigationTimeoutError(
                    f"Network did not become idle within {timeout}s "
                    f"({len(self.inflight)} requests still in flight)"
                )

            time.sleep(poll_interval)
