#!/usr/bin/env python3
"""
Export Exception Classes
"""

class ExportError(Exception):
    """Base exception for export errors"""
    pass

class BrowserLaunchError(ExportError):
    """Raised when the browser session cannot be started"""
    pass

class NavigationError(ExportError):
    """Raised when the page cannot be loaded"""
    pass

class NavigationTimeoutError(NavigationError):
    """Raised when network activity does not settle in time"""
    pass

class ScreenshotError(ExportError):
    """Raised when the debug screenshot cannot be captured or written"""
    pass

class RenderError(ExportError):
    """Raised when the page cannot be printed to PDF"""
    pass
