#!/usr/bin/env python3
"""
page2pdf - Authenticated Web Page to PDF Exporter
=================================================

Loads a single page in Chrome with an Authorization header attached
and prints it to a PDF file.
"""

__version__ = "1.0.0"
__author__ = "Site2PDF Team"

__all__ = ['__version__']
