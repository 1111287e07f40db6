#!/usr/bin/env python3
"""
page2pdf - Authenticated Page to PDF Exporter
Convenient entry point script in project root.
"""

import sys
import os

# Add src directory to Python path
project_root = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, os.path.join(project_root, 'src'))

# Import and run the CLI
from page2pdf.cli import main

if __name__ == '__main__':
    try:
        main()
    except Exception as e:
        print(f"❌ Unexpected error: {e}")
        sys.exit(1)
