#!/usr/bin/env python3
"""
Build franchise run reports: crawl TMDb, fetch OMDb ratings, write CSVs to out/.

Usage:
    python build_reports.py --pages 20 --reuse
    python build_reports.py --report-only --rating-source imdb
"""

import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), 'src'))

from pipeline import main

if __name__ == "__main__":
    sys.exit(main())
