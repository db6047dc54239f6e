"""
FMCSA Register Scraper

Retrieves the daily FMCSA Register, extracts docket decision records,
classifies them by register section, and stores them for querying.
"""

__version__ = "1.0.0"
__author__ = "FMCSA Register Monitor"
