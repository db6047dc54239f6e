"""
Core module for the FMCSA Register scraper.
"""

from .config import settings
from .models import *

__all__ = ["settings"]
