"""
Pipeline orchestration module for the FMCSA Register scraper.
"""

from .pipeline import RegisterPipeline

__all__ = ["RegisterPipeline"]
