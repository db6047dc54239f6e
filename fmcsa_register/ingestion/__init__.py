"""
Data ingestion module for the FMCSA Register.
"""

from .register_client import FMCSARegisterClient

__all__ = ["FMCSARegisterClient"]
