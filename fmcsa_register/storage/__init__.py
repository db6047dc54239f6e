"""
Persistence for extracted register entries.
"""

from .database import RegisterDB

__all__ = ["RegisterDB"]
