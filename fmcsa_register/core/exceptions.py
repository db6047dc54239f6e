"""
Error types raised at the boundaries of the register pipeline.
"""

from typing import Optional


class RegisterError(Exception):
    """Base class for register pipeline failures."""


class SourceUnavailable(RegisterError):
    """The register page could not be retrieved."""

    def __init__(self, message: str, register_date: Optional[str] = None,
                 status_code: Optional[int] = None):
        super().__init__(message)
        self.register_date = register_date
        self.status_code = status_code


class InvalidDocument(RegisterError):
    """The retrieved markup is not an FMCSA Register page."""

    def __init__(self, message: str, register_date: Optional[str] = None):
        super().__init__(message)
        self.register_date = register_date


class PersistenceFailure(RegisterError):
    """The entry store rejected a read or write."""
