"""
Register text normalization and record extraction.
"""

from .normalizer import html_to_text, normalize_text, validate_document
from .extractor import RegisterExtractor, extract

__all__ = ["html_to_text", "normalize_text", "validate_document", "RegisterExtractor", "extract"]
