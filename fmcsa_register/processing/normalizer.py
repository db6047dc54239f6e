"""
Flattening of register markup into a single text stream for pattern matching.
"""

import re
from typing import Optional
import structlog
from bs4 import BeautifulSoup

from ..core.config import settings
from ..core.exceptions import InvalidDocument

logger = structlog.get_logger(__name__)

WHITESPACE_RE = re.compile(r"\s+")
NBSP = "\u00a0"

# Elements whose text is never rendered
HIDDEN_TAGS = ["script", "style", "noscript", "template"]


def normalize_text(text: Optional[str]) -> str:
    """Replace non-breaking spaces, collapse whitespace runs and trim."""
    if not text:
        return ""
    return WHITESPACE_RE.sub(" ", text.replace(NBSP, " ")).strip()


def html_to_text(markup: str) -> str:
    """Concatenate the visible text nodes of the markup in document order.

    Args:
        markup: Raw HTML

    Returns:
        Normalized flat text
    """
    soup = BeautifulSoup(markup or "", "html.parser")
    for element in soup(HIDDEN_TAGS):
        element.decompose()
    return normalize_text(soup.get_text())


def is_register_document(markup: Optional[str], marker_phrase: Optional[str] = None) -> bool:
    """Check for the marker phrase identifying an FMCSA Register page (case-insensitive)."""
    marker = (marker_phrase or settings.marker_phrase).upper()
    return bool(markup) and marker in markup.upper()


def validate_document(markup: Optional[str], register_date: Optional[str] = None,
                      marker_phrase: Optional[str] = None) -> None:
    """Raise InvalidDocument if the markup is not a register page."""
    if not is_register_document(markup, marker_phrase):
        logger.warning("Markup is missing the register marker phrase",
                       register_date=register_date,
                       size=len(markup or ""))
        raise InvalidDocument(
            "Invalid response from FMCSA. The page might not be available for this date.",
            register_date=register_date,
        )
