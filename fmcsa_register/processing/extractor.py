"""
Docket record extraction and section classification for the FMCSA Register.

The register is flattened to text and scanned once, left to right, for
docket records of the form::

    MC-123456 ACME TRUCKING CO - DALLAS, TX 01/15/2024

Each record's category is inferred from the section headers (e.g.
"REVOCATIONS") found in the text preceding it, since records carry no
category of their own.
"""

import re
from typing import List, Optional, Sequence, Tuple
import structlog

from ..core.config import settings
from ..core.models import (
    ExtractionResult, RegisterCategory, RegisterEntry, MAX_TITLE_LENGTH
)
from .normalizer import html_to_text, normalize_text, validate_document

logger = structlog.get_logger(__name__)

# Docket token, lazily captured body, then the decision date that ends the body
DOCKET_PATTERN = re.compile(r"((?:MC|FF|MX|MX-MC)-[0-9]+)\s+([\s\S]*?)\s+([0-9]{2}/[0-9]{2}/[0-9]{4})")

# Declaration order is the tie-break order: later categories win
CATEGORY_KEYWORDS: List[Tuple[RegisterCategory, List[str]]] = [
    (RegisterCategory.NAME_CHANGE, ["NAME CHANGES"]),
    (RegisterCategory.CERTIFICATE_PERMIT_LICENSE, ["CERTIFICATES, PERMITS & LICENSES"]),
    (RegisterCategory.CERTIFICATE_OF_REGISTRATION, ["CERTIFICATES OF REGISTRATION"]),
    (RegisterCategory.DISMISSAL, ["DISMISSALS"]),
    (RegisterCategory.WITHDRAWAL, ["WITHDRAWAL OF APPLICATION"]),
    (RegisterCategory.REVOCATION, ["REVOCATIONS"]),
    (RegisterCategory.TRANSFERS, ["TRANSFERS"]),
    (RegisterCategory.GRANT_DECISION_NOTICES, ["GRANT DECISION NOTICES"]),
]

PRECEDENCE_DECLARED = "declared"
PRECEDENCE_NEAREST = "nearest"

CategoryTable = Sequence[Tuple[RegisterCategory, Sequence[str]]]


def classify_category(context: str,
                      category_keywords: CategoryTable = CATEGORY_KEYWORDS,
                      precedence: str = PRECEDENCE_DECLARED) -> RegisterCategory:
    """Infer a record's category from the text preceding it.

    With "declared" precedence every category whose keyword appears anywhere
    in the context is a candidate and the last one in table order wins.
    With "nearest" precedence the keyword occurring closest to the end of
    the context wins.

    Args:
        context: Text preceding the record (compared upper-cased)
        category_keywords: Ordered (category, keywords) table
        precedence: "declared" or "nearest"

    Returns:
        The inferred category, or MISCELLANEOUS if no keyword occurs
    """
    window = context.upper()
    category = RegisterCategory.MISCELLANEOUS

    if precedence == PRECEDENCE_NEAREST:
        best_position = -1
        for candidate, keywords in category_keywords:
            position = max(window.rfind(keyword) for keyword in keywords)
            if position >= 0 and position >= best_position:
                best_position = position
                category = candidate
        return category

    if precedence != PRECEDENCE_DECLARED:
        raise ValueError(f"Unknown category precedence: {precedence!r}")

    for candidate, keywords in category_keywords:
        if any(keyword in window for keyword in keywords):
            category = candidate
    return category


def deduplicate_entries(entries: List[RegisterEntry]) -> List[RegisterEntry]:
    """Keep the first occurrence of each (number, title) pair, in order."""
    seen = set()
    unique = []
    for entry in entries:
        if entry.identity in seen:
            continue
        seen.add(entry.identity)
        unique.append(entry)
    return unique


class RegisterExtractor:
    """Extracts and classifies docket records from register text."""

    def __init__(self,
                 category_keywords: Optional[CategoryTable] = None,
                 context_window: Optional[int] = None,
                 precedence: Optional[str] = None,
                 marker_phrase: Optional[str] = None):
        self.category_keywords = category_keywords or CATEGORY_KEYWORDS
        self.context_window = context_window if context_window is not None else settings.context_window
        self.precedence = precedence or settings.category_precedence
        self.marker_phrase = marker_phrase or settings.marker_phrase

    def extract(self, raw_markup: str, register_date: Optional[str] = None) -> ExtractionResult:
        """Validate, flatten and extract a register page.

        Raises:
            InvalidDocument: If the markup lacks the register marker phrase
        """
        validate_document(raw_markup, register_date, self.marker_phrase)
        result = self.extract_from_text(html_to_text(raw_markup))

        logger.info("Extracted register entries",
                    register_date=register_date,
                    count=result.count,
                    oversized_skipped=result.oversized_skipped,
                    duplicates_removed=result.duplicates_removed)
        return result

    def extract_from_text(self, text: str) -> ExtractionResult:
        """Scan normalized text and return the deduplicated entries."""
        entries, oversized = self._scan(text)
        unique = deduplicate_entries(entries)
        return ExtractionResult(
            entries=unique,
            oversized_skipped=oversized,
            duplicates_removed=len(entries) - len(unique),
        )

    def extract_entries(self, text: str) -> List[RegisterEntry]:
        """Scan normalized text, returning entries in document order before deduplication."""
        entries, _ = self._scan(text)
        return entries

    def _scan(self, text: str) -> Tuple[List[RegisterEntry], int]:
        entries = []
        oversized = 0

        for match in DOCKET_PATTERN.finditer(text):
            title = normalize_text(match.group(2))
            if len(title) > MAX_TITLE_LENGTH:
                oversized += 1
                logger.debug("Skipping oversized record",
                             number=match.group(1),
                             length=len(title))
                continue

            start = match.start()
            context = text[max(0, start - self.context_window):start]

            entries.append(RegisterEntry(
                number=match.group(1),
                title=title,
                decided=match.group(3),
                category=classify_category(context, self.category_keywords, self.precedence),
            ))

        return entries, oversized


def extract(raw_markup: str, register_date: Optional[str] = None) -> ExtractionResult:
    """Extract register entries from raw markup with the default settings."""
    return RegisterExtractor().extract(raw_markup, register_date)
