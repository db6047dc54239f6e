"""
Data models for the FMCSA Register scraper.
"""

from datetime import datetime, date
from typing import List, Optional, Dict
from pydantic import BaseModel, Field
from enum import Enum


# Longer captures are runaway matches, not records
MAX_TITLE_LENGTH = 500


class RegisterCategory(str, Enum):
    """Register sections a decision record can be filed under."""
    NAME_CHANGE = "NAME CHANGE"
    CERTIFICATE_PERMIT_LICENSE = "CERTIFICATE, PERMIT, LICENSE"
    CERTIFICATE_OF_REGISTRATION = "CERTIFICATE OF REGISTRATION"
    DISMISSAL = "DISMISSAL"
    WITHDRAWAL = "WITHDRAWAL"
    REVOCATION = "REVOCATION"
    TRANSFERS = "TRANSFERS"
    GRANT_DECISION_NOTICES = "GRANT DECISION NOTICES"
    MISCELLANEOUS = "MISCELLANEOUS"


class RegisterEntry(BaseModel):
    """A single docket decision extracted from the register."""
    number: str
    title: str = Field(max_length=MAX_TITLE_LENGTH)
    decided: str  # MM/DD/YYYY as printed in the register
    category: RegisterCategory = RegisterCategory.MISCELLANEOUS
    fetch_date: Optional[date] = None

    @property
    def identity(self) -> tuple:
        """Key used to drop repeated records within one extraction."""
        return (self.number, self.title)


class ExtractionResult(BaseModel):
    """Entries extracted from one register document."""
    entries: List[RegisterEntry] = Field(default_factory=list)
    oversized_skipped: int = 0
    duplicates_removed: int = 0

    @property
    def count(self) -> int:
        return len(self.entries)


class RegisterStatistics(BaseModel):
    """Entry counts for a range of fetch dates."""
    total_entries: int = 0
    by_category: Dict[str, int] = Field(default_factory=dict)
    date_from: Optional[date] = None
    date_to: Optional[date] = None


class PipelineRun(BaseModel):
    """Pipeline execution tracking for one register date."""
    run_id: str
    fetch_date: date
    register_date: str
    start_time: datetime
    end_time: Optional[datetime] = None
    status: str = "running"  # running, completed, invalid_document, source_unavailable, persistence_failed

    entries_extracted: int = 0
    entries_saved: int = 0
    from_cache: bool = False

    error_message: Optional[str] = None
    entries: List[RegisterEntry] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == "completed"
