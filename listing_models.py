"""
Data models for a scrape run.

Records, the per-invocation run state and the result handed back to callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Optional

NOT_AVAILABLE = "N/A"

# (attribute, column title) in output order
EXPORT_COLUMNS = [
    ("name", "Company Name"),
    ("website", "Website URL"),
    ("rating", "Rating"),
    ("review_count", "Reviews"),
    ("location", "Location"),
    ("hourly_rate", "Hourly Rate"),
    ("min_project_size", "Min Project Size"),
    ("employees", "Employees"),
    ("profile_url", "Clutch Profile"),
]


@dataclass
class ListingRecord:
    """
    One directory entry.

    Missing fields are None. ``website`` holds the raw (possibly
    click-tracking) reference until the resolver replaces it.
    """
    name: Optional[str] = None
    website: Optional[str] = None
    rating: Optional[str] = None
    review_count: Optional[str] = None
    location: Optional[str] = None
    hourly_rate: Optional[str] = None
    min_project_size: Optional[str] = None
    employees: Optional[str] = None
    profile_url: Optional[str] = None

    def to_row(self, sentinel: str = NOT_AVAILABLE) -> dict[str, str]:
        """Column title -> value, with missing fields replaced by the sentinel."""
        row = {}
        for attr, title in EXPORT_COLUMNS:
            value = getattr(self, attr)
            row[title] = sentinel if value is None else value
        return row

    def to_dict(self, sentinel: str = NOT_AVAILABLE) -> dict[str, str]:
        """Attribute name -> value, with missing fields replaced by the sentinel."""
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            result[f.name] = sentinel if value is None else value
        return result


class ScrapePhase(str, Enum):
    IDLE = "idle"
    NAVIGATING = "navigating"
    WAITING_FOR_CONTENT = "waiting_for_content"
    EXTRACTING = "extracting"
    RESOLVING_URLS = "resolving_urls"
    CHECKING_NEXT_PAGE = "checking_next_page"
    DONE = "done"
    ABORTED = "aborted"


class RunOutcome(str, Enum):
    DONE = "done"
    ABORTED = "aborted"


class RunAggregator:
    """Accumulates each page's records in page order, then row order."""

    def __init__(self):
        self._records: list[ListingRecord] = []
        self._page_counts: list[int] = []

    def add_page(self, records: list[ListingRecord]) -> None:
        self._records.extend(records)
        self._page_counts.append(len(records))

    @property
    def records(self) -> list[ListingRecord]:
        return list(self._records)

    @property
    def page_counts(self) -> list[int]:
        return list(self._page_counts)

    def __len__(self) -> int:
        return len(self._records)


@dataclass
class RunState:
    """State of a single scrape invocation, owned by the controller."""
    current_page_url: str
    page_limit: Optional[int] = None
    pages_visited: int = 0
    phase: ScrapePhase = ScrapePhase.IDLE
    aggregator: RunAggregator = field(default_factory=RunAggregator)
    outcome: Optional[RunOutcome] = None
    stop_reason: str = ""

    @property
    def limit_reached(self) -> bool:
        return self.page_limit is not None and self.pages_visited >= self.page_limit

    @property
    def finished(self) -> bool:
        return self.phase in (ScrapePhase.DONE, ScrapePhase.ABORTED)

    def begin_page(self, url: str) -> None:
        """Move to the next page; callers check the limit first."""
        if self.limit_reached:
            raise RuntimeError(f"Page limit {self.page_limit} already reached")
        self.current_page_url = url
        self.pages_visited += 1
        self.phase = ScrapePhase.NAVIGATING

    def finish(self, outcome: RunOutcome, reason: str) -> None:
        self.outcome = outcome
        self.stop_reason = reason
        self.phase = ScrapePhase.DONE if outcome is RunOutcome.DONE else ScrapePhase.ABORTED


@dataclass
class ScrapeResult:
    """What a finished run returns. ``outcome`` is informational only."""
    records: list[ListingRecord]
    pages_visited: int
    outcome: RunOutcome
    stop_reason: str
    page_counts: list[int] = field(default_factory=list)

    @classmethod
    def from_state(cls, state: RunState) -> ScrapeResult:
        return cls(
            records=state.aggregator.records,
            pages_visited=state.pages_visited,
            outcome=state.outcome or RunOutcome.DONE,
            stop_reason=state.stop_reason,
            page_counts=state.aggregator.page_counts,
        )


@dataclass
class ScrapeReport:
    result: ScrapeResult
    output_path: Path
