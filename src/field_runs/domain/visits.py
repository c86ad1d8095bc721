"""Domain models for the visit ledger."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class VisitMethod(str, Enum):
    """How a visit was recorded."""

    MANUAL = "manual"
    AUTO = "auto"


@dataclass(frozen=True)
class Visit:
    """A durable record that a stop was serviced."""

    id: str
    location_id: str
    run_id: str | None
    visited_at: datetime
    visit_method: VisitMethod


@dataclass(frozen=True)
class LocationVisitCount:
    """Number of ledger entries for one location."""

    location_id: str
    count: int
