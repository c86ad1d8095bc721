"""Domain models for service locations and runs."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Location:
    """A physical service stop."""

    id: str
    latitude: float
    longitude: float
    name: str
    service_frequency: str = "adhoc"
    product_type: str = ""
    notes: str = ""
    status: str = "active"

    @property
    def is_active(self) -> bool:
        """Return True when the stop should be serviced on runs."""
        return self.status in {"active", ""}


@dataclass(frozen=True)
class Run:
    """A named collection of stops."""

    id: str
    name: str
    color: str | None = None
    active: bool = True


@dataclass(frozen=True)
class PositionFix:
    """A single GPS reading delivered by the device."""

    latitude: float
    longitude: float
    accuracy: float | None = None
    speed: float | None = None
