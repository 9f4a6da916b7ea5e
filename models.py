"""models.py

Dataclasses representing the core domain objects:

- Parcel: an in-transit item with a destination city, priority and size.
- ParcelRecord: the lifecycle record the ParcelRegistry keeps for one parcel.
- CityNode: one node of the DestinationIndex tree (one per destination city).

These are intentionally simple structures so the indexing logic lives in
destination_index.py and parcel_registry.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from arrival_buffer import ArrivalBuffer


class ParcelStatus(Enum):
    IN_QUEUE = 'InQueue'
    SORTED = 'Sorted'
    DISPATCHED = 'Dispatched'
    RETURNED = 'Returned'

    def __str__(self) -> str:
        return self.value


class ParcelSize(Enum):
    SMALL = 'Small'
    MEDIUM = 'Medium'
    LARGE = 'Large'

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Parcel:
    """A parcel in the ParcelSort system."""

    parcel_id: str
    destination_city: str
    priority: int                       # 1 (highest) .. 3
    size: Union[ParcelSize, str]        # 'Small' | 'Medium' | 'Large'
    weight: float = 0.0
    arrival_tick: int = 0


@dataclass(eq=False)
class ParcelRecord:
    """Lifecycle record for one parcel ID, linked into a registry bucket chain."""

    parcel_id: str
    status: ParcelStatus
    arrival_tick: int
    destination_city: str
    priority: int
    size: ParcelSize

    # Lifecycle fields (populated by the registry)
    dispatch_tick: int = -1             # -1 until dispatched
    return_count: int = 0

    # Next record in the same bucket chain
    next: Optional[ParcelRecord] = field(default=None, repr=False)

    @property
    def dispatch_latency(self) -> Optional[int]:
        """Ticks between arrival and dispatch, or None if never dispatched."""
        if self.dispatch_tick == -1:
            return None
        return self.dispatch_tick - self.arrival_tick

    def to_parcel(self) -> Parcel:
        """Rebuild a routing Parcel from this record (used when re-sorting returns)."""
        return Parcel(
            parcel_id=self.parcel_id,
            destination_city=self.destination_city,
            priority=self.priority,
            size=self.size,
            arrival_tick=self.arrival_tick,
        )


@dataclass(eq=False)
class CityNode:
    """A destination city and the queue of parcels bound for it."""

    city_name: str                      # first-inserted casing is kept for display
    parcels: ArrivalBuffer

    left: Optional[CityNode] = field(default=None, repr=False)
    right: Optional[CityNode] = field(default=None, repr=False)
