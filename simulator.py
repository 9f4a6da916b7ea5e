"""simulator.py

This module ties everything together:

1) A SimulationClock hands out the current tick.
2) SortingSimulation keeps a DestinationIndex (routing) and a ParcelRegistry
   (lifecycle records) in step: the two structures know nothing about each
   other, so every receive / dispatch / return goes through here.

The CLI (cli.py) builds one SortingSimulation and drives it from the menu.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from destination_index import DestinationIndex
from errors import BufferEmptyError, ParcelNotFoundError, ValidationError
from models import Parcel, ParcelStatus
from parcel_registry import INITIAL_CAPACITY, LOAD_FACTOR_THRESHOLD, ParcelRegistry, track_parcel

logger = logging.getLogger(__name__)


# Defaults, overridable from config.txt (see data_loader.load_config)
QUEUE_CAPACITY: Optional[int] = None    # None -> unbounded city queues


@dataclass
class SimulationConfig:
    queue_capacity: Optional[int] = QUEUE_CAPACITY
    initial_capacity: int = INITIAL_CAPACITY
    load_factor: float = LOAD_FACTOR_THRESHOLD


class SimulationClock:
    """Discrete simulation time. Calling the clock returns the current tick."""

    def __init__(self, start_tick: int = 0):
        self._tick = start_tick

    def __call__(self) -> int:
        return self._tick

    def now(self) -> int:
        return self._tick

    def advance(self, ticks: int = 1) -> int:
        if ticks < 0:
            raise ValueError("Clock cannot move backwards")
        self._tick += ticks
        return self._tick


class SortingSimulation:
    def __init__(self, config: Optional[SimulationConfig] = None, clock: Optional[SimulationClock] = None):
        self.config = config or SimulationConfig()
        self.clock = clock or SimulationClock()
        self.index = DestinationIndex(city_capacity=self.config.queue_capacity)
        self.registry = ParcelRegistry(
            initial_capacity=self.config.initial_capacity,
            load_factor_threshold=self.config.load_factor,
            clock=self.clock,
        )

    def receive(self, parcel: Parcel) -> bool:
        """Track a newly arrived parcel and sort it into its city queue.

        The registry raises on invalid or duplicate parcels, so nothing reaches
        the index unless it is tracked. Returns True once the parcel is SORTED.
        """
        arrival = parcel.arrival_tick if parcel.arrival_tick > 0 else self.clock.now()
        track_parcel(self.registry, parcel, ParcelStatus.IN_QUEUE, arrival)
        if not self.index.insert(parcel):
            logger.warning("[Receive] Parcel %s tracked but not sorted", parcel.parcel_id)
            return False
        self.registry.update_status(parcel.parcel_id, ParcelStatus.SORTED)
        return True

    def dispatch(self, city: str, parcel_id: str) -> bool:
        if not self.index.remove_parcel(city, parcel_id):
            return False
        self.registry.update_status(parcel_id, ParcelStatus.DISPATCHED)
        return True

    def dispatch_next(self, city: str) -> Optional[str]:
        """Dispatch whichever parcel has waited longest for `city`."""
        queue = self.index.get_city_parcels(city)
        if queue is None:
            return None
        try:
            parcel_id = queue.peek().parcel_id
        except BufferEmptyError:
            return None
        return parcel_id if self.dispatch(city, parcel_id) else None

    def return_parcel(self, parcel_id: str) -> int:
        """Record a return and put the parcel back in its destination queue.

        Only dispatched parcels can come back; anything else is still waiting
        in its city queue. Returns the new return count. Raises
        ParcelNotFoundError for unknown IDs and ValidationError for parcels
        that are not DISPATCHED.
        """
        record = self.registry.get(parcel_id)
        if record.status is not ParcelStatus.DISPATCHED:
            logger.error("[Return] Parcel %s is %s, not dispatched", parcel_id, record.status)
            raise ValidationError(f"Parcel {parcel_id} has not been dispatched (status {record.status})",
                                  field='status', value=record.status)
        count = self.registry.increment_return_count(parcel_id)
        self.registry.update_status(parcel_id, ParcelStatus.RETURNED)
        if not self.index.insert(record.to_parcel()):
            logger.warning("[Return] Parcel %s could not be re-sorted", parcel_id)
        return count

    def lookup(self, parcel_id: str):
        """Registry record for `parcel_id`, or None."""
        try:
            return self.registry.get(parcel_id)
        except ParcelNotFoundError:
            return None

    def tick(self, ticks: int = 1) -> int:
        return self.clock.advance(ticks)

    def report(self) -> str:
        return self.index.get_system_stats() + "\n" + self.registry.get_statistics()
