# Custom Hash Table (separate chaining, head insertion) for parcel lifecycle records
# Key: Parcel ID (str). Value: ParcelRecord with status, ticks, return count and routing fields.

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Union

from errors import DuplicateParcelError, ParcelNotFoundError, ValidationError
from models import Parcel, ParcelRecord, ParcelSize, ParcelStatus
from util import parse_priority, parse_size, parse_status, require_text

logger = logging.getLogger(__name__)

INITIAL_CAPACITY = 30
LOAD_FACTOR_THRESHOLD = 0.75


def parcel_hash(parcel_id: str, capacity: int) -> int:
    """Polynomial (x31) string hash reduced modulo the current capacity."""
    h = 0
    for ch in parcel_id:
        h = (h * 31 + ord(ch)) % capacity
    return abs(h)


@dataclass
class RegistryStats:
    total: int
    capacity: int
    load_factor: float
    status_counts: Dict[ParcelStatus, int] = field(default_factory=dict)
    in_system: int = 0
    total_returns: int = 0
    max_returns: int = 0
    most_returned: Optional[str] = None
    returned_more_than_once: int = 0
    dispatched_with_tick: int = 0
    mean_latency: Optional[float] = None
    max_latency: int = 0
    longest_latency_parcel: Optional[str] = None


class ParcelRegistry:
    def __init__(self, initial_capacity: int = INITIAL_CAPACITY,
                 load_factor_threshold: float = LOAD_FACTOR_THRESHOLD,
                 clock: Optional[Callable[[], int]] = None):
        if isinstance(initial_capacity, bool) or not isinstance(initial_capacity, int) or initial_capacity <= 0:
            raise ValidationError("Initial capacity must be a positive integer",
                                  field='initial_capacity', value=initial_capacity)
        if load_factor_threshold <= 0:
            raise ValidationError("Load factor threshold must be positive",
                                  field='load_factor_threshold', value=load_factor_threshold)
        self._buckets: List[Optional[ParcelRecord]] = [None] * initial_capacity
        self._count = 0
        self._threshold = load_factor_threshold
        self._clock = clock
        logger.info("[Initialize] ParcelRegistry created with initial capacity %d", initial_capacity)

    def __len__(self):
        return self._count

    def __contains__(self, parcel_id):
        return self.exists(parcel_id)

    def __iter__(self) -> Iterator[ParcelRecord]:
        for head in self._buckets:
            node = head
            while node is not None:
                yield node
                node = node.next

    @property
    def capacity(self) -> int:
        return len(self._buckets)

    @property
    def load_factor(self) -> float:
        return self._count / len(self._buckets)

    def _index(self, parcel_id: str) -> int:
        return parcel_hash(parcel_id, len(self._buckets))

    def _find(self, parcel_id: str) -> Optional[ParcelRecord]:
        node = self._buckets[self._index(parcel_id)]
        while node is not None:
            if node.parcel_id == parcel_id:
                return node
            node = node.next
        return None

    def _require(self, parcel_id: str) -> ParcelRecord:
        require_text(parcel_id, 'parcel_id', 'parcel ID')
        node = self._find(parcel_id)
        if node is None:
            raise ParcelNotFoundError(f"Parcel not found: {parcel_id}", parcel_id=parcel_id)
        return node

    def _current_tick(self) -> int:
        if self._clock is None:
            return 0
        return self._clock()

    def resize(self) -> None:
        """Double the bucket array and relink every existing record into it."""
        old = self._buckets
        self._buckets = [None] * (len(old) * 2)
        for head in old:
            node = head
            while node is not None:
                following = node.next
                i = self._index(node.parcel_id)
                node.next = self._buckets[i]
                self._buckets[i] = node
                node = following
        logger.info("[Resize] Hash table resized to capacity %d", len(self._buckets))

    def insert(self, parcel_id: str, status: Union[ParcelStatus, str], arrival_tick: int,
               destination_city: str, priority: int, size: Union[ParcelSize, str]) -> ParcelRecord:
        try:
            require_text(parcel_id, 'parcel_id', 'parcel ID')
            require_text(destination_city, 'destination_city', 'destination city')
            priority = parse_priority(priority)
            size = parse_size(size)
            status = parse_status(status)

            if self._find(parcel_id) is not None:
                raise DuplicateParcelError(f"Parcel already exists: {parcel_id}", parcel_id=parcel_id)

            if self.load_factor >= self._threshold:
                self.resize()

            record = ParcelRecord(
                parcel_id=parcel_id,
                status=status,
                arrival_tick=arrival_tick,
                destination_city=destination_city,
                priority=priority,
                size=size,
            )
            i = self._index(parcel_id)
            record.next = self._buckets[i]
            self._buckets[i] = record
            self._count += 1
        except (ValidationError, DuplicateParcelError) as e:
            logger.error("[Error] Failed to insert parcel %s: %s", parcel_id, e)
            raise

        logger.info("[Insert] Parcel %s tracked with status %s", parcel_id, status)
        return record

    def update_status(self, parcel_id: str, new_status: Union[ParcelStatus, str]) -> ParcelRecord:
        """Move a parcel to any status; entering DISPATCHED stamps the dispatch tick."""
        try:
            new_status = parse_status(new_status)
            record = self._require(parcel_id)
        except (ValidationError, ParcelNotFoundError) as e:
            logger.error("[Error] Failed to update status for parcel %s: %s", parcel_id, e)
            raise

        old_status = record.status
        record.status = new_status
        if new_status is ParcelStatus.DISPATCHED:
            record.dispatch_tick = self._current_tick()

        logger.info("[Status Update] Parcel %s: %s -> %s", parcel_id, old_status, new_status)
        return record

    def get(self, parcel_id: str) -> ParcelRecord:
        try:
            return self._require(parcel_id)
        except (ValidationError, ParcelNotFoundError) as e:
            logger.error("[Error] Failed to get parcel %s: %s", parcel_id, e)
            raise

    def increment_return_count(self, parcel_id: str) -> int:
        try:
            record = self._require(parcel_id)
        except (ValidationError, ParcelNotFoundError) as e:
            logger.error("[Error] Failed to increment return count for parcel %s: %s", parcel_id, e)
            raise

        record.return_count += 1
        logger.info("[Return] Parcel %s return count: %d", parcel_id, record.return_count)
        return record.return_count

    def exists(self, parcel_id: str) -> bool:
        if not isinstance(parcel_id, str):
            return False
        return self._find(parcel_id) is not None

    # Helpers for debugging / the CLI bucket view
    def first_n_buckets(self, n=10) -> List[List[str]]:
        out = []
        for head in self._buckets[:n]:
            ids = []
            node = head
            while node is not None:
                ids.append(node.parcel_id)
                node = node.next
            out.append(ids)
        return out

    def collect_statistics(self) -> RegistryStats:
        stats = RegistryStats(
            total=self._count,
            capacity=self.capacity,
            load_factor=self.load_factor,
            status_counts={status: 0 for status in ParcelStatus},
        )
        total_latency = 0

        for record in self:
            stats.status_counts[record.status] += 1

            stats.total_returns += record.return_count
            if record.return_count > stats.max_returns:
                stats.max_returns = record.return_count
                stats.most_returned = record.parcel_id
            if record.return_count > 1:
                stats.returned_more_than_once += 1

            if record.status is ParcelStatus.DISPATCHED and record.dispatch_tick != -1:
                latency = record.dispatch_latency
                total_latency += latency
                stats.dispatched_with_tick += 1
                if stats.longest_latency_parcel is None or latency > stats.max_latency:
                    stats.max_latency = latency
                    stats.longest_latency_parcel = record.parcel_id

        stats.in_system = (stats.status_counts[ParcelStatus.IN_QUEUE]
                           + stats.status_counts[ParcelStatus.SORTED])
        if stats.dispatched_with_tick:
            stats.mean_latency = total_latency / stats.dispatched_with_tick
        return stats

    def get_statistics(self) -> str:
        """Human-readable registry report: status breakdown, returns and dispatch latency."""
        s = self.collect_statistics()
        lines = [
            "===+ ParcelRegistry Statistics +===",
            f"Total Parcels: {s.total}",
            f"Table Capacity: {s.capacity}",
            f"Load Factor: {s.load_factor:.2f}",
            "",
            "Status Breakdown:",
        ]
        for status in ParcelStatus:
            lines.append(f"  {status}: {s.status_counts[status]}")
        lines += [
            "",
            f"Parcels Still in System: {s.in_system}",
            "",
            "Return Statistics:",
            f"  Total Returns: {s.total_returns}",
            f"  Most Returns: {s.max_returns} (Parcel {s.most_returned or 'None'})",
            f"  Parcels Returned More Than Once: {s.returned_more_than_once}",
            "",
            "Timing Statistics:",
        ]
        if s.mean_latency is not None:
            lines.append(f"  Average Processing Time: {s.mean_latency:.2f} ticks")
            lines.append(f"  Longest Delay: {s.max_latency} ticks (Parcel {s.longest_latency_parcel})")
        else:
            lines.append("  No parcels have been processed yet")
        lines.append("===+ End Statistics +===")
        return "\n".join(lines) + "\n"


# --- Helpers used by the simulation driver ---

def track_parcel(registry: ParcelRegistry, parcel: Parcel, status: ParcelStatus,
                 arrival_tick: int) -> ParcelRecord:
    """Insert a routing Parcel into the registry with the given status and arrival tick."""
    return registry.insert(
        parcel.parcel_id,
        status,
        arrival_tick,
        parcel.destination_city,
        parcel.priority,
        parcel.size,
    )
