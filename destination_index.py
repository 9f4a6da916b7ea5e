"""destination_index.py

City-keyed binary search tree that groups in-transit parcels by destination.

Each node holds one destination city (compared case-insensitively) and an
ArrivalBuffer of the parcels bound for it, in arrival order. The tree is not
rebalanced: its shape depends only on the order in which cities first appear.

Public operations never raise. Invalid input and consistency violations are
counted, logged, passed through a recovery re-check and turned into a neutral
return value (False / None / 0 / []). The recovery step only re-validates the
counters; it does not repair anything.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from arrival_buffer import ArrivalBuffer
from errors import BufferFullError, ParcelSortError, StateConsistencyError, ValidationError
from models import CityNode, Parcel
from util import compare_cities, require_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexStats:
    total_sorted: int
    total_dispatched: int
    failed_operations: int
    recovery_attempts: int
    height: int
    city_count: int
    busiest_city: Optional[str]
    busiest_count: int


class DestinationIndex:
    def __init__(self, city_capacity: Optional[int] = None):
        # None -> unbounded city queues
        self._city_capacity = city_capacity
        self._root: Optional[CityNode] = None

        self._total_sorted = 0
        self._total_dispatched = 0
        self._failed_operations = 0
        self._recovery_attempts = 0

    # -------------------------
    # Counters
    # -------------------------

    @property
    def total_sorted(self) -> int:
        return self._total_sorted

    @property
    def total_dispatched(self) -> int:
        return self._total_dispatched

    @property
    def failed_operations(self) -> int:
        return self._failed_operations

    @property
    def recovery_attempts(self) -> int:
        return self._recovery_attempts

    def is_empty(self) -> bool:
        return self._root is None

    # -------------------------
    # Mutations
    # -------------------------

    def insert(self, parcel: Parcel) -> bool:
        """Sort a parcel into its destination city's queue.

        Returns True if the parcel was enqueued. A full city queue is logged
        and returns False; the city node is still created.
        """
        try:
            self._validate_parcel(parcel)
            self._validate_system_state()
            node = self._find_or_create(parcel.destination_city)
        except ParcelSortError as e:
            self._fail('insert parcel', e)
            return False

        if not self._enqueue(node, parcel):
            return False

        self._total_sorted += 1
        logger.info("[Sort] Parcel %s sorted to %s (Priority: %s)",
                    parcel.parcel_id, parcel.destination_city, getattr(parcel, 'priority', None))
        return True

    def remove_parcel(self, city: str, parcel_id: str) -> bool:
        """Dispatch one parcel from a city's queue.

        The whole queue is drained into a holding buffer, the first entry with
        a matching ID is dropped and the rest are put back in their original
        order. Returns whether a parcel was removed.
        """
        try:
            require_text(city, 'city', 'city name')
            require_text(parcel_id, 'parcel_id', 'parcel ID')
        except ParcelSortError as e:
            self._fail('remove parcel', e)
            return False

        node = self._search(city)
        if node is None or node.parcels.is_empty():
            return False

        holding = ArrivalBuffer()
        found = False
        while not node.parcels.is_empty():
            p = node.parcels.dequeue()
            if not found and p.parcel_id == parcel_id:
                found = True
                continue
            holding.enqueue(p)

        while not holding.is_empty():
            node.parcels.enqueue(holding.dequeue())

        if found:
            self._total_dispatched += 1
            logger.info("[Dispatch] Parcel %s dispatched from %s", parcel_id, node.city_name)
        return found

    # -------------------------
    # Queries
    # -------------------------

    def get_city_parcels(self, city: str) -> Optional[ArrivalBuffer]:
        """Return the live queue for a city (not a copy), or None if unknown."""
        try:
            require_text(city, 'city', 'city name')
        except ParcelSortError as e:
            self._fail('get city parcels', e)
            return None

        node = self._search(city)
        if node is None:
            return None
        logger.info("[City Status] %s has %d parcels in queue", node.city_name, node.parcels.size())
        return node.parcels

    def count_city_parcels(self, city: str) -> int:
        try:
            require_text(city, 'city', 'city name')
        except ParcelSortError as e:
            self._fail('count city parcels', e)
            return 0

        node = self._search(city)
        count = node.parcels.size() if node is not None else 0
        logger.info("[City Count] %s has %d parcels", city, count)
        return count

    def in_order_traversal(self) -> List[Tuple[str, int]]:
        """List (city, queue length) for every node in ascending city order."""
        rows = [(node.city_name, node.parcels.size()) for node in self._iter_in_order()]
        logger.info("===+ Current BST Status +===")
        for city, count in rows:
            logger.info("City: %s | Parcel Count: %d", city, count)
        logger.info("===+ End BST Status +===")
        return rows

    def get_height(self) -> int:
        """Number of node levels on the longest root-to-leaf path (0 when empty)."""
        height = 0
        stack = [(self._root, 1)] if self._root is not None else []
        while stack:
            node, depth = stack.pop()
            height = max(height, depth)
            if node.left is not None:
                stack.append((node.left, depth + 1))
            if node.right is not None:
                stack.append((node.right, depth + 1))
        logger.debug("[BST Height] Current height: %d", height)
        return height

    def get_city_count(self) -> int:
        count = sum(1 for _ in self._iter_pre_order())
        logger.debug("[City Count] Total cities in BST: %d", count)
        return count

    def get_busiest_city(self) -> Optional[str]:
        """City with the strictly largest queue.

        Ties go to the first city met in pre-order (root, left, right). Empty
        queues never qualify, so this is None when no parcels are waiting.
        """
        node = self._busiest_node()
        if node is None:
            return None
        logger.info("[Busiest City] %s with %d parcels", node.city_name, node.parcels.size())
        return node.city_name

    def collect_stats(self) -> IndexStats:
        busiest = self._busiest_node()
        return IndexStats(
            total_sorted=self._total_sorted,
            total_dispatched=self._total_dispatched,
            failed_operations=self._failed_operations,
            recovery_attempts=self._recovery_attempts,
            height=self.get_height(),
            city_count=self.get_city_count(),
            busiest_city=busiest.city_name if busiest else None,
            busiest_count=busiest.parcels.size() if busiest else 0,
        )

    def get_system_stats(self) -> str:
        """Human-readable summary of the index counters and tree shape."""
        s = self.collect_stats()
        busiest = f"{s.busiest_city} ({s.busiest_count} parcels)" if s.busiest_city else "None"
        lines = [
            "===+ System Statistics +===",
            f"Total Parcels Sorted: {s.total_sorted}",
            f"Total Parcels Dispatched: {s.total_dispatched}",
            f"Failed Operations: {s.failed_operations}",
            f"Recovery Attempts: {s.recovery_attempts}",
            f"BST Height: {s.height}",
            f"Total Cities: {s.city_count}",
            f"Busiest City: {busiest}",
            "===+ End Statistics +===",
        ]
        return "\n".join(lines) + "\n"

    # -------------------------
    # Tree helpers
    # -------------------------

    def _new_node(self, city: str) -> CityNode:
        logger.info("[New City] Created node for %s", city)
        return CityNode(city_name=city, parcels=ArrivalBuffer(self._city_capacity))

    def _find_or_create(self, city: str) -> CityNode:
        if self._root is None:
            self._root = self._new_node(city)
            return self._root

        node = self._root
        while True:
            cmp = compare_cities(city, node.city_name)
            if cmp == 0:
                return node
            if cmp < 0:
                if node.left is None:
                    node.left = self._new_node(city)
                    return node.left
                node = node.left
            else:
                if node.right is None:
                    node.right = self._new_node(city)
                    return node.right
                node = node.right

    def _search(self, city: str) -> Optional[CityNode]:
        node = self._root
        while node is not None:
            cmp = compare_cities(city, node.city_name)
            if cmp == 0:
                return node
            node = node.left if cmp < 0 else node.right
        return None

    def _enqueue(self, node: CityNode, parcel: Parcel) -> bool:
        try:
            node.parcels.enqueue(parcel)
        except BufferFullError as e:
            logger.error("[Error] Queue overflow for city %s", node.city_name)
            self._handle_error(e)
            return False
        return True

    def _iter_pre_order(self) -> Iterator[CityNode]:
        stack = [self._root] if self._root is not None else []
        while stack:
            node = stack.pop()
            yield node
            if node.right is not None:
                stack.append(node.right)
            if node.left is not None:
                stack.append(node.left)

    def _iter_in_order(self) -> Iterator[CityNode]:
        stack: List[CityNode] = []
        node = self._root
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node.left
            node = stack.pop()
            yield node
            node = node.right

    def _busiest_node(self) -> Optional[CityNode]:
        best: Optional[CityNode] = None
        best_count = 0
        for node in self._iter_pre_order():
            n = node.parcels.size()
            if n > best_count:
                best, best_count = node, n
        return best

    # -------------------------
    # Validation and recovery
    # -------------------------

    @staticmethod
    def _validate_parcel(parcel: Parcel) -> None:
        if parcel is None:
            raise ValidationError("Parcel cannot be None", field='parcel')
        require_text(getattr(parcel, 'destination_city', None), 'destination_city', 'destination city')
        require_text(getattr(parcel, 'parcel_id', None), 'parcel_id', 'parcel ID')

    def _validate_system_state(self) -> None:
        if self._root is None and self._total_sorted > 0:
            raise StateConsistencyError("System state inconsistency: parcels exist but BST is empty")
        if self._total_dispatched > self._total_sorted:
            raise StateConsistencyError("System state inconsistency: more parcels dispatched than sorted")

    def _fail(self, operation: str, error: ParcelSortError) -> None:
        self._failed_operations += 1
        logger.error("[Error] Failed to %s: %s", operation, error)
        self._handle_error(error)

    def _handle_error(self, error: ParcelSortError) -> None:
        # Re-checks the invariants and records the attempt; state is left as is.
        self._recovery_attempts += 1
        logger.warning("[Recovery] Attempt %d: %s", self._recovery_attempts, error)
        try:
            self._validate_system_state()
        except StateConsistencyError as e:
            logger.critical("[Recovery Failed] %s", e)
