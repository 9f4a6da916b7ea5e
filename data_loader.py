"""data_loader.py

Loaders for:
- parcels.csv (one parcel per row)
- config.txt  (KEY=VALUE simulation settings)

The parcel CSV is often hand-edited or exported from a spreadsheet, so header
names are matched loosely and cells are stripped. Rows without a parcel ID are
skipped.
"""

from __future__ import annotations

import csv
import logging
import os
from typing import List, Optional, Tuple

from errors import ConfigurationError, ValidationError
from models import Parcel
from simulator import SimulationConfig
from util import normalize_text

logger = logging.getLogger(__name__)


def _cell(row: dict, *names: str) -> str:
    """First non-empty value among several possible header spellings."""
    for name in names:
        value = row.get(name)
        if value is not None and str(value).strip():
            return normalize_text(str(value))
    return ''


def _number(row: dict, cast, field: str, *names: str):
    """Parse a numeric cell (blank -> 0), raising ValidationError on junk."""
    raw = _cell(row, *names)
    try:
        return cast(raw or 0)
    except ValueError:
        raise ValidationError(f"Invalid {field} value {raw!r}", field=field, value=raw) from None


def load_parcels_csv(path: str, rejected: Optional[List[Tuple[str, ValidationError]]] = None) -> List[Parcel]:
    """Load parcels from a CSV into Parcel objects.

    Priority, weight and arrival tick are parsed as numbers; the registry and
    index do the domain validation later. A row with a non-numeric cell is
    logged and skipped, and appended to `rejected` as (parcel_id, error) when
    a list is given.
    """
    parcels: List[Parcel] = []
    with open(path, newline='', encoding='utf-8-sig') as f:
        r = csv.DictReader(f)
        for row in r:
            pid = _cell(row, 'ParcelID', 'Parcel ID', 'ID')
            if not pid:
                continue
            try:
                parcels.append(Parcel(
                    parcel_id=pid,
                    destination_city=_cell(row, 'DestinationCity', 'Destination City', 'Destination', 'City'),
                    priority=_number(row, int, 'priority', 'Priority'),
                    size=_cell(row, 'Size'),
                    weight=_number(row, float, 'weight', 'Weight'),
                    arrival_tick=_number(row, int, 'arrival_tick', 'ArrivalTick', 'Arrival Tick', 'Tick'),
                ))
            except ValidationError as e:
                logger.warning("[Load] Skipping parcel %s at line %d: %s", pid, r.line_num, e)
                if rejected is not None:
                    rejected.append((pid, e))
    return parcels


def _parse_capacity(key: str, value: str) -> Optional[int]:
    if value.upper() in {'NONE', 'UNBOUNDED', ''}:
        return None
    try:
        n = int(value)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {value!r}", error_code='CONFIG') from None
    if n <= 0:
        raise ConfigurationError(f"{key} must be positive, got {n}", error_code='CONFIG')
    return n


def load_config(path: str) -> SimulationConfig:
    """Read KEY=VALUE settings; a missing file yields the defaults.

    Recognised keys: QUEUE_CAPACITY, INITIAL_CAPACITY, LOAD_FACTOR.
    Blank lines, '#' comments and unknown keys are ignored.
    """
    config = SimulationConfig()
    if not os.path.exists(path):
        return config

    with open(path, encoding='utf-8') as f:
        for lineno, raw in enumerate(f, start=1):
            line = raw.split('#', 1)[0].strip()
            if not line:
                continue
            if '=' not in line:
                raise ConfigurationError(f"{path}:{lineno}: expected KEY=VALUE, got {line!r}",
                                         error_code='CONFIG')
            key, value = (part.strip() for part in line.split('=', 1))
            key = key.upper()

            if key == 'QUEUE_CAPACITY':
                config.queue_capacity = _parse_capacity(key, value)
            elif key == 'INITIAL_CAPACITY':
                capacity = _parse_capacity(key, value)
                if capacity is None:
                    raise ConfigurationError("INITIAL_CAPACITY cannot be unbounded", error_code='CONFIG')
                config.initial_capacity = capacity
            elif key == 'LOAD_FACTOR':
                try:
                    config.load_factor = float(value)
                except ValueError:
                    raise ConfigurationError(f"LOAD_FACTOR must be a number, got {value!r}",
                                             error_code='CONFIG') from None
                if config.load_factor <= 0:
                    raise ConfigurationError("LOAD_FACTOR must be positive", error_code='CONFIG')
    return config
