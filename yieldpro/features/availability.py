"""
Closures (unavailability) report.

A room type is closed on a date when it is flagged closed for sale ("x")
or when its remaining stock is exactly 0. Each closure is paired with the
rooms actually sold for that night so revenue managers can tell a manual
close-out from a sell-out.
"""

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

import pandas as pd

from ..data.parsing import normalize_key
from ..data.records import AvailabilityRecord, ReservationRecord
from .kpis import confirmed_reservations

UNKNOWN_ROOM_TYPE = "Unknown room type"

REPORT_COLUMNS = ['date', 'room_type', 'available', 'sold', 'reason']


def _dedup_key(r: ReservationRecord) -> str:
    arrival = r.arrival_date.isoformat() if r.arrival_date else ""
    parts = [arrival, r.room_type, str(r.effective_rooms), str(r.effective_nights), r.status]
    if r.reference:
        parts.insert(0, r.reference)
    return "|".join(parts)


def dedupe_reservations(reservations: Iterable[ReservationRecord]) -> List[ReservationRecord]:
    """
    Drop repeated export lines for the same stay.

    Lines are identified by reference, arrival, room type, rooms, nights and
    status. The first occurrence is kept.
    """
    seen = set()
    unique = []
    for r in reservations:
        key = _dedup_key(r)
        if key in seen:
            continue
        seen.add(key)
        unique.append(r)
    return unique


def sold_rooms_by_date_type(
    reservations: Iterable[ReservationRecord],
    include_cancelled: bool = False
) -> Dict[Tuple[date, str], float]:
    """
    Rooms sold per (stay night, normalised room type).

    Each reservation counts on every night of its stay, not only on its
    arrival date.
    """
    sold: Dict[Tuple[date, str], float] = defaultdict(float)
    unique = dedupe_reservations(reservations)
    for r in confirmed_reservations(unique, include_cancelled):
        if not r.room_type:
            continue
        key = normalize_key(r.room_type)
        for night in r.stay_dates():
            sold[(night, key)] += r.effective_rooms
    return sold


def closed_dates(availability: Iterable[AvailabilityRecord]) -> Set[date]:
    """Dates with at least one closed room type."""
    return {
        a.date for a in availability
        if a.date is not None and a.closure_reason is not None
    }


def closures_report(
    availability: Sequence[AvailabilityRecord],
    reservations: Sequence[ReservationRecord],
    start: date,
    end: date,
    room_type: Optional[str] = None,
    include_cancelled: bool = False
) -> pd.DataFrame:
    """
    List closures between `start` and `end` (inclusive).

    Args:
        availability: Availability rows
        reservations: Reservations used for the rooms-sold column
        start: First date of the range
        end: Last date of the range
        room_type: Restrict to one room type. The report then holds one row
            per date, a 'ferme' closure taking precedence over 'stock'.
        include_cancelled: Count cancelled reservations as sold

    Returns:
        DataFrame with date, room_type, available, sold, reason, sorted by
        date then rooms sold (descending)
    """
    sold = sold_rooms_by_date_type(reservations, include_cancelled)
    wanted = normalize_key(room_type) if room_type else None

    rows = []
    by_date: Dict[date, dict] = {}
    for a in availability:
        if a.date is None or not (start <= a.date <= end):
            continue
        reason = a.closure_reason
        if reason is None:
            continue

        label = a.room_type or UNKNOWN_ROOM_TYPE
        key = normalize_key(label)
        if wanted is not None and key != wanted:
            continue

        row = {
            'date': a.date,
            'room_type': room_type if wanted is not None else label,
            'available': a.available_count or 0.0,
            'sold': sold.get((a.date, key), 0.0),
            'reason': reason,
        }
        if wanted is None:
            rows.append(row)
            continue

        current = by_date.get(a.date)
        if current is None or (current['reason'] != 'ferme' and reason == 'ferme'):
            by_date[a.date] = row

    if wanted is not None:
        rows = list(by_date.values())

    df = pd.DataFrame(rows, columns=REPORT_COLUMNS)
    if df.empty:
        return df
    return df.sort_values(['date', 'sold'], ascending=[True, False]).reset_index(drop=True)
