"""
KPI aggregation over one hotel and date window.

Key definitions:
- Occupancy = rooms sold / (capacity x days in window)
- ADR = revenue / rooms sold (per room sold, not per room-night)
- RevPAR = revenue / (capacity x days in window)
- Pickup = the same sums restricted to reservations purchased in the
  trailing PICKUP_WINDOW_DAYS
- Projected occupancy = occupancy + pickup rooms / (capacity x days in
  window), the same denominator as occupancy, clamped to [0, 100]

"Now" is always passed in by the caller so results are reproducible.
"""

from collections import defaultdict
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Dict, Iterable, List, Sequence

import pandas as pd

from ..config import PICKUP_WINDOW_DAYS, RMSSettings
from ..data.parsing import clamp, normalize_key, to_naive
from ..data.records import AvailabilityRecord, MarketSnapshot, ReservationRecord


@dataclass(frozen=True)
class KPISummary:
    """Headline KPIs for a window. Rates are percentages."""
    occupancy_rate: float
    adr: float
    revpar: float
    pickup_rooms: float
    pickup_revenue: float
    total_rooms: float
    occupied_rooms: float
    available_rooms: float
    projected_occupancy: float

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


def confirmed_reservations(
    reservations: Iterable[ReservationRecord],
    include_cancelled: bool = False
) -> List[ReservationRecord]:
    """Drop cancelled reservations unless explicitly asked to keep them."""
    if include_cancelled:
        return list(reservations)
    return [r for r in reservations if not r.is_cancelled]


def count_days(
    availability: Sequence[AvailabilityRecord],
    snapshots: Sequence[MarketSnapshot]
) -> int:
    """Days covered by the window: distinct availability dates vs snapshot rows."""
    distinct_dates = {a.date for a in availability if a.date is not None}
    return max(len(distinct_dates), len(snapshots), 1)


def compute_kpis(
    reservations: Sequence[ReservationRecord],
    availability: Sequence[AvailabilityRecord],
    snapshots: Sequence[MarketSnapshot],
    hotel_capacity: float,
    now: datetime,
    include_cancelled: bool = False
) -> KPISummary:
    """
    Aggregate occupancy, ADR, RevPAR and pickup for a pre-filtered window.

    Args:
        reservations: Reservations arriving in the window
        availability: Availability rows in the window
        snapshots: Market snapshot rows in the window
        hotel_capacity: Sellable rooms per day
        now: Reference time for the pickup window
        include_cancelled: Count cancelled reservations too

    Returns:
        KPISummary. Every division by zero resolves to 0.
    """
    now = to_naive(now)
    day_count = count_days(availability, snapshots)
    total_rooms = max(hotel_capacity, 0) * day_count

    confirmed = confirmed_reservations(reservations, include_cancelled)
    occupied_rooms = float(sum(r.effective_rooms for r in confirmed))
    total_revenue = float(sum(r.total_amount for r in confirmed))

    occupancy_rate = occupied_rooms / total_rooms * 100 if total_rooms > 0 else 0.0
    adr = total_revenue / occupied_rooms if occupied_rooms > 0 else 0.0
    revpar = total_revenue / total_rooms if total_rooms > 0 else 0.0

    recent = [r for r in confirmed if r.purchased_within(now, PICKUP_WINDOW_DAYS)]
    pickup_rooms = float(sum(r.effective_rooms for r in recent))
    pickup_revenue = float(sum(r.total_amount for r in recent))

    remaining = float(sum(max(a.available_count or 0, 0) for a in availability))
    if remaining > 0:
        available_rooms = remaining
    else:
        available_rooms = max(0.0, total_rooms - occupied_rooms)

    pickup_share = pickup_rooms / total_rooms * 100 if total_rooms > 0 else 0.0
    projected_occupancy = clamp(occupancy_rate + pickup_share, 0.0, 100.0)

    return KPISummary(
        occupancy_rate=occupancy_rate,
        adr=adr,
        revpar=revpar,
        pickup_rooms=pickup_rooms,
        pickup_revenue=pickup_revenue,
        total_rooms=float(total_rooms),
        occupied_rooms=occupied_rooms,
        available_rooms=available_rooms,
        projected_occupancy=projected_occupancy,
    )


def average_rate_by_arrival_date(
    reservations: Iterable[ReservationRecord],
    include_cancelled: bool = False
) -> Dict[date, float]:
    """Revenue per room-night for each arrival date."""
    amount: Dict[date, float] = defaultdict(float)
    room_nights: Dict[date, int] = defaultdict(int)

    for r in confirmed_reservations(reservations, include_cancelled):
        if r.arrival_date is None:
            continue
        amount[r.arrival_date] += r.total_amount
        room_nights[r.arrival_date] += r.room_nights

    return {
        day: (amount[day] / room_nights[day] if room_nights[day] > 0 else 0.0)
        for day in amount
    }


def room_type_occupancy(
    reservations: Sequence[ReservationRecord],
    settings: RMSSettings,
    day_count: int
) -> pd.DataFrame:
    """
    Occupancy per configured room type.

    Room types missing from `settings.room_type_capacities` are grouped
    under "Other" with no capacity.

    Returns:
        DataFrame with room_type, rooms_sold, capacity, occupancy_pct
    """
    capacities = {normalize_key(k): (k, v) for k, v in settings.room_type_capacities.items()}
    sold: Dict[str, float] = defaultdict(float)

    for r in confirmed_reservations(reservations):
        key = normalize_key(r.room_type)
        label = capacities[key][0] if key in capacities else 'Other'
        sold[label] += r.effective_rooms

    rows = []
    for label, count in settings.room_type_capacities.items():
        capacity = count * max(day_count, 1)
        rooms = sold.get(label, 0.0)
        rows.append({
            'room_type': label,
            'rooms_sold': rooms,
            'capacity': capacity,
            'occupancy_pct': rooms / capacity * 100 if capacity > 0 else 0.0,
        })
    if sold.get('Other'):
        rows.append({
            'room_type': 'Other',
            'rooms_sold': sold['Other'],
            'capacity': 0,
            'occupancy_pct': 0.0,
        })

    return pd.DataFrame(rows, columns=['room_type', 'rooms_sold', 'capacity', 'occupancy_pct'])
