"""
Per-day market signals feeding the pricing engine.

For each market snapshot day we derive:
- demand index on a 0-100 scale (fractions are scaled x100)
- competitor median, falling back to our own price (zero gap)
- event impact: 100 when the snapshot lists events, else the event
  calendar's impact for that date
- rooms on books for arrivals that day, and the share picked up in the
  trailing PICKUP_PRESSURE_WINDOW_DAYS
"""

import logging
from collections import defaultdict
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Dict, Iterable, List, Sequence

from ..config import PICKUP_PRESSURE_WINDOW_DAYS
from ..data.parsing import clamp, to_naive
from ..data.records import EventRecord, MarketSnapshot, ReservationRecord
from .kpis import confirmed_reservations

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DaySignals:
    """Normalised inputs for one calendar day."""
    date: date
    current_price: float
    competitor_median: float
    demand_index: float
    event_impact: float
    rooms_on_books: float
    pickup_rooms: float
    pickup_pressure: float
    occupancy_on_books: float

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


def normalize_demand(raw: float) -> float:
    """
    Bring a demand index onto a 0-100 scale.

    Some tables store a fraction (0.73), others a percentage (73): values
    at or below 1 are treated as fractions.
    """
    value = raw * 100 if raw <= 1 else raw
    return clamp(value, 0.0, 100.0)


def build_event_impact(events: Iterable[EventRecord]) -> Dict[date, float]:
    """Impact percentage per date, keeping the max when events overlap."""
    impact: Dict[date, float] = {}
    for event in events:
        pct = event.impact_pct
        for day in event.covered_dates():
            impact[day] = max(impact.get(day, 0.0), pct)
    return impact


def rooms_by_arrival(
    reservations: Iterable[ReservationRecord],
    now: datetime,
    window_days: int = PICKUP_PRESSURE_WINDOW_DAYS
) -> Dict[date, Dict[str, float]]:
    """Rooms on books and recent pickup per arrival date (confirmed only)."""
    now = to_naive(now)
    books: Dict[date, Dict[str, float]] = defaultdict(lambda: {'rooms': 0.0, 'pickup': 0.0})
    for r in confirmed_reservations(reservations):
        if r.arrival_date is None:
            continue
        books[r.arrival_date]['rooms'] += r.effective_rooms
        if r.purchased_within(now, window_days):
            books[r.arrival_date]['pickup'] += r.effective_rooms
    return books


def extract_signals(
    snapshots: Sequence[MarketSnapshot],
    reservations: Sequence[ReservationRecord],
    events: Sequence[EventRecord],
    hotel_capacity: float,
    now: datetime
) -> List[DaySignals]:
    """
    Build one DaySignals per dated market snapshot, in input order.

    Snapshots without a usable date are skipped since every decision is
    keyed by date.
    """
    now = to_naive(now)
    event_impact = build_event_impact(events)
    books = rooms_by_arrival(reservations, now)

    signals = []
    for snapshot in snapshots:
        if snapshot.date is None:
            logger.debug("Skipping market snapshot without a parseable date")
            continue

        current_price = snapshot.own_price
        competitor_median = snapshot.competitor_median
        if competitor_median <= 0:
            competitor_median = current_price

        if snapshot.events_text.strip():
            impact = 100.0
        else:
            impact = event_impact.get(snapshot.date, 0.0)

        day_books = books.get(snapshot.date, {'rooms': 0.0, 'pickup': 0.0})
        if hotel_capacity > 0:
            pickup_pressure = clamp(day_books['pickup'] / hotel_capacity * 100, 0.0, 100.0)
            occupancy_on_books = clamp(day_books['rooms'] / hotel_capacity * 100, 0.0, 100.0)
        else:
            pickup_pressure = 0.0
            occupancy_on_books = 0.0

        signals.append(DaySignals(
            date=snapshot.date,
            current_price=current_price,
            competitor_median=competitor_median,
            demand_index=normalize_demand(snapshot.demand_index),
            event_impact=impact,
            rooms_on_books=day_books['rooms'],
            pickup_rooms=day_books['pickup'],
            pickup_pressure=pickup_pressure,
            occupancy_on_books=occupancy_on_books,
        ))

    return signals
