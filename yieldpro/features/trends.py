"""
Competitor tariff trends.

The tariff export ("booking_tarifs") is a wide table: one row per date, one
column per hotel holding its lowest public rate, plus a market demand
column. Snapshots captured 3 and 7 days earlier let us see how our price,
the compset median and demand moved over the last days.
"""

from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..data.parsing import normalize_key, parse_date, parse_number

# Normalised substring identifying our own hotel's column
DEFAULT_OWN_HOTEL_KEY = "folkestone"

TREND_COLUMNS = [
    'date', 'own_price', 'compset_median', 'demand',
    'own_vs_3d', 'own_vs_7d',
    'compset_vs_3d', 'compset_vs_7d',
    'demand_vs_3d', 'demand_vs_7d',
]


@dataclass(frozen=True)
class TariffSnapshot:
    """Our price, the compset median and market demand for one date."""
    date: date
    demand: float
    own_price: float
    compset_median: float


@dataclass(frozen=True)
class TrendSummary:
    """Average deltas over the compared days. 0 when nothing was compared."""
    avg_own_vs_3d: float
    avg_own_vs_7d: float
    avg_compset_vs_3d: float
    avg_compset_vs_7d: float
    avg_demand_vs_3d: float
    avg_demand_vs_7d: float
    compared_days_3d: int
    compared_days_7d: int

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


def is_meta_column(column: str) -> bool:
    key = normalize_key(column)
    return (
        key in ('id', 'hotelid', 'jour')
        or 'date' in key
        or 'miseajour' in key
    )


def is_demand_column(column: str) -> bool:
    key = normalize_key(column)
    return 'demandedumarche' in key or ('demande' in key and 'marche' in key)


def median_price(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.median(values))


def _row_date(row: Mapping[str, Any]) -> Optional[date]:
    raw = row.get('Date')
    if raw is None:
        raw = row.get('date')
    return parse_date(raw)


def extract_tariff_snapshot(
    row: Mapping[str, Any],
    own_hotel_key: str = DEFAULT_OWN_HOTEL_KEY
) -> Optional[TariffSnapshot]:
    """
    Reduce a wide tariff row to a TariffSnapshot.

    Non-positive or unparseable prices are ignored. Every positive price
    that is neither ours nor the demand column joins the competitor set.

    Returns:
        TariffSnapshot, or None when the row has no usable date
    """
    day = _row_date(row)
    if day is None:
        return None

    own_key = normalize_key(own_hotel_key)
    demand = 0.0
    own_price = 0.0
    competitor_prices = []

    for column, value in row.items():
        if is_meta_column(column):
            continue
        numeric = parse_number(value)
        if numeric <= 0:
            continue
        if is_demand_column(column):
            demand = numeric * 100 if numeric <= 1 else numeric
            continue
        if own_key and own_key in normalize_key(column):
            own_price = numeric
            continue
        competitor_prices.append(numeric)

    return TariffSnapshot(
        date=day,
        demand=demand,
        own_price=own_price,
        compset_median=median_price(competitor_prices),
    )


def lowest_competitor(
    row: Mapping[str, Any],
    ignore: Iterable[str] = (DEFAULT_OWN_HOTEL_KEY,)
) -> Optional[Tuple[str, float]]:
    """
    Cheapest positive competitor rate in a wide tariff row.

    Returns:
        (hotel column name, price), or None when no competitor has a rate
    """
    ignored = [normalize_key(i) for i in ignore if i]
    best = None
    for column, value in row.items():
        if is_meta_column(column) or is_demand_column(column):
            continue
        key = normalize_key(column)
        if any(i in key for i in ignored):
            continue
        price = parse_number(value)
        if price <= 0:
            continue
        if best is None or price < best[1]:
            best = (str(column), price)
    return best


def _snapshots_by_date(
    rows: Iterable[Mapping[str, Any]],
    own_hotel_key: str
) -> Dict[date, TariffSnapshot]:
    snapshots = {}
    for row in rows:
        snapshot = extract_tariff_snapshot(row, own_hotel_key)
        if snapshot is not None:
            snapshots[snapshot.date] = snapshot
    return snapshots


def _price_delta(current: float, earlier: Optional[TariffSnapshot], attr: str) -> Optional[float]:
    if earlier is None:
        return None
    previous = getattr(earlier, attr)
    if previous <= 0:
        return None
    return current - previous


def _avg(values: pd.Series) -> float:
    valid = pd.to_numeric(values, errors='coerce').dropna()
    if valid.empty:
        return 0.0
    return float(valid.mean())


def build_trend_series(
    current_rows: Iterable[Mapping[str, Any]],
    rows_3d_ago: Iterable[Mapping[str, Any]],
    rows_7d_ago: Iterable[Mapping[str, Any]],
    own_hotel_key: str = DEFAULT_OWN_HOTEL_KEY
) -> Tuple[pd.DataFrame, TrendSummary]:
    """
    Compare the current tariff snapshot with the ones taken 3 and 7 days ago.

    Price deltas are None when the earlier price is missing or not positive.
    Demand deltas exist whenever an earlier row exists for the date.

    Args:
        current_rows: Latest wide tariff rows
        rows_3d_ago: Rows captured 3 days earlier
        rows_7d_ago: Rows captured 7 days earlier
        own_hotel_key: Normalised substring of our hotel's column name

    Returns:
        (series sorted by date, summary)
    """
    vs3 = _snapshots_by_date(rows_3d_ago, own_hotel_key)
    vs7 = _snapshots_by_date(rows_7d_ago, own_hotel_key)

    records: List[dict] = []
    for row in current_rows:
        snap = extract_tariff_snapshot(row, own_hotel_key)
        if snap is None:
            continue
        d3 = vs3.get(snap.date)
        d7 = vs7.get(snap.date)
        records.append({
            'date': snap.date,
            'own_price': snap.own_price,
            'compset_median': snap.compset_median,
            'demand': snap.demand,
            'own_vs_3d': _price_delta(snap.own_price, d3, 'own_price'),
            'own_vs_7d': _price_delta(snap.own_price, d7, 'own_price'),
            'compset_vs_3d': _price_delta(snap.compset_median, d3, 'compset_median'),
            'compset_vs_7d': _price_delta(snap.compset_median, d7, 'compset_median'),
            'demand_vs_3d': snap.demand - d3.demand if d3 is not None else None,
            'demand_vs_7d': snap.demand - d7.demand if d7 is not None else None,
        })

    series = pd.DataFrame(records, columns=TREND_COLUMNS)
    series = series.sort_values('date', kind='stable').reset_index(drop=True)

    compared_3d = series[['own_vs_3d', 'compset_vs_3d', 'demand_vs_3d']].notna().any(axis=1)
    compared_7d = series[['own_vs_7d', 'compset_vs_7d', 'demand_vs_7d']].notna().any(axis=1)

    summary = TrendSummary(
        avg_own_vs_3d=_avg(series['own_vs_3d']),
        avg_own_vs_7d=_avg(series['own_vs_7d']),
        avg_compset_vs_3d=_avg(series['compset_vs_3d']),
        avg_compset_vs_7d=_avg(series['compset_vs_7d']),
        avg_demand_vs_3d=_avg(series['demand_vs_3d']),
        avg_demand_vs_7d=_avg(series['demand_vs_7d']),
        compared_days_3d=int(compared_3d.sum()),
        compared_days_7d=int(compared_7d.sum()),
    )
    return series, summary
