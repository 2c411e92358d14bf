"""Feature computation for the pricing engine."""
from .kpis import KPISummary, compute_kpis, room_type_occupancy
from .signals import DaySignals, extract_signals, normalize_demand
from .availability import closures_report, closed_dates, sold_rooms_by_date_type
from .trends import TariffSnapshot, TrendSummary, build_trend_series, extract_tariff_snapshot
