"""
End-to-end RMS computation for one hotel and date window.

Pipeline Architecture:
1. KPIs over the window (occupancy, ADR, RevPAR, pickup, projection)
2. Per-day signals from market snapshots, reservations and events
3. One pricing decision per dated snapshot
4. Suggestions (decisions that move the integer price) and alerts

All steps are pure: the reference time is passed in and nothing is read
from disk or the clock once the window data is loaded.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import pandas as pd

from ..config import RMSSettings
from ..data.parsing import to_naive
from ..data.records import WindowData
from ..features.kpis import KPISummary, compute_kpis, count_days, room_type_occupancy
from ..features.signals import extract_signals
from .pricing_engine import PricingDecision, decide_price
from .suggestions import PricingSuggestion, build_alerts, build_suggestions

logger = logging.getLogger(__name__)


def log_metric(scope: str, payload: Dict[str, Any]) -> None:
    """Emit one structured metric line on the pipeline logger."""
    logger.info(f"[RMS_METRIC] {scope} {json.dumps(payload, default=str, sort_keys=True)}")


@dataclass
class DashboardResult:
    """Everything the dashboard shows for a window."""
    kpis: KPISummary
    decisions: List[PricingDecision] = field(default_factory=list)
    suggestions: List[PricingSuggestion] = field(default_factory=list)
    alerts: List[str] = field(default_factory=list)
    room_types: Optional[pd.DataFrame] = None

    def decisions_frame(self) -> pd.DataFrame:
        """Daily decisions as a DataFrame, one row per date."""
        return pd.DataFrame([d.to_dict() for d in self.decisions])

    def suggestions_frame(self) -> pd.DataFrame:
        return pd.DataFrame([s.to_dict() for s in self.suggestions])

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'kpis': self.kpis.to_dict(),
            'daily_decisions': [d.to_dict() for d in self.decisions],
            'pricing_suggestions': [s.to_dict() for s in self.suggestions],
            'alerts': list(self.alerts),
        }


class RMSPipeline:
    """
    Computes KPIs, daily decisions, suggestions and alerts.

    Usage:
        pipeline = RMSPipeline(load_settings())
        result = pipeline.run(window, start, end, reference_now=datetime(2025, 6, 1))
    """

    def __init__(self, settings: Optional[RMSSettings] = None):
        self.settings = settings or RMSSettings()

    def run(
        self,
        window: WindowData,
        start: Optional[date] = None,
        end: Optional[date] = None,
        reference_now: Optional[datetime] = None
    ) -> DashboardResult:
        """
        Run the full computation on already-fetched window data.

        Args:
            window: Records of the hotel and window
            start: First day of the window (only used for logging and checks)
            end: Last day of the window
            reference_now: Time used for pickup windows and days-ahead.
                Defaults to the current time.

        Returns:
            DashboardResult
        """
        if start is not None and end is not None and start > end:
            raise ValueError(f"Window start {start} is after window end {end}")
        now = to_naive(reference_now or datetime.now())
        settings = self.settings

        kpis = compute_kpis(
            window.reservations,
            window.availability,
            window.snapshots,
            settings.hotel_capacity,
            now,
        )

        signals = extract_signals(
            window.snapshots,
            window.reservations,
            window.events,
            settings.hotel_capacity,
            now,
        )
        decisions = [decide_price(s, settings, now) for s in signals]
        suggestions = build_suggestions(decisions)
        alerts = build_alerts(kpis, settings)

        room_types = None
        if settings.room_type_capacities:
            room_types = room_type_occupancy(
                window.reservations, settings, count_days(window.availability, window.snapshots)
            )

        log_metric('dashboard', {
            'window': [start, end],
            'strategy': settings.strategy,
            'occupancy_rate': round(kpis.occupancy_rate, 2),
            'adr': round(kpis.adr, 2),
            'decisions': len(decisions),
            'suggestions': len(suggestions),
            'auto_approved': sum(1 for s in suggestions if s.should_auto_approve),
            'alerts': len(alerts),
        })

        return DashboardResult(
            kpis=kpis,
            decisions=decisions,
            suggestions=suggestions,
            alerts=alerts,
            room_types=room_types,
        )
