"""
Dashboard-facing outputs derived from the daily decisions.

- Pricing suggestions: decisions whose integer price actually moves
- Alerts: free-text warnings on the window KPIs
"""

from dataclasses import asdict, dataclass
from datetime import date
from typing import Iterable, List

from ..config import RMSSettings
from ..data.parsing import round_half_away
from ..features.kpis import KPISummary
from .pricing_engine import PricingDecision


# Alert thresholds
OCCUPANCY_ALERT_GAP = 15.0
HIGH_PROJECTED_OCCUPANCY = 95.0


@dataclass(frozen=True)
class PricingSuggestion:
    """A price move surfaced to the revenue manager."""
    date: date
    current_price: int
    suggested_price: int
    change: int
    change_percent: float
    reason: str
    formula_text: str
    confidence: int
    should_auto_approve: bool

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        d = asdict(self)
        d['date'] = self.date.isoformat()
        return d


def to_suggestion(decision: PricingDecision) -> PricingSuggestion:
    current = round_half_away(decision.current_price)
    suggested = round_half_away(decision.recommended_price)
    return PricingSuggestion(
        date=decision.date,
        current_price=current,
        suggested_price=suggested,
        change=suggested - current,
        change_percent=round(decision.change_pct, 1),
        reason=decision.reason,
        formula_text=decision.formula_text,
        confidence=decision.confidence,
        should_auto_approve=decision.should_auto_approve,
    )


def build_suggestions(decisions: Iterable[PricingDecision]) -> List[PricingSuggestion]:
    """
    Keep only the decisions that change the integer price.

    A decision can carry a reason and a confidence yet round to the current
    price; those stay in the decision list but are not suggested.
    """
    suggestions = []
    for decision in decisions:
        suggestion = to_suggestion(decision)
        if suggestion.change != 0:
            suggestions.append(suggestion)
    return suggestions


def build_alerts(kpis: KPISummary, settings: RMSSettings) -> List[str]:
    """Warnings on occupancy shortfall, ADR below floor and near-full projection."""
    alerts = []

    if kpis.occupancy_rate < settings.target_occupancy - OCCUPANCY_ALERT_GAP:
        alerts.append(
            f"Occupancy {kpis.occupancy_rate:.1f}% is more than "
            f"{OCCUPANCY_ALERT_GAP:.0f} points below the {settings.target_occupancy:.0f}% target"
        )

    if 0 < kpis.adr < settings.min_adr:
        alerts.append(
            f"ADR {kpis.adr:.2f} is below the minimum ADR of {settings.min_adr:.2f}"
        )

    if kpis.projected_occupancy >= HIGH_PROJECTED_OCCUPANCY:
        alerts.append(
            f"Projected occupancy {kpis.projected_occupancy:.1f}% is close to full, "
            f"consider raising prices or closing discounted channels"
        )

    return alerts
