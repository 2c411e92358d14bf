"""
Rule-based pricing decision for one calendar day.

Logic:
1. Combine demand, competitor gap, event impact, pickup pressure and
   occupancy pressure into a weighted signal (in %)
2. Move the current price by that signal
3. Apply weekend premium / last-minute discount
4. Apply the strategy modifier
5. Clamp to the configured bounds and round to the price step

Signal formula:
    (demand - 50) x w_demand
  + competitor_gap_pct x w_competitor
  + ((event - 50) / 2) x w_event
  + (pickup - 30) x w_pickup
  + occupancy_pressure x 0.20

The occupancy-pressure coefficient is fixed and sits outside the four
configurable weights.

Confidence is reported as an integer: the raw score is rounded half away
from zero before the [50, 98] clamp, so a raw 75.05 reads 75.
"""

import math
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Tuple

from ..config import RMSSettings
from ..data.parsing import clamp, round_half_away, to_naive
from ..features.signals import DaySignals


# Fixed coefficient on (occupancy on books - target occupancy)
OCCUPANCY_PRESSURE_COEF = 0.20

# Neutral points of the configurable signals
DEMAND_NEUTRAL = 50.0
EVENT_NEUTRAL = 50.0
PICKUP_NEUTRAL = 30.0

# Fri/Sat nights carry the weekend premium
WEEKEND_DAYS = (4, 5)
WEEKEND_MIN_DAYS_AHEAD = 2
LAST_MINUTE_MAX_DAYS_AHEAD = 3
LAST_MINUTE_OCCUPANCY_GAP = 10.0

AGGRESSIVE_LIFT = 1.03

# Confidence scoring
CONFIDENCE_BASE = 45.0
CONFIDENCE_SIGNAL_COEF = 1.1
CONFIDENCE_EVENT_BONUS = 8.0
CONFIDENCE_PICKUP_BONUS = 5.0
CONFIDENCE_PICKUP_THRESHOLD = 15.0
CONFIDENCE_MIN = 50
CONFIDENCE_MAX = 98

# Reason thresholds on the final change (%), checked in this order
REASON_STRONG_INCREASE = "Strong increase: sustained demand"
REASON_MODERATE_INCREASE = "Moderate increase: priced under the market"
REASON_STRONG_DECREASE = "Strong decrease: under-occupancy risk"
REASON_TACTICAL_DECREASE = "Tactical decrease: stimulate short-term pickup"
REASON_HOLD = "Hold recommended"


@dataclass(frozen=True)
class PricingDecision:
    """Price recommendation for one day, with the signals that produced it."""
    date: date
    current_price: float
    recommended_price: float
    change_pct: float
    weighted_signal: float
    competitor_gap_pct: float
    occupancy_pressure: float

    demand_index: float
    competitor_median: float
    event_impact: float
    pickup_pressure: float
    occupancy_on_books: float

    confidence: int
    reason: str
    formula_text: str
    should_auto_approve: bool

    @property
    def direction(self) -> str:
        if self.recommended_price > self.current_price:
            return "increase"
        if self.recommended_price < self.current_price:
            return "decrease"
        return "maintain"

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        d = asdict(self)
        d['date'] = self.date.isoformat()
        d['direction'] = self.direction
        return d


def competitor_gap_pct(current_price: float, competitor_median: float) -> float:
    """How far below the compset we are, in % of the compset median."""
    if competitor_median <= 0:
        return 0.0
    return (competitor_median - current_price) / competitor_median * 100


def weighted_signal(
    signals: DaySignals,
    settings: RMSSettings
) -> Tuple[float, float, float]:
    """
    Weighted market signal for a day.

    Returns:
        (weighted_signal, competitor_gap_pct, occupancy_pressure)
    """
    gap = competitor_gap_pct(signals.current_price, signals.competitor_median)
    occupancy_pressure = signals.occupancy_on_books - settings.target_occupancy

    signal = (
        (signals.demand_index - DEMAND_NEUTRAL) * settings.demand_weight
        + gap * settings.competitor_weight
        + ((signals.event_impact - EVENT_NEUTRAL) / 2) * settings.event_weight
        + (signals.pickup_pressure - PICKUP_NEUTRAL) * settings.pickup_weight
        + occupancy_pressure * OCCUPANCY_PRESSURE_COEF
    )
    return signal, gap, occupancy_pressure


def round_to_step(price: float, step: float, lower: float, upper: float) -> float:
    """
    Round `price` (already clamped) to a multiple of `step` within bounds.

    If rounding leaves [lower, upper], the nearest in-bounds multiple is
    used; if no multiple fits, the clamped price is returned as is.
    """
    if step <= 0:
        return float(round_half_away(price))

    stepped = round_half_away(price / step) * step
    if stepped > upper:
        stepped = math.floor(upper / step) * step
    if stepped < lower:
        stepped = math.ceil(lower / step) * step
    if stepped > upper or stepped < lower:
        return price
    return float(stepped)


def bound_price(price: float, settings: RMSSettings) -> float:
    """Clamp to the configured floor/ceiling and round to the price step."""
    lower = settings.price_floor
    upper = settings.price_ceiling
    bounded = clamp(price, lower, upper)
    if lower > upper:
        # Degenerate bounds collapse onto the ceiling
        lower = upper
    return round_to_step(bounded, settings.price_step, lower, upper)


def apply_strategy(price: float, current_price: float, strategy: str) -> float:
    if strategy == "conservative":
        return (price + current_price) / 2
    if strategy == "aggressive":
        return price * AGGRESSIVE_LIFT
    return price


def score_confidence(signal: float, event_impact: float, pickup_pressure: float) -> int:
    """Integer confidence: round half away from zero, then clamp to [50, 98]."""
    score = CONFIDENCE_BASE + abs(signal) * CONFIDENCE_SIGNAL_COEF
    if event_impact > 0:
        score += CONFIDENCE_EVENT_BONUS
    if pickup_pressure > CONFIDENCE_PICKUP_THRESHOLD:
        score += CONFIDENCE_PICKUP_BONUS
    return int(clamp(round_half_away(score), CONFIDENCE_MIN, CONFIDENCE_MAX))


def select_reason(change_pct: float) -> str:
    if change_pct >= 6:
        return REASON_STRONG_INCREASE
    if change_pct >= 2:
        return REASON_MODERATE_INCREASE
    if change_pct <= -6:
        return REASON_STRONG_DECREASE
    if change_pct <= -2:
        return REASON_TACTICAL_DECREASE
    return REASON_HOLD


def format_formula(
    signals: DaySignals,
    settings: RMSSettings,
    gap: float,
    occupancy_pressure: float,
    signal: float
) -> str:
    """Human-readable audit trail embedding every weight and input used."""
    return (
        f"signal = (demand {signals.demand_index:.1f} - 50) x {settings.demand_weight:.2f}"
        f" + compset gap {gap:.1f}% x {settings.competitor_weight:.2f}"
        f" + ((event {signals.event_impact:.1f} - 50) / 2) x {settings.event_weight:.2f}"
        f" + (pickup {signals.pickup_pressure:.1f} - 30) x {settings.pickup_weight:.2f}"
        f" + occupancy pressure {occupancy_pressure:.1f} x {OCCUPANCY_PRESSURE_COEF:.2f}"
        f" = {signal:.2f}%"
    )


def decide_price(
    signals: DaySignals,
    settings: RMSSettings,
    now: datetime
) -> PricingDecision:
    """
    Recommend a nightly rate for `signals.date`.

    Args:
        signals: Normalised inputs for the day
        settings: RMS settings (weights, bounds, strategy, modifiers)
        now: Reference time used for days-ahead

    Returns:
        PricingDecision. Never raises on degenerate inputs: a non-positive
        current price yields a 0% change.
    """
    now = to_naive(now)
    current_price = signals.current_price
    signal, gap, occupancy_pressure = weighted_signal(signals, settings)

    price = current_price * (1 + signal / 100)

    days_ahead = (signals.date - now.date()).days
    if signals.date.weekday() in WEEKEND_DAYS and days_ahead >= WEEKEND_MIN_DAYS_AHEAD:
        price *= 1 + settings.weekend_premium_pct / 100

    last_minute_floor = settings.target_occupancy - LAST_MINUTE_OCCUPANCY_GAP
    if days_ahead <= LAST_MINUTE_MAX_DAYS_AHEAD and signals.occupancy_on_books < last_minute_floor:
        price *= 1 - settings.last_minute_discount_pct / 100

    price = apply_strategy(price, current_price, settings.strategy)
    recommended = bound_price(price, settings)

    if current_price > 0:
        change_pct = (recommended - current_price) / current_price * 100
    else:
        change_pct = 0.0

    return PricingDecision(
        date=signals.date,
        current_price=current_price,
        recommended_price=recommended,
        change_pct=change_pct,
        weighted_signal=signal,
        competitor_gap_pct=gap,
        occupancy_pressure=occupancy_pressure,
        demand_index=signals.demand_index,
        competitor_median=signals.competitor_median,
        event_impact=signals.event_impact,
        pickup_pressure=signals.pickup_pressure,
        occupancy_on_books=signals.occupancy_on_books,
        confidence=score_confidence(signal, signals.event_impact, signals.pickup_pressure),
        reason=select_reason(change_pct),
        formula_text=format_formula(signals, settings, gap, occupancy_pressure, signal),
        should_auto_approve=abs(change_pct) <= settings.auto_approve_threshold_pct,
    )
