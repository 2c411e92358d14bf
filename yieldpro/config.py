"""
Configuration for the pricing engine.

Holds the RMS settings object (capacity, bounds, weights, strategy), the
strategy presets offered to revenue managers, and helpers to load settings
from the stored JSON payload.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .data.parsing import parse_number

logger = logging.getLogger(__name__)


# =============================================================================
# TRAILING WINDOWS
# =============================================================================

# Reservations purchased in the last N days count as KPI pickup
PICKUP_WINDOW_DAYS = 7

# Reservations purchased in the last N days drive the per-day pickup pressure
PICKUP_PRESSURE_WINDOW_DAYS = 2

# Environment variable pointing at a settings JSON file
SETTINGS_ENV_VAR = "YIELDPRO_SETTINGS"

STRATEGIES = ("conservative", "balanced", "aggressive")


# =============================================================================
# RMS SETTINGS
# =============================================================================

@dataclass(frozen=True)
class RMSSettings:
    """
    Tunable parameters driving KPI context and price decisions.

    Bounds are not validated: the engine clamps into
    [max(min_adr, min_price), min(max_adr, max_price)] and a floor above the
    ceiling simply collapses onto the ceiling.
    """
    hotel_capacity: int = 45
    room_type_capacities: Dict[str, int] = field(default_factory=dict)
    strategy: str = "balanced"
    target_occupancy: float = 82.0

    min_adr: float = 80.0
    max_adr: float = 260.0
    min_price: float = 70.0
    max_price: float = 320.0

    weekend_premium_pct: float = 12.0
    last_minute_discount_pct: float = 8.0

    # Signal weights, expected to sum near 1.0
    demand_weight: float = 0.35
    competitor_weight: float = 0.30
    event_weight: float = 0.20
    pickup_weight: float = 0.15

    price_step: float = 1.0
    auto_approve_threshold_pct: float = 5.0

    @property
    def weight_sum(self) -> float:
        return self.demand_weight + self.competitor_weight + self.event_weight + self.pickup_weight

    @property
    def price_floor(self) -> float:
        return max(self.min_adr, self.min_price)

    @property
    def price_ceiling(self) -> float:
        return min(self.max_adr, self.max_price)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "RMSSettings":
        """
        Build settings from a stored payload.

        Accepts the camelCase keys saved by the dashboard (``hotelCapacity``,
        ``demandWeight``...) as well as snake_case keys. Unknown keys are
        ignored and unparseable numbers keep their default.
        """
        defaults = cls()
        values: Dict[str, Any] = {}

        for name in _NUMERIC_FIELDS:
            raw = _lookup(payload, name)
            if raw is not None:
                values[name] = parse_number(raw, fallback=getattr(defaults, name))
        if 'hotel_capacity' in values:
            values['hotel_capacity'] = int(values['hotel_capacity'])

        strategy = _lookup(payload, 'strategy')
        if isinstance(strategy, str) and strategy.strip():
            values['strategy'] = strategy.strip().lower()

        capacities = _lookup(payload, 'room_type_capacities')
        if isinstance(capacities, Mapping):
            values['room_type_capacities'] = {
                str(room_type).strip(): max(0, int(parse_number(count)))
                for room_type, count in capacities.items()
                if str(room_type).strip()
            }

        return replace(defaults, **values)


_NUMERIC_FIELDS = (
    'hotel_capacity', 'target_occupancy',
    'min_adr', 'max_adr', 'min_price', 'max_price',
    'weekend_premium_pct', 'last_minute_discount_pct',
    'demand_weight', 'competitor_weight', 'event_weight', 'pickup_weight',
    'price_step', 'auto_approve_threshold_pct',
)


def _camel(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part.capitalize() for part in rest)


def _lookup(payload: Mapping[str, Any], name: str) -> Any:
    if name in payload:
        return payload[name]
    return payload.get(_camel(name))


# =============================================================================
# STRATEGY PRESETS
# =============================================================================

@dataclass(frozen=True)
class StrategyPreset:
    """A named bundle of settings a revenue manager can apply in one click."""
    name: str
    target_occupancy: float
    demand_weight: float
    competitor_weight: float
    event_weight: float
    pickup_weight: float
    weekend_premium_pct: float
    last_minute_discount_pct: float
    description: str


STRATEGY_PRESETS = {
    'conservative': StrategyPreset(
        name='Conservative',
        target_occupancy=78,
        demand_weight=0.28,
        competitor_weight=0.37,
        event_weight=0.20,
        pickup_weight=0.15,
        weekend_premium_pct=8,
        last_minute_discount_pct=5,
        description='Follows the compset closely, halves every price move',
    ),
    'balanced': StrategyPreset(
        name='Balanced',
        target_occupancy=82,
        demand_weight=0.35,
        competitor_weight=0.30,
        event_weight=0.20,
        pickup_weight=0.15,
        weekend_premium_pct=12,
        last_minute_discount_pct=8,
        description='Default weighting between demand and competition',
    ),
    'aggressive': StrategyPreset(
        name='Aggressive',
        target_occupancy=88,
        demand_weight=0.43,
        competitor_weight=0.25,
        event_weight=0.20,
        pickup_weight=0.12,
        weekend_premium_pct=17,
        last_minute_discount_pct=10,
        description='Leans on demand signals and adds a 3% lift',
    ),
}


def apply_preset(settings: RMSSettings, strategy: str) -> RMSSettings:
    """Return a copy of `settings` with the preset for `strategy` applied."""
    key = strategy.strip().lower()
    if key not in STRATEGY_PRESETS:
        raise ValueError(f"Unknown strategy '{strategy}'. Expected one of {STRATEGIES}")

    preset = STRATEGY_PRESETS[key]
    return replace(
        settings,
        strategy=key,
        target_occupancy=preset.target_occupancy,
        demand_weight=preset.demand_weight,
        competitor_weight=preset.competitor_weight,
        event_weight=preset.event_weight,
        pickup_weight=preset.pickup_weight,
        weekend_premium_pct=preset.weekend_premium_pct,
        last_minute_discount_pct=preset.last_minute_discount_pct,
    )


def normalize_weights(settings: RMSSettings) -> RMSSettings:
    """Rescale the four signal weights to sum to 1 (2-decimal rounding)."""
    total = settings.weight_sum
    if total <= 0:
        return settings
    return replace(
        settings,
        demand_weight=round(settings.demand_weight / total, 2),
        competitor_weight=round(settings.competitor_weight / total, 2),
        event_weight=round(settings.event_weight / total, 2),
        pickup_weight=round(settings.pickup_weight / total, 2),
    )


def load_settings(path: Optional[str | Path] = None) -> RMSSettings:
    """
    Load RMS settings from a JSON file.

    Resolution order: explicit `path`, then the YIELDPRO_SETTINGS environment
    variable, then built-in defaults. The file may hold the RMS object itself
    or a dashboard payload with an ``rms`` key.
    """
    if path is None:
        path = os.environ.get(SETTINGS_ENV_VAR)
    if not path:
        return RMSSettings()

    try:
        with open(path, 'r', encoding='utf-8') as f:
            payload = json.load(f)
    except FileNotFoundError:
        logger.warning(f"Settings file {path} not found, using defaults")
        return RMSSettings()

    if isinstance(payload, Mapping) and isinstance(payload.get('rms'), Mapping):
        payload = payload['rms']
    if not isinstance(payload, Mapping):
        logger.warning(f"Settings file {path} does not hold an object, using defaults")
        return RMSSettings()

    return RMSSettings.from_dict(payload)
