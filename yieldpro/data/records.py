"""
Typed records for the hosted tables.

Each record has a `from_row` constructor that reads a raw row (a dict as
returned by the datastore or DuckDB) through tolerant parsing. Column names
differ between exports and sometimes arrive mis-encoded, so every field is
looked up through a list of aliases and then by normalised name.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .parsing import (
    is_cancelled_status,
    is_closed_flag,
    normalize_key,
    parse_date,
    parse_datetime,
    parse_number,
    parse_optional_number,
    to_naive,
)


# =============================================================================
# COLUMN ALIASES
# =============================================================================

ARRIVAL_ALIASES = [
    "arrival_date", "Date d'arrivée", "Date arrivee", "Arrivee", "Arrival",
    "Check-in", "Date d'arrivee", "Date d'arrivÃ©e",
]
DEPARTURE_ALIASES = [
    "departure_date", "Date de départ", "Date de depart", "Departure",
    "Check-out", "Date de dÃ©part",
]
PURCHASE_ALIASES = ["purchase_date", "Date d'achat", "Date achat", "created_at"]
STATUS_ALIASES = ["Etat", "status", "État"]
ROOMS_ALIASES = ["Chambres", "rooms"]
NIGHTS_ALIASES = ["Nuits", "nights"]
AMOUNT_ALIASES = ["Montant total", "total_amount", "montant_total", "Montant", "total"]
ROOM_TYPE_ALIASES = ["Type de chambre", "room_type", "type_de_chambre"]
REFERENCE_ALIASES = ["Référence", "reference", "RÃ©fÃ©rence"]

SNAPSHOT_DATE_ALIASES = ["date", "Date"]
OWN_PRICE_ALIASES = ["own_price", "Votre hôtel le plus bas", "Votre hÃ´tel le plus bas"]
COMPSET_ALIASES = ["compset_median", "médiane du compset", "mÃ©diane du compset"]
DEMAND_ALIASES = ["market_demand", "Demande du marché", "Demande du marchÃ©"]
EVENTS_TEXT_ALIASES = ["events", "Événements", "Ã‰vÃ©nements"]

EVENT_NAME_ALIASES = ["Événement", "Ã‰vÃ©nement", "event", "name"]
EVENT_START_ALIASES = ["Début", "DÃ©but", "start_date"]
EVENT_END_ALIASES = ["Fin", "end_date"]
EVENT_IMPACT_ALIASES = ["Indice impact attendu sur la demande /10", "impact", "impact_score"]

# Room types sold as two adjacent rooms under a single reservation line
ADJACENT_ROOM_TOKENS = ("deuxchambresadjacentes", "2chambresadjacentes")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and value != value:
        return True
    return isinstance(value, str) and not value.strip()


def read_field(row: Mapping[str, Any], aliases: Sequence[str]) -> Any:
    """
    First non-blank value among `aliases`, falling back to a normalised match.

    Returns None when no alias is present.
    """
    for alias in aliases:
        value = row.get(alias)
        if not _is_blank(value):
            return value

    wanted = {normalize_key(alias) for alias in aliases}
    for key, value in row.items():
        if normalize_key(key) in wanted and not _is_blank(value):
            return value
    return None


def read_text(row: Mapping[str, Any], aliases: Sequence[str]) -> str:
    value = read_field(row, aliases)
    return str(value).strip() if value is not None else ""


def _dynamic_date(row: Mapping[str, Any], mode: str) -> Optional[date]:
    """Locate an arrival/departure column by token when no alias matched."""
    for key, value in row.items():
        k = normalize_key(key)
        if mode == "arrival":
            hit = ("arriv" in k or "checkin" in k) and "depart" not in k and "checkout" not in k
        else:
            hit = "depart" in k or "checkout" in k
        if hit and isinstance(value, str):
            parsed = parse_date(value)
            if parsed is not None:
                return parsed
    return None


# =============================================================================
# RECORDS
# =============================================================================

@dataclass(frozen=True)
class ReservationRecord:
    """One booked stay segment from the reservation export."""
    arrival_date: Optional[date]
    departure_date: Optional[date] = None
    status: str = ""
    rooms: float = 0.0
    nights: float = 0.0
    total_amount: float = 0.0
    purchase_date: Optional[datetime] = None
    room_type: str = ""
    reference: str = ""

    @property
    def is_cancelled(self) -> bool:
        return is_cancelled_status(self.status)

    @property
    def effective_rooms(self) -> int:
        """Room count, inferred from the room type when the field is empty."""
        if self.rooms > 0:
            return int(self.rooms)
        key = normalize_key(self.room_type)
        if any(token in key for token in ADJACENT_ROOM_TOKENS):
            return 2
        return 1

    @property
    def effective_nights(self) -> int:
        if self.nights > 0:
            return int(self.nights)
        if self.arrival_date and self.departure_date:
            return max(1, (self.departure_date - self.arrival_date).days)
        return 0

    @property
    def room_nights(self) -> int:
        return self.effective_rooms * self.effective_nights

    def stay_dates(self) -> List[date]:
        """Every night of the stay, at least the arrival night."""
        if self.arrival_date is None:
            return []
        nights = max(self.effective_nights, 1)
        return [self.arrival_date + timedelta(days=i) for i in range(nights)]

    def purchased_within(self, now: datetime, days: int) -> bool:
        """True when the purchase date falls in [now - days, now]."""
        if self.purchase_date is None:
            return False
        now = to_naive(now)
        return now - timedelta(days=days) <= self.purchase_date <= now

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ReservationRecord":
        arrival = parse_date(read_field(row, ARRIVAL_ALIASES)) or _dynamic_date(row, "arrival")
        departure = parse_date(read_field(row, DEPARTURE_ALIASES)) or _dynamic_date(row, "departure")
        return cls(
            arrival_date=arrival,
            departure_date=departure,
            status=read_text(row, STATUS_ALIASES),
            rooms=parse_number(read_field(row, ROOMS_ALIASES)),
            nights=parse_number(read_field(row, NIGHTS_ALIASES)),
            total_amount=parse_number(read_field(row, AMOUNT_ALIASES)),
            purchase_date=parse_datetime(read_field(row, PURCHASE_ALIASES)),
            room_type=read_text(row, ROOM_TYPE_ALIASES),
            reference=read_text(row, REFERENCE_ALIASES),
        )


@dataclass(frozen=True)
class AvailabilityRecord:
    """Remaining sellable inventory for one (date, room type)."""
    date: Optional[date]
    room_type: str = ""
    available_count: Optional[float] = None
    closed_flag: str = ""
    updated_at: Optional[datetime] = None

    @property
    def closed_for_sale(self) -> bool:
        return is_closed_flag(self.closed_flag)

    @property
    def closure_reason(self) -> Optional[str]:
        """'ferme' when flagged closed, 'stock' when sold out, otherwise None."""
        if self.closed_for_sale:
            return "ferme"
        if self.available_count is not None and self.available_count == 0:
            return "stock"
        return None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "AvailabilityRecord":
        return cls(
            date=parse_date(read_field(row, ["date", "Date"])),
            room_type=read_text(row, ["type_de_chambre", "room_type"]),
            available_count=parse_optional_number(read_field(row, ["disponibilites", "available_count"])),
            closed_flag=read_text(row, ["ferme_a_la_vente", "closed_for_sale"]),
            updated_at=parse_datetime(read_field(row, ["date_mise_a_jour", "updated_at"])),
        )


@dataclass(frozen=True)
class MarketSnapshot:
    """One calendar day of the market overview ("apercu")."""
    date: Optional[date]
    own_price: float = 0.0
    competitor_median: float = 0.0
    demand_index: float = 0.0
    events_text: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "MarketSnapshot":
        return cls(
            date=parse_date(read_field(row, SNAPSHOT_DATE_ALIASES)),
            own_price=parse_number(read_field(row, OWN_PRICE_ALIASES)),
            competitor_median=parse_number(read_field(row, COMPSET_ALIASES)),
            demand_index=parse_number(read_field(row, DEMAND_ALIASES)),
            events_text=read_text(row, EVENTS_TEXT_ALIASES),
        )


@dataclass(frozen=True)
class EventRecord:
    """A calendar event scored 0-10 for expected demand impact."""
    name: str
    start_date: Optional[date]
    end_date: Optional[date] = None
    impact_score: float = 0.0

    @property
    def impact_pct(self) -> float:
        return min(max(self.impact_score * 10, 0.0), 100.0)

    def covered_dates(self) -> List[date]:
        if self.start_date is None:
            return []
        end = self.end_date or self.start_date
        n_days = (end - self.start_date).days
        return [self.start_date + timedelta(days=i) for i in range(n_days + 1)]

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "EventRecord":
        start = parse_date(read_field(row, EVENT_START_ALIASES))
        end = parse_date(read_field(row, EVENT_END_ALIASES)) or start
        return cls(
            name=read_text(row, EVENT_NAME_ALIASES) or "Evenement",
            start_date=start,
            end_date=end,
            impact_score=parse_number(read_field(row, EVENT_IMPACT_ALIASES)),
        )


@dataclass
class WindowData:
    """Everything fetched for one hotel and date window."""
    reservations: List[ReservationRecord] = field(default_factory=list)
    availability: List[AvailabilityRecord] = field(default_factory=list)
    snapshots: List[MarketSnapshot] = field(default_factory=list)
    events: List[EventRecord] = field(default_factory=list)
    tariff_rows: List[Dict[str, Any]] = field(default_factory=list)
    tariff_rows_3d: List[Dict[str, Any]] = field(default_factory=list)
    tariff_rows_7d: List[Dict[str, Any]] = field(default_factory=list)

    def summary(self) -> Dict[str, int]:
        return {
            'reservations': len(self.reservations),
            'availability': len(self.availability),
            'snapshots': len(self.snapshots),
            'events': len(self.events),
            'tariff_rows': len(self.tariff_rows),
            'tariff_rows_3d': len(self.tariff_rows_3d),
            'tariff_rows_7d': len(self.tariff_rows_7d),
        }
