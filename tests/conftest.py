"""
Shared pytest fixtures for the pricing engine tests.

All time-dependent computations use a fixed reference time:
Tuesday 2025-06-10 12:00.
"""

from datetime import date, datetime

import duckdb
import pandas as pd
import pytest

from yieldpro.config import RMSSettings
from yieldpro.data.records import (
    AvailabilityRecord,
    EventRecord,
    MarketSnapshot,
    ReservationRecord,
    WindowData,
)
from yieldpro.features.signals import DaySignals

REFERENCE_NOW = datetime(2025, 6, 10, 12, 0)


@pytest.fixture
def reference_now():
    """Fixed 'now' so trailing windows are reproducible."""
    return REFERENCE_NOW


@pytest.fixture
def settings():
    """Default (balanced) RMS settings."""
    return RMSSettings()


@pytest.fixture
def small_hotel_settings():
    """Balanced settings for a 10-room hotel."""
    return RMSSettings(hotel_capacity=10)


@pytest.fixture
def make_signals():
    """
    Factory for DaySignals.

    Defaults are neutral: the weighted signal is 0 and the date is a
    Wednesday 15 days after the reference time.
    """
    def _make(**overrides):
        values = dict(
            date=date(2025, 6, 25),
            current_price=100.0,
            competitor_median=100.0,
            demand_index=50.0,
            event_impact=50.0,
            rooms_on_books=0.0,
            pickup_rooms=0.0,
            pickup_pressure=30.0,
            occupancy_on_books=82.0,
        )
        values.update(overrides)
        return DaySignals(**values)
    return _make


@pytest.fixture
def sample_reservations():
    """
    Four reservations around the reference time.

    - Double x2, arrives 06-12, bought 06-09 (in both pickup windows)
    - Twin, no room count, arrives 06-12, bought 06-01 (outside pickup)
    - Cancelled Double x2, arrives 06-13
    - Two adjacent rooms, no room count, arrives 06-13, bought 06-05
    """
    return [
        ReservationRecord(
            arrival_date=date(2025, 6, 12), departure_date=date(2025, 6, 14),
            status="Confirmée", rooms=2, nights=2, total_amount=300.0,
            purchase_date=datetime(2025, 6, 9, 10, 0), room_type="Double", reference="R1",
        ),
        ReservationRecord(
            arrival_date=date(2025, 6, 12), departure_date=date(2025, 6, 13),
            status="Confirmé", rooms=0, nights=1, total_amount=150.0,
            purchase_date=datetime(2025, 6, 1, 9, 0), room_type="Twin", reference="R2",
        ),
        ReservationRecord(
            arrival_date=date(2025, 6, 13), departure_date=date(2025, 6, 14),
            status="Annulée", rooms=2, nights=1, total_amount=500.0,
            purchase_date=datetime(2025, 6, 9, 18, 0), room_type="Double", reference="R3",
        ),
        ReservationRecord(
            arrival_date=date(2025, 6, 13), departure_date=date(2025, 6, 14),
            status="Confirmé", rooms=0, nights=1, total_amount=400.0,
            purchase_date=datetime(2025, 6, 5, 8, 0),
            room_type="Deux chambres adjacentes", reference="R4",
        ),
    ]


@pytest.fixture
def sample_availability():
    """Three dates: one open, one sold out, one closed for sale."""
    return [
        AvailabilityRecord(date=date(2025, 6, 12), room_type="Double", available_count=3.0),
        AvailabilityRecord(date=date(2025, 6, 13), room_type="Double", available_count=0.0),
        AvailabilityRecord(date=date(2025, 6, 14), room_type="Twin", available_count=2.0, closed_flag="x"),
    ]


@pytest.fixture
def sample_snapshots():
    """Two market days; the second has no compset median but lists events."""
    return [
        MarketSnapshot(date=date(2025, 6, 12), own_price=100.0, competitor_median=110.0,
                       demand_index=0.6, events_text=""),
        MarketSnapshot(date=date(2025, 6, 13), own_price=120.0, competitor_median=0.0,
                       demand_index=75.0, events_text="Concert"),
    ]


@pytest.fixture
def sample_events():
    """A one-day trade show scored 7/10."""
    return [EventRecord(name="Salon", start_date=date(2025, 6, 12), end_date=date(2025, 6, 12), impact_score=7)]


@pytest.fixture
def sample_window(sample_reservations, sample_availability, sample_snapshots, sample_events):
    """WindowData bundling every sample record."""
    return WindowData(
        reservations=sample_reservations,
        availability=sample_availability,
        snapshots=sample_snapshots,
        events=sample_events,
    )


@pytest.fixture
def sample_tariff_rows():
    """Wide competitor-rate rows: current, 3 days earlier, 7 days earlier."""
    current = [
        {
            'id': '1', 'hotel_id': 'H1', 'Date': '2025-06-12', 'date_mise_a_jour': '2025-06-10',
            'Demande du marché': '0.62', 'Folkestone Opéra': '150',
            'Hotel A': '140', 'Hotel B': '160', 'Hotel C': '0',
        },
        {
            'id': '2', 'hotel_id': 'H1', 'Date': '13/06/2025', 'date_mise_a_jour': '2025-06-10',
            'Demande du marché': '70', 'Folkestone Opéra': '155',
            'Hotel A': '150', 'Hotel B': '170', 'Hotel D': '180',
        },
    ]
    vs_3d = [
        {
            'id': '3', 'hotel_id': 'H1', 'Date': '2025-06-12',
            'Demande du marché': '0.5', 'Folkestone Opéra': '140',
            'Hotel A': '130', 'Hotel B': '150',
        },
    ]
    vs_7d = [
        {
            'id': '4', 'hotel_id': 'H1', 'Date': '2025-06-12',
            'Demande du marché': '40', 'Folkestone Opéra': '0',
            'Hotel A': '120',
        },
    ]
    return current, vs_3d, vs_7d


# =============================================================================
# CSV EXPORTS (integration)
# =============================================================================

@pytest.fixture
def raw_connection():
    """Empty in-memory DuckDB connection."""
    con = duckdb.connect(":memory:")
    yield con
    con.close()


@pytest.fixture
def sample_booking_export():
    """Reservation export for two hotels, French headers and mixed formats."""
    return pd.DataFrame({
        'id': ['1', '2', '3', '4', '5', '6'],
        'hotel_id': ['H1', 'H1', 'H1', 'H1', 'H1', 'H2'],
        'Etat': ['Confirmée', 'Confirmé', 'Annulée', 'Confirmé', 'Confirmé', 'Confirmé'],
        'Référence': ['R1', 'R2', 'R3', 'R4', 'R5', 'R6'],
        "Date d'arrivée": ['12/06/2025', '2025-06-12', '13-06-2025', '2025-06-13', '', '2025-06-12'],
        'Date de départ': ['14/06/2025', '2025-06-13', '14-06-2025', '2025-06-14', '2025-06-20', '2025-06-13'],
        "Date d'achat": ['2025-06-09 10:00:00', '2025-06-01 09:00:00', '2025-06-09 18:00:00',
                         '2025-06-05 08:00:00', '2025-06-09 08:00:00', '2025-06-09 08:00:00'],
        'Type de chambre': ['Double', 'Twin', 'Double', 'Deux chambres adjacentes', 'Double', 'Suite'],
        'Montant total': ['300,00', '150', '500', '400.00', '90', '999'],
        'Nuits': ['2', '1', '1', '1', '1', '1'],
        'Chambres': ['2', '', '2', '', '1', '1'],
    })


@pytest.fixture
def sample_disponibilites():
    """Availability export, with a duplicate row for 06-12 Double."""
    return pd.DataFrame({
        'id': ['1', '2', '3', '4', '5'],
        'hotel_id': ['H1', 'H1', 'H1', 'H1', 'H1'],
        'date': ['2025-06-12', '2025-06-12', '2025-06-13', '2025-06-14', ''],
        'type_de_chambre': ['Double', 'Double', 'Double', 'Twin', 'Twin'],
        'disponibilites': ['5', '3', '0', '2', '1'],
        'ferme_a_la_vente': ['', '', '', 'x', ''],
        'date_mise_a_jour': ['2025-06-08', '2025-06-09', '2025-06-09', '2025-06-09', '2025-06-09'],
    })


@pytest.fixture
def sample_booking_apercu():
    """Market overview export; 06-12 was captured twice."""
    return pd.DataFrame({
        'id': ['1', '2', '3'],
        'hotel_id': ['H1', 'H1', 'H1'],
        'date_mise_a_jour': ['2025-06-08', '2025-06-09', '2025-06-09'],
        'Date': ['2025-06-12', '2025-06-12', '2025-06-13'],
        'Votre hôtel le plus bas': ['95', '100', '120'],
        'médiane du compset': ['105', '110', ''],
        'Demande du marché': ['0,55', '0,6', '75'],
        'Événements': ['', '', 'Concert'],
    })


@pytest.fixture
def sample_events_calendar():
    """Event calendar export."""
    return pd.DataFrame({
        'id': ['1', '2'],
        'hotel_id': ['H1', 'H1'],
        'Événement': ['Salon', 'Marathon'],
        'Début': ['12/06/2025', '2025-07-01'],
        'Fin': ['12/06/2025', '2025-07-01'],
        'Indice impact attendu sur la demande /10': ['7', '9'],
    })


@pytest.fixture
def export_dir(tmp_path, sample_booking_export, sample_disponibilites,
               sample_booking_apercu, sample_events_calendar, sample_tariff_rows):
    """Directory holding the CSV exports (no 7-day tariff snapshot)."""
    sample_booking_export.to_csv(tmp_path / 'booking_export.csv', index=False)
    sample_disponibilites.to_csv(tmp_path / 'disponibilites.csv', index=False)
    sample_booking_apercu.to_csv(tmp_path / 'booking_apercu.csv', index=False)
    sample_events_calendar.to_csv(tmp_path / 'events_calendar.csv', index=False)

    current, vs_3d, _ = sample_tariff_rows
    pd.DataFrame(current).to_csv(tmp_path / 'booking_tarifs.csv', index=False)
    pd.DataFrame(vs_3d).to_csv(tmp_path / 'booking_vs_3j.csv', index=False)
    return tmp_path
