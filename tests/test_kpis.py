"""
Tests for KPI aggregation (occupancy, ADR, RevPAR, pickup, projection).
"""

from datetime import date, datetime, timezone

import pytest

from yieldpro.config import RMSSettings
from yieldpro.data.records import AvailabilityRecord, MarketSnapshot, ReservationRecord
from yieldpro.features.kpis import (
    average_rate_by_arrival_date,
    compute_kpis,
    confirmed_reservations,
    count_days,
    room_type_occupancy,
)


class TestComputeKpis:
    """
    Sample window: 3 availability dates, capacity 10 -> 30 rooms.
    Confirmed: 2 + 1 + 2 rooms for 850 revenue; pickup (7d): 4 rooms, 700.
    """

    def test_sample_window(self, sample_reservations, sample_availability, sample_snapshots, reference_now):
        kpis = compute_kpis(sample_reservations, sample_availability, sample_snapshots, 10, reference_now)

        assert kpis.total_rooms == 30
        assert kpis.occupied_rooms == 5
        assert kpis.occupancy_rate == pytest.approx(5 / 30 * 100)
        assert kpis.adr == pytest.approx(170.0)
        assert kpis.revpar == pytest.approx(850 / 30)
        assert kpis.pickup_rooms == 4
        assert kpis.pickup_revenue == pytest.approx(700.0)
        assert kpis.available_rooms == 5
        assert kpis.projected_occupancy == pytest.approx(30.0)

    def test_cancelled_reservations_excluded(self, reference_now):
        """A cancelled stay contributes nothing to rooms, revenue or pickup."""
        base = dict(arrival_date=date(2025, 6, 12), rooms=3, total_amount=900.0,
                    purchase_date=datetime(2025, 6, 9))
        confirmed = ReservationRecord(status="Confirmée", **base)

        for status in ["Annulée", "ANNULÉ", "cancelled", "Cancelled by guest"]:
            cancelled = ReservationRecord(status=status, **base)
            with_cancelled = compute_kpis([confirmed, cancelled], [], [], 10, reference_now)
            without = compute_kpis([confirmed], [], [], 10, reference_now)
            assert with_cancelled == without

    def test_include_cancelled(self, sample_reservations, reference_now):
        kpis = compute_kpis(sample_reservations, [], [], 10, reference_now, include_cancelled=True)
        assert kpis.occupied_rooms == 7

    def test_empty_hotel(self, reference_now):
        """No reservations, no availability: everything is 0 and capacity is available."""
        kpis = compute_kpis([], [], [], 45, reference_now)
        assert kpis.occupancy_rate == 0
        assert kpis.adr == 0
        assert kpis.revpar == 0
        assert kpis.available_rooms == 45

    def test_empty_hotel_multiple_days(self, reference_now):
        snapshots = [MarketSnapshot(date=date(2025, 6, d)) for d in (12, 13, 14)]
        kpis = compute_kpis([], [], snapshots, 45, reference_now)
        assert kpis.total_rooms == 135
        assert kpis.available_rooms == 135

    def test_zero_capacity_never_divides_by_zero(self, sample_reservations, reference_now):
        kpis = compute_kpis(sample_reservations, [], [], 0, reference_now)
        assert kpis.occupancy_rate == 0
        assert kpis.revpar == 0
        assert kpis.projected_occupancy == 0
        assert kpis.adr == pytest.approx(170.0)

    def test_projection_is_clamped(self, reference_now):
        r = ReservationRecord(arrival_date=date(2025, 6, 12), rooms=9, purchase_date=datetime(2025, 6, 9))
        kpis = compute_kpis([r], [], [], 5, reference_now)
        assert kpis.occupancy_rate == pytest.approx(180.0)
        assert kpis.projected_occupancy == 100.0

    def test_to_dict(self, reference_now):
        d = compute_kpis([], [], [], 10, reference_now).to_dict()
        assert set(d) == {
            'occupancy_rate', 'adr', 'revpar', 'pickup_rooms', 'pickup_revenue',
            'total_rooms', 'occupied_rooms', 'available_rooms', 'projected_occupancy',
        }


class TestHelpers:

    def test_count_days(self, sample_availability, sample_snapshots):
        assert count_days(sample_availability, sample_snapshots) == 3
        assert count_days([], sample_snapshots) == 2
        assert count_days([], []) == 1

    def test_confirmed_reservations(self, sample_reservations):
        refs = [r.reference for r in confirmed_reservations(sample_reservations)]
        assert refs == ['R1', 'R2', 'R4']

    def test_average_rate_by_arrival_date(self, sample_reservations):
        rates = average_rate_by_arrival_date(sample_reservations)
        # 06-12: (300 + 150) / (2x2 + 1x1) room-nights
        assert rates[date(2025, 6, 12)] == pytest.approx(90.0)
        # 06-13: 400 / (2 rooms x 1 night), cancelled R3 ignored
        assert rates[date(2025, 6, 13)] == pytest.approx(200.0)


class TestRoomTypeOccupancy:

    def test_configured_room_types(self, sample_reservations):
        settings = RMSSettings(room_type_capacities={'Double': 6, 'Twin': 4})
        df = room_type_occupancy(sample_reservations, settings, day_count=2)

        double = df[df['room_type'] == 'Double'].iloc[0]
        assert double['rooms_sold'] == 2
        assert double['capacity'] == 12
        assert double['occupancy_pct'] == pytest.approx(2 / 12 * 100)

        twin = df[df['room_type'] == 'Twin'].iloc[0]
        assert twin['rooms_sold'] == 1

        other = df[df['room_type'] == 'Other'].iloc[0]
        assert other['rooms_sold'] == 2
        assert other['capacity'] == 0

    def test_no_configuration(self, sample_reservations):
        df = room_type_occupancy(sample_reservations, RMSSettings(), day_count=2)
        assert list(df['room_type']) == ['Other']


class TestAwareAndNegativeInputs:

    def test_aware_now(self, sample_reservations, sample_availability, sample_snapshots, reference_now):
        aware = reference_now.replace(tzinfo=timezone.utc)
        assert compute_kpis(sample_reservations, sample_availability, sample_snapshots, 10, aware) == \
            compute_kpis(sample_reservations, sample_availability, sample_snapshots, 10, reference_now)

    def test_negative_counts_do_not_reduce_available_rooms(self, reference_now):
        availability = [
            AvailabilityRecord(date=date(2025, 6, 12), room_type='Double', available_count=4.0),
            AvailabilityRecord(date=date(2025, 6, 12), room_type='Twin', available_count=-1.0),
        ]
        kpis = compute_kpis([], availability, [], 10, reference_now)
        assert kpis.available_rooms == 4.0
