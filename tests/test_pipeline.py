"""
Tests for the end-to-end dashboard computation.
"""

import json
import logging
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone

import pytest

from yieldpro.data.records import ReservationRecord, WindowData
from yieldpro.recommender import DashboardResult, RMSPipeline
from yieldpro.recommender.pricing_engine import REASON_HOLD, REASON_STRONG_DECREASE


class TestRMSPipeline:
    """
    Sample window on a 10-room hotel at the reference time.

    06-12 is last-minute and far under target: priced down to 89.
    06-13 gets both the weekend premium and the last-minute discount and
    lands back on 120.
    """

    def test_sample_window(self, sample_window, small_hotel_settings, reference_now):
        result = RMSPipeline(small_hotel_settings).run(
            sample_window, date(2025, 6, 12), date(2025, 6, 14), reference_now=reference_now
        )

        assert isinstance(result, DashboardResult)
        assert result.kpis.occupied_rooms == 5

        assert [d.date for d in result.decisions] == [date(2025, 6, 12), date(2025, 6, 13)]
        first, second = result.decisions
        assert first.recommended_price == 89.0
        assert first.reason == REASON_STRONG_DECREASE
        assert second.recommended_price == 120.0
        assert second.reason == REASON_HOLD

        assert [s.date for s in result.suggestions] == [date(2025, 6, 12)]
        assert result.suggestions[0].change == -11

        assert len(result.alerts) == 1
        assert 'Occupancy' in result.alerts[0]
        assert result.room_types is None

    def test_idempotent(self, sample_window, small_hotel_settings, reference_now):
        pipeline = RMSPipeline(small_hotel_settings)
        first = pipeline.run(sample_window, reference_now=reference_now)
        second = pipeline.run(sample_window, reference_now=reference_now)
        assert first.to_dict() == second.to_dict()

    def test_empty_window(self, settings, reference_now):
        result = RMSPipeline(settings).run(WindowData(), reference_now=reference_now)
        assert result.decisions == []
        assert result.suggestions == []
        assert result.kpis.available_rooms == settings.hotel_capacity
        assert result.decisions_frame().empty

    def test_start_after_end_raises(self, sample_window, reference_now):
        with pytest.raises(ValueError, match="after window end"):
            RMSPipeline().run(sample_window, date(2025, 6, 14), date(2025, 6, 12), reference_now=reference_now)

    def test_room_types_when_configured(self, sample_window, small_hotel_settings, reference_now):
        settings = replace(small_hotel_settings, room_type_capacities={'Double': 6, 'Twin': 4})
        result = RMSPipeline(settings).run(sample_window, reference_now=reference_now)
        assert set(result.room_types['room_type']) == {'Double', 'Twin', 'Other'}

    def test_logs_metric_line(self, sample_window, small_hotel_settings, reference_now, caplog):
        with caplog.at_level(logging.INFO, logger='yieldpro.recommender.pipeline'):
            RMSPipeline(small_hotel_settings).run(
                sample_window, date(2025, 6, 12), date(2025, 6, 14), reference_now=reference_now
            )

        lines = [r.getMessage() for r in caplog.records if '[RMS_METRIC] dashboard' in r.getMessage()]
        assert len(lines) == 1
        payload = json.loads(lines[0].split(' ', 2)[2])
        assert payload['decisions'] == 2
        assert payload['suggestions'] == 1
        assert payload['window'] == ['2025-06-12', '2025-06-14']


class TestDashboardResult:

    def test_to_dict_keys(self, sample_window, small_hotel_settings, reference_now):
        d = RMSPipeline(small_hotel_settings).run(sample_window, reference_now=reference_now).to_dict()
        assert set(d) == {'kpis', 'daily_decisions', 'pricing_suggestions', 'alerts'}
        assert d['daily_decisions'][0]['date'] == '2025-06-12'
        json.dumps(d)

    def test_frames(self, sample_window, small_hotel_settings, reference_now):
        result = RMSPipeline(small_hotel_settings).run(sample_window, reference_now=reference_now)
        decisions = result.decisions_frame()
        assert list(decisions['date']) == ['2025-06-12', '2025-06-13']
        assert {'recommended_price', 'direction', 'confidence'} <= set(decisions.columns)
        assert len(result.suggestions_frame()) == 1


class TestAwareReferenceTime:
    """An aware reference time is compared in naive UTC like the parsed dates."""

    def test_aware_reference_now(self, sample_window, small_hotel_settings, reference_now):
        aware = reference_now.replace(tzinfo=timezone.utc)
        pipeline = RMSPipeline(small_hotel_settings)

        result = pipeline.run(sample_window, reference_now=aware)
        expected = pipeline.run(sample_window, reference_now=reference_now)

        assert result.to_dict() == expected.to_dict()
        assert result.kpis.pickup_rooms == 4

    def test_offset_is_converted_to_utc(self, small_hotel_settings):
        """14:00 at UTC+2 is 12:00 UTC: a purchase at 13:00 UTC is still in the future."""
        booking = ReservationRecord(arrival_date=date(2025, 6, 20), rooms=1, total_amount=100.0,
                                    purchase_date=datetime(2025, 6, 10, 13, 0))
        paris = timezone(timedelta(hours=2))
        result = RMSPipeline(small_hotel_settings).run(
            WindowData(reservations=[booking]), reference_now=datetime(2025, 6, 10, 14, 0, tzinfo=paris)
        )
        assert result.kpis.pickup_rooms == 0
