"""
Tests for competitor tariff trends.
"""

from datetime import date

import pandas as pd
import pytest

from yieldpro.features.trends import (
    TREND_COLUMNS,
    build_trend_series,
    extract_tariff_snapshot,
    is_demand_column,
    is_meta_column,
    lowest_competitor,
    median_price,
)


class TestColumns:

    @pytest.mark.parametrize("column", ['id', 'hotel_id', 'Date', 'date_mise_a_jour', 'Jour'])
    def test_meta_columns(self, column):
        assert is_meta_column(column)

    def test_hotel_column_is_not_meta(self):
        assert not is_meta_column('Hotel A')

    def test_demand_column(self):
        assert is_demand_column('Demande du marché')
        assert is_demand_column('demande_du_marche')
        assert not is_demand_column('Hotel Demandé')


class TestSnapshot:

    def test_wide_row(self, sample_tariff_rows):
        current, _, _ = sample_tariff_rows
        snap = extract_tariff_snapshot(current[0])
        assert snap.date == date(2025, 6, 12)
        assert snap.demand == pytest.approx(62.0)
        assert snap.own_price == 150.0
        # Hotel C at 0 is ignored
        assert snap.compset_median == 150.0

    def test_row_without_date(self):
        assert extract_tariff_snapshot({'Hotel A': '100'}) is None

    def test_median_of_nothing(self):
        assert median_price([]) == 0.0
        assert median_price([100.0, 120.0, 200.0, 90.0]) == 110.0

    def test_lowest_competitor(self, sample_tariff_rows):
        current, _, _ = sample_tariff_rows
        assert lowest_competitor(current[0]) == ('Hotel A', 140.0)
        assert lowest_competitor(current[0], ignore=('folkestone', 'Hotel A')) == ('Hotel B', 160.0)
        assert lowest_competitor({'Date': '2025-06-12', 'Folkestone': '90'}) is None


class TestTrendSeries:

    def test_sample_rows(self, sample_tariff_rows):
        series, summary = build_trend_series(*sample_tariff_rows)

        assert list(series.columns) == TREND_COLUMNS
        assert list(series['date']) == [date(2025, 6, 12), date(2025, 6, 13)]

        first = series.iloc[0]
        assert first['own_vs_3d'] == pytest.approx(10.0)
        assert first['compset_vs_3d'] == pytest.approx(10.0)
        assert first['demand_vs_3d'] == pytest.approx(12.0)
        # Own price 7 days ago was 0: no comparison
        assert pd.isna(first['own_vs_7d'])
        assert first['compset_vs_7d'] == pytest.approx(30.0)
        assert first['demand_vs_7d'] == pytest.approx(22.0)

        second = series.iloc[1]
        assert second['compset_median'] == 170.0
        assert pd.isna(second['own_vs_3d'])
        assert pd.isna(second['demand_vs_7d'])

        assert summary.compared_days_3d == 1
        assert summary.compared_days_7d == 1
        assert summary.avg_own_vs_3d == pytest.approx(10.0)
        assert summary.avg_own_vs_7d == 0.0
        assert summary.avg_compset_vs_7d == pytest.approx(30.0)

    def test_sorted_by_date(self, sample_tariff_rows):
        current, vs_3d, vs_7d = sample_tariff_rows
        series, _ = build_trend_series(list(reversed(current)), vs_3d, vs_7d)
        assert list(series['date']) == [date(2025, 6, 12), date(2025, 6, 13)]

    def test_no_rows(self):
        series, summary = build_trend_series([], [], [])
        assert series.empty
        assert summary.compared_days_3d == 0
        assert summary.to_dict()['avg_demand_vs_7d'] == 0.0
