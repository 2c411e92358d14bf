#!/usr/bin/env python
"""
Generate daily price recommendations for one hotel.

Usage:
    python entrypoint/recommend.py --data-dir data --hotel-id H2258 --start 2025-06-01 --end 2025-06-30
    python entrypoint/recommend.py ... --strategy aggressive --output outputs/decisions.csv
    python entrypoint/recommend.py ... --closures --trends --plot outputs/decisions.png
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import argparse
import logging
from datetime import date, datetime

from yieldpro.config import apply_preset, load_settings, normalize_weights, STRATEGIES
from yieldpro.data.loader import get_clean_connection, load_window
from yieldpro.data.parsing import parse_datetime
from yieldpro.features.availability import closures_report
from yieldpro.features.trends import build_trend_series, lowest_competitor
from yieldpro.recommender.pipeline import RMSPipeline


def _parse_day(value: str) -> date:
    return datetime.strptime(value, '%Y-%m-%d').date()


def _parse_as_of(value: str) -> datetime:
    parsed = parse_datetime(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"Invalid --as-of timestamp: {value}")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Generate daily price recommendations')
    parser.add_argument('--data-dir', type=str, default='data', help='Directory with the CSV exports')
    parser.add_argument('--hotel-id', type=str, default=None, help='Hotel ID (all hotels if omitted)')
    parser.add_argument('--start', type=_parse_day, required=True, help='First day (YYYY-MM-DD)')
    parser.add_argument('--end', type=_parse_day, required=True, help='Last day (YYYY-MM-DD)')
    parser.add_argument('--as-of', type=_parse_as_of, default=None, help='Reference time (default: now)')
    parser.add_argument('--settings', type=str, default=None, help='RMS settings JSON file')
    parser.add_argument('--strategy', choices=STRATEGIES, default=None, help='Apply a strategy preset')
    parser.add_argument('--normalize-weights', action='store_true',
                        help='Rescale the four signal weights to sum to 1')
    parser.add_argument('--output', type=str, default=None, help='Write daily decisions to CSV')
    parser.add_argument('--plot', type=str, default=None, help='Save the decision chart (PNG)')
    parser.add_argument('--closures', action='store_true', help='Print the closures report')
    parser.add_argument('--trends', action='store_true', help='Print competitor tariff trends')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format='%(message)s')

    if args.start > args.end:
        print(f"Error: --start {args.start} is after --end {args.end}")
        return 2

    settings = load_settings(args.settings)
    if args.strategy:
        settings = apply_preset(settings, args.strategy)
    if args.normalize_weights:
        settings = normalize_weights(settings)

    con = get_clean_connection(args.data_dir)
    window = load_window(con, args.hotel_id, args.start, args.end)

    result = RMSPipeline(settings).run(window, args.start, args.end, reference_now=args.as_of)
    kpis = result.kpis

    print("\n" + "=" * 70)
    print(f"RMS DASHBOARD: Hotel {args.hotel_id or 'ALL'} ({args.start} -> {args.end})")
    print("=" * 70)
    print(f"Strategy: {settings.strategy} | Target occupancy: {settings.target_occupancy:.0f}%")
    print(f"Weights: demand {settings.demand_weight:.2f} | compset {settings.competitor_weight:.2f} | "
          f"event {settings.event_weight:.2f} | pickup {settings.pickup_weight:.2f}")
    print(f"\nKPIs:")
    print(f"  Occupancy: {kpis.occupancy_rate:.1f}% (projected {kpis.projected_occupancy:.1f}%)")
    print(f"  ADR: €{kpis.adr:.2f} | RevPAR: €{kpis.revpar:.2f}")
    print(f"  Rooms: {kpis.occupied_rooms:.0f} sold / {kpis.total_rooms:.0f} | {kpis.available_rooms:.0f} available")
    print(f"  Pickup (7d): {kpis.pickup_rooms:.0f} rooms, €{kpis.pickup_revenue:.2f}")

    if result.alerts:
        print(f"\nAlerts:")
        for alert in result.alerts:
            print(f"  ⚠️ {alert}")

    print(f"\nSuggestions ({len(result.suggestions)} of {len(result.decisions)} days):")
    for s in result.suggestions:
        flag = 'AUTO' if s.should_auto_approve else 'REVIEW'
        print(f"  {s.date}  €{s.current_price} → €{s.suggested_price} ({s.change_percent:+.1f}%)"
              f"  conf {s.confidence}  [{flag}]  {s.reason}")

    if result.room_types is not None and not result.room_types.empty:
        print(f"\nRoom types:")
        print(result.room_types.to_string(index=False))

    if args.closures:
        report = closures_report(window.availability, window.reservations, args.start, args.end)
        print(f"\nClosures ({len(report)}):")
        if report.empty:
            print("  No closure in the selected range")
        else:
            print(report.to_string(index=False))

    series = None
    if args.trends:
        series, summary = build_trend_series(window.tariff_rows, window.tariff_rows_3d, window.tariff_rows_7d)
        print(f"\nCompetitor trends ({len(series)} days):")
        print(f"  Own price:  {summary.avg_own_vs_3d:+.2f} vs 3d | {summary.avg_own_vs_7d:+.2f} vs 7d")
        print(f"  Compset:    {summary.avg_compset_vs_3d:+.2f} vs 3d | {summary.avg_compset_vs_7d:+.2f} vs 7d")
        print(f"  Demand:     {summary.avg_demand_vs_3d:+.2f} vs 3d | {summary.avg_demand_vs_7d:+.2f} vs 7d")
        print(f"  Compared days: {summary.compared_days_3d} (3d), {summary.compared_days_7d} (7d)")
        cheapest = [(row, lowest_competitor(row)) for row in window.tariff_rows]
        cheapest = [(row, best) for row, best in cheapest if best is not None]
        if cheapest:
            print(f"  Cheapest competitor per day:")
            for row, (hotel, price) in cheapest:
                print(f"    {row.get('Date') or row.get('date')}  {hotel} €{price:.2f}")

    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        result.decisions_frame().to_csv(output, index=False)
        print(f"\n✓ Decisions saved to {output}")

    if args.plot:
        from yieldpro.recommender.visualize import plot_daily_decisions, plot_trend_series

        plot_daily_decisions(result, Path(args.plot))
        if series is not None:
            plot_path = Path(args.plot)
            plot_trend_series(series, plot_path.with_name(f"{plot_path.stem}_trends{plot_path.suffix}"))

    return 0


if __name__ == "__main__":
    sys.exit(main())
