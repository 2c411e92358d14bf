"""
Data loading utilities for the pricing engine.

Loads the hosted table exports from CSV files into DuckDB and turns the
rows of one hotel and date window into typed records.
"""

import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

import duckdb
import pandas as pd

from .parsing import parse_date
from .records import (
    AvailabilityRecord,
    EventRecord,
    MarketSnapshot,
    ReservationRecord,
    WindowData,
)
from .sql_loader import load_sql_file
from .validator import CleaningConfig, DataCleaner

logger = logging.getLogger(__name__)

CSV_FILES = {
    "booking_export.csv": "booking_export",
    "disponibilites.csv": "disponibilites",
    "booking_apercu.csv": "booking_apercu",
    "events_calendar.csv": "events_calendar",
    "booking_tarifs.csv": "booking_tarifs",
    "booking_vs_3j.csv": "booking_vs_3j",
    "booking_vs_7j.csv": "booking_vs_7j",
}


def get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent.parent


def init_db(
    data_dir: Optional[str | Path] = None,
    db_path: str = ":memory:"
) -> duckdb.DuckDBPyConnection:
    """
    Load the table exports from CSV files into DuckDB.

    Every column is loaded as VARCHAR: exports mix locales and date formats,
    so values are parsed later by the record constructors. A missing file
    becomes an empty (id, hotel_id) table.

    Args:
        data_dir: Directory holding the CSV exports. Defaults to <root>/data
        db_path: DuckDB database path

    Returns:
        Connection with all tables loaded
    """
    data_dir = Path(data_dir) if data_dir is not None else get_project_root() / "data"
    if not data_dir.is_dir():
        raise FileNotFoundError(f"Data directory not found: {data_dir}")

    con = duckdb.connect(database=db_path, read_only=False)

    for filename, table_name in CSV_FILES.items():
        file_path = data_dir / filename
        if file_path.exists():
            con.execute(f"""
                CREATE TABLE {table_name} AS
                SELECT * FROM read_csv_auto('{file_path}', all_varchar=True, header=True, quote='"')
            """)
            n_rows = con.execute(f"SELECT COUNT(*) FROM {table_name}").fetchone()[0]
            logger.info(f"Loaded {filename} into table '{table_name}' ({n_rows:,} rows)")
        else:
            con.execute(f"CREATE TABLE {table_name} (id VARCHAR, hotel_id VARCHAR)")
            logger.warning(f"{file_path} not found, created empty table '{table_name}'")

    return con


def get_clean_connection(
    data_dir: Optional[str | Path] = None,
    config: Optional[CleaningConfig] = None
) -> duckdb.DuckDBPyConnection:
    """
    Initialize database with the standard cleaning rules applied.

    Args:
        data_dir: Directory holding the CSV exports
        config: Cleaning configuration (defaults enable every rule)

    Returns:
        Cleaned DuckDB connection
    """
    cleaner = DataCleaner(config or CleaningConfig())
    return cleaner.clean(init_db(data_dir))


def fetch_rows(
    con: duckdb.DuckDBPyConnection,
    table: str,
    hotel_id: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    Raw rows of one table for a hotel, as dicts with None for missing values.

    Args:
        con: DuckDB connection
        table: One of the loaded export tables
        hotel_id: Hotel to keep. None returns every hotel's rows.
    """
    query = load_sql_file('QUERY_HOTEL_ROWS.sql').format(table=table)
    df = con.execute(query, [hotel_id]).fetchdf()
    if df.empty:
        return []
    df = df.astype(object).where(df.notna(), None)
    return df.to_dict('records')


def list_hotels(con: duckdb.DuckDBPyConnection) -> pd.DataFrame:
    """Hotels present in the reservation export with their reservation counts."""
    return con.execute(load_sql_file('QUERY_HOTEL_IDS.sql')).fetchdf()


def _in_window(day: Optional[date], start: date, end: date) -> bool:
    return day is not None and start <= day <= end


def _row_in_window(row: Dict[str, Any], start: date, end: date) -> bool:
    raw = row.get('Date')
    if raw is None:
        raw = row.get('date')
    return _in_window(parse_date(raw), start, end)


def load_window(
    con: duckdb.DuckDBPyConnection,
    hotel_id: Optional[str],
    start: date,
    end: date
) -> WindowData:
    """
    Fetch every input of the pricing engine for one hotel and date window.

    Date filters run in Python because the stored dates are strings in
    several formats.

    Args:
        con: Connection returned by init_db / get_clean_connection
        hotel_id: Hotel identifier (None for every hotel)
        start: First day of the window
        end: Last day of the window (inclusive)

    Returns:
        WindowData with reservations arriving in the window, availability
        and snapshots dated in the window, events overlapping it, and the
        raw tariff rows (current, 3 and 7 days earlier) dated in it
    """
    if start > end:
        raise ValueError(f"Window start {start} is after window end {end}")

    reservations = [
        r for r in map(ReservationRecord.from_row, fetch_rows(con, "booking_export", hotel_id))
        if _in_window(r.arrival_date, start, end)
    ]
    availability = [
        a for a in map(AvailabilityRecord.from_row, fetch_rows(con, "disponibilites", hotel_id))
        if _in_window(a.date, start, end)
    ]
    snapshots = [
        s for s in map(MarketSnapshot.from_row, fetch_rows(con, "booking_apercu", hotel_id))
        if _in_window(s.date, start, end)
    ]
    events = [
        e for e in map(EventRecord.from_row, fetch_rows(con, "events_calendar", hotel_id))
        if e.start_date is not None
        and e.start_date <= end
        and (e.end_date or e.start_date) >= start
    ]

    window = WindowData(
        reservations=reservations,
        availability=availability,
        snapshots=snapshots,
        events=events,
        tariff_rows=[r for r in fetch_rows(con, "booking_tarifs", hotel_id) if _row_in_window(r, start, end)],
        tariff_rows_3d=[r for r in fetch_rows(con, "booking_vs_3j", hotel_id) if _row_in_window(r, start, end)],
        tariff_rows_7d=[r for r in fetch_rows(con, "booking_vs_7j", hotel_id) if _row_in_window(r, start, end)],
    )
    logger.info(f"Loaded window {start} -> {end} for hotel {hotel_id}: {window.summary()}")
    return window
