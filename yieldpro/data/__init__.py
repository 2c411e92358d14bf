"""Data parsing, loading and validation utilities."""
from .loader import get_clean_connection, init_db, load_window
from .records import (
    AvailabilityRecord,
    EventRecord,
    MarketSnapshot,
    ReservationRecord,
    WindowData,
)
from .validator import CleaningConfig, DataCleaner
