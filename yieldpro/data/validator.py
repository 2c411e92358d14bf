"""
Cleaning of the raw export tables using a Rule-based architecture.

Every cleaning step is a Rule with a check_query (how many rows are
affected?) and an action_query (fix them). Rules only apply to tables and
columns that were actually loaded, since exports vary between hotels.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Set

import duckdb

from .sql_loader import load_sql_file

logger = logging.getLogger(__name__)

# Export tables cleaned by the pipeline
RESERVATIONS_TABLE = "booking_export"
AVAILABILITY_TABLE = "disponibilites"
SNAPSHOTS_TABLE = "booking_apercu"
EVENTS_TABLE = "events_calendar"
TARIFFS_TABLE = "booking_tarifs"

ARRIVAL_COLUMN = "Date d'arrivée"

# ============================================================================
# 1. RULE DATACLASS
# ============================================================================

@dataclass
class Rule:
    """
    Single data quality rule.

    1. Check query: How many rows are affected?
    2. Action query: Fix the issue
    """
    name: str
    check_query: str
    action_query: str
    enabled: bool = True

# ============================================================================
# 2. CLEANING CONFIG
# ============================================================================

@dataclass
class CleaningConfig:
    """
    Configuration for the cleaning pass.

    Each field enables/disables one rule family.
    """
    fix_empty_strings: bool = True                 # '' and whitespace-only to NULL
    remove_reservations_without_arrival: bool = True
    remove_availability_without_date: bool = True
    dedupe_snapshots: bool = True                  # one apercu row per (hotel, Date)
    dedupe_availability: bool = True               # one row per (hotel, date, room type)

    verbose: bool = False

# ============================================================================
# 3. DATA CLEANER
# ============================================================================

def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


class DataCleaner:
    """
    Applies cleaning rules based on configuration.

    Usage:
        cleaner = DataCleaner(CleaningConfig(verbose=True))
        con = cleaner.clean(init_db(data_dir))
    """

    def __init__(self, config: CleaningConfig):
        self.config = config
        self.stats: Dict[str, int] = {}

    def _columns(self, con: duckdb.DuckDBPyConnection) -> Dict[str, Dict[str, str]]:
        """Column name -> type for every loaded export table."""
        query = load_sql_file('QUERY_TABLE_COLUMNS.sql')
        schema = {}
        for table in (RESERVATIONS_TABLE, AVAILABILITY_TABLE, SNAPSHOTS_TABLE,
                      EVENTS_TABLE, TARIFFS_TABLE):
            rows = con.execute(query, [table]).fetchall()
            if rows:
                schema[table] = {name: dtype for name, dtype in rows}
        return schema

    def build_rules(self, con: duckdb.DuckDBPyConnection) -> List[Rule]:
        """Build the list of rules applicable to the loaded tables."""
        schema = self._columns(con)
        rules = []

        def has(table: str, *columns: str) -> bool:
            cols: Set[str] = set(schema.get(table, {}))
            return bool(cols) and all(c in cols for c in columns)

        # ===== EMPTY STRINGS =====
        if self.config.fix_empty_strings:
            for table, columns in schema.items():
                text_columns = [c for c, t in columns.items() if t.upper() == 'VARCHAR']
                for column in text_columns:
                    col = _quote(column)
                    rules.append(Rule(
                        f"Empty {table}.{column}",
                        f"SELECT COUNT(*) FROM {table} WHERE TRIM({col}) = ''",
                        f"UPDATE {table} SET {col} = NULL WHERE TRIM({col}) = ''"
                    ))

        # ===== MISSING KEYS =====
        if self.config.remove_reservations_without_arrival and has(RESERVATIONS_TABLE, ARRIVAL_COLUMN):
            col = _quote(ARRIVAL_COLUMN)
            rules.append(Rule(
                "Reservation Without Arrival Date",
                f"SELECT COUNT(*) FROM {RESERVATIONS_TABLE} WHERE {col} IS NULL OR TRIM({col}) = ''",
                f"DELETE FROM {RESERVATIONS_TABLE} WHERE {col} IS NULL OR TRIM({col}) = ''"
            ))

        if self.config.remove_availability_without_date and has(AVAILABILITY_TABLE, 'date'):
            date_col = _quote("date")
            rules.append(Rule(
                "Availability Without Date",
                f"SELECT COUNT(*) FROM {AVAILABILITY_TABLE} WHERE {date_col} IS NULL OR TRIM({date_col}) = ''",
                f"DELETE FROM {AVAILABILITY_TABLE} WHERE {date_col} IS NULL OR TRIM({date_col}) = ''"
            ))

        # ===== DUPLICATES (keep the latest update) =====
        if self.config.dedupe_snapshots and has(SNAPSHOTS_TABLE, 'hotel_id', 'Date', 'date_mise_a_jour'):
            rules.append(self._dedupe_rule(
                "Duplicate Market Snapshot", SNAPSHOTS_TABLE, ['hotel_id', 'Date']
            ))

        if self.config.dedupe_availability and has(
            AVAILABILITY_TABLE, 'hotel_id', 'date', 'type_de_chambre', 'date_mise_a_jour'
        ):
            rules.append(self._dedupe_rule(
                "Duplicate Availability", AVAILABILITY_TABLE, ['hotel_id', 'date', 'type_de_chambre']
            ))

        return rules

    @staticmethod
    def _dedupe_rule(name: str, table: str, keys: List[str]) -> Rule:
        partition = ", ".join(_quote(k) for k in keys)
        ranked = f"""
            SELECT rowid AS rid,
                   ROW_NUMBER() OVER (
                       PARTITION BY {partition}
                       ORDER BY date_mise_a_jour DESC NULLS LAST, rowid DESC
                   ) AS rn
            FROM {table}
        """
        return Rule(
            name,
            f"SELECT COUNT(*) FROM ({ranked}) WHERE rn > 1",
            f"DELETE FROM {table} WHERE rowid IN (SELECT rid FROM ({ranked}) WHERE rn > 1)"
        )

    def clean(self, con: duckdb.DuckDBPyConnection) -> duckdb.DuckDBPyConnection:
        """Apply all enabled rules in place and return the connection."""
        rules = self.build_rules(con)
        if self.config.verbose:
            logger.info(f"Applying {len(rules)} data cleaning rules...")

        for rule in rules:
            if not rule.enabled:
                continue

            affected = con.execute(rule.check_query).fetchone()[0]

            if affected > 0:
                con.execute(rule.action_query)
                self.stats[rule.name] = affected

                if self.config.verbose:
                    logger.info(f"  ✓ {rule.name}: {affected:,} rows")
            elif self.config.verbose:
                logger.debug(f"  - {rule.name}: 0 rows")

        if self.config.verbose:
            total = sum(self.stats.values())
            logger.info(f"Cleaning done: {total:,} rows affected by {len(self.stats)} rules")

        return con


def check_data_quality(con: duckdb.DuckDBPyConnection) -> dict:
    """
    Check data quality without modifying data.

    Returns dict with the affected row count of each applicable rule.
    """
    cleaner = DataCleaner(CleaningConfig())
    rules = cleaner.build_rules(con)

    results = []
    for rule in rules:
        failed = con.execute(rule.check_query).fetchone()[0]
        results.append({'name': rule.name, 'failed': failed})

    return {
        'rules': results,
        'total_failed': sum(r['failed'] for r in results),
        'checks_passed': sum(1 for r in results if r['failed'] == 0),
        'total_checks': len(rules),
    }
