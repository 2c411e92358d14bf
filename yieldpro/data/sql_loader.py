"""
Utility functions for loading SQL queries from .sql files.
"""
from pathlib import Path

QUERIES_DIR = Path(__file__).parent / "queries"


def load_sql_file(sql_filename: str, relative_to_file: str | Path | None = None) -> str:
    """
    Load SQL query from a .sql file.

    Parameters
    ----------
    sql_filename : str
        Name of the SQL file (e.g., 'QUERY_HOTEL_ROWS.sql').
        Can include relative path from the calling file's directory.
    relative_to_file : str | Path | None, default=None
        Path to the file calling this function. If None, the packaged
        ``queries/`` directory is used.

    Returns
    -------
    str
        Contents of the SQL file.

    Examples
    --------
    >>> query = load_sql_file('QUERY_HOTEL_ROWS.sql')
    """
    if relative_to_file is None:
        base_dir = QUERIES_DIR
    else:
        base_dir = Path(relative_to_file).parent

    sql_path = base_dir / sql_filename

    if not sql_path.exists():
        raise FileNotFoundError(
            f"SQL file not found: {sql_path}\n"
            f"Expected location: {sql_path.absolute()}"
        )

    return sql_path.read_text(encoding='utf-8')
