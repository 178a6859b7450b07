import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from loguru import logger

# Tabellen der Anwendung. Eindeutigkeiten entsprechen den fachlichen Schlüsseln:
# Farbcode je Rolle, Layout-Name je Rolle, ein Dienstplaneintrag je Benutzer und Tag.
SCHEMA: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT,
        email TEXT NOT NULL UNIQUE,
        role TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS shift_color_legend (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        color_code TEXT NOT NULL,
        color_name TEXT NOT NULL,
        shift_name TEXT NOT NULL,
        start_time TEXT NOT NULL,
        end_time TEXT NOT NULL,
        description TEXT,
        role TEXT NOT NULL,
        created_at TEXT NOT NULL DEFAULT (datetime('now')),
        UNIQUE (color_code, role)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS team_schedule (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        date TEXT NOT NULL,
        user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        shift_color TEXT,
        shift_hours TEXT,
        UNIQUE (user_id, date)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS excel_upload_configuration (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        role TEXT NOT NULL,
        description TEXT,
        active INTEGER NOT NULL DEFAULT 1,
        date_row INTEGER NOT NULL,
        name_column INTEGER NOT NULL,
        first_name_row INTEGER NOT NULL,
        last_name_row INTEGER NOT NULL,
        first_date_column INTEGER NOT NULL,
        last_date_column INTEGER NOT NULL,
        skip_values TEXT NOT NULL DEFAULT '[]',
        valid_patterns TEXT NOT NULL DEFAULT '[]',
        created_at TEXT NOT NULL DEFAULT (datetime('now')),
        UNIQUE (name, role)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_team_schedule_date ON team_schedule (date)",
)


@contextmanager
def connect(db_path: Path) -> Generator[sqlite3.Connection, None, None]:
    """
    Öffnet eine SQLite-Verbindung mit Row-Factory und Fremdschlüsselprüfung
    und schliesst sie nach dem Block wieder. Transaktionen steuert der Aufrufer mit `with conn:`.
    """
    logger.debug(f"Öffne SQLite-DB: {db_path}")
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()


def init_schema(db_path: Path) -> Path:
    """
    Legt die Datenbank samt Tabellen an, falls sie fehlen. Bestehende Daten bleiben unverändert.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with connect(db_path) as conn:
        with conn:
            for statement in SCHEMA:
                conn.execute(statement)
    logger.info(f"Datenbankschema geprüft: {db_path}")
    return db_path
