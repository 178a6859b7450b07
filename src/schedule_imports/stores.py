"""
SQLite-Zugriff für Benutzer, Farblegende, Dienstplan und Layout-Profile.

Jede Methode öffnet ihre eigene Verbindung und Transaktion, ausser es wird eine
offene Verbindung mitgegeben (conn=...). So lassen sich Löschen und Einfügen eines
Monats in einer einzigen Transaktion ausführen.
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Generator, List, Optional

from loguru import logger

from pydantic_models.data.color_legend import ColorLegendEntry
from pydantic_models.data.directory_user import DirectoryUser
from pydantic_models.data.layout_profile import LayoutProfile
from pydantic_models.data.schedule_entry import PersistedScheduleRow
from schedule_imports.errors import UniqueConstraintError
from shared_modules.database import connect
from shared_modules.utils import month_bounds


def _is_unique_violation(exc: sqlite3.IntegrityError) -> bool:
    return "UNIQUE constraint failed" in str(exc)


class SqliteStore:
    """Gemeinsame Basis: Pfad zur DB und Verbindungsverwaltung."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Eine Verbindung mit offener Transaktion: Commit am Ende, Rollback bei Fehler.
        """
        with connect(self.db_path) as conn:
            with conn:
                yield conn

    @contextmanager
    def _use(self, conn: Optional[sqlite3.Connection]) -> Generator[sqlite3.Connection, None, None]:
        if conn is not None:
            yield conn
            return
        with self.transaction() as own:
            yield own


class UserDirectory(SqliteStore):
    """Benutzerverwaltung (nur das, was der Import braucht)."""

    def list_users(self, role: Optional[str] = None) -> List[DirectoryUser]:
        sql = "SELECT id, name, email, role FROM users"
        params: tuple = ()
        if role:
            sql += " WHERE role = ?"
            params = (role.upper(),)
        with self._use(None) as conn:
            rows = conn.execute(sql + " ORDER BY id", params).fetchall()
        return [DirectoryUser(**dict(row)) for row in rows]

    def add_user(self, name: Optional[str], email: str, role: str) -> DirectoryUser:
        with self._use(None) as conn:
            try:
                cur = conn.execute(
                    "INSERT INTO users (name, email, role) VALUES (?, ?, ?)",
                    (name, email, role.upper()),
                )
            except sqlite3.IntegrityError as exc:
                if _is_unique_violation(exc):
                    raise UniqueConstraintError(f"E-Mail {email} ist bereits vergeben.") from exc
                raise
        return DirectoryUser(id=cur.lastrowid, name=name, email=email, role=role.upper())


class ColorLegendStore(SqliteStore):
    """Farblegende je Rolle."""

    _COLUMNS = "id, color_code, color_name, shift_name, start_time, end_time, description, role"

    def list_legends(self, role: Optional[str] = None, conn: Optional[sqlite3.Connection] = None) -> List[ColorLegendEntry]:
        sql = f"SELECT {self._COLUMNS} FROM shift_color_legend"
        params: tuple = ()
        if role:
            sql += " WHERE role = ?"
            params = (role.upper(),)
        with self._use(conn) as c:
            rows = c.execute(sql + " ORDER BY created_at, id", params).fetchall()
        return [ColorLegendEntry(**dict(row)) for row in rows]

    def create_legend(self, entry: ColorLegendEntry, conn: Optional[sqlite3.Connection] = None) -> ColorLegendEntry:
        """
        Legt einen Legendeneintrag an. Ein bereits vorhandener Farbcode für dieselbe Rolle
        führt zu UniqueConstraintError.
        """
        with self._use(conn) as c:
            try:
                cur = c.execute(
                    """
                    INSERT INTO shift_color_legend
                        (color_code, color_name, shift_name, start_time, end_time, description, role)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        entry.color_code,
                        entry.color_name,
                        entry.shift_name,
                        entry.start_time,
                        entry.end_time,
                        entry.description,
                        entry.role,
                    ),
                )
            except sqlite3.IntegrityError as exc:
                if _is_unique_violation(exc):
                    raise UniqueConstraintError(
                        f'Farbcode "{entry.color_code}" existiert bereits für Rolle "{entry.role}".'
                    ) from exc
                raise
        logger.debug(f"Legendeneintrag angelegt: {entry.color_code} ({entry.role})")
        return entry.model_copy(update={"id": cur.lastrowid})

    def update_legend(self, legend_id: int, entry: ColorLegendEntry) -> ColorLegendEntry:
        with self._use(None) as c:
            try:
                cur = c.execute(
                    """
                    UPDATE shift_color_legend
                    SET color_code = ?, color_name = ?, shift_name = ?, start_time = ?,
                        end_time = ?, description = ?, role = ?
                    WHERE id = ?
                    """,
                    (
                        entry.color_code,
                        entry.color_name,
                        entry.shift_name,
                        entry.start_time,
                        entry.end_time,
                        entry.description,
                        entry.role,
                        legend_id,
                    ),
                )
            except sqlite3.IntegrityError as exc:
                if _is_unique_violation(exc):
                    raise UniqueConstraintError(
                        f'Farbcode "{entry.color_code}" existiert bereits für Rolle "{entry.role}".'
                    ) from exc
                raise
        if cur.rowcount == 0:
            raise KeyError(f"Legendeneintrag {legend_id} nicht gefunden.")
        return entry.model_copy(update={"id": legend_id})

    def delete_legend(self, legend_id: int) -> bool:
        with self._use(None) as c:
            cur = c.execute("DELETE FROM shift_color_legend WHERE id = ?", (legend_id,))
        return cur.rowcount > 0


class ScheduleStore(SqliteStore):
    """Gespeicherte Dienstplanzeilen, eindeutig je (user_id, date)."""

    def delete_range(
        self,
        start: date,
        end: date,
        role: Optional[str] = None,
        conn: Optional[sqlite3.Connection] = None,
    ) -> int:
        """
        Löscht alle Zeilen mit start <= date < end, optional nur für Benutzer einer Rolle.
        """
        sql = "DELETE FROM team_schedule WHERE date >= ? AND date < ?"
        params: tuple = (start.isoformat(), end.isoformat())
        if role:
            sql += " AND user_id IN (SELECT id FROM users WHERE role = ?)"
            params += (role.upper(),)
        with self._use(conn) as c:
            cur = c.execute(sql, params)
        return cur.rowcount

    def create(self, row: PersistedScheduleRow, conn: Optional[sqlite3.Connection] = None) -> PersistedScheduleRow:
        """
        Fügt eine Zeile ein. Eine Verletzung von UNIQUE(user_id, date) wird als
        UniqueConstraintError gemeldet, alle anderen Fehler gehen unverändert weiter.
        """
        with self._use(conn) as c:
            try:
                cur = c.execute(
                    "INSERT INTO team_schedule (date, user_id, shift_color, shift_hours) VALUES (?, ?, ?, ?)",
                    (row.date.isoformat(), row.user_id, row.shift_color, row.shift_hours),
                )
            except sqlite3.IntegrityError as exc:
                if _is_unique_violation(exc):
                    raise UniqueConstraintError(
                        f"Eintrag für Benutzer {row.user_id} am {row.date.isoformat()} existiert bereits."
                    ) from exc
                raise
        return row.model_copy(update={"id": cur.lastrowid})

    def list_month(self, year: int, month: int, role: Optional[str] = None) -> List[PersistedScheduleRow]:
        start, end = month_bounds(year, month)
        sql = """
        SELECT t.id, t.date, t.user_id, t.shift_color, t.shift_hours, u.name AS user_name
        FROM team_schedule t
        JOIN users u ON u.id = t.user_id
        WHERE t.date >= ? AND t.date < ?
        """
        params: tuple = (start.isoformat(), end.isoformat())
        if role:
            sql += " AND u.role = ?"
            params += (role.upper(),)
        with self._use(None) as c:
            rows = c.execute(sql + " ORDER BY t.date, u.name", params).fetchall()
        return [PersistedScheduleRow(**dict(row)) for row in rows]


class LayoutProfileStore(SqliteStore):
    """Von Admins gepflegte Layout-Profile (Tabelle excel_upload_configuration)."""

    _COLUMNS = (
        "id, name, role, description, active, date_row, name_column, first_name_row, last_name_row, "
        "first_date_column, last_date_column, skip_values, valid_patterns"
    )

    @staticmethod
    def _to_profile(row: sqlite3.Row) -> LayoutProfile:
        data = dict(row)
        data["active"] = bool(data["active"])
        data["skip_values"] = json.loads(data["skip_values"] or "[]")
        data["valid_patterns"] = json.loads(data["valid_patterns"] or "[]")
        return LayoutProfile(**data)

    def find_active(self, role: str) -> Optional[LayoutProfile]:
        """Das zuletzt angelegte aktive Profil der Rolle oder None."""
        with self._use(None) as c:
            row = c.execute(
                f"SELECT {self._COLUMNS} FROM excel_upload_configuration "
                "WHERE role = ? AND active = 1 ORDER BY created_at DESC, id DESC LIMIT 1",
                (role.upper(),),
            ).fetchone()
        return self._to_profile(row) if row else None

    def list_profiles(self, role: Optional[str] = None) -> List[LayoutProfile]:
        sql = f"SELECT {self._COLUMNS} FROM excel_upload_configuration"
        params: tuple = ()
        if role:
            sql += " WHERE role = ?"
            params = (role.upper(),)
        with self._use(None) as c:
            rows = c.execute(sql + " ORDER BY created_at DESC, id DESC", params).fetchall()
        return [self._to_profile(row) for row in rows]

    def save(self, profile: LayoutProfile) -> LayoutProfile:
        """
        Legt ein Profil an (ohne id) oder aktualisiert es (mit id).
        Ein doppelter Name innerhalb derselben Rolle führt zu UniqueConstraintError.
        """
        values = (
            profile.name,
            profile.role,
            profile.description,
            int(profile.active),
            profile.date_row,
            profile.name_column,
            profile.first_name_row,
            profile.last_name_row,
            profile.first_date_column,
            profile.last_date_column,
            json.dumps(profile.skip_values),
            json.dumps(profile.valid_patterns),
        )
        with self._use(None) as c:
            try:
                if profile.id is None:
                    cur = c.execute(
                        """
                        INSERT INTO excel_upload_configuration
                            (name, role, description, active, date_row, name_column, first_name_row,
                             last_name_row, first_date_column, last_date_column, skip_values, valid_patterns)
                        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        values,
                    )
                    return profile.model_copy(update={"id": cur.lastrowid})
                c.execute(
                    """
                    UPDATE excel_upload_configuration
                    SET name = ?, role = ?, description = ?, active = ?, date_row = ?, name_column = ?,
                        first_name_row = ?, last_name_row = ?, first_date_column = ?, last_date_column = ?,
                        skip_values = ?, valid_patterns = ?
                    WHERE id = ?
                    """,
                    values + (profile.id,),
                )
                return profile
            except sqlite3.IntegrityError as exc:
                if _is_unique_violation(exc):
                    raise UniqueConstraintError(
                        f'Layout "{profile.name}" existiert bereits für Rolle "{profile.role}".'
                    ) from exc
                raise

    def delete(self, profile_id: int) -> bool:
        with self._use(None) as c:
            cur = c.execute("DELETE FROM excel_upload_configuration WHERE id = ?", (profile_id,))
        return cur.rowcount > 0
