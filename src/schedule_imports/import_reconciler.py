"""
Abgleich der gelesenen Einträge mit der Benutzerverwaltung und Übernahme in den Dienstplan.

Vorschau: nur Abgleich und Bericht, es wird nichts geschrieben.
Import: unbekannte Farben als Platzhalter in die Legende, dann den Monat ersetzen
(Löschen und Einfügen in einer Transaktion). Bereits vorhandene (user_id, date)
werden als übersprungen gezählt. Importe desselben Monats laufen nacheinander.
"""

from __future__ import annotations

import sqlite3
import threading
from typing import Dict, List, Optional, Set, Tuple

from loguru import logger

from pydantic_models.data.directory_user import DirectoryUser
from pydantic_models.data.import_report import MatchingReport, ReconcileResult
from pydantic_models.data.schedule_entry import PersistedScheduleRow, ScheduleEntry
from schedule_imports.color_legend_resolver import DEFAULT_DISTANCE_THRESHOLD, ColorLegendResolver, placeholder_entry
from schedule_imports.errors import StoreUnavailableError, UniqueConstraintError
from schedule_imports.name_matcher import NameMatcher
from schedule_imports.stores import ColorLegendStore, ScheduleStore, UserDirectory
from shared_modules.utils import month_bounds

_month_locks: Dict[Tuple[int, int], threading.Lock] = {}
_registry_lock = threading.Lock()


def month_lock(year: int, month: int) -> threading.Lock:
    """Ein Lock je (Jahr, Monat) für diesen Prozess."""
    with _registry_lock:
        return _month_locks.setdefault((year, month), threading.Lock())


class ImportReconciler:

    def __init__(
        self,
        users: UserDirectory,
        legends: ColorLegendStore,
        schedules: ScheduleStore,
        matcher: Optional[NameMatcher] = None,
        placeholder_shift_name: str = "Unnamed Shift",
        color_distance_threshold: float = DEFAULT_DISTANCE_THRESHOLD,
        replace_scope: str = "month",
    ):
        self.users = users
        self.legends = legends
        self.schedules = schedules
        self.matcher = matcher or NameMatcher()
        self.placeholder_shift_name = placeholder_shift_name
        self.color_distance_threshold = color_distance_threshold
        self.replace_scope = replace_scope

    def match_entries(self, entries: List[ScheduleEntry]) -> Tuple[List[ScheduleEntry], MatchingReport]:
        """
        Ordnet jedem Eintrag höchstens einen Benutzer seiner Rolle zu. Doppelte
        (Benutzer, Tag) innerhalb der Datei fallen heraus und landen in duplicates.
        Liefert die verbleibenden Einträge (zugeordnet und nicht zugeordnet) und den Bericht.
        """
        report = MatchingReport()
        processed: List[ScheduleEntry] = []
        seen: Set[Tuple[int, str]] = set()
        candidates: Dict[str, List[DirectoryUser]] = {}

        for entry in entries:
            report.total_entries += 1
            if entry.role not in candidates:
                candidates[entry.role] = self.users.list_users(entry.role)
            user = self.matcher.match(entry.name, candidates[entry.role])

            if user is None:
                report.unmatched_users += 1
                report.unmatched_names.append(entry.name)
                processed.append(entry)
                continue

            key = (user.id, entry.date.isoformat())
            if key in seen:
                report.duplicates.append(f"{entry.name} on {entry.date.isoformat()}")
                logger.debug(f"Doppelter Eintrag übersprungen: {entry.name} am {entry.date.isoformat()}")
                continue
            seen.add(key)
            report.matched_users += 1
            processed.append(entry.model_copy(update={"matched_user_id": user.id, "matched_user_name": user.name}))

        logger.info(
            f"Abgleich: {report.total_entries} Einträge, {report.matched_users} zugeordnet, "
            f"{report.unmatched_users} ohne Benutzer, {len(report.duplicates)} doppelt."
        )
        return processed, report

    def reconcile(
        self,
        entries: List[ScheduleEntry],
        month: int,
        year: int,
        role: str,
        preview: bool = True,
    ) -> ReconcileResult:
        """
        Raises:
            StoreUnavailableError: Die Datenbank ist beim Ersetzen des Monats nicht verfügbar.
                Die Transaktion wird dann vollständig zurückgerollt.
        """
        processed, report = self.match_entries(entries)
        if preview:
            return ReconcileResult(preview=True, entries=processed, matching_report=report)

        matched = [entry for entry in processed if entry.matched_user_id is not None]
        if not matched:
            logger.warning(f"Keine Einträge zugeordnet, Monat {month:02d}/{year} bleibt unverändert.")
            return ReconcileResult(preview=False, entries=processed, matching_report=report)

        role = role.upper()
        start, end = month_bounds(year, month)
        scope_role = role if self.replace_scope == "role" else None
        imported = skipped = 0

        with month_lock(year, month):
            try:
                with self.schedules.transaction() as conn:
                    new_colors = self._register_new_colors(processed, role, conn)
                    deleted = self.schedules.delete_range(start, end, role=scope_role, conn=conn)
                    logger.info(f"{deleted} bestehende Einträge für {month:02d}/{year} gelöscht.")
                    for entry in matched:
                        row = PersistedScheduleRow(
                            date=entry.date,
                            user_id=entry.matched_user_id,
                            shift_color=entry.shift_color,
                            shift_hours=entry.shift_hours,
                        )
                        try:
                            self.schedules.create(row, conn=conn)
                            imported += 1
                        except UniqueConstraintError as exc:
                            logger.debug(f"Übersprungen: {exc}")
                            skipped += 1
            except sqlite3.Error as exc:
                logger.exception(f"Import {month:02d}/{year} fehlgeschlagen, Transaktion zurückgerollt.")
                raise StoreUnavailableError("Schedule store unavailable", details=[str(exc)]) from exc

        logger.info(f"Import {month:02d}/{year} ({role}): {imported} angelegt, {skipped} übersprungen.")
        return ReconcileResult(
            preview=False,
            entries=processed,
            matching_report=report,
            imported=imported,
            skipped=skipped,
            deleted=deleted,
            new_colors_detected=len(new_colors),
            detected_colors=new_colors,
        )

    def _register_new_colors(self, entries: List[ScheduleEntry], role: str, conn: sqlite3.Connection) -> List[str]:
        """
        Legt für jede Farbe ohne passenden Legendeneintrag (weder exakt noch ähnlich)
        einen Platzhalter an. Liefert die neu angelegten Farbcodes.
        """
        resolver = ColorLegendResolver(self.legends.list_legends(role, conn=conn), self.color_distance_threshold)
        created: List[str] = []
        for color in dict.fromkeys(e.shift_color.upper() for e in entries if e.shift_color):
            if resolver.resolve(color, role) is not None:
                continue
            try:
                self.legends.create_legend(placeholder_entry(color, role, self.placeholder_shift_name), conn=conn)
            except UniqueConstraintError:
                continue
            created.append(color)
            logger.info(f"Neue Farbe {color} für {role} als Platzhalter in die Legende übernommen.")
        return created
