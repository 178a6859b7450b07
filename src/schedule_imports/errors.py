"""Fehlerklassen des Dienstplan-Imports."""

from typing import List, Optional


class ScheduleImportError(Exception):
    """Basisklasse. details enthält lesbare Gründe für die Antwort an den Aufrufer."""

    def __init__(self, message: str, details: Optional[List[str]] = None):
        super().__init__(message)
        self.details: List[str] = details or [message]


class UnsupportedRoleError(ScheduleImportError):
    """Für die Rolle gibt es weder ein eingebautes noch ein gespeichertes Layout."""


class UnsupportedFileFormatError(ScheduleImportError):
    """Die Datei ist weder xlsx noch xls."""


class SheetStructureError(ScheduleImportError):
    """Das Blatt passt nicht zum erwarteten Layout."""


class NoDatesFoundError(SheetStructureError):
    """In der Datumszeile steht kein Tag 1..31."""


class NoNamesFoundError(SheetStructureError):
    """In der Namensspalte steht kein gültiger Name."""


class UniqueConstraintError(ScheduleImportError):
    """(user_id, date) existiert bereits in team_schedule."""


class StoreUnavailableError(ScheduleImportError):
    """Die Datenbank ist nicht erreichbar oder der Schreibvorgang ist gescheitert."""
