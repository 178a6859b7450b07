"""
Einstiegspunkt für Oberfläche und Kommandozeile: verbindet Config, Stores und Pipeline.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import pandas as pd
from loguru import logger

from pydantic_models.data.import_report import ProfileTestReport, ReconcileResult
from pydantic_models.data.layout_profile import LayoutProfile
from pydantic_models.data.schedule_entry import PersistedScheduleRow
from schedule_imports.color_legend_resolver import ColorLegendResolver
from schedule_imports.configuration_tester import check_profile
from schedule_imports.errors import ScheduleImportError
from schedule_imports.import_reconciler import ImportReconciler, month_lock
from schedule_imports.layout_resolver import LayoutResolver, infer_role
from schedule_imports.name_matcher import NameMatcher
from schedule_imports.schedule_extractor import ScheduleExtractor
from schedule_imports.stores import ColorLegendStore, LayoutProfileStore, ScheduleStore, UserDirectory
from schedule_imports.workbook_reader import load_sheet
from shared_modules.config import Config
from shared_modules.database import init_schema
from shared_modules.utils import ensure_dir, month_bounds

ALL_ROLES = "ALL"


def _check_period(month: int, year: int) -> None:
    if not 1 <= month <= 12:
        raise ScheduleImportError("Invalid month", details=[f"Monat muss zwischen 1 und 12 liegen, nicht {month}."])
    if not 1900 <= year <= 9999:
        raise ScheduleImportError("Invalid year", details=[f"Ungültiges Jahr: {year}."])


class ScheduleImportService:
    """
    Hält die Stores für eine Datenbank und führt Import, Vorschau und Monatslöschung aus.
    Das Schema wird beim Anlegen geprüft bzw. erzeugt.
    """

    def __init__(self, config: Config):
        self.config = config
        self.settings = config.schedule_import
        self.db_path = init_schema(config.db_path)
        self.users = UserDirectory(self.db_path)
        self.legends = ColorLegendStore(self.db_path)
        self.schedules = ScheduleStore(self.db_path)
        self.profiles = LayoutProfileStore(self.db_path)
        self.layout_resolver = LayoutResolver(self.profiles)

    def resolve_role(self, filename: Optional[str], role: Optional[str]) -> str:
        return infer_role(filename, role, self.settings.role_filename_hints, self.settings.default_role)

    def import_schedule(
        self,
        data: bytes,
        month: int,
        year: int,
        role: Optional[str] = None,
        filename: Optional[str] = None,
        preview: bool = True,
    ) -> ReconcileResult:
        """
        Liest die Datei, gleicht die Namen ab und ersetzt ausserhalb der Vorschau den Monat.

        Raises:
            UnsupportedFileFormatError, UnsupportedRoleError, NoDatesFoundError,
            NoNamesFoundError, StoreUnavailableError
        """
        _check_period(month, year)
        role = self.resolve_role(filename, role)
        logger.info(
            f"{'Vorschau' if preview else 'Import'} {filename or '<upload>'}: {month:02d}/{year}, Rolle {role}"
        )

        grid = load_sheet(data, self.settings.sheet_name)
        legend_resolver = ColorLegendResolver(self.legends.list_legends(role), self.settings.color_distance_threshold)
        entries = ScheduleExtractor(self.layout_resolver, legend_resolver).extract(grid, month, year, role)

        reconciler = ImportReconciler(
            self.users,
            self.legends,
            self.schedules,
            matcher=NameMatcher(self.settings.name_match_threshold),
            placeholder_shift_name=self.settings.placeholder_shift_name,
            color_distance_threshold=self.settings.color_distance_threshold,
            replace_scope=self.settings.replace_scope,
        )
        return reconciler.reconcile(entries, month, year, role, preview=preview)

    def delete_month(self, month: int, year: int, role: Optional[str] = None) -> int:
        """
        Löscht die gespeicherten Einträge eines Monats, mit Rolle nur die ihrer Benutzer.
        role=None oder "ALL" löscht alle.
        """
        _check_period(month, year)
        start, end = month_bounds(year, month)
        scope = None if not role or role.upper() == ALL_ROLES else role.upper()
        with month_lock(year, month):
            deleted = self.schedules.delete_range(start, end, role=scope)
        logger.info(f"{deleted} Einträge für {month:02d}/{year} ({scope or ALL_ROLES}) gelöscht.")
        return deleted

    def list_month(self, month: int, year: int, role: Optional[str] = None) -> List[PersistedScheduleRow]:
        _check_period(month, year)
        scope = None if not role or role.upper() == ALL_ROLES else role
        return self.schedules.list_month(year, month, scope)

    def test_configuration(self, data: bytes, profile: LayoutProfile) -> ProfileTestReport:
        return check_profile(load_sheet(data, self.settings.sheet_name), profile)

    def export_entries(self, result: ReconcileResult, month: int, year: int) -> Path:
        """
        Schreibt die abgeglichenen Einträge als Excel-Datei ins Output-Verzeichnis:
        output/dienstplan_{yyyy-mm}.xlsx
        """
        output_dir = ensure_dir(self.config.prj_root / (self.config.structure.output_path or "output"))
        out_file = output_dir / f"dienstplan_{year}-{month:02d}.xlsx"
        df = pd.DataFrame([entry.as_dict() for entry in result.entries])
        with pd.ExcelWriter(out_file, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name="dienstplan", index=False)
        logger.info(f"Export-Datei geschrieben: {out_file}")
        return out_file
