"""
Probe-Auswertung eines Layout-Profils gegen eine hochgeladene Datei, bevor es gespeichert wird.
Es wird nichts importiert und nichts geschrieben.
"""

from __future__ import annotations

from typing import List

from loguru import logger

from pydantic_models.data.import_report import ProfileTestReport
from pydantic_models.data.layout_profile import LayoutProfile
from schedule_imports.workbook_reader import SheetGrid
from shared_modules.utils import cell_ref, to_day_of_month

SAMPLE_ROWS = 3
SAMPLE_COLUMNS = 7


def _value_type(value) -> str:
    return type(value).__name__


def check_profile(grid: SheetGrid, profile: LayoutProfile) -> ProfileTestReport:
    """
    Liest Datumszeile, Namensspalte und einen Ausschnitt (höchstens 3 Namen x 7 Tage)
    und meldet Fehler (keine Daten) und Warnungen (Daten, aber keine Tage 1..31).
    """
    report = ProfileTestReport(sheet_name=grid.sheet_name)

    for column in profile.date_columns:
        value = grid.value(profile.date_row, column)
        if value is not None:
            report.date_row_data.append({"column": column, "cell": cell_ref(profile.date_row, column),
                                         "value": value, "type": _value_type(value)})
    if not report.date_row_data:
        report.errors.append(f"No data found in date row {profile.date_row + 1}")
    elif not any(to_day_of_month(d["value"]) for d in report.date_row_data):
        report.warnings.append("Date row contains data but no valid dates (1-31) found")

    for row in profile.name_rows:
        value = grid.value(row, profile.name_column)
        if value is not None:
            report.name_column_data.append({"row": row, "cell": cell_ref(row, profile.name_column),
                                            "value": value, "type": _value_type(value)})
    if not report.name_column_data:
        report.errors.append(
            f"No names found in {cell_ref(profile.first_name_row, profile.name_column)}:"
            f"{cell_ref(profile.last_name_row, profile.name_column)}"
        )

    sample_rows: List[int] = list(profile.name_rows)[:SAMPLE_ROWS]
    sample_columns: List[int] = list(profile.date_columns)[:SAMPLE_COLUMNS]
    for row in sample_rows:
        for column in sample_columns:
            cell = grid.cell(row, column)
            if cell.value is None:
                continue
            report.sample_schedule_data.append({
                "cell": cell_ref(row, column),
                "value": cell.value,
                "hasStyle": bool(cell.style and cell.style.fills),
            })

    logger.info(
        f"Layout '{profile.name}' geprüft: {len(report.errors)} Fehler, {len(report.warnings)} Warnungen."
    )
    return report
