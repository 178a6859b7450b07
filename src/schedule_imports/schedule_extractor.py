"""
Liest die Einträge eines Dienstplan-Blatts anhand eines Layout-Profils.

Ablauf:
- Datumszeile im Spaltenbereich lesen, gültig sind nur ganze Zahlen 1..31.
- Namensspalte im Zeilenbereich lesen, gültig sind nur Namen aus Buchstaben
  (inkl. rumänischer Sonderzeichen), Leerzeichen, Bindestrich und Punkt.
- Jede gefüllte Zelle im Raster Name x Tag wird zu einem Eintrag, ausser leeren Zellen,
  Wochentagskürzeln (l/m/j/v/s/d) und Skip-Werten des Profils.
Einzelne fehlerhafte Zellen werden übersprungen, nie das ganze Blatt.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional

from loguru import logger

from pydantic_models.data.layout_profile import LayoutProfile
from pydantic_models.data.schedule_entry import ScheduleEntry
from schedule_imports.color_extractor import extract_color
from schedule_imports.color_legend_resolver import ColorLegendResolver
from schedule_imports.errors import NoDatesFoundError, NoNamesFoundError
from schedule_imports.layout_resolver import LayoutResolver
from schedule_imports.workbook_reader import SheetGrid
from shared_modules.utils import build_month_date, cell_ref, to_day_of_month

NAME_PATTERN = re.compile(r"^[A-Za-zăâîșțşţĂÂÎȘȚŞŢ .\-]+$")
HEADER_WORDS = {"NUME", "NAME"}
# rumänische Wochentagskürzel in der Zeile unter den Tageszahlen
DAY_ABBREVIATIONS = {"l", "m", "j", "v", "s", "d"}


def is_valid_name(value) -> bool:
    if not isinstance(value, str):
        return False
    name = value.strip()
    return len(name) > 2 and bool(NAME_PATTERN.match(name)) and name.upper() not in HEADER_WORDS


def scan_dates(grid: SheetGrid, profile: LayoutProfile) -> Dict[int, int]:
    """Spalte -> Tag des Monats für alle gültigen Zellen der Datumszeile."""
    dates: Dict[int, int] = {}
    for column in profile.date_columns:
        day = to_day_of_month(grid.value(profile.date_row, column))
        if day is not None:
            dates[column] = day
    return dates


def scan_names(grid: SheetGrid, profile: LayoutProfile) -> Dict[int, str]:
    """Zeile -> Name für alle gültigen Zellen der Namensspalte."""
    names: Dict[int, str] = {}
    for row in profile.name_rows:
        value = grid.value(row, profile.name_column)
        if is_valid_name(value):
            names[row] = value.strip()
        elif value not in (None, ""):
            logger.debug(f"{cell_ref(row, profile.name_column)}: '{value}' ist kein gültiger Name.")
    return names


class ScheduleExtractor:
    """
    Verbindet Layout, Farbermittlung und Farblegende zu einer flachen Liste von Einträgen.
    """

    def __init__(self, layout_resolver: LayoutResolver, legend_resolver: Optional[ColorLegendResolver] = None):
        self.layout_resolver = layout_resolver
        self.legend_resolver = legend_resolver or ColorLegendResolver([])

    def extract(self, grid: SheetGrid, month: int, year: int, role: str) -> List[ScheduleEntry]:
        """
        Raises:
            UnsupportedRoleError: Kein Layout für die Rolle.
            NoDatesFoundError: Keine gültige Tageszahl in der Datumszeile.
            NoNamesFoundError: Kein gültiger Name in der Namensspalte.
        """
        role = role.upper()
        profile = self.layout_resolver.resolve(role)

        dates = scan_dates(grid, profile)
        if not dates:
            raise NoDatesFoundError(
                "No dates found",
                details=[
                    f"Keine Tageszahlen 1-31 in Zeile {profile.date_row + 1} "
                    f"({cell_ref(profile.date_row, profile.first_date_column)}:"
                    f"{cell_ref(profile.date_row, profile.last_date_column)})."
                ],
            )
        logger.info(f"{len(dates)} Tage in der Datumszeile gefunden.")

        names = scan_names(grid, profile)
        if not names:
            raise NoNamesFoundError(
                "No names found",
                details=[
                    f"Keine gültigen Namen in {cell_ref(profile.first_name_row, profile.name_column)}:"
                    f"{cell_ref(profile.last_name_row, profile.name_column)}."
                ],
            )
        logger.info(f"{len(names)} Namen gefunden: {', '.join(names.values())}")

        entries: List[ScheduleEntry] = []
        for row, name in names.items():
            for column, day in dates.items():
                entry = self._entry_for_cell(grid, row, column, name, day, month, year, profile)
                if entry is not None:
                    entries.append(entry)

        logger.info(f"{len(entries)} Einträge aus Blatt '{grid.sheet_name}' gelesen.")
        return entries

    def _entry_for_cell(
        self,
        grid: SheetGrid,
        row: int,
        column: int,
        name: str,
        day: int,
        month: int,
        year: int,
        profile: LayoutProfile,
    ) -> Optional[ScheduleEntry]:
        cell = grid.cell(row, column)
        text = cell.text
        if not text or text.lower() in DAY_ABBREVIATIONS or profile.is_skip_value(text):
            return None

        entry_date = build_month_date(year, month, day)
        if entry_date is None:
            logger.debug(f"{cell_ref(row, column)}: Tag {day} existiert nicht in {month:02d}/{year}, übersprungen.")
            return None

        color = extract_color(cell, grid.palette)
        legend = self.legend_resolver.resolve(color, profile.role)
        return ScheduleEntry(
            name=name,
            date=entry_date,
            role=profile.role,
            shift_hours=text,
            shift_color=color,
            shift_name=legend.shift_name if legend else None,
            time_range=legend.time_range if legend else None,
        )
