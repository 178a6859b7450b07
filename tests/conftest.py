from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

import pytest
import yaml
from openpyxl import Workbook
from openpyxl.styles import PatternFill

from shared_modules.config import Config
from shared_modules.database import init_schema

Cells = Dict[Tuple[int, int], Any]

# OPERATOR-Layout: Tage in Zeile 13 ab Spalte C, Namen in Spalte B ab Zeile 15 (nullbasiert 12/2/1/14)
OPERATOR_DATE_ROW = 12
OPERATOR_FIRST_NAME_ROW = 14
PRODUCER_DATE_ROW = 4
PRODUCER_FIRST_NAME_ROW = 5
NAME_COLUMN = 1
FIRST_DATE_COLUMN = 2


def workbook_bytes(values: Cells, fills: Optional[Dict[Tuple[int, int], str]] = None, title: str = "Plan") -> bytes:
    """Arbeitsmappe mit Werten und soliden Füllungen, Koordinaten nullbasiert."""
    wb = Workbook()
    ws = wb.active
    ws.title = title
    for (row, column), value in values.items():
        ws.cell(row=row + 1, column=column + 1, value=value)
    for (row, column), color in (fills or {}).items():
        ws.cell(row=row + 1, column=column + 1).fill = PatternFill(fill_type="solid", fgColor=color)
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def schedule_sheet(
    names: Sequence[Any],
    days: Iterable[Any],
    shifts: Optional[Dict[Tuple[int, int], Tuple[Any, Optional[str]]]] = None,
    date_row: int = OPERATOR_DATE_ROW,
    first_name_row: int = OPERATOR_FIRST_NAME_ROW,
) -> bytes:
    """
    Dienstplan im Layout einer Rolle. shifts: (Namensindex, Tagesindex) -> (Zellwert, Füllfarbe).
    """
    values: Cells = {}
    fills: Dict[Tuple[int, int], str] = {}
    for offset, day in enumerate(days):
        values[(date_row, FIRST_DATE_COLUMN + offset)] = day
    for offset, name in enumerate(names):
        values[(first_name_row + offset, NAME_COLUMN)] = name
    for (name_idx, day_idx), (value, color) in (shifts or {}).items():
        position = (first_name_row + name_idx, FIRST_DATE_COLUMN + day_idx)
        values[position] = value
        if color:
            fills[position] = color
    return workbook_bytes(values, fills)


@pytest.fixture
def make_schedule():
    return schedule_sheet


@pytest.fixture
def make_workbook():
    return workbook_bytes


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return init_schema(tmp_path / "data" / "teamplan.sqlite3")


@pytest.fixture
def config_factory(tmp_path: Path):
    """Schreibt eine Config-Datei nach tmp_path und lädt sie als frische Singleton-Instanz."""

    def _make(**sections: Dict[str, Any]) -> Config:
        (tmp_path / "data").mkdir(exist_ok=True)
        payload: Dict[str, Any] = {
            "structure": {"prj_root": str(tmp_path)},
            "database": {"sqlite_db_name": "teamplan.sqlite3"},
            "logging": {"log_level": "DEBUG"},
        }
        for name, values in sections.items():
            payload.setdefault(name, {}).update(values)
        config_path = tmp_path / "teamplan_config.yaml"
        config_path.write_text(yaml.safe_dump(payload), encoding="utf-8")
        Config.reset()
        return Config(config_path)

    yield _make
    Config.reset()


@pytest.fixture
def config(config_factory) -> Config:
    return config_factory()
