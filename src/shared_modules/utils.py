from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from openpyxl.utils import get_column_letter


def ensure_dir(path: Path) -> Path:
    """Erzeugt ein Verzeichnis (rekursiv), falls es fehlt, und gibt den Pfad zurück."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def _float_to_day(v: float) -> Optional[int]:
    return int(v) if v.is_integer() else None


# bool ist eine Unterklasse von int, darf aber nie als Tag gelten
_DAY_CONVERTERS: Dict[type, Callable[[Any], Optional[int]]] = {
    bool: lambda _v: None,
    int: lambda v: v,
    float: _float_to_day,
}


def to_day_of_month(v: Any) -> Optional[int]:
    """
    Typbasierte Umwandlung eines Zellwerts in einen Tag des Monats (1..31).
    Texte, Formeln und Kommazahlen ergeben None.
    """
    conv = _DAY_CONVERTERS.get(type(v))
    day = conv(v) if conv else None
    if day is None or not 1 <= day <= 31:
        return None
    return day


def build_month_date(year: int, month: int, day: int) -> Optional[date]:
    """
    Baut das Datum year-month-day. Liefert None, wenn es den Tag im Monat nicht gibt
    (z.B. 31. April), statt in den Folgemonat zu rutschen.
    """
    try:
        return date(year, month, day)
    except ValueError:
        return None


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """
    Erster Tag des Monats und erster Tag des Folgemonats, also das halboffene Intervall [start, end).
    """
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


def cell_ref(row: int, column: int) -> str:
    """Nullbasierte Koordinaten als Excel-Adresse, z.B. (12, 2) -> 'C13'."""
    return f"{get_column_letter(column + 1)}{row + 1}"
