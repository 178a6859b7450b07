"""
Liest das erste (oder ein benanntes) Tabellenblatt einer hochgeladenen Datei als Zellraster.

xlsx wird mit openpyxl gelesen, das alte Binärformat xls mit xlrd (formatting_info=True,
sonst fehlen die Füllfarben). Beide liefern RawCell-Objekte mit nullbasierten Koordinaten
und einem CellStyle, der nur die tatsächlich vorhandenen Füllungsarten enthält.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from io import BytesIO
from typing import Any, Dict, List, Optional

import xlrd
from loguru import logger
from openpyxl import load_workbook
from openpyxl.styles.colors import COLOR_INDEX, Color

from pydantic_models.data.cell_style import (
    CellStyle,
    DirectFill,
    ForegroundFill,
    IndexedFill,
    PatternBackgroundFill,
    RawCell,
    ThemeFill,
)
from schedule_imports.errors import UnsupportedFileFormatError
from schedule_imports.palette import WorkbookPalette, normalize_rgb, parse_theme_colors, rgb_to_hex

XLSX_MAGIC = b"PK\x03\x04"
XLS_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


class SheetGrid(ABC):
    """
    Zugriff auf ein Tabellenblatt über nullbasierte Koordinaten.
    Zellen ausserhalb des benutzten Bereichs sind leer (value None, kein Stil).
    """

    sheet_name: str = ""
    palette: WorkbookPalette

    @abstractmethod
    def cell(self, row: int, column: int) -> RawCell:
        ...

    def value(self, row: int, column: int) -> Any:
        return self.cell(row, column).value


# --------------------------------------------------------------------- #
# xlsx (openpyxl)
# --------------------------------------------------------------------- #

# openpyxl schreibt "00000000" für eine automatische, transparente Farbe
_AUTO_RGB = "00000000"


def _color_descriptor(color: Optional[Color], rgb_kind, pattern: bool) -> Optional[Any]:
    """
    Übersetzt ein openpyxl-Color-Objekt in die passende Füllungsart.
    Der Farbtyp muss vor dem Zugriff auf .rgb geprüft werden, openpyxl liefert sonst einen Fehlertext.
    """
    if color is None:
        return None
    if color.type == "rgb":
        if not isinstance(color.rgb, str) or color.rgb == _AUTO_RGB:
            return None
        return rgb_kind(rgb=color.rgb)
    if color.type == "indexed" and color.indexed is not None:
        return IndexedFill(index=color.indexed, pattern=pattern)
    if color.type == "theme" and color.theme is not None:
        return ThemeFill(theme=color.theme, tint=color.tint or 0.0)
    return None


def style_from_openpyxl(cell) -> CellStyle:
    """
    Solide Füllung: fgColor ist die sichtbare Hintergrundfarbe, bgColor ist nicht zu sehen.
    Muster-Füllung: fgColor ist die Vordergrundfarbe des Musters, bgColor der Muster-Hintergrund.
    Schriftfarbe und Farbverläufe landen nur in extras.

    cell.fill ist bei geladenen Zellen ein StyleProxy, deshalb wird über die Attribute
    gelesen und nicht über den Typ.
    """
    fills: List[Any] = []
    extras: Dict[str, Any] = {}
    fill = cell.fill
    pattern_type = getattr(fill, "patternType", None)

    if pattern_type:
        extras["fill.patternType"] = pattern_type
        if pattern_type == "solid":
            descriptors = [_color_descriptor(fill.fgColor, DirectFill, pattern=False)]
        else:
            descriptors = [
                _color_descriptor(fill.fgColor, ForegroundFill, pattern=False),
                _color_descriptor(fill.bgColor, PatternBackgroundFill, pattern=True),
            ]
        fills.extend(d for d in descriptors if d is not None)
    elif getattr(fill, "tagname", None) == "gradientFill" and fill.stop:
        extras["fill.gradient.stops"] = [getattr(stop.color, "rgb", None) for stop in fill.stop]

    font_color = getattr(cell.font, "color", None)
    if font_color is not None and font_color.type == "rgb":
        extras["font.color"] = font_color.rgb
    return CellStyle(fills=fills, extras=extras)


def _custom_palette(wb) -> Dict[int, str]:
    """
    Eigene Palette der Arbeitsmappe (indexedColors in styles.xml). Entspricht sie der
    Standardpalette, bleibt sie leer und die feste Tabelle gilt.
    """
    custom = getattr(wb, "_colors", None)
    if custom is not None and not isinstance(custom, (list, tuple)):
        custom = getattr(custom, "index", None)
    if not custom or tuple(custom) == tuple(COLOR_INDEX):
        return {}
    indexed: Dict[int, str] = {}
    for idx, value in enumerate(custom):
        color = normalize_rgb(value)
        if color:
            indexed[idx] = color
    return indexed


class OpenpyxlGrid(SheetGrid):

    def __init__(self, data: bytes, sheet_name: Optional[str] = None):
        wb = load_workbook(BytesIO(data), data_only=True)
        if sheet_name:
            if sheet_name not in wb.sheetnames:
                raise UnsupportedFileFormatError(f"Sheet '{sheet_name}' fehlt in der Datei.")
            self.ws = wb[sheet_name]
        else:
            self.ws = wb.worksheets[0]
        self.sheet_name = self.ws.title

        indexed = _custom_palette(wb)
        self.palette = WorkbookPalette(indexed=indexed, theme=parse_theme_colors(getattr(wb, "loaded_theme", None)))
        logger.debug(
            f"xlsx geladen: Blatt '{self.sheet_name}', {self.ws.max_row} Zeilen, {self.ws.max_column} Spalten, "
            f"{len(indexed)} eigene Palettenfarben"
        )

    def cell(self, row: int, column: int) -> RawCell:
        if row >= self.ws.max_row or column >= self.ws.max_column:
            return RawCell(row=row, column=column)
        cell = self.ws.cell(row=row + 1, column=column + 1)
        return RawCell(row=row, column=column, value=cell.value, style=style_from_openpyxl(cell))


# --------------------------------------------------------------------- #
# xls (xlrd)
# --------------------------------------------------------------------- #

_XLRD_EMPTY_TYPES = (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR)
_XLS_SOLID_PATTERN = 1


class XlrdGrid(SheetGrid):

    def __init__(self, data: bytes, sheet_name: Optional[str] = None):
        self.book = xlrd.open_workbook(file_contents=data, formatting_info=True)
        if sheet_name:
            if sheet_name not in self.book.sheet_names():
                raise UnsupportedFileFormatError(f"Sheet '{sheet_name}' fehlt in der Datei.")
            self.sheet = self.book.sheet_by_name(sheet_name)
        else:
            self.sheet = self.book.sheet_by_index(0)
        self.sheet_name = self.sheet.name
        indexed = {idx: rgb_to_hex(*rgb) for idx, rgb in self.book.colour_map.items() if rgb}
        self.palette = WorkbookPalette(indexed=indexed)
        logger.debug(f"xls geladen: Blatt '{self.sheet_name}', {self.sheet.nrows} Zeilen, {self.sheet.ncols} Spalten")

    def _style(self, xf_index: int) -> CellStyle:
        xf = self.book.xf_list[xf_index]
        fills: List[Any] = []
        background = xf.background
        if background.fill_pattern:
            # bei solider Füllung trägt pattern_colour_index die Zellfarbe, der Hintergrund ist verdeckt
            fills.append(IndexedFill(index=background.pattern_colour_index))
            if background.fill_pattern != _XLS_SOLID_PATTERN:
                fills.append(IndexedFill(index=background.background_colour_index, pattern=True))
        extras = {
            "background.fill_pattern": background.fill_pattern,
            "font.colour_index": self.book.font_list[xf.font_index].colour_index,
        }
        return CellStyle(fills=fills, extras=extras)

    def cell(self, row: int, column: int) -> RawCell:
        if row >= self.sheet.nrows or column >= self.sheet.ncols:
            return RawCell(row=row, column=column)
        cell = self.sheet.cell(row, column)
        if cell.ctype in _XLRD_EMPTY_TYPES:
            value = None
        elif cell.ctype == xlrd.XL_CELL_BOOLEAN:
            value = bool(cell.value)
        else:
            value = cell.value
        return RawCell(row=row, column=column, value=value, style=self._style(cell.xf_index))


def load_sheet(data: bytes, sheet_name: Optional[str] = None) -> SheetGrid:
    """
    Erkennt das Format am Dateianfang und liefert das passende Raster.

    Raises:
        UnsupportedFileFormatError: Weder xlsx (ZIP) noch xls (OLE2), oder das Blatt fehlt.
    """
    if data[:4] == XLSX_MAGIC:
        return OpenpyxlGrid(data, sheet_name)
    if data[:8] == XLS_MAGIC:
        return XlrdGrid(data, sheet_name)
    raise UnsupportedFileFormatError(
        "Unsupported file format",
        details=["Die Datei ist weder eine xlsx- noch eine xls-Arbeitsmappe."],
    )
