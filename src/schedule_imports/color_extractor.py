"""
Ermittelt die Hintergrundfarbe einer Zelle.

Die Füllungsarten einer Zelle werden nacheinander geprüft, die erste Strategie mit
Ergebnis gewinnt:
1. direkte Hintergrundfarbe (solide Füllung, RGB/ARGB)
2. Muster-Hintergrund (RGB/ARGB)
3. Vordergrundfarbe als Markierung, reines Weiss und Schwarz zählen nicht
4. Palettenindex bzw. Designfarbe; unbekannte Indizes ergeben #INDEX<n> / #PATTERN<n>
Weitere Farb- oder Füllungsangaben werden nur im DEBUG-Log ausgegeben.
"""

from __future__ import annotations

from typing import Callable, Iterable, List, Optional

from loguru import logger

from pydantic_models.data.cell_style import (
    DirectFill,
    ForegroundFill,
    IndexedFill,
    PatternBackgroundFill,
    RawCell,
    ThemeFill,
)
from schedule_imports.palette import WorkbookPalette, normalize_rgb
from shared_modules.utils import cell_ref

# Standard-Textfarben, die manche Programme in das Vordergrundfeld schreiben
FOREGROUND_NOISE = {"#FFFFFF", "#000000"}

Strategy = Callable[[List[object], WorkbookPalette], Optional[str]]


def _first_rgb(fills: Iterable[object], kind: type) -> Optional[str]:
    for fill in fills:
        if isinstance(fill, kind):
            color = normalize_rgb(fill.rgb)
            if color:
                return color
    return None


def from_direct(fills: List[object], palette: WorkbookPalette) -> Optional[str]:
    return _first_rgb(fills, DirectFill)


def from_pattern_background(fills: List[object], palette: WorkbookPalette) -> Optional[str]:
    return _first_rgb(fills, PatternBackgroundFill)


def from_foreground(fills: List[object], palette: WorkbookPalette) -> Optional[str]:
    for fill in fills:
        if isinstance(fill, ForegroundFill):
            color = normalize_rgb(fill.rgb)
            if color and color not in FOREGROUND_NOISE:
                return color
    return None


def from_palette(fills: List[object], palette: WorkbookPalette) -> Optional[str]:
    """
    Palettenindex zuerst über die Farben der Arbeitsmappe, dann über die feste Tabelle.
    Ohne Treffer kommt ein Platzhalter zurück, damit die Farbe später zugeordnet werden kann.
    """
    for fill in fills:
        if isinstance(fill, IndexedFill):
            color = palette.lookup_index(fill.index)
            if color:
                return color
            return f"#PATTERN{fill.index}" if fill.pattern else f"#INDEX{fill.index}"
        if isinstance(fill, ThemeFill):
            color = palette.lookup_theme(fill.theme, fill.tint)
            if color:
                return color
    return None


STRATEGIES: List[Strategy] = [from_direct, from_pattern_background, from_foreground, from_palette]


def extract_color(cell: RawCell, palette: Optional[WorkbookPalette] = None) -> Optional[str]:
    """
    Liefert #RRGGBB, einen Platzhalter #INDEX<n>/#PATTERN<n> oder None für Zellen ohne Füllung.
    Eine Zelle ohne Füllung ist der Normalfall und kein Fehler.
    """
    if cell.style is None or not cell.style.fills:
        if cell.style is not None and cell.style.extras:
            logger.debug(f"{cell_ref(cell.row, cell.column)}: keine Füllung, Attribute {cell.style.extras}")
        return None
    palette = palette or WorkbookPalette()
    fills = list(cell.style.fills)

    for strategy in STRATEGIES:
        color = strategy(fills, palette)
        if color:
            logger.debug(f"{cell_ref(cell.row, cell.column)}: Farbe {color} über {strategy.__name__}")
            return color

    logger.debug(
        f"{cell_ref(cell.row, cell.column)}: keine Farbe ermittelt, Füllungen {fills}, "
        f"Attribute {cell.style.extras}"
    )
    return None
