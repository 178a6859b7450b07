"""
Farbpaletten für Palettenindizes und Designfarben.

Eine einzige Tabelle für alle Lesepfade (xlsx und xls). Indizes 0..63 sind die
Standardpalette von Excel; 64 und 65 (Systemfarben) bleiben bewusst unbelegt.
"""

from __future__ import annotations

import colorsys
import xml.etree.ElementTree as ET
from typing import Dict, List, Mapping, Optional

INDEXED_COLORS: Dict[int, str] = {
    0: "#000000", 1: "#FFFFFF", 2: "#FF0000", 3: "#00FF00",
    4: "#0000FF", 5: "#FFFF00", 6: "#FF00FF", 7: "#00FFFF",
    8: "#000000", 9: "#FFFFFF", 10: "#FF0000", 11: "#00FF00",
    12: "#0000FF", 13: "#FFFF00", 14: "#FF00FF", 15: "#00FFFF",
    16: "#800000", 17: "#008000", 18: "#000080", 19: "#808000",
    20: "#800080", 21: "#008080", 22: "#C0C0C0", 23: "#808080",
    24: "#9999FF", 25: "#993366", 26: "#FFFFCC", 27: "#CCFFFF",
    28: "#660066", 29: "#FF8080", 30: "#0066CC", 31: "#CCCCFF",
    32: "#000080", 33: "#FF00FF", 34: "#FFFF00", 35: "#00FFFF",
    36: "#800080", 37: "#800000", 38: "#008080", 39: "#0000FF",
    40: "#00CCFF", 41: "#CCFFFF", 42: "#CCFFCC", 43: "#FFFF99",
    44: "#99CCFF", 45: "#FF99CC", 46: "#CC99FF", 47: "#FFCC99",
    48: "#3366FF", 49: "#33CCCC", 50: "#99CC00", 51: "#FFCC00",
    52: "#FF9900", 53: "#FF6600", 54: "#666699", 55: "#969696",
    56: "#003366", 57: "#339966", 58: "#003300", 59: "#333300",
    60: "#993300", 61: "#993366", 62: "#333399", 63: "#333333",
    # Tooltip-Farben (0x50/0x51), von LibreOffice und älteren Exporten als Füllung geschrieben
    80: "#FFFFE1", 81: "#000000",
}

# Office-Standarddesign, Reihenfolge nach Designindex (lt1, dk1, lt2, dk2, accent1..6, hlink, folHlink)
DEFAULT_THEME_COLORS: List[str] = [
    "#FFFFFF", "#000000", "#E7E6E6", "#44546A",
    "#4472C4", "#ED7D31", "#A5A5A5", "#FFC000",
    "#5B9BD5", "#70AD47", "#0563C1", "#954F72",
]

_DRAWING_NS = "{http://schemas.openxmlformats.org/drawingml/2006/main}"
# Reihenfolge im clrScheme der theme1.xml; Excel vertauscht dk/lt beim Designindex
_SCHEME_ORDER = ["dk1", "lt1", "dk2", "lt2", "accent1", "accent2", "accent3",
                 "accent4", "accent5", "accent6", "hlink", "folHlink"]
_THEME_INDEX_ORDER = ["lt1", "dk1", "lt2", "dk2", "accent1", "accent2", "accent3",
                      "accent4", "accent5", "accent6", "hlink", "folHlink"]


def rgb_to_hex(r: int, g: int, b: int) -> str:
    return f"#{r:02X}{g:02X}{b:02X}"


def hex_to_rgb(color: str) -> tuple[int, int, int]:
    value = color.lstrip("#")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


def normalize_rgb(value: Optional[str]) -> Optional[str]:
    """
    ARGB (8 Zeichen) -> #RRGGBB ohne Alpha, RGB (6 Zeichen) unverändert, alles andere None.
    """
    if not isinstance(value, str):
        return None
    value = value.strip().lstrip("#")
    if len(value) == 8:
        value = value[2:]
    if len(value) != 6:
        return None
    try:
        int(value, 16)
    except ValueError:
        return None
    return f"#{value.upper()}"


def apply_tint(color: str, tint: float) -> str:
    """
    Aufhellen (tint > 0) oder Abdunkeln (tint < 0) einer Designfarbe über die Helligkeit im HLS-Raum.
    """
    if not tint:
        return color
    r, g, b = (c / 255.0 for c in hex_to_rgb(color))
    h, lum, s = colorsys.rgb_to_hls(r, g, b)
    lum = lum * (1.0 + tint) if tint < 0 else lum * (1.0 - tint) + tint
    r, g, b = colorsys.hls_to_rgb(h, min(max(lum, 0.0), 1.0), s)
    return rgb_to_hex(round(r * 255), round(g * 255), round(b * 255))


def parse_theme_colors(theme_xml: Optional[bytes]) -> List[str]:
    """
    Liest die zwölf Designfarben aus einer theme1.xml. Ohne oder mit unlesbarem Design
    kommt eine leere Liste zurück, der Aufrufer fällt dann auf das Standarddesign zurück.
    """
    if not theme_xml:
        return []
    try:
        root = ET.fromstring(theme_xml)
    except ET.ParseError:
        return []
    scheme = root.find(f".//{_DRAWING_NS}clrScheme")
    if scheme is None:
        return []
    found: Dict[str, str] = {}
    for name in _SCHEME_ORDER:
        node = scheme.find(f"{_DRAWING_NS}{name}")
        if node is None or len(node) == 0:
            continue
        child = node[0]
        value = child.get("val") if child.tag == f"{_DRAWING_NS}srgbClr" else child.get("lastClr")
        color = normalize_rgb(value)
        if color:
            found[name] = color
    if len(found) != len(_SCHEME_ORDER):
        return []
    return [found[name] for name in _THEME_INDEX_ORDER]


class WorkbookPalette:
    """
    Farben, die eine Arbeitsmappe selbst mitbringt: eigene Palette (indexedColors bzw.
    xls-Palette) und Designfarben. Lookups fallen auf die festen Tabellen zurück.
    """

    def __init__(self, indexed: Optional[Mapping[int, str]] = None, theme: Optional[List[str]] = None):
        self.indexed: Dict[int, str] = dict(indexed or {})
        self.theme: List[str] = list(theme or [])

    def lookup_index(self, index: int) -> Optional[str]:
        return self.indexed.get(index) or INDEXED_COLORS.get(index)

    def lookup_theme(self, theme: int, tint: float = 0.0) -> Optional[str]:
        colors = self.theme or DEFAULT_THEME_COLORS
        if not 0 <= theme < len(colors):
            return None
        return apply_tint(colors[theme], tint)
