"""
Ordnet eine Zellfarbe einem Eintrag der Farblegende zu.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Optional

from loguru import logger

from pydantic_models.data.color_legend import ColorLegendEntry, is_sentinel_color
from schedule_imports.palette import hex_to_rgb

DEFAULT_DISTANCE_THRESHOLD = 50.0
PLACEHOLDER_DESCRIPTION = "Automatisch erkannt beim Dienstplan-Import, bitte Schicht und Zeiten ergänzen."


def color_distance(a: str, b: str) -> float:
    """Euklidischer Abstand im RGB-Raum, höchstens ca. 441."""
    ra, ga, ba = hex_to_rgb(a)
    rb, gb, bb = hex_to_rgb(b)
    return math.sqrt((ra - rb) ** 2 + (ga - gb) ** 2 + (ba - bb) ** 2)


class ColorLegendResolver:
    """
    Legende einer Rolle. Exakter Treffer (ohne Gross-/Kleinschreibung) geht vor,
    danach die nächstgelegene Farbe unterhalb der Schwelle. Platzhalterfarben
    (#INDEX/#PATTERN) werden nie über Ähnlichkeit zugeordnet.
    """

    def __init__(self, legends: Iterable[ColorLegendEntry], threshold: float = DEFAULT_DISTANCE_THRESHOLD):
        self.legends: List[ColorLegendEntry] = list(legends)
        self.threshold = threshold

    def resolve(self, color: Optional[str], role: Optional[str] = None) -> Optional[ColorLegendEntry]:
        if not color:
            return None
        candidates = [entry for entry in self.legends if role is None or entry.role == role.upper()]
        code = color.upper()

        for entry in candidates:
            if entry.color_code.upper() == code:
                return entry

        if is_sentinel_color(code):
            return None

        best: Optional[ColorLegendEntry] = None
        best_distance = self.threshold
        for entry in candidates:
            if is_sentinel_color(entry.color_code):
                continue
            distance = color_distance(code, entry.color_code)
            if distance < best_distance:
                best, best_distance = entry, distance
        if best is not None:
            logger.debug(f"Farbe {code} ähnlich zu {best.color_code} (Abstand {best_distance:.1f})")
        return best

    def knows(self, color: str, role: str) -> bool:
        """True, wenn es für genau diesen Farbcode schon einen Eintrag der Rolle gibt."""
        code = color.upper()
        return any(e.color_code.upper() == code and e.role == role.upper() for e in self.legends)


def placeholder_entry(color: str, role: str, shift_name: str = "Unnamed Shift") -> ColorLegendEntry:
    """
    Legendeneintrag für eine unbekannte Farbe, damit ein Admin sie später benennen kann.
    """
    return ColorLegendEntry(
        color_code=color,
        color_name=color.upper(),
        shift_name=shift_name,
        start_time="00:00",
        end_time="00:00",
        description=PLACEHOLDER_DESCRIPTION,
        role=role,
    )
