"""
Unscharfer Abgleich eines Namens aus dem Dienstplan mit der Benutzerverwaltung.

Bewertet wird mit rapidfuzz.fuzz.token_sort_ratio nach default_process (Kleinschreibung,
Sonderzeichen entfernt), die Reihenfolge der Namensteile spielt also keine Rolle:
"Ion Popescu" und "popescu ion" haben den Abstand 0.
Abstand = 1 - ratio/100, akzeptiert wird nur ein Abstand echt kleiner als die Schwelle.
Bei gleichem Abstand gewinnt der Benutzer mit der kleinsten id.
"""

from __future__ import annotations

from typing import Iterable, Optional

from loguru import logger
from rapidfuzz import fuzz, utils

from pydantic_models.data.directory_user import DirectoryUser

DEFAULT_THRESHOLD = 0.4


def name_distance(a: str, b: str) -> float:
    return 1.0 - fuzz.token_sort_ratio(a, b, processor=utils.default_process) / 100.0


class NameMatcher:

    def __init__(self, threshold: float = DEFAULT_THRESHOLD):
        self.threshold = threshold

    def match(self, raw_name: str, candidates: Iterable[DirectoryUser]) -> Optional[DirectoryUser]:
        if not raw_name or not raw_name.strip():
            return None
        best: Optional[DirectoryUser] = None
        best_distance = self.threshold
        for user in sorted(candidates, key=lambda u: u.id):
            if not user.name or not user.name.strip():
                continue
            distance = name_distance(raw_name, user.name)
            if distance < best_distance:
                best, best_distance = user, distance
        if best is None:
            logger.debug(f"Kein Benutzer für '{raw_name}' gefunden.")
        else:
            logger.debug(f"'{raw_name}' -> {best.name} (id {best.id}, Abstand {best_distance:.2f})")
        return best
