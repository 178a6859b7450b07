from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

_HEX_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")
_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
SENTINEL_PREFIXES = ("#INDEX", "#PATTERN")


def is_sentinel_color(color: str) -> bool:
    """
    #INDEX<n>/#PATTERN<n> stehen für Palettenfarben ohne bekannten RGB-Wert.
    """
    return color.upper().startswith(SENTINEL_PREFIXES)


class ColorLegendEntry(BaseModel):
    """
    Eintrag der Farblegende: welche Zellfarbe welche Schicht bedeutet, je Rolle.
    color_code ist pro Rolle eindeutig. Automatisch erkannte Farben werden als
    Platzhalter ("Unnamed Shift", 00:00-00:00) angelegt und später von einem Admin gepflegt.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: Optional[int] = None
    color_code: str
    color_name: str
    shift_name: str
    start_time: str
    end_time: str
    description: Optional[str] = None
    role: str = "OPERATOR"

    @field_validator("color_code", mode="after")
    @classmethod
    def valid_color_code(cls, v: str) -> str:
        v = v.strip()
        if not (_HEX_RE.match(v) or is_sentinel_color(v)):
            raise ValueError(f"Ungültiger Farbcode: {v}")
        return v.upper()

    @field_validator("start_time", "end_time", mode="after")
    @classmethod
    def valid_time(cls, v: str) -> str:
        if not _TIME_RE.match(v.strip()):
            raise ValueError(f"Uhrzeit muss HH:MM sein: {v}")
        return v.strip()

    @field_validator("role", mode="after")
    @classmethod
    def upper_role(cls, v: str) -> str:
        return v.strip().upper()

    @property
    def time_range(self) -> str:
        return f"{self.start_time}-{self.end_time}"
