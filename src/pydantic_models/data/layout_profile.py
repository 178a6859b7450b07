from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class LayoutProfile(BaseModel):
    """
    Koordinaten eines Dienstplan-Layouts (alle Angaben nullbasiert, wie sie im Grid gelesen werden).
    - date_row: Zeile mit den Tageszahlen 1..31.
    - name_column: Spalte mit den Mitarbeiternamen.
    - first_name_row/last_name_row: Bereich der Namenszeilen (inklusive).
    - first_date_column/last_date_column: Bereich der Tagesspalten (inklusive).
    - skip_values: Zellinhalte, die ignoriert werden (z.B. "co" für Urlaub), ohne Gross-/Kleinschreibung.
    - role: Rolle, für die das Layout gilt.
    Eingebaute Profile haben keine id, gespeicherte Profile schon.
    """
    id: Optional[int] = None
    name: str
    role: str
    description: Optional[str] = None
    active: bool = True

    date_row: int = Field(ge=0)
    name_column: int = Field(ge=0)
    first_name_row: int = Field(ge=0)
    last_name_row: int = Field(ge=0)
    first_date_column: int = Field(ge=0)
    last_date_column: int = Field(ge=0)

    skip_values: List[str] = Field(default_factory=list)
    valid_patterns: List[str] = Field(default_factory=list)

    # Formulare und Probe-Auswertung schicken camelCase (dateRow, firstNameRow, ...)
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    @field_validator("role", mode="after")
    @classmethod
    def upper_role(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("skip_values", mode="after")
    @classmethod
    def normalize_skip_values(cls, v: List[str]) -> List[str]:
        """
        Skip-Werte werden getrimmt und kleingeschrieben abgelegt, leere Einträge entfallen.
        """
        return [s.strip().lower() for s in v if s and s.strip()]

    @model_validator(mode="after")
    def ranges_in_order(self) -> "LayoutProfile":
        if self.first_name_row > self.last_name_row:
            raise ValueError("first_name_row muss <= last_name_row sein")
        if self.first_date_column > self.last_date_column:
            raise ValueError("first_date_column muss <= last_date_column sein")
        return self

    @property
    def name_rows(self) -> range:
        return range(self.first_name_row, self.last_name_row + 1)

    @property
    def date_columns(self) -> range:
        return range(self.first_date_column, self.last_date_column + 1)

    def is_skip_value(self, text: str) -> bool:
        return text.strip().lower() in self.skip_values
