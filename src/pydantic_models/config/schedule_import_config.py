from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field, field_validator


def _default_filename_hints() -> Dict[str, str]:
    return {
        "coordinator": "PRODUCER",
        "coordonator": "PRODUCER",
        "producer": "PRODUCER",
    }


class ScheduleImportConfig(BaseModel):
    """
    Einstellungen für den Import von Dienstplänen aus Excel.

    Attribute:
        default_role (str): Rolle, falls weder explizit angegeben noch aus dem Dateinamen ableitbar.
        name_match_threshold (float): Maximale Distanz (0 = exakt) für den unscharfen Namensabgleich.
        color_distance_threshold (float): Maximale RGB-Distanz für die Ähnlichkeitssuche in der Farblegende.
        role_filename_hints (Dict[str, str]): Token im Dateinamen → Rolle.
        sheet_name (Optional[str]): Tabellenblatt; ohne Angabe wird das erste Blatt gelesen.
        placeholder_shift_name (str): Schichtname für automatisch angelegte Legendeneinträge.
        replace_scope (str): "month" ersetzt beim Import alle Einträge des Monats,
            "role" nur die Einträge von Benutzern der importierten Rolle.
    """
    default_role: str = "OPERATOR"
    name_match_threshold: float = Field(default=0.4, ge=0.0, le=1.0)
    color_distance_threshold: float = Field(default=50.0, gt=0.0)
    role_filename_hints: Dict[str, str] = Field(default_factory=_default_filename_hints)
    sheet_name: Optional[str] = None
    placeholder_shift_name: str = "Unnamed Shift"
    replace_scope: Literal["month", "role"] = "month"

    @field_validator("default_role", mode="after")
    @classmethod
    def upper_role(cls, v: str) -> str:
        return v.strip().upper()
