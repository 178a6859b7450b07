from __future__ import annotations

import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ScheduleEntry(BaseModel):
    """
    Ein Eintrag aus dem Dienstplan: ein Name an einem Tag mit Schichttext und Zellfarbe.
    shift_name/time_range kommen aus der Farblegende, matched_user_* setzt der Abgleich.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    date: datetime.date
    role: str
    shift_hours: str
    shift_color: Optional[str] = None
    shift_name: Optional[str] = None
    time_range: Optional[str] = None
    matched_user_id: Optional[int] = None
    matched_user_name: Optional[str] = None

    def as_dict(self) -> dict:
        """
        JSON-taugliche Darstellung (camelCase) mit ISO-Datum (yyyy-MM-dd).
        """
        data = self.model_dump(by_alias=True)
        data["date"] = self.date.isoformat()
        return data


class PersistedScheduleRow(BaseModel):
    """
    Gespeicherte Dienstplanzeile. (user_id, date) ist in der DB eindeutig.
    """
    id: Optional[int] = None
    date: datetime.date
    user_id: int
    shift_color: Optional[str] = None
    shift_hours: Optional[str] = None
    user_name: Optional[str] = None

    def as_dict(self) -> dict:
        data = self.model_dump()
        data["date"] = self.date.isoformat()
        return data
