from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from pydantic_models.data.schedule_entry import ScheduleEntry


class MatchingReport(BaseModel):
    """
    Zusammenfassung des Namensabgleichs, pro Aufruf neu erzeugt und nie gespeichert.
    duplicates enthält lesbare Einträge der Form "<Name> on <Datum>".
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_entries: int = 0
    matched_users: int = 0
    unmatched_users: int = 0
    unmatched_names: List[str] = Field(default_factory=list)
    duplicates: List[str] = Field(default_factory=list)


class ReconcileResult(BaseModel):
    """
    Ergebnis des Abgleichs. Im Vorschau-Modus bleiben imported/skipped bei 0
    und es wurden keine Farben angelegt.
    """
    preview: bool
    entries: List[ScheduleEntry] = Field(default_factory=list)
    matching_report: MatchingReport = Field(default_factory=MatchingReport)
    imported: int = 0
    skipped: int = 0
    deleted: int = 0
    new_colors_detected: int = 0
    detected_colors: List[str] = Field(default_factory=list)

    def as_response(self) -> dict:
        """
        Antwortformat der Upload-Schnittstelle: Vorschau mit Daten, Import mit Zählern.
        """
        report = self.matching_report.model_dump(by_alias=True)
        if self.preview:
            return {
                "success": True,
                "preview": True,
                "data": [entry.as_dict() for entry in self.entries],
                "matchingReport": report,
            }
        return {
            "success": True,
            "imported": self.imported,
            "skipped": self.skipped,
            "matchingReport": report,
            "newColorsDetected": self.new_colors_detected,
            "detectedColors": list(self.detected_colors),
        }


class ProfileTestReport(BaseModel):
    """
    Ergebnis einer Probe-Auswertung eines Layouts gegen eine hochgeladene Datei.
    Es wird nichts importiert.
    """
    sheet_name: str
    date_row_data: List[dict] = Field(default_factory=list)
    name_column_data: List[dict] = Field(default_factory=list)
    sample_schedule_data: List[dict] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors
