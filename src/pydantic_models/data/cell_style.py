from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class DirectFill(BaseModel):
    """Hintergrundfarbe einer soliden Füllung als RGB oder ARGB."""
    kind: Literal["direct"] = "direct"
    rgb: str


class PatternBackgroundFill(BaseModel):
    """Hintergrundfarbe hinter einem Füllmuster als RGB oder ARGB."""
    kind: Literal["pattern"] = "pattern"
    rgb: str


class ForegroundFill(BaseModel):
    """
    Vordergrundfarbe, die manche älteren Programme als Zellmarkierung statt als Schriftfarbe schreiben.
    """
    kind: Literal["foreground"] = "foreground"
    rgb: str


class IndexedFill(BaseModel):
    """Palettenindex (Legacy-Palette). pattern=True: Index stammt aus dem Muster-Hintergrund."""
    kind: Literal["indexed"] = "indexed"
    index: int
    pattern: bool = False


class ThemeFill(BaseModel):
    """Verweis auf eine Designfarbe samt Aufhellung/Abdunklung (tint -1..1)."""
    kind: Literal["theme"] = "theme"
    theme: int
    tint: float = 0.0


FillDescriptor = Annotated[
    Union[DirectFill, PatternBackgroundFill, ForegroundFill, IndexedFill, ThemeFill],
    Field(discriminator="kind"),
]


class CellStyle(BaseModel):
    """
    Die tatsächlich beobachteten Füllungsarten einer Zelle, in Lesereihenfolge.
    extras enthält sonstige farb- oder füllungsbezogene Attribute, nur für die Diagnose.
    """
    fills: List[FillDescriptor] = Field(default_factory=list)
    extras: Dict[str, Any] = Field(default_factory=dict)


class RawCell(BaseModel):
    """
    Eine Zelle während eines Lesedurchgangs: Position (nullbasiert), Rohwert und optionaler Stil.
    """
    row: int
    column: int
    value: Any = None
    style: Optional[CellStyle] = None

    @property
    def text(self) -> str:
        if self.value is None:
            return ""
        if isinstance(self.value, float) and self.value.is_integer():
            return str(int(self.value))
        return str(self.value).strip()
