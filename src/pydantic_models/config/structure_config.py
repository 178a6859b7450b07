from typing import Optional
from pydantic import BaseModel

class StructureConfig(BaseModel):
    """
    Modell für die Verzeichnis-Struktur des Projekts.

    Attribute:
        prj_root (str): Wurzelverzeichnis des Projekts.
        local_data_path (Optional[str]): Verzeichnis der SQLite-DB relativ zu prj_root (Standard: "data").
        uploads_path (Optional[str]): Ablage für hochgeladene Dienstpläne (Standard: "uploads").
        output_path (Optional[str]): Ausgabeverzeichnis, z.B. für Import-Berichte (Standard: "output").
    """
    prj_root: str = "."
    local_data_path: Optional[str] = "data"
    uploads_path: Optional[str] = "uploads"
    output_path: Optional[str] = "output"
