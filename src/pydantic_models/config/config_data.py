from pydantic import BaseModel

from .database_config import DatabaseConfig
from .logging_config import LoggingConfig
from .schedule_import_config import ScheduleImportConfig
from .structure_config import StructureConfig
from .web_config import WebConfig


class ConfigData(BaseModel):
    """
    Modell für die gesamte Konfiguration des Projekts.
    Das sind die Sektionen in der Config-Datei.
    """
    structure: StructureConfig
    database: DatabaseConfig
    logging: LoggingConfig
    schedule_import: ScheduleImportConfig
    web: WebConfig
