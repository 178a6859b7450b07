import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Type

import yaml
from cryptography.fernet import Fernet, InvalidToken
from loguru import logger
from pydantic import BaseModel

from pydantic_models.config.config_data import ConfigData
from pydantic_models.config.database_config import DatabaseConfig
from pydantic_models.config.logging_config import LoggingConfig
from pydantic_models.config.schedule_import_config import ScheduleImportConfig
from pydantic_models.config.structure_config import StructureConfig
from pydantic_models.config.web_config import WebConfig

CONFIG_ENV_VAR = "TEAMPLAN_CONFIG"


def default_config_path() -> Path:
    """
    Pfad zur Config-Datei: Umgebungsvariable TEAMPLAN_CONFIG oder .config/teamplan_config.yaml
    im Projektverzeichnis.
    """
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Path(__file__).resolve().parents[2] / ".config" / "teamplan_config.yaml"


class Config:
    """
    Singleton für das Laden und Prüfen der Konfiguration.
    Nutzt statische Pydantic-Modelle für alle Abschnitte.
    Geprüft wird einmal beim Laden, danach wird der Konfiguration vertraut.
    """

    _instance: Optional["Config"] = None

    def __new__(cls, config_path: Optional[Path] = None):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[Path] = None):
        if self._initialized:
            return
        # Fallback-Logger für Fehler beim Laden der Config
        logger.remove()
        logger.add(sys.stderr, level="WARNING")
        self.config_path = Path(config_path) if config_path else default_config_path()
        try:
            self.raw_config: Dict[str, Any] = self._load_config()
            self.logging = self._parse_section(self.raw_config, "logging", LoggingConfig)
            self._setup_logging()
            logger.debug(f"Lade Konfiguration von {self.config_path}")
        except Exception as e:
            logger.error(f"Fehler beim Laden der Konfiguration: {e}")
            raise

        self.structure = self._parse_section(self.raw_config, "structure", StructureConfig)
        self.database = self._parse_section(self.raw_config, "database", DatabaseConfig)
        self.schedule_import = self._parse_section(self.raw_config, "schedule_import", ScheduleImportConfig)
        self.web = self._parse_section(self.raw_config, "web", WebConfig)
        self.data = ConfigData(
            structure=self.structure,
            database=self.database,
            logging=self.logging,
            schedule_import=self.schedule_import,
            web=self.web,
        )

        self._validate_structure_and_paths()
        logger.debug("Konfiguration erfolgreich geladen und validiert.")
        self._initialized = True

    @classmethod
    def reset(cls) -> None:
        """
        Verwirft die Singleton-Instanz, z.B. wenn eine andere Config-Datei geladen werden soll.
        """
        cls._instance = None

    def _setup_logging(self) -> None:
        """
        Initialisiert loguru mit den Einstellungen aus der Config-Datei.
        """
        logger.remove()
        log_file = getattr(self.logging, "log_file", None)
        log_level = getattr(self.logging, "log_level", "INFO")
        if log_file:
            logger.add(log_file, level=log_level, rotation="2 MB", retention=3)
        logger.add(sys.stderr, level=log_level)

    def _load_config(self) -> Dict[str, Any]:
        """
        Lädt die YAML-Konfigurationsdatei. Eine leere Datei ergibt lauter Defaultwerte.
        """
        with open(self.config_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    def _parse_section(self, config: Dict[str, Any], section: str, model: Type[BaseModel]) -> Any:
        """
        Parst einen Abschnitt der Config mit dem passenden Pydantic-Modell.
        """
        data = config.get(section) or {}
        logger.debug(f"Parsiere Abschnitt '{section}': {data}")
        return model(**data)

    def _validate_structure_and_paths(self) -> None:
        """
        Prüft einmalig alle Pfad- und Pflichtangaben. Scheitern die Prüfungen,
        wird die Konfiguration verworfen. Die SQLite-Datei selbst darf fehlen,
        das Schema wird beim ersten Zugriff angelegt.
        """
        prj_root = self.prj_root
        if not prj_root.exists():
            logger.error(f"Projektwurzel existiert nicht: {prj_root}")
            raise FileNotFoundError(f"Projektwurzel nicht gefunden: {prj_root}")

        data_dir = self.data_dir
        if not data_dir.exists():
            logger.error(f"Datenverzeichnis existiert nicht: {data_dir}")
            raise FileNotFoundError(f"Datenverzeichnis nicht gefunden: {data_dir}")

        if not self.database.sqlite_db_name:
            logger.error("database.sqlite_db_name ist nicht gesetzt.")
            raise ValueError("database.sqlite_db_name ist Pflicht.")

        # Rollen-Hinweise müssen auf bekannte Rollen zeigen, Warnung statt Fehler
        for token, role in self.schedule_import.role_filename_hints.items():
            if role.upper() not in {"ADMIN", "OPERATOR", "PRODUCER"}:
                logger.warning(f"Rollen-Hinweis '{token}' zeigt auf unbekannte Rolle '{role}'.")

    @property
    def prj_root(self) -> Path:
        prj_root = Path(self.structure.prj_root).expanduser()
        if not prj_root.is_absolute():
            prj_root = self.config_path.parent / prj_root
        return prj_root.resolve()

    @property
    def data_dir(self) -> Path:
        return (self.prj_root / (self.structure.local_data_path or "data")).resolve()

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.database.sqlite_db_name

    def get(self, key: str, default: Any = None) -> Any:
        """
        Allgemeiner Getter für beliebige Felder (dot-notation für verschachtelte Felder).
        """
        parts = key.split(".")
        val = self.raw_config
        for part in parts:
            if isinstance(val, dict) and part in val:
                val = val[part]
            else:
                logger.debug(f"Feld '{key}' nicht gefunden, Rückgabe Default: {default}")
                return default
        return val

    def get_secret(self, key: str, default: Any = None) -> Optional[str]:
        """
        Gibt ein Secret (z. B. Passwort, Secret Key) aus Umgebungsvariablen zurück.
        """
        logger.debug(f"Lese Secret '{key}' aus Umgebungsvariablen.")
        return os.getenv(key, default)

    def get_decrypted_secret(
        self, key: str, fernet_key_env: str = "FERNET_KEY", default: Any = None
    ) -> Optional[str]:
        """
        Holt ein verschlüsseltes Secret aus der Umgebung und entschlüsselt es mit Fernet.
        """
        encrypted = os.getenv(key)
        fernet_key = os.getenv(fernet_key_env)
        logger.debug(f"Versuche Secret '{key}' mit Fernet-Key '{fernet_key_env}' zu entschlüsseln.")
        if not encrypted or not fernet_key:
            logger.debug("Kein Secret oder Key gefunden, Rückgabe Default.")
            return default
        try:
            f = Fernet(fernet_key.encode())
            decrypted = f.decrypt(encrypted.encode())
            logger.debug("Secret erfolgreich entschlüsselt.")
            return decrypted.decode()
        except (InvalidToken, ValueError) as e:
            logger.error(f"Entschlüsselung fehlgeschlagen: {e}")
            raise RuntimeError(f"Entschlüsselung fehlgeschlagen: {e}") from e

    def resolve_secret(self, key: str, default: Any = None) -> Optional[str]:
        """
        Bevorzugt die verschlüsselte Variante <key>_ENC, sonst den Klartext <key>.
        """
        return self.get_decrypted_secret(f"{key}_ENC") or self.get_secret(key, default)


def encrypt_secret(plain: str, fernet_key: Optional[str] = None) -> tuple[str, str]:
    """
    Verschlüsselt ein Secret für die .env. Ohne Schlüssel wird ein neuer FERNET_KEY erzeugt.

    Returns:
        tuple[str, str]: (FERNET_KEY, verschlüsselter Wert)
    """
    key = fernet_key or Fernet.generate_key().decode()
    token = Fernet(key.encode()).encrypt(plain.encode()).decode()
    return key, token


if __name__ == "__main__":
    config = Config()
    logger.info("Projektwurzel: {}", config.prj_root)
    # Validierung erfolgt beim Laden automatisch
