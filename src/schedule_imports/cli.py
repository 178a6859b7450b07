"""
Kommandozeile für den Dienstplan-Import.

Beispiele:
    teamplan-import import Dienstplan_Mai.xlsx --month 5 --year 2025 --preview
    teamplan-import import coordinator_mai.xls --month 5 --year 2025 --export
    teamplan-import delete-month --month 5 --year 2025 --role PRODUCER
    teamplan-import init-db
    teamplan-import seed-profiles
    teamplan-import encrypt-secret <klartext>
"""

from __future__ import annotations

import argparse
import getpass
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger
from rich import print, print_json
from rich.traceback import install

from schedule_imports.errors import ScheduleImportError
from schedule_imports.layout_resolver import seed_builtin_profiles
from schedule_imports.service import ScheduleImportService
from shared_modules.config import Config, encrypt_secret


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="teamplan-import", description="Dienstpläne aus Excel importieren.")
    parser.add_argument("--config", type=Path, default=None, help="Pfad zur YAML-Konfiguration")
    sub = parser.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Dienstplan lesen und (ohne --preview) übernehmen")
    imp.add_argument("file", type=Path)
    imp.add_argument("--month", type=int, required=True)
    imp.add_argument("--year", type=int, required=True)
    imp.add_argument("--role", default=None, help="OPERATOR, PRODUCER oder eine eigene Rolle")
    imp.add_argument("--preview", action="store_true", help="nur abgleichen, nichts speichern")
    imp.add_argument("--export", action="store_true", help="Einträge als Excel ins Output-Verzeichnis schreiben")

    delete = sub.add_parser("delete-month", help="Einträge eines Monats löschen")
    delete.add_argument("--month", type=int, required=True)
    delete.add_argument("--year", type=int, required=True)
    delete.add_argument("--role", default="ALL")

    sub.add_parser("init-db", help="Datenbankschema anlegen")
    sub.add_parser("seed-profiles", help="Eingebaute Layouts in die Datenbank schreiben")

    enc = sub.add_parser("encrypt-secret", help="Secret für die .env verschlüsseln")
    enc.add_argument("secret", nargs="?", default=None)
    return parser


def _encrypt(secret: Optional[str]) -> int:
    if not secret:
        # interaktive Abfrage, z.B. beim Start aus der IDE
        secret = getpass.getpass("Bitte Secret eingeben (wird nicht angezeigt): ")
        if not secret:
            print("Kein Secret eingegeben. Abbruch.")
            return 1
    key, token = encrypt_secret(secret)
    print(f"Dein geheimer Schlüssel (FERNET_KEY): {key}")
    print(f"Verschlüsselter Wert für .env: {token}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    install()
    args = _build_parser().parse_args(argv)
    if args.command == "encrypt-secret":
        return _encrypt(args.secret)

    if args.config:
        Config.reset()
    config = Config(args.config)
    service = ScheduleImportService(config)

    if args.command == "init-db":
        print(f"Datenbank bereit: {service.db_path}")
        return 0
    if args.command == "seed-profiles":
        print(f"{seed_builtin_profiles(service.profiles)} Layouts angelegt.")
        return 0

    try:
        if args.command == "delete-month":
            print_json(data={"deleted": service.delete_month(args.month, args.year, args.role)})
            return 0

        result = service.import_schedule(
            args.file.read_bytes(),
            args.month,
            args.year,
            role=args.role,
            filename=args.file.name,
            preview=args.preview,
        )
    except ScheduleImportError as exc:
        logger.error(f"{exc}: {'; '.join(exc.details)}")
        print_json(data={"error": str(exc), "details": exc.details})
        return 1

    print_json(data=result.as_response())
    if args.export:
        service.export_entries(result, args.month, args.year)
    return 0


if __name__ == "__main__":
    sys.exit(main())
