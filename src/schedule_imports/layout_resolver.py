"""
Liefert das Layout-Profil (Zellkoordinaten) für eine Rolle.

Die eingebauten Profile bilden zwei historische Excel-Vorlagen ab und dürfen nicht
verändert werden, sonst lassen sich ältere Dienstpläne nicht mehr einlesen.
"""

from __future__ import annotations

from typing import Dict, Mapping, Optional

from loguru import logger

from pydantic_models.data.layout_profile import LayoutProfile
from pydantic_models.data.user_role import UserRole
from schedule_imports.errors import UnsupportedRoleError
from schedule_imports.stores import LayoutProfileStore

# OPERATOR: Namen in B15:B18, Tage in C13:AG13
OPERATOR_PROFILE = LayoutProfile(
    name="OPERATOR Schedule Configuration",
    role=UserRole.OPERATOR.value,
    description="Names in column B (rows 15-18), dates in row 13 (columns C-AG).",
    date_row=12,
    name_column=1,
    first_name_row=14,
    last_name_row=17,
    first_date_column=2,
    last_date_column=32,
    valid_patterns=["coordonator", "coordinator", "operator"],
)

# PRODUCER: Namen in B6:B8, Tage in C5:AG5, "co" (Urlaub) wird übersprungen
PRODUCER_PROFILE = LayoutProfile(
    name="PRODUCER Schedule Configuration",
    role=UserRole.PRODUCER.value,
    description='Names in column B (rows 6-8), dates in row 5 (columns C-AG). Skips "co" (holiday) entries.',
    date_row=4,
    name_column=1,
    first_name_row=5,
    last_name_row=7,
    first_date_column=2,
    last_date_column=32,
    skip_values=["co"],
    valid_patterns=["coordonator", "coordinator", "producer", "coord"],
)

BUILTIN_PROFILES: Dict[UserRole, LayoutProfile] = {
    UserRole.OPERATOR: OPERATOR_PROFILE,
    UserRole.PRODUCER: PRODUCER_PROFILE,
}


class LayoutResolver:
    """
    Sucht zuerst ein aktives, gespeichertes Profil der Rolle, dann das eingebaute.
    Ohne Store werden nur die eingebauten Profile verwendet.
    """

    def __init__(self, store: Optional[LayoutProfileStore] = None):
        self.store = store

    def resolve(self, role: str) -> LayoutProfile:
        role_key = str(role).strip().upper()
        if self.store is not None:
            stored = self.store.find_active(role_key)
            if stored is not None:
                logger.info(f"Verwende gespeichertes Layout '{stored.name}' für Rolle {role_key}.")
                return stored

        try:
            builtin = BUILTIN_PROFILES.get(UserRole.parse(role_key))
        except ValueError:
            builtin = None
        if builtin is None:
            logger.error(f"Kein Layout für Rolle '{role_key}' vorhanden.")
            raise UnsupportedRoleError(f"Unsupported role: {role_key}")
        logger.info(f"Verwende eingebautes Layout '{builtin.name}'.")
        return builtin


def infer_role(filename: Optional[str], explicit_role: Optional[str], hints: Mapping[str, str], default_role: str) -> str:
    """
    Rolle für einen Upload: eine explizit angegebene Rolle gewinnt, sonst entscheidet ein
    Hinweis-Token im Dateinamen (z.B. "coordinator" -> PRODUCER), sonst die Standardrolle.
    """
    if explicit_role and explicit_role.strip():
        return explicit_role.strip().upper()
    if filename:
        lowered = filename.lower()
        for token, role in hints.items():
            if token.lower() in lowered:
                logger.info(f"Rolle {role.upper()} aus Dateiname '{filename}' abgeleitet.")
                return role.upper()
    return default_role.upper()


def seed_builtin_profiles(store: LayoutProfileStore) -> int:
    """
    Schreibt die eingebauten Profile in die DB, damit Admins sie als Vorlage bearbeiten können.
    Bereits vorhandene Profile (gleicher Name und Rolle) werden übersprungen.
    """
    existing = {(p.name, p.role) for p in store.list_profiles()}
    created = 0
    for profile in BUILTIN_PROFILES.values():
        if (profile.name, profile.role) in existing:
            logger.warning(f'Layout "{profile.name}" für {profile.role} existiert bereits, übersprungen.')
            continue
        store.save(profile)
        created += 1
        logger.info(f'Layout "{profile.name}" für {profile.role} angelegt.')
    return created
