from enum import Enum


class UserRole(str, Enum):
    """
    Rollen der Benutzerverwaltung. ADMIN darf Dienstpläne importieren,
    OPERATOR und PRODUCER haben je ein eigenes Excel-Layout und eine eigene Farblegende.
    """
    ADMIN = "ADMIN"
    PRODUCER = "PRODUCER"
    OPERATOR = "OPERATOR"

    @classmethod
    def parse(cls, value) -> "UserRole":
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().upper())
