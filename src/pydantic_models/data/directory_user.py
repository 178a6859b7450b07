from typing import Optional

from pydantic import BaseModel


class DirectoryUser(BaseModel):
    """
    Benutzer aus der Benutzerverwaltung, so wie ihn der Namensabgleich sieht.
    name kann fehlen, solche Einträge werden beim Abgleich übergangen.
    """
    id: int
    name: Optional[str] = None
    email: str
    role: str
