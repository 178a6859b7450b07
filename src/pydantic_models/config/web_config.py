from typing import Optional
from pydantic import BaseModel

class WebConfig(BaseModel):
    """
    Einstellungen für die Flask-Oberfläche.
    Passwörter und Secret Key kommen ausschliesslich aus der Umgebung (.env),
    hier stehen nur die Namen der Variablen.

    Attribute:
        admin_user (str): Konto mit Importrecht.
        viewer_user (Optional[str]): Konto, das nur die Vorschau nutzen darf (ohne Angabe keines).
        viewer_role (str): Rolle des Vorschau-Kontos.
        max_upload_mb (int): Maximale Grösse einer hochgeladenen Datei.
    """
    admin_user: str = "admin"
    admin_password_env: str = "APP_PASSWORD"
    viewer_user: Optional[str] = None
    viewer_password_env: str = "VIEWER_PASSWORD"
    viewer_role: str = "OPERATOR"
    secret_key_env: str = "FLASK_SECRET_KEY"
    max_upload_mb: int = 10
