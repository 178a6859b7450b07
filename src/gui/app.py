from typing import Optional

from flask import Flask, jsonify, request
from flask_login import LoginManager, UserMixin, current_user, login_required, login_user, logout_user
from loguru import logger
from pydantic import ValidationError

from pydantic_models.data.color_legend import ColorLegendEntry
from pydantic_models.data.layout_profile import LayoutProfile
from pydantic_models.data.user_role import UserRole
from schedule_imports.errors import ScheduleImportError, StoreUnavailableError
from schedule_imports.service import ScheduleImportService
from shared_modules.config import Config

TRUE_VALUES = {"1", "true", "yes", "on"}


class User(UserMixin):
    def __init__(self, id: str, role: str = UserRole.ADMIN.value):
        self.id = id
        self.role = role

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


def _error(message: str, status: int, details: Optional[list] = None):
    return jsonify({"error": message, "details": details or []}), status


def _int_arg(value, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ScheduleImportError(f"Invalid {name}", details=[f"'{value}' ist keine Zahl ({name})."]) from None


def _month_and_year(source) -> tuple[int, int]:
    month = _int_arg(source.get("month"), "month")
    year = _int_arg(source.get("year"), "year")
    if not 1 <= month <= 12:
        raise ScheduleImportError("Invalid month", details=[f"Monat muss zwischen 1 und 12 liegen, nicht {month}."])
    return month, year


def create_app(config: Optional[Config] = None, service: Optional[ScheduleImportService] = None) -> Flask:
    """
    Baut die Flask-Anwendung. Ohne Argumente wird die Standard-Config geladen.
    Anmeldung: ein Admin-Konto und optional ein Konto nur für die Vorschau aus der Config.
    Passwörter und Secret Key kommen aus der Umgebung (Klartext oder verschlüsselt als <NAME>_ENC).
    """
    config = config or Config()
    service = service or ScheduleImportService(config)
    web = config.web

    app = Flask(__name__)
    secret_key = config.resolve_secret(web.secret_key_env)
    if not secret_key:
        logger.warning(f"{web.secret_key_env} nicht gesetzt, verwende unsicheren Fallback.")
    app.secret_key = secret_key or "unsicherer_fallback"
    app.config["MAX_CONTENT_LENGTH"] = web.max_upload_mb * 1024 * 1024

    login_manager = LoginManager()
    login_manager.init_app(app)

    accounts = {web.admin_user: (web.admin_password_env, UserRole.ADMIN.value)}
    if web.viewer_user:
        accounts[web.viewer_user] = (web.viewer_password_env, web.viewer_role)

    @login_manager.user_loader
    def load_user(user_id):
        if user_id in accounts:
            return User(user_id, accounts[user_id][1])
        return None

    @login_manager.unauthorized_handler
    def unauthorized():
        return _error("Unauthorized", 401)

    @app.errorhandler(StoreUnavailableError)
    def store_unavailable(exc: StoreUnavailableError):
        logger.error(f"Datenbankfehler: {exc.details}")
        return _error("Internal server error", 500, exc.details)

    @app.errorhandler(ScheduleImportError)
    def import_failed(exc: ScheduleImportError):
        logger.warning(f"{exc}: {exc.details}")
        return _error(str(exc), 400, exc.details)

    @app.errorhandler(ValidationError)
    def invalid_input(exc: ValidationError):
        logger.warning(f"Ungültige Eingabe: {exc}")
        return _error("Invalid input", 400, [e["msg"] for e in exc.errors()])

    def admin_only():
        if not current_user.is_admin:
            return _error("Forbidden - admin role required", 403)
        return None

    @app.route("/login", methods=["POST"])
    def login():
        data = request.get_json(silent=True) or request.form
        username = data.get("username")
        password = data.get("password")
        account = accounts.get(username)
        valid_password = config.resolve_secret(account[0]) if account else None
        if valid_password and password == valid_password:
            login_user(User(username, account[1]))
            return jsonify({"success": True})
        logger.warning(f"Fehlgeschlagene Anmeldung für '{username}'.")
        return _error("Falsche Zugangsdaten!", 401)

    @app.route("/logout", methods=["POST"])
    @login_required
    def logout():
        logout_user()
        return jsonify({"success": True})

    @app.route("/team-schedule/upload-excel", methods=["POST"])
    @login_required
    def upload_excel():
        upload = request.files.get("file")
        if upload is None or not upload.filename:
            return _error("No file provided", 400)
        month, year = _month_and_year(request.form)
        preview = str(request.form.get("preview", "false")).lower() in TRUE_VALUES
        if not preview:
            denied = admin_only()
            if denied:
                return denied
        result = service.import_schedule(
            upload.read(),
            month,
            year,
            role=request.form.get("role") or None,
            filename=upload.filename,
            preview=preview,
        )
        return jsonify(result.as_response())

    @app.route("/team-schedule/delete-month", methods=["DELETE"])
    @login_required
    def delete_month():
        denied = admin_only()
        if denied:
            return denied
        data = request.get_json(silent=True) or {}
        month, year = _month_and_year(data)
        deleted = service.delete_month(month, year, data.get("userRole") or data.get("role"))
        return jsonify({"success": True, "deleted": deleted})

    @app.route("/team-schedule", methods=["GET"])
    @login_required
    def list_schedule():
        month, year = _month_and_year(request.args)
        rows = service.list_month(month, year, request.args.get("role"))
        return jsonify([row.as_dict() for row in rows])

    @app.route("/shift-color-legend", methods=["GET", "POST"])
    @login_required
    def color_legend():
        if request.method == "GET":
            legends = service.legends.list_legends(request.args.get("role"))
            return jsonify([entry.model_dump(by_alias=True) for entry in legends])
        denied = admin_only()
        if denied:
            return denied
        entry = ColorLegendEntry.model_validate(request.get_json(silent=True) or {})
        created = service.legends.create_legend(entry)
        return jsonify(created.model_dump(by_alias=True)), 201

    @app.route("/shift-color-legend/<int:legend_id>", methods=["PUT", "DELETE"])
    @login_required
    def color_legend_item(legend_id: int):
        denied = admin_only()
        if denied:
            return denied
        if request.method == "DELETE":
            if not service.legends.delete_legend(legend_id):
                return _error("Not found", 404)
            return jsonify({"success": True})
        entry = ColorLegendEntry.model_validate(request.get_json(silent=True) or {})
        try:
            updated = service.legends.update_legend(legend_id, entry)
        except KeyError:
            return _error("Not found", 404)
        return jsonify(updated.model_dump(by_alias=True))

    @app.route("/excel-configurations", methods=["GET", "POST"])
    @login_required
    def excel_configurations():
        denied = admin_only()
        if denied:
            return denied
        if request.method == "GET":
            profiles = service.profiles.list_profiles(request.args.get("role"))
            return jsonify([p.model_dump(by_alias=True) for p in profiles])
        profile = LayoutProfile.model_validate(request.get_json(silent=True) or {})
        saved = service.profiles.save(profile)
        return jsonify(saved.model_dump(by_alias=True)), 201

    @app.route("/excel-configurations/<int:profile_id>", methods=["DELETE"])
    @login_required
    def excel_configuration_item(profile_id: int):
        denied = admin_only()
        if denied:
            return denied
        if not service.profiles.delete(profile_id):
            return _error("Not found", 404)
        return jsonify({"success": True})

    @app.route("/excel-configurations/test", methods=["POST"])
    @login_required
    def test_configuration():
        denied = admin_only()
        if denied:
            return denied
        upload = request.files.get("file")
        if upload is None or not upload.filename:
            return _error("No file provided", 400)
        profile = LayoutProfile.model_validate_json(request.form.get("config") or "{}")
        report = service.test_configuration(upload.read(), profile)
        return jsonify({"filename": upload.filename, "validation": report.model_dump(), "ok": report.ok})

    return app


def main() -> None:
    create_app().run(debug=True)


if __name__ == "__main__":
    main()
