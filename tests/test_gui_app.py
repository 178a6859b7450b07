from __future__ import annotations

import io
import json

import pytest

from gui.app import create_app
from schedule_imports.service import ScheduleImportService


@pytest.fixture
def client(config_factory, monkeypatch):
    monkeypatch.delenv("APP_PASSWORD_ENC", raising=False)
    monkeypatch.delenv("VIEWER_PASSWORD_ENC", raising=False)
    monkeypatch.delenv("FLASK_SECRET_KEY_ENC", raising=False)
    monkeypatch.setenv("APP_PASSWORD", "admin-pw")
    monkeypatch.setenv("VIEWER_PASSWORD", "viewer-pw")
    monkeypatch.setenv("FLASK_SECRET_KEY", "test-secret")
    config = config_factory(web={"viewer_user": "leser"})
    service = ScheduleImportService(config)
    service.users.add_user("popescu ion", "ion@example.com", "OPERATOR")
    app = create_app(config, service)
    app.config["TESTING"] = True
    return app.test_client()


def _login(client, username="admin", password="admin-pw"):
    return client.post("/login", json={"username": username, "password": password})


def _upload(client, data: bytes, preview: bool, month="5", year="2025", filename="plan.xlsx"):
    return client.post(
        "/team-schedule/upload-excel",
        data={
            "file": (io.BytesIO(data), filename),
            "month": month,
            "year": year,
            "preview": "true" if preview else "false",
        },
        content_type="multipart/form-data",
    )


def _sheet(make_schedule) -> bytes:
    return make_schedule(names=["Ion Popescu"], days=[1, 2], shifts={(0, 0): ("8-16", "FF123456")})


def test_login_required(client, make_schedule) -> None:
    response = _upload(client, _sheet(make_schedule), preview=True)
    assert response.status_code == 401


def test_wrong_password(client) -> None:
    assert _login(client, password="falsch").status_code == 401
    assert _login(client, username="unbekannt").status_code == 401


def test_preview_and_commit(client, make_schedule) -> None:
    assert _login(client).status_code == 200

    preview = _upload(client, _sheet(make_schedule), preview=True)
    assert preview.status_code == 200
    body = preview.get_json()
    assert body["preview"] is True
    assert body["data"][0]["matchedUserName"] == "popescu ion"
    assert body["matchingReport"]["matchedUsers"] == 1

    commit = _upload(client, _sheet(make_schedule), preview=False)
    body = commit.get_json()
    assert commit.status_code == 200
    assert body["imported"] == 1
    assert body["newColorsDetected"] == 1
    assert body["detectedColors"] == ["#123456"]

    rows = client.get("/team-schedule?month=5&year=2025").get_json()
    assert [(r["user_name"], r["date"]) for r in rows] == [("popescu ion", "2025-05-01")]

    legends = client.get("/shift-color-legend?role=OPERATOR").get_json()
    assert legends[0]["colorCode"] == "#123456"
    assert legends[0]["shiftName"] == "Unnamed Shift"


def test_viewer_may_preview_but_not_commit(client, make_schedule) -> None:
    assert _login(client, "leser", "viewer-pw").status_code == 200
    assert _upload(client, _sheet(make_schedule), preview=True).status_code == 200
    assert _upload(client, _sheet(make_schedule), preview=False).status_code == 403


@pytest.mark.parametrize("month, year", [("13", "2025"), ("0", "2025"), ("Mai", "2025"), ("5", "zwanzig")])
def test_invalid_period_is_rejected(client, make_schedule, month, year) -> None:
    _login(client)
    response = _upload(client, _sheet(make_schedule), preview=True, month=month, year=year)
    assert response.status_code == 400
    assert response.get_json()["error"].startswith("Invalid")


def test_structure_errors_map_to_400(client, make_schedule, make_workbook) -> None:
    _login(client)
    no_dates = _upload(client, make_schedule(names=["Ion Popescu"], days=["x"]), preview=True)
    assert no_dates.status_code == 400
    assert no_dates.get_json()["error"] == "No dates found"

    not_excel = _upload(client, b"kein excel", preview=True, filename="plan.txt")
    assert not_excel.status_code == 400
    assert not_excel.get_json()["error"] == "Unsupported file format"


def test_delete_month(client, make_schedule) -> None:
    _login(client)
    _upload(client, _sheet(make_schedule), preview=False)
    response = client.delete("/team-schedule/delete-month", json={"month": 5, "year": 2025, "userRole": "ALL"})
    assert response.status_code == 200
    assert response.get_json()["deleted"] == 1


def test_legend_create_update_delete(client) -> None:
    _login(client)
    payload = {
        "colorCode": "#ffc000",
        "colorName": "Orange",
        "shiftName": "Früh",
        "startTime": "06:00",
        "endTime": "14:00",
        "role": "OPERATOR",
    }
    created = client.post("/shift-color-legend", json=payload)
    assert created.status_code == 201
    legend_id = created.get_json()["id"]
    assert created.get_json()["colorCode"] == "#FFC000"

    duplicate = client.post("/shift-color-legend", json=payload)
    assert duplicate.status_code == 400

    invalid = client.post("/shift-color-legend", json={**payload, "startTime": "6 Uhr"})
    assert invalid.status_code == 400

    updated = client.put(f"/shift-color-legend/{legend_id}", json={**payload, "shiftName": "Frühdienst"})
    assert updated.get_json()["shiftName"] == "Frühdienst"

    assert client.delete(f"/shift-color-legend/{legend_id}").status_code == 200
    assert client.delete(f"/shift-color-legend/{legend_id}").status_code == 404


def test_configuration_test_endpoint(client, make_schedule) -> None:
    _login(client)
    config = {
        "name": "Probe",
        "role": "OPERATOR",
        "dateRow": 12,
        "nameColumn": 1,
        "firstNameRow": 14,
        "lastNameRow": 17,
        "firstDateColumn": 2,
        "lastDateColumn": 32,
    }
    response = client.post(
        "/excel-configurations/test",
        data={"file": (io.BytesIO(_sheet(make_schedule)), "plan.xlsx"), "config": json.dumps(config)},
        content_type="multipart/form-data",
    )
    body = response.get_json()
    assert response.status_code == 200
    assert body["ok"] is True
    assert [d["value"] for d in body["validation"]["date_row_data"]] == [1, 2]
    assert body["validation"]["sample_schedule_data"][0]["hasStyle"] is True
