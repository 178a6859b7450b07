from __future__ import annotations

import sqlite3
from datetime import date
from pathlib import Path

import pytest

from pydantic_models.data.color_legend import ColorLegendEntry
from pydantic_models.data.schedule_entry import PersistedScheduleRow, ScheduleEntry
from schedule_imports.color_legend_resolver import ColorLegendResolver
from schedule_imports.errors import StoreUnavailableError
from schedule_imports.import_reconciler import ImportReconciler, month_lock
from schedule_imports.layout_resolver import LayoutResolver
from schedule_imports.schedule_extractor import ScheduleExtractor
from schedule_imports.stores import ColorLegendStore, ScheduleStore, UserDirectory
from schedule_imports.workbook_reader import load_sheet


class KeepingScheduleStore(ScheduleStore):
    """Löscht nichts, damit bestehende Zeilen beim Einfügen kollidieren."""

    def delete_range(self, start, end, role=None, conn=None) -> int:
        return 0


class BrokenScheduleStore(ScheduleStore):
    def create(self, row, conn=None):
        raise sqlite3.OperationalError("database is locked")


@pytest.fixture
def stores(db_path: Path):
    users = UserDirectory(db_path)
    users.add_user("popescu ion", "ion@example.com", "OPERATOR")
    users.add_user("Maria Ionescu", "maria@example.com", "OPERATOR")
    users.add_user("Dana Pop", "dana@example.com", "PRODUCER")
    return users, ColorLegendStore(db_path), ScheduleStore(db_path)


def _entries(data: bytes, legends: ColorLegendStore, month: int = 5, year: int = 2025):
    resolver = ColorLegendResolver(legends.list_legends("OPERATOR"))
    return ScheduleExtractor(LayoutResolver(), resolver).extract(load_sheet(data), month, year, "OPERATOR")


def _sheet(make_schedule) -> bytes:
    return make_schedule(
        names=["Ion Popescu", "Maria Ionescu", "Gheorghe Necunoscut"],
        days=[1, 2],
        shifts={
            (0, 0): ("8-16", "FF123456"),
            (0, 1): ("8-16", "FF123456"),
            (1, 0): ("14-22", "FFFFC000"),
            (2, 0): ("8-16", None),
        },
    )


def test_preview_reports_without_touching_storage(make_schedule, stores) -> None:
    users, legends, schedules = stores
    entries = _entries(_sheet(make_schedule), legends)

    result = ImportReconciler(users, legends, schedules).reconcile(entries, 5, 2025, "OPERATOR", preview=True)

    report = result.matching_report
    assert report.total_entries == 4
    assert report.matched_users == 3
    assert report.unmatched_users == 1
    assert report.unmatched_names == ["Gheorghe Necunoscut"]
    assert report.duplicates == []
    assert len(result.entries) == 4
    assert result.imported == 0
    assert schedules.list_month(2025, 5) == []
    assert legends.list_legends() == []

    response = result.as_response()
    assert response["preview"] is True
    assert response["matchingReport"]["unmatchedNames"] == ["Gheorghe Necunoscut"]
    assert response["data"][0]["date"] == "2025-05-01"
    assert "matchedUserId" in response["data"][0]


def test_scenario_fuzzy_name_matches_reversed_tokens(make_schedule, stores) -> None:
    users, legends, schedules = stores
    entries = _entries(_sheet(make_schedule), legends)
    result = ImportReconciler(users, legends, schedules).reconcile(entries, 5, 2025, "OPERATOR", preview=True)
    ion = [e for e in result.entries if e.name == "Ion Popescu"]
    assert {e.matched_user_name for e in ion} == {"popescu ion"}


def test_commit_persists_matched_entries_and_registers_new_colors(make_schedule, stores) -> None:
    users, legends, schedules = stores
    legends.create_legend(
        ColorLegendEntry(
            color_code="#FFC000", color_name="Orange", shift_name="Spät", start_time="14:00", end_time="22:00"
        )
    )
    entries = _entries(_sheet(make_schedule), legends)

    result = ImportReconciler(users, legends, schedules).reconcile(entries, 5, 2025, "OPERATOR", preview=False)

    assert result.imported == 3
    assert result.skipped == 0
    assert result.new_colors_detected == 1
    assert result.detected_colors == ["#123456"]
    rows = schedules.list_month(2025, 5)
    assert sorted((r.user_name, r.date.day, r.shift_color) for r in rows) == [
        ("Maria Ionescu", 1, "#FFC000"),
        ("popescu ion", 1, "#123456"),
        ("popescu ion", 2, "#123456"),
    ]

    placeholder = [e for e in legends.list_legends("OPERATOR") if e.color_code == "#123456"]
    assert len(placeholder) == 1
    assert placeholder[0].shift_name == "Unnamed Shift"
    assert (placeholder[0].start_time, placeholder[0].end_time) == ("00:00", "00:00")

    response = result.as_response()
    assert response == {
        "success": True,
        "imported": 3,
        "skipped": 0,
        "matchingReport": result.matching_report.model_dump(by_alias=True),
        "newColorsDetected": 1,
        "detectedColors": ["#123456"],
    }


def test_commit_is_idempotent_per_month(make_schedule, stores) -> None:
    users, legends, schedules = stores
    reconciler = ImportReconciler(users, legends, schedules)
    data = _sheet(make_schedule)

    first = reconciler.reconcile(_entries(data, legends), 5, 2025, "OPERATOR", preview=False)
    rows_after_first = sorted((r.user_id, r.date, r.shift_hours, r.shift_color) for r in schedules.list_month(2025, 5))

    second = reconciler.reconcile(_entries(data, legends), 5, 2025, "OPERATOR", preview=False)
    rows_after_second = sorted((r.user_id, r.date, r.shift_hours, r.shift_color) for r in schedules.list_month(2025, 5))

    assert rows_after_first == rows_after_second
    assert second.deleted == first.imported
    assert second.imported == first.imported
    assert second.new_colors_detected == 0


def test_commit_replaces_stale_rows_of_the_month_only(make_schedule, stores) -> None:
    users, legends, schedules = stores
    maria = users.list_users("OPERATOR")[1]
    schedules.create(PersistedScheduleRow(date=date(2025, 5, 20), user_id=maria.id, shift_hours="alt"))
    schedules.create(PersistedScheduleRow(date=date(2025, 6, 1), user_id=maria.id, shift_hours="Juni"))

    ImportReconciler(users, legends, schedules).reconcile(
        _entries(_sheet(make_schedule), legends), 5, 2025, "OPERATOR", preview=False
    )

    assert "alt" not in {r.shift_hours for r in schedules.list_month(2025, 5)}
    assert [r.shift_hours for r in schedules.list_month(2025, 6)] == ["Juni"]


def test_role_scope_keeps_other_roles(make_schedule, stores) -> None:
    users, legends, schedules = stores
    dana = users.list_users("PRODUCER")[0]
    schedules.create(PersistedScheduleRow(date=date(2025, 5, 3), user_id=dana.id, shift_hours="9-17"))

    ImportReconciler(users, legends, schedules, replace_scope="role").reconcile(
        _entries(_sheet(make_schedule), legends), 5, 2025, "OPERATOR", preview=False
    )

    assert [r.user_name for r in schedules.list_month(2025, 5, "PRODUCER")] == ["Dana Pop"]


def test_duplicates_within_batch_persist_once(make_schedule, stores) -> None:
    users, legends, schedules = stores
    data = make_schedule(
        names=["Ion Popescu", "Popescu Ion"],
        days=[1],
        shifts={(0, 0): ("8-16", None), (1, 0): ("14-22", None)},
    )
    result = ImportReconciler(users, legends, schedules).reconcile(
        _entries(data, legends), 5, 2025, "OPERATOR", preview=False
    )

    assert result.matching_report.duplicates == ["Popescu Ion on 2025-05-01"]
    assert result.imported == 1
    rows = schedules.list_month(2025, 5)
    assert [(r.user_name, r.shift_hours) for r in rows] == [("popescu ion", "8-16")]


def test_unique_violation_is_counted_as_skipped(make_schedule, stores, db_path: Path) -> None:
    users, legends, _ = stores
    schedules = KeepingScheduleStore(db_path)
    ion = users.list_users("OPERATOR")[0]
    schedules.create(PersistedScheduleRow(date=date(2025, 5, 1), user_id=ion.id, shift_hours="alt"))

    result = ImportReconciler(users, legends, schedules).reconcile(
        _entries(_sheet(make_schedule), legends), 5, 2025, "OPERATOR", preview=False
    )

    assert result.skipped == 1
    assert result.imported == 2
    assert len(schedules.list_month(2025, 5)) == 3


def test_store_failure_rolls_back_the_whole_month(make_schedule, stores, db_path: Path) -> None:
    users, legends, schedules = stores
    ion = users.list_users("OPERATOR")[0]
    schedules.create(PersistedScheduleRow(date=date(2025, 5, 9), user_id=ion.id, shift_hours="bleibt"))

    reconciler = ImportReconciler(users, legends, BrokenScheduleStore(db_path))
    with pytest.raises(StoreUnavailableError) as err:
        reconciler.reconcile(_entries(_sheet(make_schedule), legends), 5, 2025, "OPERATOR", preview=False)

    assert "database is locked" in err.value.details[0]
    assert [r.shift_hours for r in schedules.list_month(2025, 5)] == ["bleibt"]
    assert legends.list_legends() == []
    assert not month_lock(2025, 5).locked()


def test_commit_without_matches_leaves_month_untouched(stores) -> None:
    users, legends, schedules = stores
    ion = users.list_users("OPERATOR")[0]
    schedules.create(PersistedScheduleRow(date=date(2025, 5, 9), user_id=ion.id, shift_hours="bleibt"))
    entries = [ScheduleEntry(name="Niemand Bekannt", date=date(2025, 5, 1), role="OPERATOR", shift_hours="8-16")]

    result = ImportReconciler(users, legends, schedules).reconcile(entries, 5, 2025, "OPERATOR", preview=False)

    assert result.imported == 0
    assert result.matching_report.unmatched_names == ["Niemand Bekannt"]
    assert len(schedules.list_month(2025, 5)) == 1


def test_month_lock_is_shared_per_month() -> None:
    assert month_lock(2025, 5) is month_lock(2025, 5)
    assert month_lock(2025, 5) is not month_lock(2025, 6)
