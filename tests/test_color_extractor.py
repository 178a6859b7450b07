from __future__ import annotations

import pytest

from pydantic_models.data.cell_style import (
    CellStyle,
    DirectFill,
    ForegroundFill,
    IndexedFill,
    PatternBackgroundFill,
    RawCell,
    ThemeFill,
)
from schedule_imports.color_extractor import extract_color
from schedule_imports.palette import WorkbookPalette, apply_tint, normalize_rgb
from schedule_imports.workbook_reader import load_sheet


def _cell(*fills, **extras) -> RawCell:
    return RawCell(row=0, column=0, value="8-16", style=CellStyle(fills=list(fills), extras=extras))


@pytest.mark.parametrize("argb, expected", [("FF123456", "#123456"), ("00ABCDEF", "#ABCDEF"), ("7fc0ffee", "#C0FFEE")])
def test_argb_direct_fill_strips_alpha(argb: str, expected: str) -> None:
    assert extract_color(_cell(DirectFill(rgb=argb))) == expected


def test_rgb_direct_fill_is_used_as_is() -> None:
    assert extract_color(_cell(DirectFill(rgb="92D050"))) == "#92D050"


def test_direct_fill_wins_over_pattern_background() -> None:
    cell = _cell(PatternBackgroundFill(rgb="FF00FF00"), DirectFill(rgb="FFFF0000"))
    assert extract_color(cell) == "#FF0000"


def test_pattern_background_used_without_direct_fill() -> None:
    assert extract_color(_cell(PatternBackgroundFill(rgb="FF00B0F0"))) == "#00B0F0"


@pytest.mark.parametrize("noise", ["FFFFFFFF", "FF000000", "000000"])
def test_foreground_white_and_black_are_noise(noise: str) -> None:
    assert extract_color(_cell(ForegroundFill(rgb=noise))) is None


def test_foreground_highlight_is_accepted() -> None:
    assert extract_color(_cell(ForegroundFill(rgb="FFFFC000"))) == "#FFC000"


def test_indexed_color_uses_fixed_table() -> None:
    assert extract_color(_cell(IndexedFill(index=10))) == "#FF0000"
    assert extract_color(_cell(IndexedFill(index=51))) == "#FFCC00"


def test_indexed_color_prefers_workbook_palette() -> None:
    palette = WorkbookPalette(indexed={10: "#AA0000"})
    assert extract_color(_cell(IndexedFill(index=10)), palette) == "#AA0000"


def test_unmapped_index_yields_sentinels() -> None:
    assert extract_color(_cell(IndexedFill(index=64))) == "#INDEX64"
    assert extract_color(_cell(IndexedFill(index=65, pattern=True))) == "#PATTERN65"


def test_theme_color_falls_back_to_default_theme() -> None:
    assert extract_color(_cell(ThemeFill(theme=4))) == "#4472C4"
    assert extract_color(_cell(ThemeFill(theme=0, tint=-0.5))) == "#808080"


def test_theme_color_uses_workbook_theme() -> None:
    palette = WorkbookPalette(theme=["#FFFFFF", "#000000"] + ["#010203"] * 10)
    assert extract_color(_cell(ThemeFill(theme=5)), palette) == "#010203"


def test_unstyled_cell_has_no_color() -> None:
    assert extract_color(RawCell(row=0, column=0, value="x")) is None
    assert extract_color(_cell(**{"font.color": "FFFF0000"})) is None


def test_extractor_reads_fill_from_xlsx(make_workbook) -> None:
    grid = load_sheet(make_workbook({(0, 0): "8-16"}, fills={(0, 0): "FF123456"}))
    assert extract_color(grid.cell(0, 0), grid.palette) == "#123456"
    assert extract_color(grid.cell(5, 5), grid.palette) is None


def test_normalize_rgb_rejects_garbage() -> None:
    assert normalize_rgb("Values must be of type <class 'str'>") is None
    assert normalize_rgb(None) is None
    assert normalize_rgb("#12345") is None


def test_apply_tint_lightens() -> None:
    assert apply_tint("#000000", 0.5) == "#808080"
    assert apply_tint("#4472C4", 0.0) == "#4472C4"
