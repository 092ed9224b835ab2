#!/usr/bin/env python3
"""
Tests for single-file and consolidated sheet packing.
"""

import math

import pytest

from conftest import INCH, oriented
from gangsheet.errors import InvalidInputError, ItemTooLargeError
from gangsheet.geometry import find_overlaps, out_of_bounds, sheet_utilization
from gangsheet.packing import pack_consolidated, pack_single_file, trimmed_height

SHEET_W = 22 * INCH
MAX_LEN = 200 * INCH
MARGIN = 0.125 * INCH
SPACING = 0.5 * INCH


def _pack(o, qty, max_len=MAX_LEN):
    return pack_single_file(o, qty, SHEET_W, max_len, MARGIN, SPACING)


def test_scenario_4x2_rotated_quantity_100():
    o = oriented("logo.pdf", 4, 2, 100, rotated=True)
    sheets = _pack(o, 100)
    assert len(sheets) == 1
    sheet = sheets[0]
    assert sheet.item_count == 100
    # 13 rows of 8: 13 * 324 + 18 - 36 = 4194pt = 58.25" -> 59"
    assert sheet.row_count == 13
    assert sheet.height == 59 * INCH
    assert sheet.height_in == 59


def test_single_file_conservation_across_sheets():
    o = oriented("logo.pdf", 4, 2, 1000)
    sheets = _pack(o, 1000)
    # 320 per sheet
    assert len(sheets) == math.ceil(1000 / 320) == 4
    assert [s.item_count for s in sheets] == [320, 320, 320, 40]
    assert sum(s.item_count for s in sheets) == 1000
    assert [s.index for s in sheets] == [0, 1, 2, 3]


def test_even_division_fills_last_sheet():
    o = oriented("logo.pdf", 4, 2)
    sheets = _pack(o, 640)
    assert [s.item_count for s in sheets] == [320, 320]


def test_full_sheet_height_never_exceeds_max():
    o = oriented("logo.pdf", 4, 2)
    sheets = _pack(o, 320)
    # 80 rows of 180pt: 14400 + 18 - 36 = 14382pt -> 200"
    assert sheets[0].height == MAX_LEN


def test_minimal_height_matches_rows_used():
    o = oriented("logo.pdf", 4, 2)
    for qty in (1, 4, 5, 37, 200):
        sheet = _pack(o, qty)[0]
        rows = math.ceil(qty / 4)
        assert sheet.row_count == rows
        needed = rows * (2 * INCH + SPACING) + 2 * MARGIN - SPACING
        assert sheet.height >= needed
        assert sheet.height - needed < INCH
        assert sheet.height % INCH == 0


def test_trimmed_height_rounds_up_to_whole_inch():
    assert trimmed_height(1, 2 * INCH, MARGIN, 0) == 3 * INCH
    # exact multiples stay put
    assert trimmed_height(1, 2 * INCH - 2 * MARGIN, MARGIN, 0) == 2 * INCH


def test_single_file_placement_order_and_coordinates():
    o = oriented("logo.pdf", 4, 2)
    sheet = _pack(o, 6)[0]
    first, second, fifth = sheet.placements[0], sheet.placements[1], sheet.placements[4]

    assert (first.row, first.column) == (0, 0)
    assert first.x == MARGIN
    assert first.y == sheet.height - MARGIN - 2 * INCH

    assert (second.row, second.column) == (0, 1)
    assert second.x == pytest.approx(MARGIN + 4 * INCH + SPACING)
    assert second.y == first.y

    assert (fifth.row, fifth.column) == (1, 0)
    assert fifth.x == MARGIN
    assert fifth.y == pytest.approx(first.y - (2 * INCH + SPACING))


def test_single_file_sheet_geometry_is_clean():
    o = oriented("logo.pdf", 3.3, 1.7)
    for sheet in _pack(o, 500):
        assert find_overlaps(sheet) == []
        assert out_of_bounds(sheet, MARGIN) == []
        assert 0 < sheet_utilization(sheet) <= 1


def test_rotated_placement_anchor():
    o = oriented("logo.pdf", 4, 2, rotated=True)
    p = _pack(o, 1)[0].placements[0]
    assert p.rotated
    assert p.width == 2 * INCH
    assert p.anchor_x == p.x + 2 * INCH

    upright = _pack(oriented("logo.pdf", 4, 2), 1)[0].placements[0]
    assert upright.anchor_x == upright.x


def test_single_file_rejects_bad_quantity():
    with pytest.raises(InvalidInputError):
        _pack(oriented("logo.pdf", 4, 2), 0)


def test_single_file_item_too_wide():
    with pytest.raises(ItemTooLargeError):
        _pack(oriented("wide.pdf", 23, 2), 5)


def _rows_by_source(sheet):
    rows = {}
    for p in sheet.placements:
        rows.setdefault(p.row, set()).add(p.item.name)
    return rows


def test_consolidated_file_boundary_forces_new_row():
    a = oriented("a.pdf", 12, 2)  # one per row on 22"
    b = oriented("b.pdf", 12, 2)
    sheets = pack_consolidated([(a, 3), (b, 2)], SHEET_W, MAX_LEN, MARGIN, SPACING)
    assert len(sheets) == 1
    sheet = sheets[0]
    rows = _rows_by_source(sheet)
    assert len(rows) == 5
    assert [rows[r] for r in sorted(rows)] == [{"a.pdf"}] * 3 + [{"b.pdf"}] * 2
    # cursor 14391 - 5 * 180 = 13491; 14400 - 13491 + 9 = 918pt -> 13"
    assert sheet.height == 13 * INCH


def test_consolidated_never_mixes_a_row_with_spare_capacity():
    a = oriented("a.pdf", 4, 2)  # 4 per row, only 3 copies
    b = oriented("b.pdf", 4, 2)
    sheet = pack_consolidated([(a, 3), (b, 2)], SHEET_W, MAX_LEN, MARGIN, SPACING)[0]
    rows = _rows_by_source(sheet)
    assert rows == {0: {"a.pdf"}, 1: {"b.pdf"}}
    b_first = [p for p in sheet.placements if p.item.name == "b.pdf"][0]
    assert b_first.column == 0
    assert b_first.x == MARGIN


def test_consolidated_file_contiguity_over_many_sheets():
    runs = [(oriented("a.pdf", 4, 2), 700), (oriented("b.pdf", 3, 3), 90), (oriented("c.pdf", 10, 1), 45)]
    sheets = pack_consolidated(runs, SHEET_W, MAX_LEN, MARGIN, SPACING)
    placed = {}
    for sheet in sheets:
        for row_sources in _rows_by_source(sheet).values():
            assert len(row_sources) == 1
        for name, count in sheet.count_by_item().items():
            placed[name] = placed.get(name, 0) + count
        assert find_overlaps(sheet) == []
        assert out_of_bounds(sheet, MARGIN) == []
        assert sheet.height <= MAX_LEN
    assert placed == {"a.pdf": 700, "b.pdf": 90, "c.pdf": 45}

    # copies are consumed in file order
    order = [p.item.name for s in sheets for p in s.placements]
    assert order == ["a.pdf"] * 700 + ["b.pdf"] * 90 + ["c.pdf"] * 45


def test_consolidated_rows_stack_downward():
    a = oriented("a.pdf", 4, 2)
    b = oriented("b.pdf", 4, 3)
    sheet = pack_consolidated([(a, 5), (b, 1)], SHEET_W, MAX_LEN, MARGIN, SPACING)[0]
    ys = {}
    for p in sheet.placements:
        ys.setdefault(p.row, set()).add(p.y)
    assert all(len(v) == 1 for v in ys.values())
    row_y = [ys[r].pop() for r in sorted(ys)]
    assert row_y == sorted(row_y, reverse=True)
    # first row hangs from the top margin
    assert row_y[0] + 2 * INCH == pytest.approx(sheet.height - MARGIN)


def test_consolidated_item_taller_than_sheet_raises():
    a = oriented("a.pdf", 4, 2)
    tall = oriented("tall.pdf", 4, 30)
    with pytest.raises(ItemTooLargeError) as exc:
        pack_consolidated([(a, 2), (tall, 1)], SHEET_W, 24 * INCH, MARGIN, SPACING)
    assert exc.value.item_name == "tall.pdf"


def test_consolidated_fresh_sheet_without_room_raises():
    # 23.5" fits the grid formula on a 24" sheet but not the row cursor
    a = oriented("a.pdf", 4, 2)
    tall = oriented("tall.pdf", 4, 23.5)
    with pytest.raises(ItemTooLargeError) as exc:
        pack_consolidated([(a, 2), (tall, 1)], SHEET_W, 24 * INCH, MARGIN, SPACING)
    assert exc.value.item_name == "tall.pdf"


def test_consolidated_item_too_wide_raises_before_packing():
    with pytest.raises(ItemTooLargeError):
        pack_consolidated([(oriented("wide.pdf", 25, 1), 1)], SHEET_W, MAX_LEN, MARGIN, SPACING)


def test_consolidated_spills_to_next_sheet():
    a = oriented("a.pdf", 12, 2)
    # 12" max length: cursor 855pt, rows of 180pt -> 4 rows per sheet
    sheets = pack_consolidated([(a, 6)], SHEET_W, 12 * INCH, MARGIN, SPACING)
    assert [s.item_count for s in sheets] == [4, 2]
    assert all(s.height <= 12 * INCH for s in sheets)
    assert [s.index for s in sheets] == [0, 1]


def test_fractional_max_length_single_file_heights_are_whole_inches():
    o = oriented("strip.pdf", 12, 1)
    # 100.5" is cut to 100": 66 rows per sheet
    sheets = _pack(o, 67, max_len=100.5 * INCH)
    assert [s.item_count for s in sheets] == [66, 1]
    for sheet in sheets:
        assert sheet.height <= 100 * INCH
        assert sheet.height % INCH == 0
        assert sheet.height_in * INCH == sheet.height


def test_fractional_max_length_consolidated_heights_are_whole_inches():
    o = oriented("strip.pdf", 12, 0.5)
    sheets = pack_consolidated([(o, 300)], SHEET_W, 100.5 * INCH, MARGIN, SPACING)
    assert sum(s.item_count for s in sheets) == 300
    for sheet in sheets:
        assert sheet.height <= 100 * INCH
        assert sheet.height % INCH == 0
        assert sheet.height_in * INCH == sheet.height
        assert out_of_bounds(sheet, MARGIN) == []


def test_trimmed_height_never_exceeds_max_length():
    # 80 rows need 200" but the sheet may only be 199"
    assert trimmed_height(80, 2 * INCH, MARGIN, SPACING, INCH, 199 * INCH) == 199 * INCH
