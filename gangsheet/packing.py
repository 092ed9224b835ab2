"""
Sheet packing for gang sheets.

Two packers share the same grid rules:
- pack_single_file fills full sheets with one item and trims the last one
- pack_consolidated packs several items in input order, starting a new row
  whenever the source file changes so a row never mixes designs
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .errors import InvalidInputError, ItemTooLargeError
from .layout import OrientedItem, Placement, Sheet, compute_layout
from .units import EPSILON, PT_PER_INCH, pt_to_inch, round_down, round_up


def trimmed_height(
    used_rows: int,
    item_height: float,
    margin: float,
    spacing: float,
    unit: float = PT_PER_INCH,
    max_length: float = math.inf,
) -> float:
    """Height of a sheet holding used_rows rows, rounded up to a whole unit."""
    used = used_rows * (item_height + spacing) + 2 * margin - spacing
    return _sheet_height(used, max_length, unit)


def _sheet_height(used: float, max_length: float, unit: float) -> float:
    """Used height rounded up to a whole unit, never above the whole-unit maximum."""
    return min(round_up(used, unit), max_length)


def pack_single_file(
    oriented: OrientedItem,
    quantity: int,
    sheet_width: float,
    max_length: float,
    margin: float,
    spacing: float,
    unit: float = PT_PER_INCH,
) -> List[Sheet]:
    """
    Pack quantity copies of one item onto as few sheets as possible.

    Every sheet but the last holds a full grid; each sheet is only as tall as
    the rows it uses, rounded up to a whole unit.

    Args:
        oriented: Item with resolved orientation
        quantity: Number of copies to place
        sheet_width: Sheet width in points
        max_length: Maximum sheet length in points, cut down to a whole unit
        margin: Safe margin in points
        spacing: Gap between items in points
        unit: Height rounding granularity in points

    Returns:
        Sheets in production order
    """
    if quantity <= 0:
        raise InvalidInputError(f"Invalid quantity {quantity} for {oriented.name}")

    # Sheets are cut in whole units
    max_length = round_down(max_length, unit)
    w = oriented.layout_width
    h = oriented.layout_height
    params = compute_layout(w, h, sheet_width, max_length, margin, spacing, item_name=oriented.name)
    per_row = params.items_per_row
    per_sheet = params.items_per_sheet
    total_sheets = math.ceil(quantity / per_sheet)

    logging.info(f"Can fit {per_row} per row, {params.rows_per_sheet} rows -> {per_sheet} per sheet")
    logging.info(f"Total sheets needed for {quantity} x {oriented.name}: {total_sheets}")

    sheets: List[Sheet] = []
    remaining = quantity
    for sheet_index in range(total_sheets):
        on_sheet = min(remaining, per_sheet)
        used_rows = math.ceil(on_sheet / per_row)
        height = trimmed_height(used_rows, h, margin, spacing, unit, max_length)

        placements = []
        y = height - margin - h
        drawn = 0
        row = 0
        while drawn < on_sheet:
            x = margin
            for col in range(per_row):
                if drawn >= on_sheet:
                    break
                placements.append(Placement(oriented, sheet_index, row, col, x, y))
                drawn += 1
                x += w + spacing
            y -= h + spacing
            row += 1

        remaining -= on_sheet
        sheets.append(Sheet(sheet_index, sheet_width, height, tuple(placements)))
        logging.info(f"Sheet {sheet_index + 1}: {on_sheet} items in {used_rows} rows, height {pt_to_inch(height):.0f}\"")

    return sheets


@dataclass
class _RowCursor:
    """Row-advance state shared by the sizing and placement passes."""
    top: float
    margin: float
    current_source: int = -1
    in_row: int = 0
    row: int = -1

    def advance(self, source: int, oriented: OrientedItem, per_row: int, spacing: float) -> bool:
        """
        Move to the slot for the next copy; returns False when the sheet is full.

        A new row starts on a file change or when the current row is full.
        """
        if source != self.current_source or self.in_row >= per_row:
            row_height = oriented.layout_height + spacing
            if self.top - row_height < self.margin - EPSILON:
                return False
            self.top -= row_height
            self.current_source = source
            self.in_row = 0
            self.row += 1
        return True


def _flatten(runs: Sequence[Tuple[OrientedItem, int]]) -> List[Tuple[int, OrientedItem]]:
    instances: List[Tuple[int, OrientedItem]] = []
    for source, (oriented, quantity) in enumerate(runs):
        instances.extend([(source, oriented)] * quantity)
    return instances


def pack_consolidated(
    runs: Sequence[Tuple[OrientedItem, int]],
    sheet_width: float,
    max_length: float,
    margin: float,
    spacing: float,
    unit: float = PT_PER_INCH,
) -> List[Sheet]:
    """
    Pack copies of several items onto shared sheets, one design per row.

    Copies are consumed in input order. Each sheet is sized in a first pass
    over the remaining copies, then the same copies are placed in a second
    pass using identical row logic on a page of the computed height.

    Args:
        runs: (oriented item, quantity) pairs in file order
        sheet_width: Sheet width in points
        max_length: Maximum sheet length in points, cut down to a whole unit
        margin: Safe margin in points
        spacing: Gap between items in points
        unit: Height rounding granularity in points

    Returns:
        Sheets in production order
    """
    max_length = round_down(max_length, unit)
    per_row = {}
    for source, (oriented, quantity) in enumerate(runs):
        if quantity <= 0:
            raise InvalidInputError(f"Invalid quantity {quantity} for {oriented.name}")
        params = compute_layout(
            oriented.layout_width, oriented.layout_height, sheet_width, max_length, margin, spacing,
            item_name=oriented.name,
        )
        per_row[source] = params.items_per_row

    instances = _flatten(runs)
    logging.info(f"Consolidating {len(instances)} copies from {len(runs)} files")

    sheets: List[Sheet] = []
    start = 0
    while start < len(instances):
        sheet_index = len(sheets)

        # Pass 1: how many copies fit and how tall the sheet must be
        sizing = _RowCursor(top=max_length - margin, margin=margin)
        count = 0
        for source, oriented in instances[start:]:
            if not sizing.advance(source, oriented, per_row[source], spacing):
                break
            sizing.in_row += 1
            count += 1

        if count == 0:
            blocked = instances[start][1]
            raise ItemTooLargeError(
                f"Item {blocked.name} does not fit on an empty {pt_to_inch(max_length):.0f}\" sheet",
                item_name=blocked.name,
            )

        height = _sheet_height(max_length - sizing.top + margin, max_length, unit)

        # Pass 2: replay the same rows on the trimmed sheet
        placing = _RowCursor(top=height - margin, margin=margin)
        placements = []
        for source, oriented in instances[start:start + count]:
            placing.advance(source, oriented, per_row[source], spacing)
            x = margin + placing.in_row * (oriented.layout_width + spacing)
            # The cursor sits one spacing below the row top; items hang from the row top
            y = placing.top + spacing
            placements.append(Placement(oriented, sheet_index, placing.row, placing.in_row, x, y))
            logging.debug(f"Placed {oriented.name} at ({x:.1f}, {y:.1f}) row {placing.row} on sheet {sheet_index + 1}")
            placing.in_row += 1

        start += count
        sheets.append(Sheet(sheet_index, sheet_width, height, tuple(placements)))
        logging.info(
            f"Sheet {sheet_index + 1}: {count} items in {placing.row + 1} rows, height {pt_to_inch(height):.0f}\" "
            f"({len(instances) - start} remaining)"
        )

    return sheets
