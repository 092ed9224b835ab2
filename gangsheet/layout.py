from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from .errors import ItemTooLargeError
from .units import EPSILON, pt_to_inch


class OrientationMode(Enum):
    """How an item's rotation is decided."""
    SMART_FIT = "smart-fit"
    UPRIGHT = "upright"
    ROTATED = "rotated"

    @classmethod
    def fixed(cls, rotate: bool) -> "OrientationMode":
        return cls.ROTATED if rotate else cls.UPRIGHT


@dataclass(frozen=True)
class Item:
    """One input logo with its measured size in points."""
    name: str
    width: float
    height: float
    quantity: int
    payload: bytes = field(default=b"", repr=False, compare=False)
    kind: str = "pdf"


@dataclass(frozen=True)
class OrientedItem:
    """An item with its rotation resolved for packing."""
    item: Item
    rotated: bool
    layout_width: float
    layout_height: float

    @property
    def name(self) -> str:
        return self.item.name

    @property
    def quantity(self) -> int:
        return self.item.quantity

    @classmethod
    def from_item(cls, item: Item, rotated: bool) -> "OrientedItem":
        if rotated:
            return cls(item, True, item.height, item.width)
        return cls(item, False, item.width, item.height)


@dataclass(frozen=True)
class LayoutParams:
    items_per_row: int
    rows_per_sheet: int

    @property
    def items_per_sheet(self) -> int:
        return self.items_per_row * self.rows_per_sheet

    @property
    def is_feasible(self) -> bool:
        return self.items_per_row >= 1 and self.rows_per_sheet >= 1


@dataclass(frozen=True)
class Placement:
    """
    Final position of one item copy on one sheet.

    x and y are the bottom-left corner of the item's layout box, measured in
    points from the sheet's bottom-left corner (PDF user space). render_sheet
    draws into the bounds rectangle; anchor_x is the pivot for renderers that
    instead rotate content about its drawing origin.
    """
    item: OrientedItem
    sheet_index: int
    row: int
    column: int
    x: float
    y: float

    @property
    def rotated(self) -> bool:
        return self.item.rotated

    @property
    def width(self) -> float:
        return self.item.layout_width

    @property
    def height(self) -> float:
        return self.item.layout_height

    @property
    def anchor_x(self) -> float:
        # A 90 degree turn about the origin extends the content leftward
        return self.x + self.item.layout_width if self.item.rotated else self.x

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.x + self.width, self.y + self.height)


@dataclass(frozen=True)
class Sheet:
    """One output sheet: fixed width, trimmed height and its placements."""
    index: int
    width: float
    height: float
    placements: Tuple[Placement, ...]
    cost: Optional[float] = None

    @property
    def width_in(self) -> float:
        return pt_to_inch(self.width)

    @property
    def height_in(self) -> int:
        return int(round(pt_to_inch(self.height)))

    @property
    def item_count(self) -> int:
        return len(self.placements)

    @property
    def row_count(self) -> int:
        return len({p.row for p in self.placements})

    def count_by_item(self) -> dict:
        counts: dict = {}
        for p in self.placements:
            counts[p.item.name] = counts.get(p.item.name, 0) + 1
        return counts


def compute_layout(
    item_width: float,
    item_height: float,
    sheet_width: float,
    max_length: float,
    margin: float,
    spacing: float,
    strict: bool = True,
    item_name: Optional[str] = None,
) -> LayoutParams:
    """
    Compute the grid an item forms on a full-length sheet.

    Spacing only sits between neighbouring items, so n items need
    n * (item + spacing) - spacing of the margin-to-margin span.

    Args:
        item_width: Item width in the chosen orientation
        item_height: Item height in the chosen orientation
        sheet_width: Sheet width
        max_length: Maximum sheet length
        margin: Safe margin kept on every edge
        spacing: Gap between neighbouring items
        strict: Raise ItemTooLargeError when not even one item fits a row
        item_name: Name used in error messages

    Returns:
        LayoutParams with items per row and rows per sheet
    """
    usable_width = sheet_width - 2 * margin + spacing
    usable_height = max_length - 2 * margin + spacing

    items_per_row = max(0, math.floor(usable_width / (item_width + spacing) + EPSILON))
    rows_per_sheet = max(0, math.floor(usable_height / (item_height + spacing) + EPSILON))
    params = LayoutParams(items_per_row, rows_per_sheet)

    if strict and items_per_row < 1:
        raise ItemTooLargeError(
            f"Item {item_name or ''} is too wide for the sheet: "
            f"{pt_to_inch(item_width):.2f}\" > {pt_to_inch(sheet_width - 2 * margin):.2f}\" usable",
            item_name=item_name,
        )
    if strict and rows_per_sheet < 1:
        raise ItemTooLargeError(
            f"Item {item_name or ''} is too tall for the sheet: "
            f"{pt_to_inch(item_height):.2f}\" > {pt_to_inch(max_length - 2 * margin):.2f}\" usable",
            item_name=item_name,
        )
    return params


def choose_orientation(
    native_width: float,
    native_height: float,
    sheet_width: float,
    max_length: float,
    margin: float,
    spacing: float,
    mode: OrientationMode = OrientationMode.SMART_FIT,
) -> Tuple[bool, float, float]:
    """
    Decide whether an item is placed upright or turned 90 degrees.

    Smart Fit keeps the orientation that fits strictly more items on a sheet;
    ties stay upright. Never raises, infeasible items are caught when packing.

    Returns:
        Tuple of (rotated, layout_width, layout_height)
    """
    if mode is not OrientationMode.SMART_FIT:
        rotated = mode is OrientationMode.ROTATED
    else:
        upright = compute_layout(native_width, native_height, sheet_width, max_length, margin, spacing, strict=False)
        turned = compute_layout(native_height, native_width, sheet_width, max_length, margin, spacing, strict=False)
        rotated = turned.items_per_sheet > upright.items_per_sheet
        logging.debug(
            f"Smart Fit: upright {upright.items_per_row}x{upright.rows_per_sheet}={upright.items_per_sheet}, "
            f"rotated {turned.items_per_row}x{turned.rows_per_sheet}={turned.items_per_sheet}"
        )

    if rotated:
        return True, native_height, native_width
    return False, native_width, native_height


def orient_item(
    item: Item,
    sheet_width: float,
    max_length: float,
    margin: float,
    spacing: float,
    mode: OrientationMode = OrientationMode.SMART_FIT,
) -> OrientedItem:
    rotated, _, _ = choose_orientation(item.width, item.height, sheet_width, max_length, margin, spacing, mode)
    oriented = OrientedItem.from_item(item, rotated)
    logging.info(
        f"Orientation for {item.name}: {'rotated' if rotated else 'upright'} "
        f"({pt_to_inch(oriented.layout_width):.2f}\" x {pt_to_inch(oriented.layout_height):.2f}\")"
    )
    return oriented
