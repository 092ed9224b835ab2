from __future__ import annotations

import logging
from typing import List, Tuple

from shapely.geometry import box
from shapely.ops import unary_union
from shapely.strtree import STRtree

from .layout import Sheet

# Touching edges are fine; only real area counts as overlap
OVERLAP_TOLERANCE_PT2 = 1e-6


def placement_boxes(sheet: Sheet) -> list:
    return [box(*p.bounds) for p in sheet.placements]


def out_of_bounds(sheet: Sheet, margin: float = 0.0) -> List[int]:
    """Indices of placements that leave the sheet area inside the margin."""
    printable = box(margin, margin, sheet.width - margin, sheet.height - margin).buffer(1e-6)
    return [i for i, b in enumerate(placement_boxes(sheet)) if not printable.contains(b)]


def find_overlaps(sheet: Sheet) -> List[Tuple[int, int]]:
    """Pairs of placement indices whose boxes overlap with positive area."""
    boxes = placement_boxes(sheet)
    if len(boxes) < 2:
        return []
    tree = STRtree(boxes)
    pairs = []
    for i, b in enumerate(boxes):
        for j in tree.query(b):
            j = int(j)
            if j <= i:
                continue
            if b.intersection(boxes[j]).area > OVERLAP_TOLERANCE_PT2:
                pairs.append((i, j))
    return pairs


def sheet_utilization(sheet: Sheet) -> float:
    """Share of the sheet area covered by placed items."""
    area = sheet.width * sheet.height
    if area <= 0 or not sheet.placements:
        return 0.0
    covered = unary_union(placement_boxes(sheet)).area
    utilization = covered / area
    logging.debug(f"Sheet {sheet.index + 1}: {covered:.0f}pt² of {area:.0f}pt² covered ({utilization:.1%})")
    return utilization
