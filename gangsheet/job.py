"""
Gang sheet job: validate inputs, measure and orient logos, pack sheets,
price them and render each sheet to PDF.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence, Union

from .config import HEIGHT_UNIT_PT, SheetSettings
from .errors import InvalidInputError
from .geometry import sheet_utilization
from .layout import Item, OrientationMode, OrientedItem, Placement, Sheet, orient_item
from .packing import pack_consolidated, pack_single_file
from .pricing import CostTables, load_cost_tables, price_sheets, total_cost
from .render import detect_kind, measure_item, render_sheet


@dataclass
class LogoInput:
    """A caller supplied logo file and how many copies to print."""
    filename: str
    payload: bytes
    quantity: int
    width: Optional[float] = None  # points; measured when not given
    height: Optional[float] = None


@dataclass
class JobRequest:
    logos: List[LogoInput]
    settings: SheetSettings = field(default_factory=SheetSettings)
    orientation: OrientationMode = OrientationMode.SMART_FIT
    consolidate: Optional[bool] = None  # None: consolidate when more than one logo
    cost_tables: Union[str, Mapping[Any, Any], None] = None
    render: bool = True
    strict_widths: bool = False


@dataclass
class SheetResult:
    sheet_index: int
    width: float  # inches
    height: int  # inches
    cost: float
    filename: str
    placements: Sequence[Placement]
    utilization: float
    artifact: Optional[bytes] = None


@dataclass
class JobResult:
    sheets: List[SheetResult]
    total_cost: float
    consolidated: bool


def validate_request(request: JobRequest) -> None:
    """Reject bad input before any layout work."""
    if not request.logos:
        raise InvalidInputError("No files uploaded")
    for logo in request.logos:
        if not logo.payload:
            raise InvalidInputError(f"Missing file content for {logo.filename or 'logo'}")
        if isinstance(logo.quantity, bool) or not isinstance(logo.quantity, int) or logo.quantity <= 0:
            raise InvalidInputError(f"Invalid quantity {logo.quantity!r} for {logo.filename}")
        for dim in (logo.width, logo.height):
            if dim is not None and dim <= 0:
                raise InvalidInputError(f"Invalid logo size {logo.width}x{logo.height} for {logo.filename}")
    request.settings.validate(strict_widths=request.strict_widths)


def logos_from_quantities(
    filenames: Sequence[str], payloads: Sequence[bytes], quantities: Sequence[int]
) -> List[LogoInput]:
    """Pair uploaded files with their quantities, which must line up one to one."""
    if not filenames:
        raise InvalidInputError("No files uploaded")
    if len(filenames) != len(quantities) or len(filenames) != len(payloads):
        raise InvalidInputError("File count doesn't match quantity count")
    return [LogoInput(f, p, q) for f, p, q in zip(filenames, payloads, quantities)]


def build_item(logo: LogoInput) -> Item:
    kind = detect_kind(logo.payload, logo.filename)
    if logo.width is not None and logo.height is not None:
        width, height = logo.width, logo.height
    else:
        width, height = measure_item(logo.payload, kind)
    return Item(Path(logo.filename).name, width, height, logo.quantity, logo.payload, kind)


def sheet_filename(sheet: Sheet, consolidated: bool, source_name: str = "", today: Optional[date] = None) -> str:
    size = f"{sheet.width_in:.0f}x{sheet.height_in}"
    if consolidated:
        stamp = (today or date.today()).strftime("%m-%d-%y")
        return f"{size}_gangsheet_{stamp}.pdf"
    return f"{size}_{Path(source_name).stem}.pdf"


def _disambiguate(results: List[SheetResult]) -> None:
    """Suffix the sheet number onto file names shared by several sheets."""
    counts = Counter(r.filename for r in results)
    for r in results:
        if counts[r.filename] > 1:
            stem = Path(r.filename).stem
            r.filename = f"{stem}_{r.sheet_index + 1}.pdf"


def run_job(request: JobRequest, today: Optional[date] = None) -> JobResult:
    validate_request(request)
    s = request.settings
    tables: CostTables = load_cost_tables(request.cost_tables)

    logging.info(f"Processing {len(request.logos)} file(s)")
    logging.info(f"Selected gang width: {s.gang_width} inches")
    logging.info(f"Max sheet length: {s.max_length} inches")

    items = [build_item(logo) for logo in request.logos]
    oriented: List[OrientedItem] = [
        orient_item(item, s.width_pt, s.max_length_pt, s.margin_pt, s.spacing_pt, request.orientation)
        for item in items
    ]

    consolidated = request.consolidate if request.consolidate is not None else len(oriented) > 1
    if not consolidated and len(oriented) > 1:
        raise InvalidInputError("Single-file packing takes exactly one file; use consolidation for several")

    if consolidated:
        sheets = pack_consolidated(
            [(o, o.quantity) for o in oriented], s.width_pt, s.max_length_pt, s.margin_pt, s.spacing_pt, HEIGHT_UNIT_PT
        )
    else:
        only = oriented[0]
        sheets = pack_single_file(
            only, only.quantity, s.width_pt, s.max_length_pt, s.margin_pt, s.spacing_pt, HEIGHT_UNIT_PT
        )

    sheets = price_sheets(sheets, tables)

    results: List[SheetResult] = []
    for sheet in sheets:
        artifact = render_sheet(sheet) if request.render else None
        utilization = sheet_utilization(sheet)
        results.append(SheetResult(
            sheet_index=sheet.index,
            width=sheet.width_in,
            height=sheet.height_in,
            cost=sheet.cost,
            filename=sheet_filename(sheet, consolidated, items[0].name, today),
            placements=sheet.placements,
            utilization=utilization,
            artifact=artifact,
        ))
        logging.info(
            f"Completed sheet {sheet.index + 1}: {sheet.width_in:.0f}x{sheet.height_in} - ${sheet.cost:.2f} "
            f"({sheet.item_count} logos, {utilization:.1%} used)"
        )

    _disambiguate(results)
    total = total_cost(sheets)
    logging.info(f"Total: {len(results)} sheets, ${total:.2f}")
    return JobResult(results, total, consolidated)
