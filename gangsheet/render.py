from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

import fitz  # PyMuPDF
from PIL import Image

from .errors import InvalidInputError
from .layout import Sheet
from .units import PT_PER_INCH, pt_to_inch, px_to_pt

SUPPORTED_KINDS = ("pdf", "png")

# Payload bytes and kind ("pdf" or "png")
Content = Tuple[bytes, str]


def detect_kind(payload: bytes, filename: Optional[str] = None) -> str:
    """Identify a logo payload by file extension, falling back to magic bytes."""
    if filename:
        ext = Path(filename).suffix.lower().lstrip(".")
        if ext in SUPPORTED_KINDS:
            return ext
        if ext:
            raise InvalidInputError(f"Unsupported file type: {ext}. Please use PDF or PNG files.")
    if payload.startswith(b"%PDF"):
        return "pdf"
    if payload.startswith(b"\x89PNG"):
        return "png"
    raise InvalidInputError(f"Unsupported file type for {filename or 'payload'}. Please use PDF or PNG files.")


def measure_item(payload: bytes, kind: str) -> Tuple[float, float]:
    """
    Measure a logo in points.

    PDFs use the first page's rectangle. PNGs use their pixel size at the
    recorded DPI, or one pixel per point when no DPI is stored.

    Args:
        payload: Raw file content
        kind: "pdf" or "png"

    Returns:
        Tuple of (width_pt, height_pt)
    """
    if not payload:
        raise InvalidInputError("Empty file")

    if kind == "pdf":
        try:
            with fitz.open(stream=payload, filetype="pdf") as doc:
                if doc.page_count < 1:
                    raise InvalidInputError("PDF has no pages")
                r = doc.load_page(0).rect
                width, height = r.width, r.height
        except (fitz.FileDataError, RuntimeError) as e:
            raise InvalidInputError(f"Cannot read PDF: {e}") from e
    elif kind == "png":
        try:
            with Image.open(io.BytesIO(payload)) as img:
                width_px, height_px = img.size
                dpi = img.info.get("dpi", (PT_PER_INCH, PT_PER_INCH))
        except (OSError, Image.DecompressionBombError) as e:
            raise InvalidInputError(f"Cannot read PNG: {e}") from e
        dpi_x = float(dpi[0]) or PT_PER_INCH
        dpi_y = float(dpi[1]) or PT_PER_INCH
        width, height = px_to_pt(width_px, dpi_x), px_to_pt(height_px, dpi_y)
    else:
        raise InvalidInputError(f"Unsupported file type: {kind}")

    if width <= 0 or height <= 0:
        raise InvalidInputError(f"Invalid logo size {width}x{height}pt")

    logging.debug(f"Measured {kind}: {width:.1f}x{height:.1f}pt ({pt_to_inch(width):.2f}\" x {pt_to_inch(height):.2f}\")")
    return width, height


def render_sheet(sheet: Sheet, content_lookup: Optional[Mapping[str, Content]] = None) -> bytes:
    """
    Draw every placement of a sheet onto a single PDF page.

    Args:
        sheet: Packed sheet, coordinates in points from the bottom-left corner
        content_lookup: Optional item name -> (payload, kind); defaults to each item's own payload

    Returns:
        PDF file bytes
    """
    logging.info(f"Rendering sheet {sheet.index + 1}: {sheet.width_in:.0f}\" x {sheet.height_in}\" with {sheet.item_count} items")

    out = fitz.open()
    page = out.new_page(width=sheet.width, height=sheet.height)
    sources: Dict[int, fitz.Document] = {}

    try:
        for pl in sheet.placements:
            item = pl.item.item
            payload, kind = (content_lookup or {}).get(item.name, (item.payload, item.kind))

            # PyMuPDF user space runs top-down
            x0, y0, x1, y1 = pl.bounds
            rect = fitz.Rect(x0, sheet.height - y1, x1, sheet.height - y0)
            rotate = 90 if pl.rotated else 0

            if kind == "pdf":
                src = sources.get(id(item))
                if src is None:
                    src = fitz.open(stream=payload, filetype="pdf")
                    sources[id(item)] = src
                page.show_pdf_page(rect, src, 0, rotate=rotate)
            elif kind == "png":
                page.insert_image(rect, stream=payload, rotate=rotate)
            else:
                raise InvalidInputError(f"Unsupported file type: {kind}")

        out.set_metadata({
            "title": f"Gang Sheet - {sheet.width_in:.0f}x{sheet.height_in}",
            "author": "gangsheet",
            "creator": "gangsheet",
            "producer": "gangsheet",
            "subject": "DTF Gang Sheet",
        })
        data = out.tobytes(garbage=3, deflate=True)
    finally:
        for src in sources.values():
            src.close()
        out.close()

    logging.debug(f"Sheet {sheet.index + 1} PDF: {len(data):,} bytes")
    return data


def render_proof(pdf_bytes: bytes, dpi: int = 72) -> bytes:
    """Rasterize the first page of a rendered sheet to PNG bytes."""
    with fitz.open(stream=pdf_bytes, filetype="pdf") as doc:
        page = doc.load_page(0)
        scale = dpi / PT_PER_INCH
        pm = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
        img = Image.frombytes("RGB", (pm.width, pm.height), pm.samples)

    logging.debug(f"Proof image: {img.width}x{img.height}px at {dpi} DPI")
    with io.BytesIO() as buf:
        img.save(buf, format="PNG", dpi=(dpi, dpi))
        return buf.getvalue()
