#!/usr/bin/env python3
"""
Create sample logo files for gang sheet testing.

Writes PDF and PNG logos of known sizes so the packer and renderer can be
exercised by hand:

    python create_test_files.py
    python gangsheet_cli.py compose --input test_scenarios/logo_4x2.pdf --quantity 100
"""

import io
from pathlib import Path

import fitz  # PyMuPDF
from PIL import Image, ImageDraw

PT_PER_INCH = 72


def make_pdf_logo(width_in: float, height_in: float, label: str = "LOGO") -> bytes:
    """Single-page PDF of the given size with a border and a label."""
    doc = fitz.open()
    page = doc.new_page(width=width_in * PT_PER_INCH, height=height_in * PT_PER_INCH)
    r = page.rect
    page.draw_rect(r + (2, 2, -2, -2), color=(1, 0, 0), width=2)
    page.insert_text((8, r.height / 2), label, fontsize=min(24, r.height / 3))
    data = doc.tobytes()
    doc.close()
    return data


def make_png_logo(width_px: int, height_px: int, dpi: int = None, color: str = "lightblue") -> bytes:
    """PNG of the given pixel size, optionally tagged with a DPI."""
    img = Image.new("RGB", (width_px, height_px), color=color)
    draw = ImageDraw.Draw(img)
    draw.rectangle([0, 0, width_px - 1, height_px - 1], outline="red", width=2)
    with io.BytesIO() as buf:
        if dpi:
            img.save(buf, format="PNG", dpi=(dpi, dpi))
        else:
            img.save(buf, format="PNG")
        return buf.getvalue()


def create_test_scenario(out_dir: Path = Path("test_scenarios")) -> list:
    out_dir.mkdir(parents=True, exist_ok=True)
    written = []

    samples = {
        "logo_4x2.pdf": make_pdf_logo(4, 2, "4x2"),
        "logo_3x3.pdf": make_pdf_logo(3, 3, "3x3"),
        "banner_12x2.pdf": make_pdf_logo(12, 2, "BANNER"),
        "oversized_24x24.pdf": make_pdf_logo(24, 24, "TOO BIG"),
        "badge_300dpi.png": make_png_logo(600, 300, dpi=300),
    }
    for name, data in samples.items():
        path = out_dir / name
        path.write_bytes(data)
        written.append(path)
        print(f"Created {path}")

    return written


if __name__ == "__main__":
    create_test_scenario()
