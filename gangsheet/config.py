"""
Configuration and defaults for gang sheet generation.

Sheet dimensions are expressed in inches at the edges of the system and
converted to points before any layout arithmetic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .errors import InvalidInputError
from .units import PT_PER_INCH, inch_to_pt

SAFE_MARGIN_INCH = 0.125
SPACING_INCH = 0.5
STANDARD_GANG_WIDTHS: Tuple[int, ...] = (22, 30)
DEFAULT_GANG_WIDTH = 22
DEFAULT_MAX_LENGTH_INCH = 200.0

# Sheet heights are trimmed and rounded up to whole inches
HEIGHT_UNIT_PT = PT_PER_INCH

LOG_FILE = "gangsheet_debug.log"


@dataclass(frozen=True)
class SheetSettings:
    """Physical sheet constraints for one job (all values in inches)."""
    gang_width: float = DEFAULT_GANG_WIDTH
    max_length: float = DEFAULT_MAX_LENGTH_INCH
    margin: float = SAFE_MARGIN_INCH
    spacing: float = SPACING_INCH

    @property
    def width_pt(self) -> float:
        return inch_to_pt(self.gang_width)

    @property
    def max_length_pt(self) -> float:
        return inch_to_pt(self.max_length)

    @property
    def margin_pt(self) -> float:
        return inch_to_pt(self.margin)

    @property
    def spacing_pt(self) -> float:
        return inch_to_pt(self.spacing)

    def validate(self, strict_widths: bool = False) -> None:
        if self.gang_width <= 0 or self.max_length <= 0:
            raise InvalidInputError(
                f"Sheet width and max length must be positive (got {self.gang_width} x {self.max_length})"
            )
        if not float(self.gang_width).is_integer() or not float(self.max_length).is_integer():
            raise InvalidInputError(
                f"Sheet width and max length must be whole inches (got {self.gang_width} x {self.max_length})"
            )
        if self.margin < 0 or self.spacing < 0:
            raise InvalidInputError(
                f"Margin and spacing cannot be negative (got margin={self.margin}, spacing={self.spacing})"
            )
        if 2 * self.margin >= min(self.gang_width, self.max_length):
            raise InvalidInputError(f"Margin {self.margin} leaves no usable sheet area")
        if strict_widths and self.gang_width not in STANDARD_GANG_WIDTHS:
            allowed = ", ".join(str(w) for w in STANDARD_GANG_WIDTHS)
            raise InvalidInputError(f"Unsupported gang width {self.gang_width}; choose one of {allowed}")
