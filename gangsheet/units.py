import math

PT_PER_INCH = 72.0

# Tolerance for float noise when snapping to whole units
EPSILON = 1e-9


def inch_to_pt(inch: float) -> float:
    return inch * PT_PER_INCH


def pt_to_inch(pt: float) -> float:
    return pt / PT_PER_INCH


def px_to_pt(px: int, dpi: float) -> float:
    return px * PT_PER_INCH / dpi


def round_up(value: float, unit: float) -> float:
    """Round value up to the next multiple of unit; exact multiples are kept."""
    n = math.floor(value / unit + EPSILON)
    if abs(n * unit - value) < EPSILON * max(1.0, abs(value)):
        return n * unit
    return (n + 1) * unit


def round_down(value: float, unit: float) -> float:
    """Largest multiple of unit not above value."""
    return math.floor(value / unit + EPSILON) * unit
