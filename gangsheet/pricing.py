"""
Tiered print pricing for finished gang sheets.

A sheet's height is rounded up to the next 12 inch step and priced from a
tier table keyed by height. Heights between defined tiers take the next
higher tier; heights past the last tier are charged the last tier's price
(flat-rate ceiling).
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Union

from .config import DEFAULT_GANG_WIDTH
from .errors import MalformedConfigError
from .layout import Sheet

CostTable = Dict[int, float]
CostTables = Dict[int, CostTable]

TIER_STEP_INCH = 12

DEFAULT_COST_TABLES: CostTables = {
    22: {
        12: 5.28, 24: 10.56, 36: 15.84, 48: 21.12, 60: 26.40, 80: 35.20,
        100: 44.00, 120: 49.28, 140: 56.32, 160: 61.60, 180: 68.64, 200: 75.68,
    },
    30: {
        12: 7.18, 24: 14.36, 36: 21.54, 48: 28.72, 60: 35.90, 80: 47.87,
        100: 59.84, 120: 67.02, 140: 76.60, 160: 83.78, 180: 93.35, 200: 102.92,
    },
}


def calculate_cost(sheet_width: float, height_inch: float, cost_table: Optional[Mapping[int, float]] = None) -> float:
    """
    Price one sheet.

    Args:
        sheet_width: Sheet width in inches (selects the default table)
        height_inch: Finished sheet height in inches
        cost_table: Tier table to use instead of the default for this width

    Returns:
        Price of the matching tier
    """
    table = cost_table if cost_table is not None else table_for_width(DEFAULT_COST_TABLES, sheet_width)
    if not table:
        raise MalformedConfigError("Cost table is empty")

    rounded = math.ceil(height_inch / TIER_STEP_INCH) * TIER_STEP_INCH
    if rounded in table:
        return table[rounded]

    tiers = sorted(table)
    for tier in tiers:
        if tier >= rounded:
            return table[tier]
    return table[tiers[-1]]


def table_for_width(tables: Mapping[int, CostTable], sheet_width: float) -> CostTable:
    """Tier table for a width; widths without a table use the default width's."""
    key = int(round(sheet_width))
    if key in tables:
        return tables[key]
    logging.debug(f"No cost table for {sheet_width}\" sheets, using {DEFAULT_GANG_WIDTH}\" table")
    return tables.get(DEFAULT_GANG_WIDTH) or DEFAULT_COST_TABLES[DEFAULT_GANG_WIDTH]


def parse_cost_tables(raw: Union[str, bytes, Mapping[Any, Any]]) -> CostTables:
    """
    Parse and validate caller supplied cost tables.

    Accepts JSON text or a mapping of {width: {height: price}}.

    Raises:
        MalformedConfigError: on invalid JSON, keys or prices
    """
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise MalformedConfigError(f"Cost tables are not valid JSON: {e}") from e
    else:
        data = raw

    if not isinstance(data, Mapping) or not data:
        raise MalformedConfigError("Cost tables must be a non-empty mapping of width -> table")

    tables: CostTables = {}
    for width_key, table in data.items():
        width = _positive_int(width_key, "sheet width")
        if not isinstance(table, Mapping) or not table:
            raise MalformedConfigError(f"Cost table for {width_key}\" must be a non-empty mapping")
        parsed: CostTable = {}
        for height_key, price in table.items():
            height = _positive_int(height_key, "tier height")
            if isinstance(price, bool) or not isinstance(price, (int, float)) or price < 0 or math.isnan(price):
                raise MalformedConfigError(f"Invalid price {price!r} for {width}\" x {height}\" tier")
            parsed[height] = float(price)
        tables[width] = parsed
    return tables


def _positive_int(value: Any, label: str) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise MalformedConfigError(f"Invalid {label}: {value!r}") from e
    if number <= 0 or not number.is_integer():
        raise MalformedConfigError(f"Invalid {label}: {value!r}")
    return int(number)


def load_cost_tables(raw: Union[str, bytes, Mapping[Any, Any], None] = None) -> CostTables:
    """Caller tables when valid, otherwise the built-in defaults."""
    if raw is None:
        return DEFAULT_COST_TABLES
    try:
        return parse_cost_tables(raw)
    except MalformedConfigError as e:
        logging.warning(f"Invalid cost tables provided, using default: {e}")
        return DEFAULT_COST_TABLES


def price_sheets(sheets: List[Sheet], tables: Optional[Mapping[int, CostTable]] = None) -> List[Sheet]:
    """Return copies of the sheets with their cost filled in."""
    tables = tables if tables is not None else DEFAULT_COST_TABLES
    priced = []
    for sheet in sheets:
        table = table_for_width(tables, sheet.width_in)
        cost = calculate_cost(sheet.width_in, sheet.height_in, table)
        priced.append(replace(sheet, cost=cost))
    return priced


def total_cost(sheets: List[Sheet]) -> float:
    return round(sum(s.cost or 0.0 for s in sheets), 2)
