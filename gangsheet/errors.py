"""
Exceptions raised by the gang sheet engine.

Validation problems are raised before any layout work; layout infeasibility
is raised by the packers. Callers (the CLI) decide how to report them.
"""

from __future__ import annotations

from typing import Optional


class GangSheetError(Exception):
    """Base error"""
    pass


class InvalidInputError(GangSheetError):
    """Missing file, bad quantity, count mismatch or unusable sheet settings"""
    pass


class ItemTooLargeError(GangSheetError):
    """An item cannot be placed on a sheet in any allowed orientation"""

    def __init__(self, message: str, item_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.item_name = item_name


class MalformedConfigError(GangSheetError):
    """An externally supplied cost table could not be parsed or validated"""
    pass
