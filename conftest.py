import pytest

from create_test_files import make_pdf_logo, make_png_logo
from gangsheet.config import SheetSettings
from gangsheet.layout import Item, OrientedItem

INCH = 72.0


@pytest.fixture
def settings():
    return SheetSettings(gang_width=22, max_length=200, margin=0.125, spacing=0.5)


@pytest.fixture
def pdf_4x2():
    return make_pdf_logo(4, 2, "4x2")


@pytest.fixture
def png_300dpi():
    return make_png_logo(600, 300, dpi=300)


def oriented(name, width_in, height_in, quantity=1, rotated=False):
    """Oriented item with sizes given in inches and no payload."""
    item = Item(name, width_in * INCH, height_in * INCH, quantity)
    return OrientedItem.from_item(item, rotated)
