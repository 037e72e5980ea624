"""Placement math for anchored and tiled marks.

All results are in document space. Neither function clamps: an element
larger than the page resolves to an origin outside the margin (possibly
negative), which is accepted as best effort for oversized watermarks.
"""

from enum import Enum

from pdfwright.constants import TILE_GRID_SIZE
from pdfwright.geometry import DocRect, Point, Size


class Anchor(str, Enum):
    """The nine symbolic placement positions."""

    TOP_LEFT = "top-left"
    TOP_CENTER = "top-center"
    TOP_RIGHT = "top-right"
    CENTER_LEFT = "center-left"
    CENTER = "center"
    CENTER_RIGHT = "center-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_CENTER = "bottom-center"
    BOTTOM_RIGHT = "bottom-right"

    @property
    def vertical(self) -> str:
        """One of 'top', 'center', 'bottom'."""
        return self.value.split("-")[0]

    @property
    def horizontal(self) -> str:
        """One of 'left', 'center', 'right'."""
        parts = self.value.split("-")
        return parts[1] if len(parts) > 1 else "center"


# Two-letter codes used by the position pickers (row, column)
ANCHOR_CODES = {
    "tl": Anchor.TOP_LEFT,
    "tc": Anchor.TOP_CENTER,
    "tr": Anchor.TOP_RIGHT,
    "cl": Anchor.CENTER_LEFT,
    "cc": Anchor.CENTER,
    "cr": Anchor.CENTER_RIGHT,
    "bl": Anchor.BOTTOM_LEFT,
    "bc": Anchor.BOTTOM_CENTER,
    "br": Anchor.BOTTOM_RIGHT,
}


def resolve_anchor(anchor: Anchor, element: Size, page: Size, margin: float) -> Point:
    """
    Compute the bottom-left origin of an element placed at an anchor.

    Horizontal: left -> margin, center -> (W - w) / 2, right -> W - w - margin.
    Vertical: top -> H - h - margin, center -> (H - h) / 2, bottom -> margin.

    Args:
        anchor: Symbolic position
        element: Element size in points
        page: Page size in points
        margin: Distance from the page edge in points (ignored on centered axes)

    Returns:
        Origin point in document space
    """
    horizontal = anchor.horizontal
    if horizontal == "left":
        x = margin
    elif horizontal == "right":
        x = page.width - element.width - margin
    else:
        x = (page.width - element.width) / 2

    vertical = anchor.vertical
    if vertical == "top":
        y = page.height - element.height - margin
    elif vertical == "bottom":
        y = margin
    else:
        y = (page.height - element.height) / 2

    return Point(x, y)


def anchor_rect(anchor: Anchor, element: Size, page: Size, margin: float) -> DocRect:
    """Return the full rectangle occupied by an anchored element."""
    origin = resolve_anchor(anchor, element, page, margin)
    return DocRect(origin.x, origin.y, element.width, element.height)


def tile_centers(page: Size) -> list[Point]:
    """
    Return the 9 fixed tile centers for a page.

    Centers sit at (2k+1)/6 of each axis for k in 0..2. Ordering is outer-x,
    inner-y: all three rows of the left column first, bottom to top, then the
    middle column, then the right column.
    """
    steps = [2 * k + 1 for k in range(TILE_GRID_SIZE)]
    cells = 2 * TILE_GRID_SIZE
    return [
        Point(page.width * fx / cells, page.height * fy / cells)
        for fx in steps
        for fy in steps
    ]


def tile_placements(element: Size, page: Size) -> list[DocRect]:
    """Return the 9 tile rectangles, each centered on a tile center."""
    return [
        DocRect(
            center.x - element.width / 2,
            center.y - element.height / 2,
            element.width,
            element.height,
        )
        for center in tile_centers(page)
    ]
