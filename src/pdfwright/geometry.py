"""Coordinate mapping between UI space and document space.

UI space is percent of the displayed page with the origin at the top-left and
Y growing downward. Document space is PDF points with the origin at the
bottom-left and Y growing upward. The two are kept apart by type: UIRect
values only ever hold percentages and DocRect values only ever hold points.
"""

from dataclasses import dataclass

from pdfwright.constants import PERCENT_MAX
from pdfwright.exceptions import InvalidGeometry


@dataclass(frozen=True)
class Point:
    """A position in document space (points)."""

    x: float
    y: float


@dataclass(frozen=True)
class Size:
    """A width/height pair in document space (points)."""

    width: float
    height: float


@dataclass(frozen=True)
class UIRect:
    """A rectangle in UI percent space (0..100, top-left origin)."""

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_sequence(cls, values) -> "UIRect":
        """Build from an [x, y, width, height] sequence."""
        x, y, width, height = (float(v) for v in values)
        return cls(x, y, width, height)

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)


@dataclass(frozen=True)
class DocRect:
    """A rectangle in document space (points, bottom-left origin)."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)

    def translated(self, dx: float, dy: float) -> "DocRect":
        return DocRect(self.x + dx, self.y + dy, self.width, self.height)

    def as_box(self) -> tuple[float, float, float, float]:
        """Return (left, bottom, right, top) as used by PDF page boxes."""
        return (self.x, self.y, self.right, self.top)


def _check_page_size(page_width: float, page_height: float) -> None:
    if page_width <= 0 or page_height <= 0:
        raise InvalidGeometry(
            f"Page dimensions must be positive, got {page_width} x {page_height}",
            context={"width": page_width, "height": page_height},
        )


def to_document_space(ui_rect: UIRect, page_width: float, page_height: float) -> DocRect:
    """
    Convert a UI percent rectangle to a document rectangle in points.

    The vertical axis flips: a box starting y% from the top ends up with its
    bottom edge at page_height - y% - height.

    Args:
        ui_rect: Rectangle in percent of the displayed page
        page_width: Page width in points
        page_height: Page height in points

    Returns:
        The same rectangle in document points

    Raises:
        InvalidGeometry: If page_width or page_height is not positive
    """
    _check_page_size(page_width, page_height)

    width = ui_rect.width / PERCENT_MAX * page_width
    height = ui_rect.height / PERCENT_MAX * page_height
    x = ui_rect.x / PERCENT_MAX * page_width
    y = page_height - ui_rect.y / PERCENT_MAX * page_height - height
    return DocRect(x, y, width, height)


def to_ui_space(doc_rect: DocRect, page_width: float, page_height: float) -> UIRect:
    """
    Convert a document rectangle in points to UI percent space.

    Exact inverse of to_document_space.

    Raises:
        InvalidGeometry: If page_width or page_height is not positive
    """
    _check_page_size(page_width, page_height)

    width = doc_rect.width / page_width * PERCENT_MAX
    height = doc_rect.height / page_height * PERCENT_MAX
    x = doc_rect.x / page_width * PERCENT_MAX
    y = (page_height - doc_rect.y - doc_rect.height) / page_height * PERCENT_MAX
    return UIRect(x, y, width, height)


def pointer_to_percent(
    pointer_x: float,
    pointer_y: float,
    element_left: float,
    element_top: float,
    element_width: float,
    element_height: float,
) -> tuple[float, float]:
    """
    Convert a pointer position to percent of a displayed element.

    All inputs are in the display's pixel space (top-left origin). The result
    is not clamped: a pointer dragged outside the page yields values below 0
    or above 100, which the crop editor clamps.

    Raises:
        InvalidGeometry: If the element has no area
    """
    _check_page_size(element_width, element_height)
    x = (pointer_x - element_left) / element_width * PERCENT_MAX
    y = (pointer_y - element_top) / element_height * PERCENT_MAX
    return x, y
