"""Interactive crop box editing in UI percent space.

Pointer handlers in the display layer convert pointer positions with
geometry.pointer_to_percent and feed them to a CropDrag. Everything here is
pure: a drag never mutates a box, it returns a new one.
"""

from dataclasses import dataclass

from pdfwright.constants import DEFAULT_CROP_BOX, MIN_CROP_PERCENT, PERCENT_MAX, RESIZE_HANDLES
from pdfwright.geometry import UIRect


def default_crop_box() -> UIRect:
    """The box shown when a document is first opened or the crop is reset."""
    return UIRect(*DEFAULT_CROP_BOX)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def move_box(start: UIRect, dx: float, dy: float) -> UIRect:
    """Translate a box by a pointer delta, keeping it inside the page."""
    x = _clamp(start.x + dx, 0.0, PERCENT_MAX - start.width)
    y = _clamp(start.y + dy, 0.0, PERCENT_MAX - start.height)
    return UIRect(x, y, start.width, start.height)


def resize_box(start: UIRect, handle: str, dx: float, dy: float) -> UIRect:
    """
    Resize a box by dragging one of its eight handles.

    North/west handles move the origin along with the edge. The size is kept
    between MIN_CROP_PERCENT and 100, then the origin is pulled back inside
    the page.

    Args:
        start: Box at the moment the drag began
        handle: One of n, s, e, w, ne, nw, se, sw
        dx: Horizontal pointer delta in percent since the drag began
        dy: Vertical pointer delta in percent since the drag began

    Raises:
        ValueError: If handle is not a known handle name
    """
    if handle not in RESIZE_HANDLES:
        raise ValueError(f"Unknown resize handle: {handle}. Valid handles: {', '.join(RESIZE_HANDLES)}")

    x, y, width, height = start.as_tuple()

    if "n" in handle:
        height = start.height - dy
        y = start.y + dy
    elif "s" in handle:
        height = start.height + dy

    if "w" in handle:
        width = start.width - dx
        x = start.x + dx
    elif "e" in handle:
        width = start.width + dx

    width = _clamp(width, MIN_CROP_PERCENT, PERCENT_MAX)
    height = _clamp(height, MIN_CROP_PERCENT, PERCENT_MAX)
    x = _clamp(x, 0.0, PERCENT_MAX - width)
    y = _clamp(y, 0.0, PERCENT_MAX - height)
    return UIRect(x, y, width, height)


@dataclass(frozen=True)
class CropDrag:
    """A drag gesture in progress.

    Attributes:
        action: "move" or a resize handle name
        origin_x: Pointer x (percent) when the drag began
        origin_y: Pointer y (percent) when the drag began
        box: Crop box when the drag began
    """

    action: str
    origin_x: float
    origin_y: float
    box: UIRect

    @classmethod
    def begin(cls, action: str, pointer_x: float, pointer_y: float, box: UIRect) -> "CropDrag":
        if action != "move" and action not in RESIZE_HANDLES:
            raise ValueError(f"Unknown drag action: {action}")
        return cls(action, pointer_x, pointer_y, box)

    def update(self, pointer_x: float, pointer_y: float) -> UIRect:
        """Return the box for the current pointer position."""
        dx = pointer_x - self.origin_x
        dy = pointer_y - self.origin_y
        if self.action == "move":
            return move_box(self.box, dx, dy)
        return resize_box(self.box, self.action, dx, dy)
