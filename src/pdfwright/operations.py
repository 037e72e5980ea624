"""Operation specifications for pdfwright.

Each transform is an immutable value object created from UI state when the
user commits a setting. OperationSpec is the closed union of all kinds; the
applier has exactly one handler per member.
"""

import base64
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, ClassVar, Union

from pdfwright.constants import (
    DEFAULT_IMAGE_SCALE,
    DEFAULT_NUMBER_COLOR,
    DEFAULT_NUMBER_FONT_SIZE,
    DEFAULT_NUMBER_MARGIN,
    DEFAULT_WATERMARK_COLOR,
    DEFAULT_WATERMARK_FONT_SIZE,
    DEFAULT_WATERMARK_MARGIN,
    DEFAULT_WATERMARK_OPACITY,
    DEFAULT_WATERMARK_ROTATION,
    DEFAULT_WATERMARK_TEXT,
    FULL_TURN,
    QUARTER_TURN,
)
from pdfwright.exceptions import InvalidGeometry, InvalidRange
from pdfwright.geometry import UIRect
from pdfwright.placement import Anchor
from pdfwright.selector import PageRange


class WatermarkKind(str, Enum):
    """What a watermark draws."""

    TEXT = "text"
    IMAGE = "image"


class Layer(str, Enum):
    """Paint order of a mark relative to existing page content."""

    OVER = "over"
    UNDER = "under"


class NumberFormat(str, Enum):
    """Page number label formats. N is the page's number, T the page total."""

    N = "N"
    N_OF_T = "N of T"
    PAGE_N = "Page N"
    PAGE_N_OF_T = "Page N of T"

    @classmethod
    def parse(cls, value: str) -> "NumberFormat":
        """Parse a format, accepting 'n', 'page n of total' and similar spellings."""
        normalized = " ".join(value.strip().lower().replace("total", "t").split())
        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise ValueError(value)


def format_page_number(number_format: NumberFormat, number: int, total: int) -> str:
    """Build the label for one page, e.g. 'Page 3 of 20'."""
    if number_format is NumberFormat.N:
        return f"{number}"
    if number_format is NumberFormat.N_OF_T:
        return f"{number} of {total}"
    if number_format is NumberFormat.PAGE_N:
        return f"Page {number}"
    if number_format is NumberFormat.PAGE_N_OF_T:
        return f"Page {number} of {total}"
    raise ValueError(f"Unknown page number format: {number_format}")


def normalize_rotation(degrees: int) -> int:
    """Map any multiple of 90 onto [0, 360)."""
    return degrees % FULL_TURN


@dataclass(frozen=True)
class CropOperation:
    """Crop every page in range to the same percent box.

    The box is reapplied to each page's own dimensions, so mixed page sizes
    crop to the same relative region.
    """

    kind: ClassVar[str] = "crop"

    box: UIRect
    page_range: PageRange = field(default_factory=PageRange.all)

    def describe(self) -> str:
        b = self.box
        return f"crop {b.width:g}%x{b.height:g}% at ({b.x:g}%, {b.y:g}%) on {self.page_range.describe()}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "crop": {
                "box": list(self.box.as_tuple()),
                "pages": self.page_range.to_spec(),
            }
        }


@dataclass(frozen=True)
class RotateOperation:
    """Rotate individual pages by multiples of 90 degrees.

    deltas maps 0-indexed pages to a clockwise delta. Deltas accumulate on
    the page's existing rotation.
    """

    kind: ClassVar[str] = "rotate"

    deltas: Mapping[int, int] = field(default_factory=dict)

    def __post_init__(self):
        checked: dict[int, int] = {}
        for page_index, degrees in self.deltas.items():
            page_index = int(page_index)
            degrees = int(degrees)
            if page_index < 0:
                raise InvalidRange(
                    f"Rotation page index must be 0 or greater, got {page_index}",
                    context={"page_index": page_index},
                )
            if degrees % QUARTER_TURN != 0:
                raise InvalidGeometry(
                    f"Rotation must be a multiple of 90 degrees, got {degrees}",
                    context={"page_index": page_index},
                )
            checked[page_index] = degrees
        object.__setattr__(self, "deltas", MappingProxyType(checked))

    def delta_for(self, page_index: int) -> int:
        return self.deltas.get(page_index, 0)

    def target_pages(self, total_pages: int) -> list[int]:
        """Pages that exist in the document and actually change orientation."""
        return sorted(
            i for i, d in self.deltas.items() if i < total_pages and normalize_rotation(d) != 0
        )

    def describe(self) -> str:
        if not self.deltas:
            return "rotate (no pages)"
        parts = ", ".join(f"p{i + 1}:{d:+d}" for i, d in sorted(self.deltas.items()))
        return f"rotate {parts}"

    def to_dict(self) -> dict[str, Any]:
        return {"rotate": {"deltas": {i: d for i, d in sorted(self.deltas.items())}}}


@dataclass(frozen=True)
class WatermarkOperation:
    """Stamp text or an image on every page in range.

    Text size is font_size; image size is the image's natural size times
    image_scale. When tiled, the anchor is ignored and the mark is drawn at
    the 9 tile positions.
    """

    kind: ClassVar[str] = "watermark"

    watermark_kind: WatermarkKind = WatermarkKind.TEXT
    text: str = DEFAULT_WATERMARK_TEXT
    image: bytes | None = field(default=None, repr=False)
    image_format: str = "png"
    font_size: float = DEFAULT_WATERMARK_FONT_SIZE
    image_scale: float = DEFAULT_IMAGE_SCALE
    color: str = DEFAULT_WATERMARK_COLOR
    opacity: float = DEFAULT_WATERMARK_OPACITY
    rotation: float = DEFAULT_WATERMARK_ROTATION
    anchor: Anchor = Anchor.CENTER
    tiled: bool = False
    layer: Layer = Layer.OVER
    margin: float = DEFAULT_WATERMARK_MARGIN
    page_range: PageRange = field(default_factory=PageRange.all)

    @property
    def is_text(self) -> bool:
        return self.watermark_kind is WatermarkKind.TEXT

    def describe(self) -> str:
        what = f"'{self.text}'" if self.is_text else "image"
        where = "tiled" if self.tiled else self.anchor.value
        return f"watermark {what} {where} ({self.layer.value}) on {self.page_range.describe()}"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "kind": self.watermark_kind.value,
            "opacity": self.opacity,
            "rotation": self.rotation,
            "position": self.anchor.value,
            "tiled": self.tiled,
            "layer": self.layer.value,
            "margin": self.margin,
            "pages": self.page_range.to_spec(),
        }
        if self.is_text:
            data.update(text=self.text, font_size=self.font_size, color=self.color)
        else:
            data.update(scale=self.image_scale, image_format=self.image_format)
            if self.image is not None:
                data["image_base64"] = base64.b64encode(self.image).decode("ascii")
        return {"watermark": data}


@dataclass(frozen=True)
class PageNumberOperation:
    """Number the pages in range.

    The first page of the range shows start_value. T in the format is always
    the page count of the whole document, not the size of the range.
    """

    kind: ClassVar[str] = "page_numbers"

    number_format: NumberFormat = NumberFormat.N
    start_value: int = 1
    anchor: Anchor = Anchor.BOTTOM_CENTER
    font_size: float = DEFAULT_NUMBER_FONT_SIZE
    margin: float = DEFAULT_NUMBER_MARGIN
    color: str = DEFAULT_NUMBER_COLOR
    page_range: PageRange = field(default_factory=PageRange.all)

    def describe(self) -> str:
        return f"page numbers '{self.number_format.value}' from {self.start_value} on {self.page_range.describe()}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "page_numbers": {
                "format": self.number_format.value,
                "start": self.start_value,
                "position": self.anchor.value,
                "font_size": self.font_size,
                "margin": self.margin,
                "color": self.color,
                "pages": self.page_range.to_spec(),
            }
        }


OperationSpec = Union[CropOperation, RotateOperation, WatermarkOperation, PageNumberOperation]

OPERATION_CLASSES: tuple[type, ...] = (
    CropOperation,
    RotateOperation,
    WatermarkOperation,
    PageNumberOperation,
)


class RotationPlan:
    """Accumulates per-page rotation clicks before they are committed.

    Values are kept normalized to [0, 360) the way the page thumbnails show
    them.
    """

    def __init__(self, page_count: int):
        self.page_count = page_count
        self._rotations = [0] * page_count

    def rotate_page(self, page_index: int, delta: int) -> int:
        """Rotate one page by delta degrees and return its new rotation."""
        if not 0 <= page_index < self.page_count:
            raise InvalidRange(
                f"Page {page_index + 1} is out of range for {self.page_count} page document",
                context={"page_index": page_index},
            )
        if delta % QUARTER_TURN != 0:
            raise InvalidGeometry(f"Rotation must be a multiple of 90 degrees, got {delta}")
        self._rotations[page_index] = normalize_rotation(self._rotations[page_index] + delta)
        return self._rotations[page_index]

    def rotate_all(self, delta: int) -> None:
        """Rotate every page by delta degrees."""
        for i in range(self.page_count):
            self.rotate_page(i, delta)

    def reset(self) -> None:
        self._rotations = [0] * self.page_count

    @property
    def rotations(self) -> list[int]:
        return list(self._rotations)

    def to_operation(self) -> RotateOperation:
        """Commit the plan, keeping only pages that changed."""
        return RotateOperation({i: r for i, r in enumerate(self._rotations) if r})
