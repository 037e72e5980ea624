"""Page range selection logic for pdfwright."""

import re
from dataclasses import dataclass
from typing import Any

from pdfwright.exceptions import InvalidRange


@dataclass(frozen=True)
class PageRange:
    """An inclusive, 1-indexed page range.

    Attributes:
        start: First page (1-indexed, must be >= 1)
        end: Last page (1-indexed), or None for "to the last page"
    """

    start: int = 1
    end: int | None = None

    def __post_init__(self):
        if self.start < 1:
            raise InvalidRange(
                f"Page range must start at page 1 or later, got {self.start}",
                context={"start": self.start, "end": self.end},
            )

    @classmethod
    def all(cls) -> "PageRange":
        return cls(1, None)

    def describe(self) -> str:
        if self.end is None:
            return "all pages" if self.start == 1 else f"pages {self.start}-end"
        if self.end == self.start:
            return f"page {self.start}"
        return f"pages {self.start}-{self.end}"

    def to_spec(self) -> str:
        """Return the string form accepted by parse_page_range."""
        if self.end is None:
            return "all" if self.start == 1 else f"{self.start}-"
        return f"{self.start}-{self.end}"


def range_bounds(page_range: PageRange, total_pages: int) -> tuple[int, int]:
    """
    Return the clamped 0-indexed (start, end) bounds of a range.

    end < start means the range selects nothing.
    """
    start = max(0, page_range.start - 1)
    if page_range.end is not None:
        end = min(total_pages - 1, page_range.end - 1)
    else:
        end = total_pages - 1
    return start, end


def resolve_range(page_range: PageRange, total_pages: int) -> list[int]:
    """
    Convert a page range to an ordered list of 0-indexed page numbers.

    The end is clamped to the document; a range that ends before it starts
    (or starts past the last page) selects nothing rather than raising.

    Args:
        page_range: Range to resolve
        total_pages: Total number of pages in the document

    Returns:
        Ordered, duplicate-free list of 0-indexed page numbers
    """
    start, end = range_bounds(page_range, total_pages)
    if end < start:
        return []
    return list(range(start, end + 1))


def sequence_number(page_index: int, page_range: PageRange, start_value: int = 1) -> int:
    """
    Return the display number of a page inside a numbered range.

    The first page of the range shows start_value, the next start_value + 1,
    and so on.

    Args:
        page_index: 0-indexed page number
        page_range: The range being numbered
        start_value: Number shown on the first page of the range
    """
    start = max(0, page_range.start - 1)
    return start_value + (page_index - start)


def parse_page_range(spec: Any) -> PageRange:
    """
    Parse a page range specification.

    Supports:
    - None or "all": every page
    - Integer or digit string: a single page, "3" -> page 3
    - Range string: "2-5" -> pages 2 through 5
    - Open range: "3-" -> page 3 to the end
    - Two-item list: [2, 5], [3, None]
    - Mapping: {"from": 2, "to": 5}

    Raises:
        InvalidRange: If the specification is malformed or starts below page 1
    """
    if spec is None:
        return PageRange.all()

    if isinstance(spec, bool):
        raise InvalidRange(f"Invalid page range: {spec!r}")

    if isinstance(spec, int):
        return PageRange(spec, spec)

    if isinstance(spec, dict):
        try:
            start = int(spec.get("from", 1))
            end = spec.get("to")
            return PageRange(start, int(end) if end is not None else None)
        except (TypeError, ValueError):
            raise InvalidRange(f"Invalid page range: {spec!r}")

    if isinstance(spec, (list, tuple)):
        if len(spec) != 2:
            raise InvalidRange(f"Page range list must have two items, got {len(spec)}")
        start, end = spec
        try:
            return PageRange(int(start), int(end) if end is not None else None)
        except (TypeError, ValueError):
            raise InvalidRange(f"Invalid page range: {spec!r}")

    if not isinstance(spec, str):
        raise InvalidRange(
            f"Page range must be a string, int, list or mapping, got {type(spec).__name__}"
        )

    text = spec.strip().lower()
    if text in ("", "all"):
        return PageRange.all()

    if text.isdigit():
        page = int(text)
        return PageRange(page, page)

    match = re.match(r"^(\d+)\s*-\s*(\d*)$", text)
    if not match:
        raise InvalidRange(
            f"Unknown page range: '{spec}'. "
            f"Valid formats: 'all', a page number (5), or a range (2-5, 3-)"
        )
    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) else None
    return PageRange(start, end)


def validate_page_range_syntax(spec: Any) -> None:
    """
    Validate a page range specification without a document.

    This validates the FORMAT only; clamping against the page count happens
    when the range is resolved.

    Raises:
        InvalidRange: If the specification syntax is invalid
    """
    parse_page_range(spec)
