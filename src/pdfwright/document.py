"""Document adapter over pypdf and reportlab.

pypdf parses, mutates and serializes the file; reportlab draws marks and
supplies font metrics. Draw calls on a page are batched: everything drawn
between two flushes becomes one Form XObject, invoked from one new entry at
the end of the page's /Contents array. That array is the page's ordered list
of content-drawing instructions, which is what the under-layer reorder works
on.
"""

from __future__ import annotations

import io
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from PIL import Image, UnidentifiedImageError
from pypdf import PageObject, PdfReader, PdfWriter
from pypdf.errors import FileNotDecryptedError, PyPdfError
from pypdf.generic import (
    ArrayObject,
    DecodedStreamObject,
    DictionaryObject,
    IndirectObject,
    NameObject,
    RectangleObject,
    StreamObject,
)
from reportlab.lib import colors
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from pdfwright.constants import FULL_TURN, QUARTER_TURN
from pdfwright.exceptions import DocumentLoadError, EmbedError, MutationError
from pdfwright.geometry import DocRect, Point, Size
from pdfwright.logging_config import get_logger

logger = get_logger(__name__)

# Prefix for the Form XObjects holding drawn marks
MARK_XOBJECT_PREFIX = "/PwMark"

ColorLike = str | tuple[float, float, float] | colors.Color


def parse_color(color: ColorLike) -> colors.Color:
    """Parse a color into a reportlab color object.

    Supports hex codes (e.g., "#FF0000"), reportlab color names
    (e.g., "black", "red") and (r, g, b) tuples of floats in 0..1.

    Raises:
        ValueError: If the color cannot be understood
    """
    if isinstance(color, colors.Color):
        return color
    if isinstance(color, tuple):
        r, g, b = color
        return colors.Color(r, g, b)

    text = color.strip()
    if text.startswith("#"):
        hex_str = text[1:]
        if len(hex_str) == 6:
            try:
                r = int(hex_str[0:2], 16) / 255
                g = int(hex_str[2:4], 16) / 255
                b = int(hex_str[4:6], 16) / 255
            except ValueError:
                raise ValueError(f"Invalid hex color: {color}")
            return colors.Color(r, g, b)
        raise ValueError(f"Invalid hex color: {color}")

    named = getattr(colors, text.lower(), None)
    if isinstance(named, colors.Color):
        return named

    raise ValueError(
        f"Unknown color: {color}. Use a color name (e.g., 'black', 'red') or hex code (e.g., '#FF0000')"
    )


def measure_text(text: str, font_name: str, font_size: float) -> Size:
    """Measure a single line of text with the font's metrics.

    Height spans from the font's descender to its ascender.
    """
    width = pdfmetrics.stringWidth(text, font_name, font_size)
    ascent, descent = pdfmetrics.getAscentDescent(font_name, font_size)
    return Size(width, ascent - descent)


@dataclass(frozen=True)
class PageGeometry:
    """The visible box of a page in document points.

    left/bottom locate the box in the page's user space; marks are placed
    relative to that corner.
    """

    left: float
    bottom: float
    width: float
    height: float

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)


@dataclass(frozen=True)
class EmbeddedImage:
    """A decoded image ready to be drawn.

    The natural size in points equals the pixel size, so scale 1.0 draws one
    point per pixel.
    """

    image: Image.Image
    format: str

    @property
    def size(self) -> Size:
        width, height = self.image.size
        return Size(float(width), float(height))

    def scaled(self, scale: float) -> Size:
        size = self.size
        return Size(size.width * scale, size.height * scale)


class Page:
    """One page of a Document.

    Geometry and rotation are read from and written to the pypdf page
    directly; draw calls are queued until flush().
    """

    def __init__(self, document: "Document", page_object: PageObject, index: int):
        self._document = document
        self._page = page_object
        self.index = index
        self._pending: list[Callable[[canvas.Canvas], None]] = []
        self._isolated = False

    @property
    def geometry(self) -> PageGeometry:
        box = self._page.cropbox
        return PageGeometry(
            float(box.left),
            float(box.bottom),
            float(box.width),
            float(box.height),
        )

    @property
    def size(self) -> Size:
        return self.geometry.size

    def set_crop_box(self, rect: DocRect) -> None:
        self._page.cropbox = RectangleObject(rect.as_box())

    def set_media_box(self, rect: DocRect) -> None:
        self._page.mediabox = RectangleObject(rect.as_box())

    @property
    def rotation(self) -> int:
        return int(self._page.rotation) % FULL_TURN

    @rotation.setter
    def rotation(self, degrees: int) -> None:
        if degrees % QUARTER_TURN != 0:
            raise MutationError(
                f"Page rotation must be a multiple of 90 degrees, got {degrees}",
                context={"page": self.index + 1},
            )
        self._page.rotation = degrees % FULL_TURN

    # -- drawing -----------------------------------------------------------

    def draw_text(
        self,
        text: str,
        origin: Point,
        font_name: str,
        font_size: float,
        color: ColorLike = "black",
        opacity: float = 1.0,
        rotation: float = 0.0,
    ) -> None:
        """Queue a line of text whose bounding box starts at origin.

        Rotation is counter-clockwise in degrees around origin, the box's
        lower-left corner.
        """
        fill = parse_color(color)
        _, descent = pdfmetrics.getAscentDescent(font_name, font_size)

        def draw(c: canvas.Canvas) -> None:
            c.saveState()
            c.setFillColor(fill)
            c.setFillAlpha(opacity)
            c.setFont(font_name, font_size)
            c.translate(origin.x, origin.y)
            if rotation:
                c.rotate(rotation)
            # Baseline sits above the box bottom by the descender depth
            c.drawString(0, -descent, text)
            c.restoreState()

        self._pending.append(draw)

    def draw_image(
        self,
        image: EmbeddedImage,
        rect: DocRect,
        opacity: float = 1.0,
        rotation: float = 0.0,
    ) -> None:
        """Queue an image stretched to rect, rotated around its lower-left corner."""
        reader = ImageReader(image.image)

        def draw(c: canvas.Canvas) -> None:
            c.saveState()
            c.setFillAlpha(opacity)
            c.translate(rect.x, rect.y)
            if rotation:
                c.rotate(rotation)
            c.drawImage(
                reader,
                0,
                0,
                width=rect.width,
                height=rect.height,
                mask="auto",
            )
            c.restoreState()

        self._pending.append(draw)

    def draw_rectangle(
        self,
        rect: DocRect,
        fill_color: ColorLike,
        border_color: ColorLike | None = None,
        border_width: float = 1.0,
        opacity: float = 1.0,
        rotation: float = 0.0,
    ) -> None:
        """Queue a filled rectangle with an optional border.

        Rotation turns the rectangle around its lower-left corner.
        """
        fill = parse_color(fill_color)
        stroke = parse_color(border_color) if border_color is not None else None

        def draw(c: canvas.Canvas) -> None:
            c.saveState()
            c.setFillColor(fill)
            c.setFillAlpha(opacity)
            if stroke is not None:
                c.setStrokeColor(stroke)
                c.setStrokeAlpha(opacity)
                c.setLineWidth(border_width)
            c.translate(rect.x, rect.y)
            if rotation:
                c.rotate(rotation)
            c.rect(
                0,
                0,
                rect.width,
                rect.height,
                stroke=1 if stroke is not None else 0,
                fill=1,
            )
            c.restoreState()

        self._pending.append(draw)

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def flush(self) -> bool:
        """Render queued draw calls into a new content entry.

        Returns:
            True if a content entry was appended
        """
        if not self._pending:
            return False

        geometry = self.geometry
        width = max(abs(geometry.width), 1.0)
        height = max(abs(geometry.height), 1.0)

        buffer = io.BytesIO()
        c = canvas.Canvas(buffer, pagesize=(width, height))
        for draw in self._pending:
            draw(c)
        c.showPage()
        c.save()
        self._pending.clear()

        overlay = PdfReader(io.BytesIO(buffer.getvalue())).pages[0]
        self._append_overlay(overlay, geometry, width, height)
        return True

    def _append_overlay(
        self,
        overlay: PageObject,
        geometry: PageGeometry,
        width: float,
        height: float,
    ) -> None:
        writer = self._document.writer

        form = DecodedStreamObject()
        form.set_data(_stream_bytes(overlay.get(NameObject("/Contents"))))
        form[NameObject("/Type")] = NameObject("/XObject")
        form[NameObject("/Subtype")] = NameObject("/Form")
        form[NameObject("/BBox")] = RectangleObject([0, 0, width, height])
        overlay_resources = overlay.get(NameObject("/Resources"))
        if overlay_resources is not None:
            form[NameObject("/Resources")] = overlay_resources.get_object().clone(writer)
        form_ref = writer._add_object(form)

        name = self._register_xobject(form_ref)
        invocation = DecodedStreamObject()
        invocation.set_data(
            f"q 1 0 0 1 {geometry.left:.4f} {geometry.bottom:.4f} cm {name} Do Q\n".encode("ascii")
        )
        self._append_content(writer._add_object(invocation))
        logger.debug("Appended %s to page %d", name, self.index + 1)

    def _register_xobject(self, form_ref: IndirectObject) -> str:
        resources = self._page.get(NameObject("/Resources"))
        if resources is None:
            resources = DictionaryObject()
            self._page[NameObject("/Resources")] = resources
        else:
            resources = resources.get_object()

        xobjects = resources.get(NameObject("/XObject"))
        if xobjects is None:
            xobjects = DictionaryObject()
            resources[NameObject("/XObject")] = xobjects
        else:
            xobjects = xobjects.get_object()

        n = 0
        while f"{MARK_XOBJECT_PREFIX}{n}" in xobjects:
            n += 1
        name = f"{MARK_XOBJECT_PREFIX}{n}"
        xobjects[NameObject(name)] = form_ref
        return name

    def _append_content(self, entry: IndirectObject) -> None:
        entries = self.content_entries()
        if entries and not self._isolated:
            # Existing content may leave the graphics state modified
            push, pop = self._document.state_streams()
            entries = [push, *entries, pop]
        self._isolated = True
        entries.append(entry)
        self._page[NameObject("/Contents")] = ArrayObject(entries)

    # -- content ordering ----------------------------------------------------

    def content_entries(self) -> list[IndirectObject]:
        """Return the page's content streams in paint order.

        Pending draw calls are not included until flushed.
        """
        contents = self._page.get(NameObject("/Contents"))
        if contents is None:
            return []
        target = contents.get_object()
        if isinstance(target, ArrayObject):
            return list(target)
        if isinstance(contents, IndirectObject):
            return [contents]
        # A direct stream is not valid PDF but is seen in the wild
        return [self._document.writer._add_object(target)]

    def move_last_content(self, to_front: bool = True) -> bool:
        """Move the most recently appended content entry to the front.

        Pending draw calls are flushed first, so the entry moved is the one
        holding them. A page with a single entry has nothing to reorder.

        Returns:
            True if the order changed
        """
        self.flush()
        entries = self.content_entries()
        if not to_front or len(entries) < 2:
            return False
        last = entries.pop()
        entries.insert(0, last)
        self._page[NameObject("/Contents")] = ArrayObject(entries)
        return True


def _stream_bytes(contents: Any) -> bytes:
    """Decoded bytes of a /Contents value (single stream or array)."""
    if contents is None:
        return b""
    target = contents.get_object()
    if isinstance(target, ArrayObject):
        return b"\n".join(_stream_bytes(item) for item in target)
    if isinstance(target, StreamObject):
        return target.get_data()
    return b""


class Document:
    """An open PDF, owned by one apply call at a time."""

    def __init__(self, writer: PdfWriter):
        self.writer = writer
        self._pages = [Page(self, page, i) for i, page in enumerate(writer.pages)]
        self._state_streams: tuple[IndirectObject, IndirectObject] | None = None
        self._lock = threading.Lock()

    @classmethod
    def load(cls, data: bytes) -> "Document":
        """Parse a document from bytes.

        Raises:
            DocumentLoadError: If the bytes are not a readable PDF
        """
        try:
            reader = PdfReader(io.BytesIO(data))
            writer = PdfWriter(clone_from=reader)
        except FileNotDecryptedError as e:
            raise DocumentLoadError("Document is password protected; unlock it first") from e
        except (PyPdfError, ValueError, KeyError, TypeError, OSError) as e:
            raise DocumentLoadError(f"Cannot read document: {e}") from e

        logger.debug("Loaded document with %d page(s)", len(writer.pages))
        return cls(writer)

    @property
    def page_count(self) -> int:
        return len(self._pages)

    @property
    def pages(self) -> list[Page]:
        return list(self._pages)

    def page(self, index: int) -> Page:
        return self._pages[index]

    def state_streams(self) -> tuple[IndirectObject, IndirectObject]:
        """Shared q / Q content streams used to isolate original content."""
        if self._state_streams is None:
            push = DecodedStreamObject()
            push.set_data(b"q\n")
            pop = DecodedStreamObject()
            pop.set_data(b"\nQ\n")
            self._state_streams = (self.writer._add_object(push), self.writer._add_object(pop))
        return self._state_streams

    @contextmanager
    def exclusive(self) -> Iterator["Document"]:
        """Hold the document for the duration of one apply call.

        Raises:
            MutationError: If another call already holds the document
        """
        if not self._lock.acquire(blocking=False):
            raise MutationError("Document is already being transformed by another call")
        try:
            yield self
        finally:
            self._lock.release()

    def embed_image(self, data: bytes, format_hint: str = "png") -> EmbeddedImage:
        """Decode image bytes for drawing.

        The hinted format is tried first, then the other supported format.

        Raises:
            EmbedError: If the bytes are neither a PNG nor a JPEG image
        """
        return embed_image(data, format_hint)

    def flush(self) -> None:
        for page in self._pages:
            page.flush()

    def save(self) -> bytes:
        """Serialize the document, flushing any queued drawing first.

        Raises:
            MutationError: If pypdf cannot write the document
        """
        self.flush()
        buffer = io.BytesIO()
        try:
            self.writer.write(buffer)
        except (PyPdfError, ValueError, KeyError, TypeError, OSError) as e:
            raise MutationError(f"Cannot serialize document: {e}") from e
        return buffer.getvalue()

    @classmethod
    def create_from_pages(cls, pages: list[Page]) -> "Document":
        """Build a new document from copies of existing pages.

        Queued drawing on the source pages is flushed first so it is carried
        along.
        """
        writer = PdfWriter()
        for page in pages:
            page.flush()
            writer.add_page(page._page)
        return cls(writer)

    def extract_page(self, index: int) -> bytes:
        """Serialize a single-page document holding only page index."""
        return Document.create_from_pages([self._pages[index]]).save()


def embed_image(data: bytes, format_hint: str = "png") -> EmbeddedImage:
    """Decode PNG or JPEG bytes, trying format_hint first."""
    hint = format_hint.lower().lstrip(".").replace("jpg", "jpeg")
    if hint.startswith("image/"):
        hint = hint[len("image/"):]
    order = ["PNG", "JPEG"] if hint != "jpeg" else ["JPEG", "PNG"]

    last_error: Exception | None = None
    for fmt in order:
        try:
            image = Image.open(io.BytesIO(data), formats=[fmt])
            image.load()
            return EmbeddedImage(image=image, format=fmt.lower())
        except (UnidentifiedImageError, OSError, ValueError) as e:
            last_error = e

    raise EmbedError(
        "Image could not be decoded as PNG or JPEG",
        context={"format_hint": format_hint, "bytes": len(data)},
    ) from last_error
