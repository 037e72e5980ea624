"""Single-page previews of an operation before it is exported.

A preview runs the same handler the applier uses, but on one page only and
with image watermarks replaced by a placeholder box. PreviewScheduler
debounces rapid setting changes so only the latest request is rendered.
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pdfwright.constants import DEFAULT_PREVIEW_DEBOUNCE_MS
from pdfwright.document import Document
from pdfwright.exceptions import DocumentLoadError, PdfWrightError
from pdfwright.logging_config import get_logger
from pdfwright.operations import (
    CropOperation,
    OperationSpec,
    PageNumberOperation,
    RotateOperation,
    WatermarkOperation,
)
from pdfwright.selector import resolve_range
from pdfwright.transforms import HandlerRegistry, TransformContext

if TYPE_CHECKING:
    from pdfwright.config import Settings

logger = get_logger(__name__)


def preview_page_index(operation: OperationSpec, total_pages: int) -> int:
    """
    Choose the page a preview shows.

    Crop and page numbers show the first page of their range, rotation the
    lowest page it turns, and watermarks always the first page. Any of these
    falls back to page 0 when there is nothing to show.
    """
    if isinstance(operation, (CropOperation, PageNumberOperation)):
        pages = resolve_range(operation.page_range, total_pages)
        return pages[0] if pages else 0
    if isinstance(operation, RotateOperation):
        pages = operation.target_pages(total_pages)
        return pages[0] if pages else 0
    if isinstance(operation, WatermarkOperation):
        return 0
    raise TypeError(f"Unknown operation type: {type(operation).__name__}")


@dataclass(frozen=True)
class PreviewResult:
    """A rendered preview.

    Attributes:
        page_index: 0-indexed page of the source document that was previewed
        pdf_bytes: Single-page PDF (or the whole document when not extracted)
    """

    page_index: int
    pdf_bytes: bytes


class PreviewPlanner:
    """Renders one operation onto one page."""

    def render(
        self,
        document_bytes: bytes,
        operation: OperationSpec,
        extract: bool = True,
    ) -> PreviewResult:
        """
        Apply an operation to its preview page.

        Args:
            document_bytes: The current document
            operation: The operation being edited
            extract: If True, return a single-page PDF of the previewed page

        Raises:
            DocumentLoadError: If the document cannot be parsed or has no pages
            MutationError: If the page mutation fails
        """
        document = Document.load(document_bytes)
        if document.page_count == 0:
            raise DocumentLoadError("Document has no pages to preview")

        context = TransformContext.capture(document, preview=True)
        index = preview_page_index(operation, context.total_pages)
        handler = HandlerRegistry.get(operation)

        if isinstance(operation, WatermarkOperation):
            context.only_pages = [index]
        else:
            context.only_pages = [index] if index in handler.target_pages(operation, context) else []

        with document.exclusive():
            handler.apply(document, operation, context)

        logger.debug("Rendered preview of %s on page %d", operation.kind, index + 1)
        pdf_bytes = document.extract_page(index) if extract else document.save()
        return PreviewResult(page_index=index, pdf_bytes=pdf_bytes)


class PreviewScheduler:
    """Latest-wins debounced preview rendering.

    Each request() supersedes every earlier one. A request only renders after
    the debounce window passes without a newer request, and its result is
    delivered only if no newer request arrived while it rendered.

    Callbacks run on a timer thread.
    """

    def __init__(
        self,
        render: Callable[[OperationSpec], PreviewResult],
        on_result: Callable[[PreviewResult], None],
        debounce_ms: int = DEFAULT_PREVIEW_DEBOUNCE_MS,
        on_error: Callable[[PdfWrightError], None] | None = None,
    ):
        self._render = render
        self._on_result = on_result
        self._on_error = on_error
        self.debounce_ms = debounce_ms
        self._lock = threading.Lock()
        self._generation = 0
        self._timer: threading.Timer | None = None
        self._closed = False

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        render: Callable[[OperationSpec], PreviewResult],
        on_result: Callable[[PreviewResult], None],
        on_error: Callable[[PdfWrightError], None] | None = None,
    ) -> "PreviewScheduler":
        """Build a scheduler using a job's preview_debounce_ms."""
        return cls(render, on_result, debounce_ms=settings.preview_debounce_ms, on_error=on_error)

    @property
    def generation(self) -> int:
        return self._generation

    def request(self, operation: OperationSpec) -> int:
        """Schedule a preview, superseding any earlier request.

        Returns:
            The request's generation number
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("Preview scheduler is closed")
            self._generation += 1
            generation = self._generation
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(
                self.debounce_ms / 1000,
                self._run,
                args=(generation, operation),
            )
            self._timer.daemon = True
            self._timer.start()
        return generation

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return not self._closed and generation == self._generation

    def _run(self, generation: int, operation: OperationSpec) -> None:
        if not self.is_current(generation):
            return

        try:
            result = self._render(operation)
        except PdfWrightError as e:
            if not self.is_current(generation):
                return
            if self._on_error is None:
                logger.warning("Preview failed: %s", e)
            else:
                self._on_error(e)
            return

        if self.is_current(generation):
            self._on_result(result)
        else:
            logger.debug("Discarding superseded preview %d", generation)

    def cancel(self) -> None:
        """Drop any pending or in-flight request."""
        with self._lock:
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def close(self) -> None:
        self.cancel()
        with self._lock:
            self._closed = True
