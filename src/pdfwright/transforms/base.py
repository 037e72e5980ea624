"""Base classes for transform handlers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar

from pdfwright.document import Document, Page, PageGeometry
from pdfwright.exceptions import EmbedError, MutationError
from pdfwright.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class TransformContext:
    """Context passed to all handlers.

    Page count and geometry are captured once, before the first mutation, so
    every operation in an apply sees the document as it was loaded.
    """

    # Page count of the whole document
    total_pages: int

    # Visible box of each page at load time
    geometry: list[PageGeometry] = field(default_factory=list)

    # Preview mode draws placeholders instead of decoding images
    preview: bool = False

    # When set, replaces the operation's own page selection
    only_pages: list[int] | None = None

    @classmethod
    def capture(cls, document: Document, preview: bool = False) -> "TransformContext":
        return cls(
            total_pages=document.page_count,
            geometry=[page.geometry for page in document.pages],
            preview=preview,
        )


class TransformHandler(ABC):
    """Abstract base class for all transform handlers.

    A handler applies one operation kind to a document, page by page. Each
    page's queued drawing is flushed before moving on, so later operations
    in the same apply layer on top of it.
    """

    # The operation dataclass this handler applies
    # Set by subclasses, read by HandlerRegistry.register
    operation_class: ClassVar[type] = object

    @abstractmethod
    def target_pages(self, operation: Any, context: TransformContext) -> list[int]:
        """Return the 0-indexed pages the operation touches, in order."""

    def prepare(self, operation: Any, document: Document, context: TransformContext) -> Any:
        """Do per-operation work shared by all pages (e.g. decode an image).

        The return value is passed to apply_page.
        """
        return None

    @abstractmethod
    def apply_page(
        self,
        page: Page,
        operation: Any,
        context: TransformContext,
        prepared: Any,
    ) -> None:
        """Mutate a single page."""

    def apply(self, document: Document, operation: Any, context: TransformContext) -> list[int]:
        """Apply the operation to every target page.

        Returns:
            The pages that were mutated

        Raises:
            EmbedError: If the operation's image cannot be decoded
            MutationError: If a page mutation fails
        """
        if context.only_pages is not None:
            pages = [i for i in context.only_pages if 0 <= i < document.page_count]
        else:
            pages = self.target_pages(operation, context)

        if not pages:
            logger.debug("%s selects no pages", operation.kind)
            return []

        prepared = self.prepare(operation, document, context)

        for index in pages:
            page = document.page(index)
            try:
                self.apply_page(page, operation, context, prepared)
                page.flush()
            except (EmbedError, MutationError):
                raise
            except Exception as e:
                raise MutationError(
                    f"Failed to apply {operation.kind} to page {index + 1}: {e}",
                    context={"page": index + 1, "operation": operation.kind},
                ) from e
            logger.debug("Applied %s to page %d", operation.kind, index + 1)

        return pages
