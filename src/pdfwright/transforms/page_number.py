"""Page number transform for pdfwright."""

from pdfwright.constants import PAGE_NUMBER_FONT
from pdfwright.document import Page, measure_text
from pdfwright.geometry import DocRect, Point
from pdfwright.operations import PageNumberOperation, format_page_number
from pdfwright.placement import anchor_rect
from pdfwright.selector import resolve_range, sequence_number
from pdfwright.transforms.base import TransformContext, TransformHandler
from pdfwright.transforms.registry import register_handler


def page_number_label(operation: PageNumberOperation, page_index: int, total_pages: int) -> str:
    """Build the label for a page, counting from the start of the range."""
    number = sequence_number(page_index, operation.page_range, operation.start_value)
    return format_page_number(operation.number_format, number, total_pages)


def number_page(page: Page, label: str, operation: PageNumberOperation) -> DocRect:
    """
    Draw a page number label at the operation's anchor.

    Returns:
        The rectangle the label occupies
    """
    size = measure_text(label, PAGE_NUMBER_FONT, operation.font_size)
    rect = anchor_rect(operation.anchor, size, page.size, operation.margin)
    page.draw_text(
        label,
        Point(rect.x, rect.y),
        PAGE_NUMBER_FONT,
        operation.font_size,
        color=operation.color,
    )
    return rect


@register_handler
class PageNumberHandler(TransformHandler):
    """Handler for page numbering operations."""

    operation_class = PageNumberOperation

    def target_pages(self, operation: PageNumberOperation, context: TransformContext) -> list[int]:
        return resolve_range(operation.page_range, context.total_pages)

    def apply_page(
        self,
        page: Page,
        operation: PageNumberOperation,
        context: TransformContext,
        prepared: None,
    ) -> None:
        # T is the whole document's page count, captured before any change
        label = page_number_label(operation, page.index, context.total_pages)
        number_page(page, label, operation)
