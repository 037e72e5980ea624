"""Rotate transform for pdfwright."""

from pdfwright.document import Page
from pdfwright.operations import RotateOperation, normalize_rotation
from pdfwright.transforms.base import TransformContext, TransformHandler
from pdfwright.transforms.registry import register_handler


def rotate_page(page: Page, delta: int) -> int:
    """
    Rotate a page by a multiple of 90 degrees.

    Only the page's /Rotate entry changes; content and boxes are untouched,
    so viewers turn the page clockwise by delta on display.

    Returns:
        The page's new rotation, in [0, 360)
    """
    rotation = normalize_rotation(page.rotation + delta)
    page.rotation = rotation
    return rotation


@register_handler
class RotateHandler(TransformHandler):
    """Handler for rotate operations."""

    operation_class = RotateOperation

    def target_pages(self, operation: RotateOperation, context: TransformContext) -> list[int]:
        return operation.target_pages(context.total_pages)

    def apply_page(
        self,
        page: Page,
        operation: RotateOperation,
        context: TransformContext,
        prepared: None,
    ) -> None:
        rotate_page(page, operation.delta_for(page.index))
