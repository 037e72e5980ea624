"""Crop transform for pdfwright."""

from pdfwright.document import Page, PageGeometry
from pdfwright.geometry import DocRect, UIRect, to_document_space
from pdfwright.operations import CropOperation
from pdfwright.selector import resolve_range
from pdfwright.transforms.base import TransformContext, TransformHandler
from pdfwright.transforms.registry import register_handler


def crop_rect(box: UIRect, geometry: PageGeometry) -> DocRect:
    """
    Compute the page box for a percent crop box.

    The box is measured against the page's visible box and offset by its
    lower-left corner, so pages whose boxes do not start at (0, 0) crop to
    the same region the user saw.

    Args:
        box: Crop box in UI percent space
        geometry: The page's visible box

    Returns:
        The new page box in the page's user space
    """
    rect = to_document_space(box, geometry.width, geometry.height)
    return rect.translated(geometry.left, geometry.bottom)


def crop_page(page: Page, box: UIRect, geometry: PageGeometry) -> DocRect:
    """
    Crop a page to a percent box.

    Both the crop box and the media box are set, so the page's reported size
    becomes the cropped size. Boxes that are degenerate or fall outside the
    page are applied as given.

    Returns:
        The box that was set
    """
    rect = crop_rect(box, geometry)
    page.set_crop_box(rect)
    page.set_media_box(rect)
    return rect


@register_handler
class CropHandler(TransformHandler):
    """Handler for crop operations."""

    operation_class = CropOperation

    def target_pages(self, operation: CropOperation, context: TransformContext) -> list[int]:
        return resolve_range(operation.page_range, context.total_pages)

    def apply_page(
        self,
        page: Page,
        operation: CropOperation,
        context: TransformContext,
        prepared: None,
    ) -> None:
        # Geometry from load time keeps repeated crops from compounding
        crop_page(page, operation.box, context.geometry[page.index])
