"""Watermark transform for pdfwright."""

from pdfwright.constants import (
    PLACEHOLDER_BORDER,
    PLACEHOLDER_FILL,
    PLACEHOLDER_HEIGHT,
    PLACEHOLDER_LABEL,
    PLACEHOLDER_LABEL_COLOR,
    PLACEHOLDER_LABEL_SIZE,
    PLACEHOLDER_WIDTH,
    WATERMARK_FONT,
)
from pdfwright.document import Document, EmbeddedImage, Page, measure_text
from pdfwright.exceptions import EmbedError
from pdfwright.geometry import DocRect, Point, Size
from pdfwright.operations import Layer, WatermarkOperation
from pdfwright.placement import anchor_rect, tile_placements
from pdfwright.selector import resolve_range
from pdfwright.transforms.base import TransformContext, TransformHandler
from pdfwright.transforms.registry import register_handler


def watermark_placements(element: Size, page: Size, operation: WatermarkOperation) -> list[DocRect]:
    """Return one rectangle per mark: nine when tiled, else the anchored one."""
    if operation.tiled:
        return tile_placements(element, page)
    return [anchor_rect(operation.anchor, element, page, operation.margin)]


def placeholder_size(scale: float) -> Size:
    return Size(PLACEHOLDER_WIDTH * scale, PLACEHOLDER_HEIGHT * scale)


def draw_placeholder(page: Page, rect: DocRect, opacity: float, rotation: float) -> None:
    """Draw the grey box with an 'IMAGE' label that stands in for an image."""
    page.draw_rectangle(
        rect,
        fill_color=PLACEHOLDER_FILL,
        border_color=PLACEHOLDER_BORDER,
        border_width=1.0,
        opacity=opacity,
        rotation=rotation,
    )
    label = measure_text(PLACEHOLDER_LABEL, WATERMARK_FONT, PLACEHOLDER_LABEL_SIZE)
    center = rect.center
    page.draw_text(
        PLACEHOLDER_LABEL,
        Point(center.x - label.width / 2, center.y - label.height / 2),
        WATERMARK_FONT,
        PLACEHOLDER_LABEL_SIZE,
        color=PLACEHOLDER_LABEL_COLOR,
        opacity=opacity,
        rotation=rotation,
    )


def watermark_page(
    page: Page,
    operation: WatermarkOperation,
    image: EmbeddedImage | None = None,
) -> list[DocRect]:
    """
    Draw a watermark on one page.

    Text is measured with the watermark font; an image is drawn at its
    natural size times image_scale. Without an image, an image watermark is
    drawn as a placeholder. For the under layer, the new content is moved
    behind the page's existing content.

    Args:
        page: The page to mark
        operation: Watermark settings
        image: Decoded image for image watermarks

    Returns:
        The rectangles that were drawn
    """
    page_size = page.size

    if operation.is_text:
        element = measure_text(operation.text, WATERMARK_FONT, operation.font_size)
    elif image is not None:
        element = image.scaled(operation.image_scale)
    else:
        element = placeholder_size(operation.image_scale)

    placements = watermark_placements(element, page_size, operation)
    for rect in placements:
        if operation.is_text:
            page.draw_text(
                operation.text,
                Point(rect.x, rect.y),
                WATERMARK_FONT,
                operation.font_size,
                color=operation.color,
                opacity=operation.opacity,
                rotation=operation.rotation,
            )
        elif image is not None:
            page.draw_image(image, rect, opacity=operation.opacity, rotation=operation.rotation)
        else:
            draw_placeholder(page, rect, operation.opacity, operation.rotation)

    if operation.layer is Layer.UNDER:
        page.move_last_content(to_front=True)

    return placements


@register_handler
class WatermarkHandler(TransformHandler):
    """Handler for watermark operations."""

    operation_class = WatermarkOperation

    def target_pages(self, operation: WatermarkOperation, context: TransformContext) -> list[int]:
        return resolve_range(operation.page_range, context.total_pages)

    def prepare(
        self,
        operation: WatermarkOperation,
        document: Document,
        context: TransformContext,
    ) -> EmbeddedImage | None:
        if operation.is_text or context.preview:
            return None
        if operation.image is None:
            raise EmbedError(
                "Image watermark has no image data",
                context={"operation": operation.kind},
            )
        return document.embed_image(operation.image, operation.image_format)

    def apply_page(
        self,
        page: Page,
        operation: WatermarkOperation,
        context: TransformContext,
        prepared: EmbeddedImage | None,
    ) -> None:
        watermark_page(page, operation, prepared)
