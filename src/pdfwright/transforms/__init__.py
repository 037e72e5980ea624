"""Transform package for pdfwright.

One handler per operation kind, registered by decorator and dispatched by
operation type.

Usage:
    from pdfwright.transforms import HandlerRegistry, TransformContext

    context = TransformContext.capture(document)
    HandlerRegistry.get(operation).apply(document, operation, context)
"""

# Import all handler modules to trigger registration
from pdfwright.transforms import (
    crop,
    page_number,
    rotate,
    watermark,
)

from pdfwright.operations import OPERATION_CLASSES
from pdfwright.transforms.base import TransformContext, TransformHandler
from pdfwright.transforms.registry import HandlerRegistry, register_handler

# Function exports
from pdfwright.transforms.crop import crop_page, crop_rect
from pdfwright.transforms.page_number import number_page, page_number_label
from pdfwright.transforms.rotate import rotate_page
from pdfwright.transforms.watermark import watermark_page, watermark_placements

# Every operation kind must have a handler
HandlerRegistry.ensure_exhaustive(OPERATION_CLASSES)

__all__ = [
    # Core classes
    "TransformContext",
    "TransformHandler",
    # Registry
    "HandlerRegistry",
    "register_handler",
    # Transform functions
    "crop_page",
    "crop_rect",
    "rotate_page",
    "watermark_page",
    "watermark_placements",
    "number_page",
    "page_number_label",
]
