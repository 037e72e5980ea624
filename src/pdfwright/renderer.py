"""Rasterize pages for display.

Used by the preview command to show a preview as an image. Rendering is done
by poppler through pdf2image.
"""

from pathlib import Path

from pdf2image import convert_from_bytes
from pdf2image.exceptions import PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError
from PIL import Image

from pdfwright.exceptions import ExternalToolError
from pdfwright.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_RENDER_WIDTH = 600


def render_page(
    document_bytes: bytes,
    page_index: int = 0,
    target_width_px: int = DEFAULT_RENDER_WIDTH,
) -> Image.Image:
    """
    Render one page to an image of a given width.

    The height follows the page's aspect ratio.

    Args:
        document_bytes: The PDF to render
        page_index: 0-indexed page to render
        target_width_px: Width of the resulting image in pixels

    Returns:
        The rendered page

    Raises:
        ExternalToolError: If poppler is missing or cannot render the page
    """
    try:
        images = convert_from_bytes(
            document_bytes,
            first_page=page_index + 1,  # pdf2image uses 1-indexed pages
            last_page=page_index + 1,
            size=(target_width_px, None),
        )
    except PDFInfoNotInstalledError as e:
        raise ExternalToolError(
            "poppler is required to render pages. Install poppler-utils and make sure pdftoppm is on PATH"
        ) from e
    except (PDFPageCountError, PDFSyntaxError) as e:
        raise ExternalToolError(
            f"Failed to render page {page_index + 1}: {e}",
            context={"page": page_index + 1},
        ) from e

    if not images:
        raise ExternalToolError(
            f"Failed to render page {page_index + 1}",
            context={"page": page_index + 1},
        )

    logger.debug("Rendered page %d at %dx%d", page_index + 1, *images[0].size)
    return images[0]


def render_to_png(
    document_bytes: bytes,
    output_path: Path,
    page_index: int = 0,
    target_width_px: int = DEFAULT_RENDER_WIDTH,
) -> Path:
    """Render one page and save it as a PNG file."""
    image = render_page(document_bytes, page_index, target_width_px)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    image.save(output_path, format="PNG")
    return output_path
