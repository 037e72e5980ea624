"""Centralized constants for pdfwright.

Defaults mirror the settings the interactive tools start with.
"""

from typing import Literal

# Operation kinds as they appear in job files
OPERATION_TYPES = ("crop", "rotate", "watermark", "page_numbers")
OperationType = Literal["crop", "rotate", "watermark", "page_numbers"]

# Percent-space bounds for UI rectangles
PERCENT_MAX = 100.0

# Interactive crop box
DEFAULT_CROP_BOX = (10.0, 10.0, 80.0, 80.0)  # x, y, width, height in percent
MIN_CROP_PERCENT = 5.0
RESIZE_HANDLES = ("n", "s", "e", "w", "ne", "nw", "se", "sw")

# Tiling grid: 3 cells per axis, centers at (2k+1)/6 of the page
TILE_GRID_SIZE = 3

# Rotation
QUARTER_TURN = 90
FULL_TURN = 360

# Watermark defaults
DEFAULT_WATERMARK_TEXT = "CONFIDENTIAL"
DEFAULT_WATERMARK_FONT_SIZE = 48
DEFAULT_WATERMARK_COLOR = "#FF0000"
DEFAULT_WATERMARK_OPACITY = 0.5
DEFAULT_WATERMARK_ROTATION = -45.0
DEFAULT_IMAGE_SCALE = 0.5
DEFAULT_WATERMARK_MARGIN = 20.0
WATERMARK_FONT = "Helvetica-Bold"

# Preview placeholder for image watermarks (points, before scaling)
PLACEHOLDER_WIDTH = 200.0
PLACEHOLDER_HEIGHT = 100.0
PLACEHOLDER_FILL = (0.9, 0.9, 0.9)
PLACEHOLDER_BORDER = (0.6, 0.6, 0.6)
PLACEHOLDER_LABEL = "IMAGE"
PLACEHOLDER_LABEL_SIZE = 12
PLACEHOLDER_LABEL_COLOR = (0.5, 0.5, 0.5)

# Page number defaults
DEFAULT_NUMBER_FONT_SIZE = 12
DEFAULT_NUMBER_MARGIN = 20.0
DEFAULT_NUMBER_COLOR = "#000000"
PAGE_NUMBER_FONT = "Helvetica"

# Preview scheduling
DEFAULT_PREVIEW_DEBOUNCE_MS = 500

# Image formats accepted for embedding
IMAGE_FORMATS = ("png", "jpeg")
ImageFormat = Literal["png", "jpeg"]

# Compression tiers handled by Ghostscript
COMPRESSION_TIERS = ("extreme", "recommended", "less")
CompressionTier = Literal["extreme", "recommended", "less"]
DEFAULT_COMPRESSION_TIER = "recommended"
COMPRESSION_TIMEOUT_SECONDS = 180

# Default permission flag for protected documents (allow printing)
DEFAULT_PERMISSIONS = 4
