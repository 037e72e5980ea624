"""pdfwright - Page transform composition for PDF documents."""

import logging

__version__ = "0.2.0"
__all__ = ["__version__"]

# Prevent "No handler found" warnings when used as a library
logging.getLogger("pdfwright").addHandler(logging.NullHandler())
