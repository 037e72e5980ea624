"""Password protection and removal for PDF documents."""

import io

from pypdf import PasswordType, PdfReader, PdfWriter
from pypdf.errors import PyPdfError

from pdfwright.constants import DEFAULT_PERMISSIONS
from pdfwright.exceptions import AuthenticationError, DocumentLoadError
from pdfwright.logging_config import get_logger

logger = get_logger(__name__)


def _read(data: bytes) -> PdfReader:
    try:
        return PdfReader(io.BytesIO(data))
    except (PyPdfError, ValueError, OSError) as e:
        raise DocumentLoadError(f"Cannot read document: {e}") from e


def _write(writer: PdfWriter) -> bytes:
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def protect_pdf(
    data: bytes,
    user_password: str,
    owner_password: str | None = None,
    permissions: int = DEFAULT_PERMISSIONS,
) -> bytes:
    """
    Encrypt a document with a password.

    Args:
        data: The PDF to protect
        user_password: Password needed to open the document
        owner_password: Password for full access (defaults to user_password)
        permissions: Permission flags granted to the user (4 = allow printing)

    Returns:
        The encrypted PDF

    Raises:
        DocumentLoadError: If the input cannot be parsed or is already encrypted
    """
    reader = _read(data)
    if reader.is_encrypted:
        raise DocumentLoadError("Document is already password protected; unlock it first")

    writer = PdfWriter(clone_from=reader)
    writer.encrypt(
        user_password=user_password,
        owner_password=owner_password or user_password,
        permissions_flag=permissions,
        algorithm="AES-256",
    )
    logger.debug("Encrypted %d page(s) with permissions %d", len(writer.pages), permissions)
    return _write(writer)


def unlock_pdf(data: bytes, password: str) -> bytes:
    """
    Remove password protection from a document.

    Either the user or the owner password is accepted. A document that is
    not encrypted is returned re-serialized.

    Raises:
        AuthenticationError: If the password is wrong
        DocumentLoadError: If the input cannot be parsed
    """
    reader = _read(data)
    if reader.is_encrypted:
        if reader.decrypt(password) == PasswordType.NOT_DECRYPTED:
            raise AuthenticationError("Incorrect password or unable to decrypt PDF")

    try:
        writer = PdfWriter(clone_from=reader)
    except PyPdfError as e:
        raise DocumentLoadError(f"Cannot read document: {e}") from e

    logger.debug("Unlocked %d page(s)", len(writer.pages))
    return _write(writer)
