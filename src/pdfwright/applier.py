"""Apply a sequence of operations to a document."""

from collections.abc import Sequence
from enum import Enum

from pdfwright.document import Document
from pdfwright.exceptions import PdfWrightError
from pdfwright.logging_config import get_logger
from pdfwright.operations import OperationSpec
from pdfwright.transforms import HandlerRegistry, TransformContext

logger = get_logger(__name__)


class ApplyState(str, Enum):
    """Lifecycle of one apply call."""

    IDLE = "idle"
    LOADING = "loading"
    APPLYING = "applying"
    SAVED = "saved"
    DONE = "done"
    FAILED = "failed"


class TransformApplier:
    """Runs operations against documents in list order.

    Each call loads its own Document, so one applier may serve several
    documents; state reflects the most recent call.
    """

    def __init__(self):
        self.state = ApplyState.IDLE

    def _transition(self, state: ApplyState) -> None:
        logger.debug("Apply state: %s -> %s", self.state.value, state.value)
        self.state = state

    def apply(
        self,
        document_bytes: bytes,
        operations: Sequence[OperationSpec],
        dry_run: bool = False,
    ) -> bytes:
        """
        Apply operations to a serialized document.

        Operations run in list order; each sees the result of the previous
        ones. Nothing is returned unless every operation succeeds.

        Args:
            document_bytes: The input PDF
            operations: Operations to apply, in order
            dry_run: If True, only load the document and describe the steps

        Returns:
            The transformed PDF (the input unchanged for a dry run)

        Raises:
            DocumentLoadError: If the input cannot be parsed
            EmbedError: If a watermark image cannot be decoded
            MutationError: If a page mutation or serialization fails
        """
        self._transition(ApplyState.LOADING)
        try:
            document = Document.load(document_bytes)

            if dry_run:
                for step, operation in enumerate(operations, start=1):
                    logger.info("  [dry-run] %d. %s", step, operation.describe())
                self._transition(ApplyState.DONE)
                return document_bytes

            self.apply_to_document(document, operations)
            data = document.save()
            self._transition(ApplyState.SAVED)
        except PdfWrightError:
            self._transition(ApplyState.FAILED)
            raise

        self._transition(ApplyState.DONE)
        logger.info(
            "Applied %d operation(s) to %d page(s)",
            len(operations),
            document.page_count,
        )
        return data

    def apply_to_document(
        self,
        document: Document,
        operations: Sequence[OperationSpec],
        context: TransformContext | None = None,
    ) -> TransformContext:
        """
        Apply operations to an open document in place.

        Raises:
            MutationError: If the document is already being transformed, or
                a page mutation fails
        """
        with document.exclusive():
            self._transition(ApplyState.APPLYING)
            if context is None:
                context = TransformContext.capture(document)

            for step, operation in enumerate(operations, start=1):
                handler = HandlerRegistry.get(operation)
                logger.debug("Step %d: %s", step, operation.describe())
                pages = handler.apply(document, operation, context)
                logger.debug("Step %d touched %d page(s)", step, len(pages))

        return context


def apply_operations(document_bytes: bytes, operations: Sequence[OperationSpec]) -> bytes:
    """Convenience wrapper around TransformApplier().apply."""
    return TransformApplier().apply(document_bytes, operations)
