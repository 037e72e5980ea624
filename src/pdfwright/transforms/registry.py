"""Transform registry for operation dispatch."""

from collections.abc import Iterable
from typing import TYPE_CHECKING

from pdfwright.exceptions import ConfigError

if TYPE_CHECKING:
    from pdfwright.transforms.base import TransformHandler


class HandlerRegistry:
    """Registry mapping operation classes to their handlers.

    Usage:
        @register_handler
        class RotateHandler(TransformHandler):
            operation_class = RotateOperation
            ...

        handler = HandlerRegistry.get(operation)
    """

    _handlers: dict[type, type["TransformHandler"]] = {}

    @classmethod
    def register(cls, handler_class: type["TransformHandler"]) -> type["TransformHandler"]:
        """Register a handler class for its operation_class.

        Returns:
            The handler class (for decorator use)
        """
        cls._handlers[handler_class.operation_class] = handler_class
        return handler_class

    @classmethod
    def get(cls, operation: object) -> "TransformHandler":
        """Get a handler instance for an operation.

        Raises:
            ConfigError: If no handler is registered for the operation's type
        """
        handler_class = cls._handlers.get(type(operation))
        if handler_class is None:
            available = ", ".join(sorted(c.__name__ for c in cls._handlers))
            raise ConfigError(
                f"No handler for operation type '{type(operation).__name__}'. Available: {available}",
                context={"operation_type": type(operation).__name__},
            )
        return handler_class()

    @classmethod
    def is_registered(cls, operation_class: type) -> bool:
        return operation_class in cls._handlers

    @classmethod
    def ensure_exhaustive(cls, operation_classes: Iterable[type]) -> None:
        """Check that every operation class has a handler.

        Raises:
            ConfigError: Naming the operation classes left without a handler
        """
        missing = [c.__name__ for c in operation_classes if c not in cls._handlers]
        if missing:
            raise ConfigError(
                f"Operation types without a handler: {', '.join(missing)}",
                context={"missing": missing},
            )


register_handler = HandlerRegistry.register
