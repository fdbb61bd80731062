"""
Conversion of resolver failures into structured GraphQL errors.

Domain errors keep their message and gain ``code``/``statusCode``
extensions; anything unexpected is logged and replaced by a sanitized
INTERNAL_ERROR so internal details never reach the client. Input values the
engine itself cannot coerce (a malformed DateTime, say) become
VALIDATION_ERROR.
"""
from typing import Iterator, Optional
from graphql import GraphQLError
from pydantic import ValidationError
from strawberry.extensions import SchemaExtension
from eventhub.core.errors import AppError, InputValidationError, InternalError
from eventhub.core.logging import logger


def _cause(error: GraphQLError) -> Optional[BaseException]:
    # graphql-core wraps coercion failures in one GraphQLError per level
    original = error.original_error
    while isinstance(original, GraphQLError) and original.original_error is not None:
        original = original.original_error
    return original


def format_error(error: GraphQLError) -> GraphQLError:
    original = _cause(error)
    if original is None or isinstance(original, GraphQLError):
        # Parse/validation errors raised by the GraphQL engine itself
        return error

    if isinstance(original, ValidationError):
        original = InputValidationError.from_pydantic(original)
    elif error.path is None and isinstance(original, (ValueError, TypeError)):
        # Raised by a scalar parser while coercing arguments, before any resolver ran
        original = InputValidationError(error.message, [{"field": "input", "message": str(original)}])

    if not isinstance(original, AppError):
        logger.opt(exception=original).error(f"Unhandled error in {'.'.join(map(str, error.path or []))}")
        original = InternalError()

    return GraphQLError(
        original.message,
        nodes=error.nodes,
        source=error.source,
        positions=error.positions,
        path=error.path,
        original_error=original,
        extensions=original.extensions,
    )


class StructuredErrors(SchemaExtension):
    def on_operation(self) -> Iterator[None]:
        yield
        result = self.execution_context.result
        if result is not None and getattr(result, "errors", None):
            result.errors = [format_error(error) for error in result.errors]
