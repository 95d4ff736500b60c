from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from botocore.exceptions import ClientError


class DynapageError(Exception):
    """Base exception for all dynapage errors."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class InvalidArgumentError(DynapageError, ValueError):
    """Raised when an argument passed to a builder or operation is malformed."""

    def __init__(
        self,
        message: str,
        argument: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.argument = argument


class CursorFormatError(DynapageError, ValueError):
    """Raised when a page cursor cannot be decoded into an item key."""

    def __init__(self, cursor: str, reason: str, original_error: Exception | None = None) -> None:
        super().__init__(f"Malformed page cursor: {reason}", original_error)
        self.cursor = cursor
        self.reason = reason


class UnsupportedOperatorError(DynapageError):
    """Raised when a filter uses an operator with no expression symbol."""

    def __init__(self, operator: str, field: str | None = None) -> None:
        msg = f"Unsupported filter operator '{operator}'"
        if field:
            msg += f" on field '{field}'"
        super().__init__(msg)
        self.operator = operator
        self.field = field


class StoreError(DynapageError):
    """Raised when DynamoDB rejects a request."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.code = code


class TableNotFoundError(StoreError):
    """Raised when the DynamoDB table does not exist."""

    def __init__(self, table_name: str, original_error: Exception | None = None) -> None:
        super().__init__(
            f"Table '{table_name}' not found", "ResourceNotFoundException", original_error
        )
        self.table_name = table_name


class ConditionalCheckFailedError(StoreError):
    """Raised when a conditional write fails."""

    def __init__(self, original_error: Exception | None = None) -> None:
        super().__init__(
            "Conditional check failed", "ConditionalCheckFailedException", original_error
        )


class ProvisionedThroughputExceededError(StoreError):
    """Raised when DynamoDB throttles requests."""

    def __init__(
        self, message: str = "Request rate exceeded", original_error: Exception | None = None
    ) -> None:
        super().__init__(message, "ProvisionedThroughputExceededException", original_error)


class ItemCollectionSizeLimitError(StoreError):
    """Raised when item collection size exceeds 10GB limit."""

    def __init__(
        self,
        message: str = "Item collection size limit exceeded",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, "ItemCollectionSizeLimitExceededException", original_error)


class TransactionConflictError(StoreError):
    """Raised when a write conflicts with an ongoing transaction."""

    def __init__(
        self, message: str = "Transaction conflict", original_error: Exception | None = None
    ) -> None:
        super().__init__(message, "TransactionConflictException", original_error)


class RequestTimeoutError(StoreError):
    """Raised when a request to DynamoDB times out."""

    def __init__(
        self, message: str = "Request timed out", original_error: Exception | None = None
    ) -> None:
        super().__init__(message, "RequestTimeout", original_error)


class ValidationError(StoreError):
    """Raised when DynamoDB rejects the request parameters."""

    def __init__(
        self,
        message: str,
        value: Any | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, "ValidationException", original_error)
        self.value = value


class DynamoSerializationError(DynapageError):
    """Raised when a value cannot be converted to DynamoDB format."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message, original_error)


@contextmanager
def handle_store_errors(table_name: str | None = None) -> Generator[None, None, None]:
    """
    Context manager that catches botocore.exceptions.ClientError
    and raises the matching StoreError subclass.

    Args:
        table_name: Optional table name for better error messages

    Usage:
        with handle_store_errors(table_name="users"):
            client.get_item(...)
    """
    try:
        yield
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        error_message = e.response.get("Error", {}).get("Message", str(e))

        if error_code == "ResourceNotFoundException":
            raise TableNotFoundError(table_name=table_name or "unknown", original_error=e) from e

        if error_code == "ConditionalCheckFailedException":
            raise ConditionalCheckFailedError(original_error=e) from e

        if error_code in (
            "ProvisionedThroughputExceededException",
            "ThrottlingException",
            "RequestLimitExceeded",
        ):
            raise ProvisionedThroughputExceededError(message=error_message, original_error=e) from e

        if error_code in ("ValidationException", "SerializationException"):
            raise ValidationError(message=error_message, original_error=e) from e

        if error_code == "ItemCollectionSizeLimitExceededException":
            raise ItemCollectionSizeLimitError(message=error_message, original_error=e) from e

        if error_code == "TransactionConflictException":
            raise TransactionConflictError(message=error_message, original_error=e) from e

        if error_code in ("RequestTimeout", "RequestTimeoutException"):
            raise RequestTimeoutError(message=error_message, original_error=e) from e

        raise StoreError(
            message=f"DynamoDB error ({error_code}): {error_message}",
            code=error_code,
            original_error=e,
        ) from e
