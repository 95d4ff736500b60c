from .config import TableConfig
from .cursor import Cursor, Direction, decode_cursor, encode_next, encode_prev
from .exceptions import (
    ConditionalCheckFailedError,
    CursorFormatError,
    DynamoSerializationError,
    DynapageError,
    InvalidArgumentError,
    ItemCollectionSizeLimitError,
    ProvisionedThroughputExceededError,
    RequestTimeoutError,
    StoreError,
    TableNotFoundError,
    TransactionConflictError,
    UnsupportedOperatorError,
    ValidationError,
)
from .filters import build_filter_expression
from .model import Model
from .options import QueryOptions, build_options
from .pagination import PageResult, build_response
from .store import DynamoStore
from .updates import Add, Delete, Put

__all__ = [
    "Model",
    "TableConfig",
    "DynamoStore",
    "QueryOptions",
    "PageResult",
    # Builders
    "build_options",
    "build_filter_expression",
    "build_response",
    # Cursors
    "Cursor",
    "Direction",
    "encode_next",
    "encode_prev",
    "decode_cursor",
    # Updates
    "Put",
    "Add",
    "Delete",
    # Exceptions
    "DynapageError",
    "InvalidArgumentError",
    "CursorFormatError",
    "UnsupportedOperatorError",
    "StoreError",
    "TableNotFoundError",
    "ConditionalCheckFailedError",
    "ProvisionedThroughputExceededError",
    "ItemCollectionSizeLimitError",
    "TransactionConflictError",
    "RequestTimeoutError",
    "ValidationError",
    "DynamoSerializationError",
]
