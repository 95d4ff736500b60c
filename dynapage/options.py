"""
Translation of client query options into DynamoDB request parameters.

Every builder here is pure: it reads a QueryOptions value and returns a
fragment of request parameters. Fragments are combined with merge_params.
"""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from ._logging import logger
from .cursor import decode_cursor
from .exceptions import InvalidArgumentError
from .filters import build_filter_expression

if TYPE_CHECKING:
    from .config import TableConfig


class QueryOptions(BaseModel):
    """
    Client-facing options bag for reads.

    Attributes:
        limit: Maximum number of items to evaluate; 0 means no limit
        page: Cursor from a previous PageResult
        filters: Mapping of attribute to {operator: value}
        include_fields: True projects ``fields`` server side,
            False drops ``fields`` from returned items
        fields: Attribute names, given as "a,b,c" or as a list
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    limit: int | None = Field(default=None, ge=0)
    page: str | None = None
    filters: dict[str, dict[str, Any]] | None = None
    include_fields: bool | None = None
    fields: list[str] | None = None

    @field_validator("fields", mode="before")
    @classmethod
    def _split_fields(cls, value: Any) -> Any:
        if not value:
            return None
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, (list, tuple)):
            names = [str(name).strip() for name in value]
            return [name for name in names if name] or None
        return value

    @field_validator("page", mode="before")
    @classmethod
    def _empty_page(cls, value: Any) -> Any:
        return value or None

    @classmethod
    def coerce(cls, options: "QueryOptions | Mapping[str, Any] | None") -> "QueryOptions":
        """
        Accept a QueryOptions instance or a plain mapping.

        Raises:
            InvalidArgumentError: If options is missing, not a mapping,
                or fails validation
        """
        if isinstance(options, cls):
            return options
        if not isinstance(options, Mapping):
            raise InvalidArgumentError('"options" is not defined', argument="options")
        try:
            return cls.model_validate(dict(options))
        except PydanticValidationError as e:
            raise InvalidArgumentError(
                f"Invalid query options: {e}", argument="options", original_error=e
            ) from e

    @property
    def excludes_fields(self) -> bool:
        """True when the listed fields are to be removed from returned items."""
        return self.include_fields is False and bool(self.fields)

    @property
    def projects_fields(self) -> bool:
        """True when only the listed fields are to be fetched."""
        return self.include_fields is True and bool(self.fields)


OptionsInput = QueryOptions | Mapping[str, Any]


def merge_params(*fragments: Mapping[str, Any]) -> dict[str, Any]:
    """
    Deep-merge request parameter fragments into a new dict.
    Nested mappings are merged key by key; otherwise the last fragment wins.
    """
    merged: dict[str, Any] = {}
    for fragment in fragments:
        for key, value in fragment.items():
            current = merged.get(key)
            if isinstance(current, dict) and isinstance(value, Mapping):
                merged[key] = merge_params(current, value)
            elif isinstance(value, Mapping):
                merged[key] = merge_params(value)
            else:
                merged[key] = value
    return merged


def limit_options(options: OptionsInput | None) -> dict[str, Any]:
    """
    DynamoDB Limit fragment.

    Raises:
        InvalidArgumentError: If options is not a mapping
    """
    opts = QueryOptions.coerce(options)
    return {"Limit": opts.limit} if opts.limit else {}


def page_options(options: OptionsInput, table: "TableConfig") -> dict[str, Any]:
    """
    ExclusiveStartKey / ScanIndexForward fragment from the page cursor.

    Forward cursors scan the index in reverse (ScanIndexForward=False) and
    backward cursors scan it forward; results are listed newest first.

    Raises:
        CursorFormatError: If the cursor cannot be decoded for this table
    """
    opts = QueryOptions.coerce(options)
    logger.debug("Building page options", extra={"has_cursor": opts.page is not None})
    if not opts.page:
        return {}

    cursor = decode_cursor(opts.page, table.key_names)
    return {
        "ExclusiveStartKey": cursor.key,
        "ScanIndexForward": cursor.is_backward,
    }


def fields_options(options: OptionsInput) -> dict[str, Any]:
    """ProjectionExpression fragment, active only when include_fields is True."""
    opts = QueryOptions.coerce(options)
    if not opts.projects_fields:
        return {}

    fields = opts.fields or []
    logger.debug("Building projection", extra={"fields": fields})
    return {
        "ProjectionExpression": ",".join(f"#{field}" for field in fields),
        "ExpressionAttributeNames": {f"#{field}": field for field in fields},
    }


def filter_options(options: OptionsInput) -> dict[str, Any]:
    """FilterExpression fragment from options.filters."""
    opts = QueryOptions.coerce(options)
    if not opts.filters:
        return {}
    return build_filter_expression(opts.filters)


def build_options(options: OptionsInput | None, table: "TableConfig") -> dict[str, Any]:
    """
    Translate client options into DynamoDB request parameters.

    Args:
        options: QueryOptions or a plain mapping of the same fields
        table: Table whose key schema validates page cursors

    Returns:
        Merged Limit, page, filter and projection fragments

    Usage:
        build_options({"limit": 10, "fields": "ID,Name", "include_fields": True}, table)
        # {"Limit": 10, "ProjectionExpression": "#ID,#Name",
        #  "ExpressionAttributeNames": {"#ID": "ID", "#Name": "Name"}}
    """
    opts = QueryOptions.coerce(options)
    result = merge_params(
        limit_options(opts),
        page_options(opts, table),
        filter_options(opts),
        fields_options(opts),
    )
    logger.debug(
        "Built request options",
        extra={"table": table.table_name, "params": sorted(result)},
    )
    return result
