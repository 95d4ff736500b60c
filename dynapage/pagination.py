"""
Page building for paginated reads.

This module turns raw query results into PageResult values: items in
logical order, refined per the request options, with opaque cursors for
the next and previous pages.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ._logging import logger
from .cursor import encode_next, encode_prev, is_backward
from .options import OptionsInput, QueryOptions

if TYPE_CHECKING:
    from .config import TableConfig

Item = dict[str, Any]


@dataclass
class PageResult:
    """
    Represents a single page of results with pagination cursors.

    Attributes:
        items: Items for this page, in logical order
        next_page: Cursor for the following page (None if none)
        prev_page: Cursor for the preceding page (None on the first page)
    """

    items: list[Item] = field(default_factory=list)
    next_page: str | None = None
    prev_page: str | None = None

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def has_more(self) -> bool:
        """Returns True if there are more pages available."""
        return self.next_page is not None

    @property
    def has_previous(self) -> bool:
        return self.prev_page is not None

    def to_dict(self) -> dict[str, Any]:
        """Client response shape: {"items": [...], "nextPage"?: ..., "prevPage"?: ...}."""
        response: dict[str, Any] = {"items": self.items}
        if self.next_page is not None:
            response["nextPage"] = self.next_page
        if self.prev_page is not None:
            response["prevPage"] = self.prev_page
        return response


def is_paginating_backwards(options: OptionsInput) -> bool:
    return is_backward(QueryOptions.coerce(options).page)


def has_next_page(result: Mapping[str, Any], options: OptionsInput) -> bool:
    """
    A backward page always has a forward continuation (the page it came from);
    otherwise the store tells us through LastEvaluatedKey.
    """
    return bool(result.get("LastEvaluatedKey")) or is_paginating_backwards(options)


def is_first_page(
    result: Mapping[str, Any], params: Mapping[str, Any], options: OptionsInput
) -> bool:
    """
    The first page is one requested without ExclusiveStartKey, or a backward
    page for which the store reports nothing further toward the origin.
    """
    if not params.get("ExclusiveStartKey"):
        return True
    return is_paginating_backwards(options) and not result.get("LastEvaluatedKey")


def refine_item(item: Mapping[str, Any], options: OptionsInput) -> Item:
    """
    Return a shallow copy of ``item``, without ``options.fields`` when
    ``include_fields`` is False.
    """
    opts = QueryOptions.coerce(options)
    refined = dict(item)
    if opts.excludes_fields:
        for name in opts.fields or []:
            refined.pop(name, None)
    return refined


def refine_items(items: Sequence[Item], options: OptionsInput) -> Sequence[Item]:
    """Apply refine_item to every item; ``items`` is returned as-is when nothing is excluded."""
    opts = QueryOptions.coerce(options)
    logger.debug("Refining items", extra={"item_count": len(items), "excluding": opts.excludes_fields})
    if opts.excludes_fields:
        return [refine_item(item, opts) for item in items]
    return items


def build_pagination_key(
    result: Mapping[str, Any],
    params: Mapping[str, Any],
    items: Sequence[Mapping[str, Any]],
    options: OptionsInput,
    table: "TableConfig",
) -> dict[str, str]:
    """
    Build the nextPage / prevPage cursors for a page.

    Args:
        result: Raw query result (for LastEvaluatedKey)
        params: The caller's request params, before option merging
        items: Un-refined items in logical order
        options: The request options (for the page direction)
        table: Table whose key schema the cursors encode

    Returns:
        Mapping with "nextPage" and/or "prevPage"; empty when there are no items
    """
    opts = QueryOptions.coerce(options)
    pagination_key: dict[str, str] = {}
    if not items:
        return pagination_key

    if has_next_page(result, opts):
        pagination_key["nextPage"] = encode_next(table.item_key(items[-1]))

    if not is_first_page(result, params, opts):
        pagination_key["prevPage"] = encode_prev(table.item_key(items[0]))

    logger.debug(
        "Built pagination keys",
        extra={
            "table": table.table_name,
            "has_next": "nextPage" in pagination_key,
            "has_prev": "prevPage" in pagination_key,
        },
    )
    return pagination_key


def build_response(
    result: Mapping[str, Any],
    params: Mapping[str, Any],
    options: OptionsInput,
    table: "TableConfig",
) -> PageResult:
    """
    Build the client page from a raw query result.

    Items of a backward page arrive in scan order and are reversed into
    logical order. Cursors are computed on the un-refined items against
    the caller's original ``params``.

    Usage:
        page = build_response(result, default_params, {"page": cursor}, table)
        page.to_dict()  # {"items": [...], "nextPage": "..."}
    """
    opts = QueryOptions.coerce(options)
    items = list(result.get("Items") or [])
    if is_paginating_backwards(opts):
        items.reverse()

    pagination_key = build_pagination_key(result, params, items, opts, table)
    return PageResult(
        items=list(refine_items(items, opts)),
        next_page=pagination_key.get("nextPage"),
        prev_page=pagination_key.get("prevPage"),
    )
