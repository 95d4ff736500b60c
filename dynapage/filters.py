"""
Filter expressions from the client filter language.

Filters arrive as a mapping of attribute name to {operator: value}:

    {"Range": {"gt": 2}, "Test": {"eq": "Example"}}

and compile to a DynamoDB FilterExpression with placeholder maps:

    FilterExpression          "#Range > :Range AND #Test = :Test"
    ExpressionAttributeNames  {"#Range": "Range", "#Test": "Test"}
    ExpressionAttributeValues {":Range": 2, ":Test": "Example"}
"""

from collections.abc import Mapping
from typing import Any

from ._logging import logger
from .exceptions import InvalidArgumentError, UnsupportedOperatorError

OPERATORS: dict[str, str] = {
    "eq": "=",
    "ne": "<>",
    "le": "<=",
    "lt": "<",
    "ge": ">=",
    "gt": ">",
}


def join_clause(name: str, value: str, symbol: str) -> str:
    """Render a single comparison, e.g. ``join_clause("#a", ":a", "=") == "#a = :a"``."""
    return " ".join([name, symbol, value])


def free_placeholder(base: str, taken: Mapping[str, Any]) -> str:
    """Return ``base``, or ``base_1``, ``base_2``... whichever is not yet in ``taken``."""
    candidate = base
    suffix = 0
    while candidate in taken:
        suffix += 1
        candidate = f"{base}_{suffix}"
    return candidate


def build_filter_expression(filters: Mapping[str, Mapping[str, Any]]) -> dict[str, Any]:
    """
    Compile a filter mapping into DynamoDB filter parameters.

    The first operator on a field binds to ``:<field>``; any further operator
    on the same field gets ``:<field>_<operator>``. A placeholder already
    bound by an earlier field (``Age_gt`` after ``Age: {"ge", "gt"}``) takes
    the next free ``_<n>`` suffix, so every comparison keeps its own value.

    Raises:
        UnsupportedOperatorError: If an operator has no expression symbol
        InvalidArgumentError: If a field's conditions are not a mapping
    """
    names: dict[str, str] = {}
    values: dict[str, Any] = {}
    clauses: list[str] = []

    for field, conditions in filters.items():
        if not isinstance(conditions, Mapping):
            raise InvalidArgumentError(
                f"Filter conditions for '{field}' must be a mapping of operator to value",
                argument="filters",
            )

        name_ph = f"#{field}"
        names[name_ph] = field

        for position, (operator, value) in enumerate(conditions.items()):
            symbol = OPERATORS.get(operator)
            if symbol is None:
                raise UnsupportedOperatorError(operator, field=field)

            value_ph = free_placeholder(
                f":{field}" if position == 0 else f":{field}_{operator}", values
            )
            values[value_ph] = value
            clauses.append(join_clause(name_ph, value_ph, symbol))

    expression = " AND ".join(clauses)
    logger.debug(
        "Built filter expression",
        extra={"filter_expression": expression, "field_count": len(names)},
    )

    return {
        "ExpressionAttributeNames": names,
        "ExpressionAttributeValues": values,
        "FilterExpression": expression,
    }
