"""
Attribute update actions for update_item.

Updates are sent as legacy ``AttributeUpdates`` entries, one per attribute:

    {"Name": {"Action": "PUT", "Value": "Homer"},
     "Visits": {"Action": "ADD", "Value": 1}}
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any

from .exceptions import InvalidArgumentError


class UpdateAction(ABC):
    """Base class for all attribute update actions."""

    action: str

    def __init__(self, attribute: str, value: Any = None) -> None:
        self.attribute = attribute
        self.value = value

    @abstractmethod
    def validate(self) -> Any:
        """Returns the value to send, raising InvalidArgumentError if unusable."""

    def to_attribute_update(self) -> dict[str, Any]:
        value = self.validate()
        update: dict[str, Any] = {"Action": self.action}
        if value is not None:
            update["Value"] = value
        return update

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.attribute!r}, {self.value!r})"


class Put(UpdateAction):
    """
    Replaces the attribute value.
    A None value is sent as a DELETE of the whole attribute.
    """

    action = "PUT"

    def validate(self) -> Any:
        return self.value

    def to_attribute_update(self) -> dict[str, Any]:
        if self.value is None:
            return Delete(self.attribute).to_attribute_update()
        return super().to_attribute_update()


class Add(UpdateAction):
    """
    Adds to a number attribute or merges into a set attribute.
    """

    action = "ADD"

    def validate(self) -> Any:
        # bool is an int subclass but DynamoDB stores it as BOOL
        is_number = isinstance(self.value, (int, float, Decimal)) and not isinstance(
            self.value, bool
        )
        is_set = isinstance(self.value, (set, frozenset)) and len(self.value) > 0

        if not (is_number or is_set):
            raise InvalidArgumentError(
                f"Invalid value for ADD on attribute '{self.attribute}'. "
                f"DynamoDB ADD supports only Numbers and Sets. "
                f"Got: {type(self.value).__name__}",
                argument=self.attribute,
            )
        return self.value


class Delete(UpdateAction):
    """
    Removes the attribute, or removes elements from a set attribute
    when a value is given.
    """

    action = "DELETE"

    def validate(self) -> Any:
        if self.value is not None and not isinstance(self.value, (set, frozenset)):
            raise InvalidArgumentError(
                f"DELETE with a value on attribute '{self.attribute}' requires a set",
                argument=self.attribute,
            )
        return self.value


def build_attribute_updates(actions: Iterable[UpdateAction]) -> dict[str, dict[str, Any]]:
    """
    Compile actions into an AttributeUpdates mapping.

    Raises:
        InvalidArgumentError: If no actions are given or a value is invalid
    """
    updates = {action.attribute: action.to_attribute_update() for action in actions}
    if not updates:
        raise InvalidArgumentError("No attribute updates provided", argument="attrs")
    return updates


def put_actions(attrs: Mapping[str, Any], exclude: Iterable[str] = ()) -> list[UpdateAction]:
    """PUT actions for every attribute not listed in ``exclude``."""
    excluded = set(exclude)
    return [Put(name, value) for name, value in attrs.items() if name not in excluded]


def add_actions(values: Mapping[str, Any]) -> list[UpdateAction]:
    return [Add(name, value) for name, value in values.items()]
