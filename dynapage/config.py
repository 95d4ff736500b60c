from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel


@dataclass
class TableConfig:
    """
    Describes the single table a Model talks to.

    The key schema drives item key construction, cursor validation and
    the exclusion of key attributes from updates.
    """

    table_name: str
    hash_key: str = "ID"
    range_key: str | None = None
    schema: type[BaseModel] | None = None
    region: str = "us-east-1"

    @property
    def key_names(self) -> tuple[str, ...]:
        """Key attribute names in (hash, range) order."""
        if self.range_key:
            return (self.hash_key, self.range_key)
        return (self.hash_key,)

    def is_key(self, attribute: str) -> bool:
        return attribute in self.key_names

    def build_key(self, hash_value: Any, range_value: Any | None = None) -> dict[str, Any]:
        """
        Build an item key from raw key values.

        Args:
            hash_value: Hash key value
            range_value: Range key value, ignored for hash-only tables

        Returns:
            The item key, hash attribute first
        """
        key = {self.hash_key: hash_value}
        if self.range_key:
            key[self.range_key] = range_value
        return key

    def item_key(self, item: Mapping[str, Any]) -> dict[str, Any]:
        """Project an item onto its key attributes."""
        return self.build_key(
            item.get(self.hash_key),
            item.get(self.range_key) if self.range_key else None,
        )
