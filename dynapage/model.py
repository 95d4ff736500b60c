import time
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ._logging import logger, redact_key
from .config import TableConfig
from .cursor import decode_cursor, encode_next, encode_prev
from .options import OptionsInput, build_options, fields_options, merge_params, page_options
from .pagination import PageResult, build_response, refine_item
from .serializer import omit_empty
from .store import DynamoStore
from .updates import add_actions, build_attribute_updates, put_actions

Item = dict[str, Any]


class Model:
    """
    Record operations on a single DynamoDB table.

    All store-bound operations are coroutines that issue exactly one
    request and return its result, or raise a StoreError.

    Usage:
        comments = Model(TableConfig("comments", hash_key="PostID", range_key="CommentID"))
        page = await comments.all_by("PostID", "post-1", {"limit": 20})
        older = await comments.all_by("PostID", "post-1", {"limit": 20, "page": page.next_page})
    """

    def __init__(self, config: TableConfig, store: DynamoStore | None = None) -> None:
        self.config = config
        self.store = store or DynamoStore(region=config.region)

    @property
    def table_name(self) -> str:
        return self.config.table_name

    def _key_from(self, entry: Any) -> Item:
        if isinstance(entry, (tuple, list)):
            return self.config.build_key(*entry[:2])
        return self.config.build_key(entry)

    @staticmethod
    def _now() -> int:
        return int(time.time())

    async def save(self, item: Mapping[str, Any]) -> dict[str, Any]:
        """
        Puts an item, stamping CreatedAt with the current Unix time.

        Returns:
            The store result; "Attributes" holds the replaced item, if any
        """
        record = {**item, "CreatedAt": self._now()}
        params = {
            "TableName": self.table_name,
            "Item": record,
            "ReturnValues": "ALL_OLD",
        }

        logger.info(
            "Saving item",
            extra={
                "table": self.table_name,
                "operation": "save",
                "key_hash": redact_key(self.config.item_key(record)),
            },
        )
        return await self.store.put(params)

    async def save_all(self, items: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
        """
        Puts all items in one batch write, dropping empty attributes.
        """
        now = self._now()
        requests = [{"PutRequest": {"Item": omit_empty({**item, "CreatedAt": now})}} for item in items]
        params = {"RequestItems": {self.table_name: requests}}

        logger.info(
            "Saving items in batch",
            extra={"table": self.table_name, "operation": "save_all", "item_count": len(requests)},
        )
        return await self.store.batch_write(params)

    async def destroy_all(self, keys: Iterable[Any]) -> dict[str, Any]:
        """
        Deletes all items in one batch write.

        Args:
            keys: (hash, range) pairs; bare hash values for hash-only tables
        """
        requests = [{"DeleteRequest": {"Key": self._key_from(entry)}} for entry in keys]
        params = {"RequestItems": {self.table_name: requests}}

        logger.info(
            "Deleting items in batch",
            extra={"table": self.table_name, "operation": "destroy_all", "item_count": len(requests)},
        )
        return await self.store.batch_write(params)

    async def get(
        self, hash_value: Any, range_value: Any | None = None, options: OptionsInput | None = None
    ) -> Item:
        """
        Fetches an item by key.

        Only the projection part of ``options`` applies to a key lookup;
        excluded fields are removed from the returned item.

        Returns:
            The item, or an empty dict when it does not exist
        """
        options = options if options is not None else {}
        key = self.config.build_key(hash_value, range_value)
        params = merge_params(
            {"TableName": self.table_name, "Key": key},
            fields_options(options),
        )

        logger.debug(
            "Fetching item",
            extra={"table": self.table_name, "operation": "get", "key_hash": redact_key(key)},
        )
        result = await self.store.get(params)

        item = result.get("Item")
        if not item:
            logger.info("Item not found", extra={"table": self.table_name, "operation": "get"})
            return {}
        return refine_item(item, options)

    async def update(
        self, attrs: Mapping[str, Any], hash_value: Any, range_value: Any | None = None
    ) -> Item:
        """
        Replaces the given attributes of an item. Key attributes in ``attrs``
        are ignored; a None value deletes the attribute.

        Returns:
            The item's attributes after the update
        """
        key = self.config.build_key(hash_value, range_value)
        params = {
            "TableName": self.table_name,
            "Key": key,
            "AttributeUpdates": build_attribute_updates(
                put_actions(attrs, exclude=self.config.key_names)
            ),
            "ReturnValues": "ALL_NEW",
        }

        logger.info(
            "Updating item",
            extra={
                "table": self.table_name,
                "operation": "update",
                "key_hash": redact_key(key),
                "attribute_count": len(params["AttributeUpdates"]),
            },
        )
        result = await self.store.update(params)
        return result.get("Attributes", {})

    async def destroy(self, hash_value: Any, range_value: Any | None = None) -> bool:
        """Deletes an item by key."""
        key = self.config.build_key(hash_value, range_value)
        logger.info(
            "Deleting item",
            extra={"table": self.table_name, "operation": "destroy", "key_hash": redact_key(key)},
        )
        await self.store.delete({"TableName": self.table_name, "Key": key})
        return True

    def _equality_query(self, key: str, value: Any) -> dict[str, Any]:
        return {
            "TableName": self.table_name,
            "KeyConditionExpression": "#hkey = :hvalue",
            "ExpressionAttributeNames": {"#hkey": key},
            "ExpressionAttributeValues": {":hvalue": value},
        }

    async def all_by(
        self, key: str, value: Any, options: OptionsInput | None = None
    ) -> PageResult:
        """
        Returns one page of the items whose ``key`` equals ``value``.

        Pages run newest first (ScanIndexForward=False). Pass
        ``page.next_page`` or ``page.prev_page`` back as ``options["page"]``
        to move between pages.

        Raises:
            CursorFormatError: If options["page"] is not a cursor for this table
        """
        options = options if options is not None else {}
        default_params = {**self._equality_query(key, value), "ScanIndexForward": False}
        params = merge_params(default_params, build_options(options, self.config))

        logger.info(
            "Querying page",
            extra={
                "table": self.table_name,
                "operation": "all_by",
                "attribute": key,
                "key_hash": redact_key(value),
                "limit": params.get("Limit"),
                "has_cursor": "ExclusiveStartKey" in params,
            },
        )
        result = await self.store.query(params)

        # Only the caller's own cursor counts when deciding first/last page
        original_params = merge_params(default_params, page_options(options, self.config))
        return build_response(result, original_params, options, self.config)

    async def count_by(self, key: str, value: Any) -> int:
        """Counts the items whose ``key`` equals ``value``."""
        params = {**self._equality_query(key, value), "Select": "COUNT"}
        logger.debug(
            "Counting items",
            extra={"table": self.table_name, "operation": "count_by", "attribute": key},
        )
        result = await self.store.query(params)
        return int(result.get("Count", 0))

    async def increment(
        self, attribute: str, count: Any, hash_value: Any, range_value: Any | None = None
    ) -> dict[str, Any]:
        """Atomically adds ``count`` to a numeric attribute."""
        return await self.increment_all(hash_value, range_value, {attribute: count})

    async def increment_all(
        self, hash_value: Any, range_value: Any | None, values: Mapping[str, Any]
    ) -> dict[str, Any]:
        """
        Atomically adds to several numeric attributes in one update.

        Raises:
            InvalidArgumentError: If a value is not a number or set
        """
        key = self.config.build_key(hash_value, range_value)
        params = {
            "TableName": self.table_name,
            "Key": key,
            "AttributeUpdates": build_attribute_updates(add_actions(values)),
        }

        logger.info(
            "Incrementing attributes",
            extra={
                "table": self.table_name,
                "operation": "increment",
                "key_hash": redact_key(key),
                "attributes": sorted(values),
            },
        )
        return await self.store.update(params)

    def next_page(self, key: Mapping[str, Any]) -> str:
        """Forward cursor for an item key."""
        return encode_next(dict(key))

    def prev_page(self, key: Mapping[str, Any]) -> str:
        """Backward cursor for an item key."""
        return encode_prev(dict(key))

    def last_evaluated_key(self, cursor: str) -> Item:
        """Decode a cursor of either direction back into its item key."""
        return decode_cursor(cursor, self.config.key_names).key

    def is_valid(self, obj: Any) -> bool:
        """
        Validates ``obj`` against the table schema.
        Every object is valid when no schema is configured.
        """
        schema: type[BaseModel] | None = self.config.schema
        if schema is None:
            return True
        try:
            schema.model_validate(obj)
        except PydanticValidationError as e:
            logger.debug(
                "Schema validation failed",
                extra={"table": self.table_name, "error_count": e.error_count()},
            )
            return False
        return True
