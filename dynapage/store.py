import os
from collections.abc import AsyncGenerator, Iterable, Mapping
from contextlib import asynccontextmanager
from contextvars import ContextVar
from decimal import Decimal
from types import TracebackType
from typing import Any

import aioboto3

from ._logging import logger, redact_key
from .exceptions import InvalidArgumentError, handle_store_errors
from .serializer import DocumentSerializer

# Facade verb -> DynamoDB client method
OPERATIONS: dict[str, str] = {
    "batch_get": "batch_get_item",
    "batch_write": "batch_write_item",
    "delete": "delete_item",
    "get": "get_item",
    "put": "put_item",
    "query": "query",
    "scan": "scan",
    "update": "update_item",
}


class DynamoStore:
    """
    Async request/response bridge to DynamoDB.

    Each verb takes document-form parameters (plain Python values), awaits a
    single call on an aioboto3 DynamoDB client and returns the document-form
    result. A call resolves with exactly one result or raises exactly one
    StoreError; there are no retries at this level.

    Usage:
        async with DynamoStore(region="eu-west-1") as store:
            result = await store.get({"TableName": "users", "Key": {"ID": "u-1"}})
    """

    def __init__(
        self,
        client: Any | None = None,
        region: str | None = None,
        endpoint_url: str | None = None,
    ) -> None:
        self._client = client
        self._region = region
        self._endpoint_url = endpoint_url
        self._session: aioboto3.Session | None = None
        self._client_ctx: Any = None
        self._serializer = DocumentSerializer()
        self._client_context: ContextVar[Any | None] = ContextVar("dynamo_client", default=None)

    async def __aenter__(self) -> "DynamoStore":
        await self.ensure_client()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def ensure_client(self) -> Any:
        """
        Returns an async DynamoDB client.

        Resolution order: a client scoped with using_client(), the client set
        on the store, then a lazily opened aioboto3 client. The lazy client's
        region comes from SERVERLESS_REGION, then the store region, then the
        AWS configuration chain.
        """
        ctx_client = self._client_context.get()
        if ctx_client is not None:
            return ctx_client

        if self._client is not None:
            return self._client

        region = os.getenv("SERVERLESS_REGION") or self._region
        kwargs: dict[str, Any] = {"region_name": region}
        if self._endpoint_url:
            kwargs["endpoint_url"] = self._endpoint_url

        self._session = aioboto3.Session()
        self._client_ctx = self._session.client("dynamodb", **kwargs)
        self._client = await self._client_ctx.__aenter__()

        logger.info(
            "DynamoDB client initialized",
            extra={"region": region, "endpoint": self._endpoint_url},
        )
        return self._client

    async def close(self) -> None:
        """Close the client opened by ensure_client(). Injected clients are left to their owner."""
        if self._client_ctx is None:
            return
        try:
            await self._client_ctx.__aexit__(None, None, None)
        finally:
            self._client = None
            self._client_ctx = None
            self._session = None

    @asynccontextmanager
    async def using_client(self, client: Any) -> AsyncGenerator[Any, None]:
        """
        Scope an already open client to a block of code.

        Usage:
            async with session.client("dynamodb") as client:
                async with store.using_client(client):
                    await model.get("...")
        """
        token = self._client_context.set(client)
        try:
            yield client
        finally:
            self._client_context.reset(token)

    def set_client(self, client: Any) -> None:
        """Use ``client`` for every call; the caller keeps ownership of its lifecycle."""
        self._client = client

    async def _call(self, operation: str, params: Mapping[str, Any]) -> dict[str, Any]:
        table_name = params.get("TableName")
        if table_name is None and params.get("RequestItems"):
            table_name = ",".join(params["RequestItems"])

        request = self._serializer.marshal_params(params)
        client = await self.ensure_client()
        method = getattr(client, OPERATIONS[operation])

        logger.debug(
            "Issuing store request",
            extra={
                "table": table_name,
                "operation": operation,
                "key_hash": redact_key(params["Key"]) if "Key" in params else None,
            },
        )

        with handle_store_errors(table_name=table_name):
            response = await method(**request)

        logger.info("Store request completed", extra={"table": table_name, "operation": operation})
        return self._serializer.unmarshal_result(response)

    async def batch_get(self, params: Mapping[str, Any]) -> dict[str, Any]:
        return await self._call("batch_get", params)

    async def batch_write(self, params: Mapping[str, Any]) -> dict[str, Any]:
        return await self._call("batch_write", params)

    async def delete(self, params: Mapping[str, Any]) -> dict[str, Any]:
        return await self._call("delete", params)

    async def get(self, params: Mapping[str, Any]) -> dict[str, Any]:
        return await self._call("get", params)

    async def put(self, params: Mapping[str, Any]) -> dict[str, Any]:
        return await self._call("put", params)

    async def query(self, params: Mapping[str, Any]) -> dict[str, Any]:
        return await self._call("query", params)

    async def scan(self, params: Mapping[str, Any]) -> dict[str, Any]:
        return await self._call("scan", params)

    async def update(self, params: Mapping[str, Any]) -> dict[str, Any]:
        return await self._call("update", params)

    def create_set(self, values: Iterable[Any]) -> set[Any]:
        """
        Build a DynamoDB set (SS, NS or BS) from homogeneous values.

        Raises:
            InvalidArgumentError: If values are empty or of mixed kinds
        """
        members = set(values)
        if not members:
            raise InvalidArgumentError("DynamoDB sets cannot be empty", argument="values")

        kinds = {_set_kind(member) for member in members}
        if len(kinds) != 1 or None in kinds:
            raise InvalidArgumentError(
                "DynamoDB set members must all be strings, numbers or binary",
                argument="values",
            )
        return members


def _set_kind(value: Any) -> str | None:
    if isinstance(value, str):
        return "S"
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        return "N"
    if isinstance(value, bytes):
        return "B"
    return None
