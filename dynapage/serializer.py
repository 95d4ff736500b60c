from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, cast
from uuid import UUID

from boto3.dynamodb.types import TypeDeserializer, TypeSerializer

from .exceptions import DynamoSerializationError

# Request parameters whose values are whole items or keys
_ITEM_PARAMS = ("Item", "Key", "ExclusiveStartKey")
# Result fields that come back as whole items or keys
_ITEM_RESULTS = ("Item", "Attributes", "LastEvaluatedKey")


class DocumentSerializer:
    """
    Converts request parameters and results between plain Python
    ("document" form) and the DynamoDB low-level format.

    Architectural Note:
    -------------------
    Callers build parameters with plain values ({"ID": 1}); the boto3 client
    expects typed attribute values ({"ID": {"N": "1"}}). Numbers are passed to
    boto3 as Decimal and restored to int/float on the way back.
    """

    def __init__(self) -> None:
        self._serializer = TypeSerializer()
        self._deserializer = TypeDeserializer()

    def to_dynamo(self, data: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
        """Converts a standard Python dict to DynamoDB JSON format ({"S": "...", "N": "..."}).

        Empty set attributes are left out; DynamoDB rejects empty SS/NS/BS values.
        """
        return {
            k: self.to_dynamo_value(v, field=k)
            for k, v in data.items()
            if not (isinstance(v, (set, frozenset)) and len(v) == 0)
        }

    def to_dynamo_value(self, value: Any, field: str | None = None) -> dict[str, Any]:
        """
        Serializes a single value to DynamoDB format.
        E.g.: 10.5 -> {'N': '10.5'}
        """
        clean_value = self._prepare_for_dynamo(value)
        try:
            return cast(dict[str, Any], self._serializer.serialize(clean_value))
        except TypeError as e:
            target = f"field '{field}'" if field else f"value {value!r}"
            raise DynamoSerializationError(
                f"Failed to serialize {target}. error={e!s}", original_error=e
            ) from e

    def from_dynamo(self, item: Mapping[str, Any]) -> dict[str, Any]:
        """Converts DynamoDB JSON format back to standard Python dict."""
        python_data = {k: self._deserializer.deserialize(v) for k, v in item.items()}
        result = self._restore_to_python(python_data)
        assert isinstance(result, dict)
        return result

    def marshal_params(self, params: Mapping[str, Any]) -> dict[str, Any]:
        """
        Convert document-form request parameters into boto3 client kwargs.

        Handles Item, Key, ExclusiveStartKey, ExpressionAttributeValues,
        AttributeUpdates and batch RequestItems; other parameters pass through.
        """
        request = dict(params)

        for name in _ITEM_PARAMS:
            if name in request:
                request[name] = self.to_dynamo(request[name])

        if "ExpressionAttributeValues" in request:
            request["ExpressionAttributeValues"] = self.to_dynamo(
                request["ExpressionAttributeValues"]
            )

        if "AttributeUpdates" in request:
            request["AttributeUpdates"] = {
                attr: self._marshal_attribute_update(attr, update)
                for attr, update in request["AttributeUpdates"].items()
            }

        if "RequestItems" in request:
            request["RequestItems"] = {
                table: self._marshal_request_items(entries)
                for table, entries in request["RequestItems"].items()
            }

        return request

    def unmarshal_result(self, response: Mapping[str, Any]) -> dict[str, Any]:
        """Convert a boto3 client response back into document form."""
        result = dict(response)

        for name in _ITEM_RESULTS:
            if result.get(name):
                result[name] = self.from_dynamo(result[name])

        if "Items" in result:
            result["Items"] = [self.from_dynamo(item) for item in result["Items"]]

        if "Responses" in result:
            result["Responses"] = {
                table: [self.from_dynamo(item) for item in items]
                for table, items in result["Responses"].items()
            }

        for name in ("UnprocessedItems", "UnprocessedKeys"):
            if result.get(name):
                result[name] = {
                    table: self._unmarshal_request_items(entries)
                    for table, entries in result[name].items()
                }

        return result

    def _marshal_attribute_update(self, attr: str, update: Mapping[str, Any]) -> dict[str, Any]:
        marshalled = dict(update)
        if "Value" in marshalled:
            marshalled["Value"] = self.to_dynamo_value(marshalled["Value"], field=attr)
        return marshalled

    def _marshal_request_items(self, entries: Any) -> Any:
        # batch_get: {"Keys": [...], ...}; batch_write: [{"PutRequest": ...}, ...]
        if isinstance(entries, Mapping):
            marshalled = dict(entries)
            marshalled["Keys"] = [self.to_dynamo(key) for key in entries.get("Keys", [])]
            return marshalled

        requests = []
        for entry in entries:
            if "PutRequest" in entry:
                requests.append({"PutRequest": {"Item": self.to_dynamo(entry["PutRequest"]["Item"])}})
            elif "DeleteRequest" in entry:
                requests.append(
                    {"DeleteRequest": {"Key": self.to_dynamo(entry["DeleteRequest"]["Key"])}}
                )
            else:
                requests.append(dict(entry))
        return requests

    def _unmarshal_request_items(self, entries: Any) -> Any:
        if isinstance(entries, Mapping):
            restored = dict(entries)
            restored["Keys"] = [self.from_dynamo(key) for key in entries.get("Keys", [])]
            return restored

        requests = []
        for entry in entries:
            if "PutRequest" in entry:
                requests.append({"PutRequest": {"Item": self.from_dynamo(entry["PutRequest"]["Item"])}})
            elif "DeleteRequest" in entry:
                requests.append(
                    {"DeleteRequest": {"Key": self.from_dynamo(entry["DeleteRequest"]["Key"])}}
                )
            else:
                requests.append(dict(entry))
        return requests

    def _prepare_for_dynamo(self, value: Any) -> Any:
        """
        Recursively prepares Python values for Boto3 TypeSerializer.

        Converts:
        - float -> Decimal (boto3 requirement)
        - datetime/date -> ISO 8601 string
        - UUID -> string
        - Enum -> value
        """
        if isinstance(value, float):
            # Convert to string first to avoid float precision artifacts during Decimal creation
            return Decimal(str(value))
        if isinstance(value, datetime):
            utc_offset = value.utcoffset()
            if utc_offset is not None and utc_offset.total_seconds() == 0:
                return value.replace(tzinfo=None).isoformat() + "Z"
            return value.isoformat()
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, UUID):
            return str(value)
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, (set, frozenset)):
            return {self._prepare_for_dynamo(v) for v in value}
        if isinstance(value, (list, tuple)):
            return [self._prepare_for_dynamo(v) for v in value]
        if isinstance(value, Mapping):
            return {k: self._prepare_for_dynamo(v) for k, v in value.items()}
        return value

    def _restore_to_python(self, value: Any) -> Any:
        """
        Recursively restores DynamoDB values to Python-friendly types.

        Converts:
        - Decimal -> int (if whole number) or float
        """
        if isinstance(value, Decimal):
            if value % 1 == 0:
                return int(value)
            return float(value)
        if isinstance(value, (set, frozenset)):
            return {self._restore_to_python(v) for v in value}
        if isinstance(value, list):
            return [self._restore_to_python(v) for v in value]
        if isinstance(value, dict):
            return {k: self._restore_to_python(v) for k, v in value.items()}
        return value


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, bytes, list, tuple, dict, set, frozenset)):
        return len(value) == 0
    return False


def omit_empty(value: Any) -> Any:
    """
    Recursively drop empty attributes (None, "", empty collections).
    Zero and False are kept. Containers left empty after pruning are dropped too.
    """
    if isinstance(value, Mapping):
        pruned = {k: omit_empty(v) for k, v in value.items()}
        return {k: v for k, v in pruned.items() if not _is_empty(v)}
    if isinstance(value, list):
        pruned_list = [omit_empty(v) for v in value]
        return [v for v in pruned_list if not _is_empty(v)]
    return value
