"""
Shared pytest fixtures and configuration for dynapage tests.

This module provides common fixtures used across unit and integration tests,
including mocked async DynamoDB clients, a moto server for integration runs,
and table definitions.
"""

import os
from collections.abc import AsyncGenerator, Generator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import boto3
import pytest
from moto.server import ThreadedMotoServer
from pydantic import BaseModel
from pytest_asyncio import fixture as async_fixture

from dynapage import DynamoStore, Model, TableConfig
from dynapage.store import OPERATIONS

TABLE_NAME = "dynamdb-table-example"
REGION = "us-east-1"


class ExampleRecord(BaseModel):
    ID: str
    Range: str
    Test: str


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests with mocked dependencies")
    config.addinivalue_line("markers", "integration: Integration tests against a moto server")


@pytest.fixture
def table_config() -> TableConfig:
    """Table with a hash key (ID) and a range key (Range)."""
    return TableConfig(table_name=TABLE_NAME, hash_key="ID", range_key="Range")


@pytest.fixture
def hash_only_config() -> TableConfig:
    return TableConfig(table_name="test_users", hash_key="email")


@pytest.fixture
def mock_client():
    """
    Creates a fully mocked async DynamoDB client.

    Every operation is an AsyncMock returning an empty response unless a
    test overrides it.
    """
    client = MagicMock()
    for method in OPERATIONS.values():
        setattr(client, method, AsyncMock(return_value={}))
    return client


@pytest.fixture
def store(mock_client) -> DynamoStore:
    return DynamoStore(client=mock_client)


@pytest.fixture
def model(table_config, store) -> Model:
    return Model(table_config, store=store)


@pytest.fixture
def schema_model(store) -> Model:
    config = TableConfig(
        table_name=TABLE_NAME, hash_key="ID", range_key="Range", schema=ExampleRecord
    )
    return Model(config, store=store)


@pytest.fixture
def sample_items() -> list[dict[str, Any]]:
    return [
        {"ID": 1, "Range": 3, "Test": "Example"},
        {"ID": 2, "Range": 3, "Test": "Example"},
    ]


@pytest.fixture
def query_params() -> dict[str, Any]:
    """Default all_by params, as the caller built them before option merging."""
    return {
        "TableName": TABLE_NAME,
        "KeyConditionExpression": "#hkey = :hvalue",
        "ExpressionAttributeNames": {"#hkey": "Test"},
        "ExpressionAttributeValues": {":hvalue": "Example"},
        "ScanIndexForward": False,
    }


@pytest.fixture(scope="session")
def aws_credentials() -> None:
    """Fake credentials so no client ever reaches for real ones."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = REGION
    os.environ.pop("SERVERLESS_REGION", None)


@pytest.fixture(scope="session")
def moto_endpoint(aws_credentials) -> Generator[str, None, None]:
    """In-process moto server; async clients reach it over HTTP."""
    server = ThreadedMotoServer(ip_address="127.0.0.1", port=0, verbose=False)
    server.start()
    host, port = server.get_host_and_port()
    yield f"http://{host}:{port}"
    server.stop()


@pytest.fixture
def moto_table(moto_endpoint) -> Generator[str, None, None]:
    """Creates the example table for one test and drops it afterwards."""
    client = boto3.client("dynamodb", region_name=REGION, endpoint_url=moto_endpoint)
    client.create_table(
        TableName=TABLE_NAME,
        KeySchema=[
            {"AttributeName": "ID", "KeyType": "HASH"},
            {"AttributeName": "Range", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "ID", "AttributeType": "S"},
            {"AttributeName": "Range", "AttributeType": "N"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )
    yield TABLE_NAME
    client.delete_table(TableName=TABLE_NAME)


@async_fixture
async def moto_store(moto_endpoint, moto_table) -> AsyncGenerator[DynamoStore, None]:
    async with DynamoStore(region=REGION, endpoint_url=moto_endpoint) as store:
        yield store


@pytest.fixture
def moto_model(moto_store, table_config) -> Model:
    return Model(table_config, store=moto_store)
