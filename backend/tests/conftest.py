"""Pytest configuration and fixtures for the stock analysis API."""

import os

import boto3
import pytest
from moto import mock_aws

from stock_api import create_app
from stock_api.config import Config
from stock_api.storage import DuckDBStore, DynamoDBStore

TABLE_NAME = "stock_analysis_results"
REGION = "us-east-1"


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake credentials so boto3 never reaches a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)


@pytest.fixture
def mocked_aws(aws_credentials):
    with mock_aws():
        yield


@pytest.fixture
def dynamodb_table(mocked_aws):
    """Creates the results table in the mocked account."""
    dynamodb = boto3.resource("dynamodb", region_name=REGION)
    table = dynamodb.create_table(
        TableName=TABLE_NAME,
        KeySchema=[
            {"AttributeName": "symbol", "KeyType": "HASH"},
            {"AttributeName": "timestamp", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "symbol", "AttributeType": "S"},
            {"AttributeName": "timestamp", "AttributeType": "S"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )
    table.wait_until_exists()
    return table


@pytest.fixture
def duckdb_store(tmp_path):
    store = DuckDBStore(db_path=str(tmp_path / "data" / "stocks.db"), table_name=TABLE_NAME)
    result = store.initialize()
    assert result.ok, result.error
    yield store
    store.close()


@pytest.fixture
def dynamodb_store(dynamodb_table):
    store = DynamoDBStore(table_name=TABLE_NAME, region=REGION)
    result = store.initialize()
    assert result.ok, result.error
    yield store
    store.close()


@pytest.fixture(params=["duckdb", "dynamodb"])
def store(request):
    """Runs a test once against each backend."""
    return request.getfixturevalue(f"{request.param}_store")


def make_config(**overrides):
    """Config subclass for tests; never reads secrets."""
    attrs = {
        "TESTING": True,
        "AWS_SECRET_NAME": None,
        "AWS_REGION": REGION,
        "AWS_ACCESS_KEY_ID": "testing",
        "AWS_SECRET_ACCESS_KEY": "testing",
        "DYNAMODB_ENDPOINT_URL": None,
        "TABLE_NAME": TABLE_NAME,
        "LIST_LIMIT": 100,
        "LOG_LEVEL": "DEBUG",
    }
    attrs.update(overrides)
    return type("TestConfig", (Config,), attrs)


@pytest.fixture
def config_factory():
    return make_config


@pytest.fixture
def duckdb_config(config_factory, tmp_path):
    return config_factory(STORAGE_BACKEND="duckdb", DB_PATH=os.path.join(str(tmp_path), "api.db"))


@pytest.fixture
def app(store, tmp_path):
    """Flask app wired to an already-initialized store of each backend."""
    config = make_config(STORAGE_BACKEND=store.backend_name, DB_PATH=os.path.join(str(tmp_path), "unused.db"))
    return create_app(config, store=store)


@pytest.fixture
def client(app):
    return app.test_client()
