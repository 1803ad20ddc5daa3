# backend/stock_api/storage/__init__.py
from typing import Any, Mapping

from .base import DEFAULT_LIST_LIMIT, InitResult, StockAnalysisStore, StoreState, StoredRecord
from .duckdb_store import DuckDBStore
from .dynamodb_store import DynamoDBStore

__all__ = [
    'DEFAULT_LIST_LIMIT', 'InitResult', 'StockAnalysisStore', 'StoreState', 'StoredRecord',
    'DuckDBStore', 'DynamoDBStore', 'create_store',
]


def create_store(config: Mapping[str, Any]) -> StockAnalysisStore:
    """Builds the (uninitialized) store selected by STORAGE_BACKEND."""
    backend = str(config.get('STORAGE_BACKEND', 'duckdb')).lower()
    table_name = config.get('TABLE_NAME', 'stock_analysis_results')

    if backend == 'duckdb':
        return DuckDBStore(db_path=config['DB_PATH'], table_name=table_name)
    if backend == 'dynamodb':
        return DynamoDBStore(
            table_name=table_name,
            region=config.get('AWS_REGION', 'us-east-1'),
            access_key_id=config.get('AWS_ACCESS_KEY_ID'),
            secret_access_key=config.get('AWS_SECRET_ACCESS_KEY'),
            endpoint_url=config.get('DYNAMODB_ENDPOINT_URL'),
            max_pool_connections=int(config.get('DYNAMODB_MAX_POOL_CONNECTIONS', 10)),
        )
    raise ValueError(f"Unsupported STORAGE_BACKEND: {backend!r} (expected 'duckdb' or 'dynamodb')")
