# backend/stock_api/storage/dynamodb_store.py
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from stock_api.errors import StorageError
from stock_api.stocks.models import StockAnalysisRecord, parse_timestamp
from .base import StockAnalysisStore, StoredRecord

logger = logging.getLogger(__name__)

# Past this many items a full scan per GET gets slow; add a GSI keyed for recency
SCAN_WARNING_ITEMS = 10000


class DynamoDBStore(StockAnalysisStore):
    """Document backend: items keyed by (symbol, timestamp) in a DynamoDB table.

    The table is provisioned out of band; `initialize()` only checks that it exists.
    """

    backend_name = "dynamodb"

    def __init__(self, table_name: str = 'stock_analysis_results', region: str = 'us-east-1',
                 access_key_id: Optional[str] = None, secret_access_key: Optional[str] = None,
                 endpoint_url: Optional[str] = None, max_pool_connections: int = 10):
        super().__init__(table_name)
        self.region = region
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self.endpoint_url = endpoint_url
        self.max_pool_connections = max_pool_connections
        self._table = None

    def _setup(self) -> None:
        session = boto3.session.Session(
            aws_access_key_id=self.access_key_id,
            aws_secret_access_key=self.secret_access_key,
            region_name=self.region,
        )
        dynamodb = session.resource(
            'dynamodb',
            endpoint_url=self.endpoint_url,
            config=BotoConfig(max_pool_connections=self.max_pool_connections),
        )
        table = dynamodb.Table(self.table_name)
        table.load() # DescribeTable; fails if the table is missing or unreachable
        logger.info("DynamoDB table '%s' found (%s items approx.)", self.table_name, table.item_count)
        self._table = table

    def _teardown(self) -> None:
        self._table = None

    def _insert(self, record: StockAnalysisRecord) -> StoredRecord:
        item = record.to_dict()
        logger.debug("Putting %s @ %s into %s", record.symbol, record.timestamp, self.table_name)
        try:
            self._table.put_item(Item=_to_dynamo(item))
        except (BotoCoreError, ClientError, TypeError, ValueError) as e:
            # TypeError/ValueError come from boto3's TypeSerializer
            raise StorageError(f"Error saving {record.symbol} to DynamoDB", details=str(e)) from e
        return item

    def _list_recent(self, limit: int) -> List[StoredRecord]:
        items = []
        scan_kwargs: Dict[str, Any] = {}
        try:
            while True:
                response = self._table.scan(**scan_kwargs)
                items.extend(response.get('Items', []))
                last_key = response.get('LastEvaluatedKey')
                if not last_key:
                    break
                scan_kwargs['ExclusiveStartKey'] = last_key
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Error scanning {self.table_name}", details=str(e)) from e

        logger.debug("Scanned %d items from %s", len(items), self.table_name)
        if len(items) > SCAN_WARNING_ITEMS:
            logger.warning("Full scan of %s read %d items (warning threshold %d)",
                           self.table_name, len(items), SCAN_WARNING_ITEMS)
        items.sort(key=_timestamp_sort_key, reverse=True)
        return [_from_dynamo(item) for item in items[:limit]]


def _to_dynamo(item: StoredRecord) -> Dict[str, Any]:
    # boto3 rejects float; numbers go over the wire as Decimal
    return {key: Decimal(str(value)) if isinstance(value, float) else value for key, value in item.items()}


def _from_dynamo(item: Dict[str, Any]) -> StoredRecord:
    values = {}
    for key, value in item.items():
        if isinstance(value, Decimal):
            value = int(value) if value == value.to_integral_value() else float(value)
        values[key] = value
    fields = {name: values.get(name) for name in StockAnalysisRecord.__dataclass_fields__}
    return StockAnalysisRecord(**fields).to_dict()


def _timestamp_sort_key(item: Dict[str, Any]) -> datetime:
    try:
        return parse_timestamp(str(item.get('timestamp') or ''))
    except ValueError:
        return datetime.min
