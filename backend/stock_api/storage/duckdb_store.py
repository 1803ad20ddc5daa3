# backend/stock_api/storage/duckdb_store.py
import logging
import os
from contextlib import contextmanager
from typing import Iterator, List, Optional

import duckdb

from stock_api.errors import StorageError
from stock_api.stocks.models import StockAnalysisRecord, format_timestamp, parse_timestamp
from .base import StockAnalysisStore, StoredRecord

logger = logging.getLogger(__name__)

# --- Database Schema Definition ---

RESULTS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS {table} (
    symbol VARCHAR(20) NOT NULL CHECK (length(symbol) BETWEEN 1 AND 20),
    last_analysis_timestamp TIMESTAMP DEFAULT (current_timestamp AT TIME ZONE 'UTC'),
    price DOUBLE, volume DOUBLE, pe_ratio DOUBLE,
    dividend_yield DOUBLE, one_year_target DOUBLE,
    news_summaries_json VARCHAR
)
"""

COLUMNS = (
    'symbol', 'last_analysis_timestamp', 'price', 'volume', 'pe_ratio',
    'dividend_yield', 'one_year_target', 'news_summaries_json',
)


class DuckDBStore(StockAnalysisStore):
    """Relational backend: one row per record in a DuckDB table."""

    backend_name = "duckdb"

    def __init__(self, db_path: str, table_name: str = 'stock_analysis_results'):
        super().__init__(table_name)
        self.db_path = db_path
        self._con: Optional[duckdb.DuckDBPyConnection] = None

    def _setup(self) -> None:
        if self.db_path != ':memory:':
            data_dir = os.path.dirname(os.path.abspath(self.db_path))
            if not os.path.exists(data_dir):
                os.makedirs(data_dir)
        logger.info("Connecting to DuckDB at: %s", self.db_path)
        self._con = duckdb.connect(database=self.db_path, read_only=False)
        try:
            self._con.execute("SELECT 1").fetchone()
            self._con.execute(RESULTS_TABLE_SQL.format(table=self.table_name))
        except duckdb.Error:
            self._con.close()
            self._con = None
            raise
        logger.info("Table '%s' checked/created successfully.", self.table_name)

    def _teardown(self) -> None:
        if self._con is not None:
            self._con.close()
            self._con = None

    @contextmanager
    def _cursor(self) -> Iterator[duckdb.DuckDBPyConnection]:
        """Per-operation connection to the shared database, closed on every exit path."""
        cur = self._con.cursor()
        try:
            yield cur
        finally:
            cur.close()

    def _insert(self, record: StockAnalysisRecord) -> StoredRecord:
        try:
            timestamp = parse_timestamp(record.timestamp)
        except ValueError as e:
            raise StorageError(f"Invalid last_analysis_timestamp: {record.timestamp!r}", details=str(e)) from e

        insert_sql = (
            f"INSERT INTO {self.table_name} ({', '.join(COLUMNS)}) "
            f"VALUES ({', '.join('?' for _ in COLUMNS)}) RETURNING {', '.join(COLUMNS)}"
        )
        params = [
            record.symbol, timestamp, record.price, record.volume, record.pe_ratio,
            record.dividend_yield, record.one_year_target, record.news_summaries_json,
        ]
        logger.debug("Inserting %s @ %s into %s", record.symbol, record.timestamp, self.table_name)
        try:
            with self._cursor() as cur:
                row = cur.execute(insert_sql, params).fetchone()
        except duckdb.Error as e:
            raise StorageError(f"Error inserting {record.symbol} into {self.table_name}", details=str(e)) from e
        return _row_to_record(row)

    def _list_recent(self, limit: int) -> List[StoredRecord]:
        sql = (
            f"SELECT {', '.join(COLUMNS)} FROM {self.table_name} "
            f"ORDER BY last_analysis_timestamp DESC LIMIT ?"
        )
        try:
            with self._cursor() as cur:
                rows = cur.execute(sql, [limit]).fetchall()
        except duckdb.Error as e:
            raise StorageError(f"Error reading {self.table_name}", details=str(e)) from e
        return [_row_to_record(row) for row in rows]


def _row_to_record(row) -> StoredRecord:
    values = dict(zip(COLUMNS, row))
    timestamp = values.pop('last_analysis_timestamp')
    values['timestamp'] = format_timestamp(timestamp) if timestamp is not None else None
    return StockAnalysisRecord(**values).to_dict()
