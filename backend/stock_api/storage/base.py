# backend/stock_api/storage/base.py
import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from stock_api.errors import StorageUnavailableError
from stock_api.stocks.models import StockAnalysisRecord

logger = logging.getLogger(__name__)

StoredRecord = Dict[str, Any]

DEFAULT_LIST_LIMIT = 100


class StoreState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class InitResult:
    """Outcome of StockAnalysisStore.initialize(); the caller decides what a failure means."""
    ok: bool
    backend: str
    error: Optional[str] = None


class StockAnalysisStore(ABC):
    """Insert/list contract shared by the DynamoDB and DuckDB backends.

    Subclasses implement the `_setup`, `_insert`, `_list_recent` and `_teardown` hooks;
    this class owns the state machine and refuses to touch the backend unless READY.
    """

    backend_name = "abstract"

    def __init__(self, table_name: str):
        self.table_name = table_name
        self.state = StoreState.UNINITIALIZED
        self.last_error: Optional[str] = None

    def initialize(self) -> InitResult:
        if self.state is StoreState.READY:
            return InitResult(ok=True, backend=self.backend_name)

        self.state = StoreState.INITIALIZING
        logger.info("Initializing %s store (table '%s')...", self.backend_name, self.table_name)
        try:
            self._setup()
        except Exception as e:
            self.state = StoreState.FAILED
            self.last_error = str(e)
            logger.error("Initializing %s store failed: %s", self.backend_name, e)
            return InitResult(ok=False, backend=self.backend_name, error=self.last_error)

        self.state = StoreState.READY
        self.last_error = None
        logger.info("%s store ready.", self.backend_name)
        return InitResult(ok=True, backend=self.backend_name)

    def insert(self, record: StockAnalysisRecord) -> StoredRecord:
        self._require_ready()
        return self._insert(record)

    def list_recent(self, limit: int = DEFAULT_LIST_LIMIT) -> List[StoredRecord]:
        """Returns up to `limit` records, newest timestamp first."""
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise ValueError(f"limit must be a positive integer, got {limit!r}")
        self._require_ready()
        return self._list_recent(limit)

    def close(self) -> None:
        if self.state is StoreState.UNINITIALIZED:
            return
        logger.info("Closing %s store.", self.backend_name)
        try:
            self._teardown()
        finally:
            self.state = StoreState.UNINITIALIZED

    def _require_ready(self) -> None:
        if self.state is not StoreState.READY:
            raise StorageUnavailableError(
                "Storage is not available.",
                details=self.last_error or f"{self.backend_name} store is {self.state.value}",
            )

    @abstractmethod
    def _setup(self) -> None:
        """Connects and checks the table; raises on any problem."""

    @abstractmethod
    def _insert(self, record: StockAnalysisRecord) -> StoredRecord:
        ...

    @abstractmethod
    def _list_recent(self, limit: int) -> List[StoredRecord]:
        ...

    def _teardown(self) -> None:
        pass
