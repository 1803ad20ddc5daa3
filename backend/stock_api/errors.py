# backend/stock_api/errors.py
"""Exception types shared by the normalizer, the storage adapters and the routes."""


class StockApiError(Exception):
    """Base class for every error raised by this service."""


class ConfigError(StockApiError):
    """Configuration (or the secret backing it) could not be loaded."""


class ValidationError(StockApiError):
    """The inbound payload cannot be turned into a record (HTTP 400)."""


class StorageError(StockApiError):
    """A backend call failed (HTTP 500).

    `details` carries the backend's own message so it can be passed back to the client.
    """

    def __init__(self, message: str, details: str = None):
        super().__init__(message)
        self.message = message
        self.details = details if details is not None else message


class StorageUnavailableError(StorageError):
    """The store is not in the READY state (HTTP 500)."""
