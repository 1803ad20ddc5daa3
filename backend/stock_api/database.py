# backend/stock_api/database.py
import atexit
import logging

from flask import Flask, current_app

from .storage import InitResult, StockAnalysisStore, create_store

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'stock_store'


def init_store(app: Flask, store: StockAnalysisStore = None) -> InitResult:
    """
    Creates (unless given) and initializes the store for this application,
    keeping it on app.extensions so request handlers can find it.
    A failed initialization is reported, not raised; the store stays in FAILED.
    """
    if store is None:
        store = create_store(app.config)
    app.extensions[EXTENSION_KEY] = store

    result = store.initialize()
    if result.ok:
        atexit.register(store.close)
    else:
        logger.critical("CRITICAL: %s store initialization failed: %s", result.backend, result.error)
    return result


def get_store() -> StockAnalysisStore:
    """Returns the store attached to the current application."""
    return current_app.extensions[EXTENSION_KEY]
