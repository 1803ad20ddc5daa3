# backend/stock_api/__init__.py
import logging

from flask import Flask, jsonify
from flask_cors import CORS

from .config import Config, apply_secret, check_config, load_secret
from .database import get_store, init_store
from .logging_config import setup_logging
from .storage import StockAnalysisStore, StoreState

logger = logging.getLogger(__name__)


def create_app(config_class=Config, store: StockAnalysisStore = None) -> Flask:
    """
    Create and configure the app.
    The store is initialized here; check app.extensions['stock_store'].state
    (or the /health route) to find out whether that worked.
    """
    app = Flask(__name__)
    app.config.from_object(config_class)
    if not app.testing: # root handlers stay untouched under test
        setup_logging(app.config['LOG_LEVEL'])
    CORS(app) # allows all origins

    if app.config.get('AWS_SECRET_NAME'):
        secret = load_secret(app.config['AWS_SECRET_NAME'], app.config['AWS_REGION'])
        apply_secret(app.config, secret)
    check_config(app.config)

    init_store(app, store)

    from .stocks.routes import stocks_bp
    app.register_blueprint(stocks_bp, url_prefix='/api/stocks')

    @app.route('/health')
    def health():
        """Reports whether the store is ready to take requests."""
        current = get_store()
        body = {"status": current.state.value, "backend": current.backend_name}
        if current.state is StoreState.READY:
            body["status"] = "ok"
            return jsonify(body), 200
        body["error"] = current.last_error
        return jsonify(body), 503

    logger.info("Flask app created (backend: %s). Stocks Blueprint registered.", app.config['STORAGE_BACKEND'])
    return app
