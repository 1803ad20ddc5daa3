# This file is the main entry point to run the Flask application.
import sys

from stock_api import create_app
from stock_api.database import get_store
from stock_api.storage import StoreState

app = create_app()

if __name__ == '__main__':
    with app.app_context():
        store = get_store()
    if store.state is not StoreState.READY:
        # Leave restarts to the process supervisor
        print(f"CRITICAL: storage not ready ({store.last_error}); exiting.", file=sys.stderr)
        sys.exit(1)

    # Use HOST=0.0.0.0 to make the server accessible on your network
    app.run(debug=app.config['FLASK_ENV'] == 'development',
            host=app.config['HOST'], port=app.config['PORT'],
            use_reloader=False) # a second process could not open the DuckDB file
