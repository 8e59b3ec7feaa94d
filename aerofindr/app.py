"""
AeroFindr Flask Application.

Main entry point for the web application. Initializes:
- Flight finder (metadata extraction + flight lookup)
- Background event loop that owns the finder's state
- API routes

Usage:
    python -m aerofindr.app

Or with gunicorn (single worker, the finder state is per process):
    gunicorn 'aerofindr.app:create_app()'
"""

import logging
import os
from typing import Optional

from flask import Flask
from flask_cors import CORS

from aerofindr.config import config
from aerofindr.api import lookup_bp
from aerofindr.finder import FlightFinder
from aerofindr.runner import LoopRunner

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)


def create_app(finder: Optional[FlightFinder] = None) -> Flask:
    """
    Application factory for Flask.

    Args:
        finder: FlightFinder to serve. Created from configuration if None;
                tests pass one wired to fakes.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    # Configuration
    app.config['SECRET_KEY'] = config.secret_key
    app.config['MAX_CONTENT_LENGTH'] = config.max_upload_mb * 1024 * 1024
    app.config['LOOKUP_WAIT_SECONDS'] = config.lookup.wait_seconds

    # Enable CORS for API endpoints
    CORS(app, resources={r'/api/*': {'origins': '*'}})

    app.register_blueprint(lookup_bp)

    if finder is None:
        finder = FlightFinder()
        if not config.aviationstack.is_configured:
            logger.info('Set AVIATIONSTACK_API_KEY in .env to include route details in matches')

    runner = LoopRunner()
    runner.start()

    app.config['FLIGHT_FINDER'] = finder
    app.config['LOOP_RUNNER'] = runner

    # -------------------------------------------------------------------------
    # Health
    # -------------------------------------------------------------------------

    @app.route('/health')
    def health():
        """Simple health check endpoint."""
        return {'status': 'ok', 'loop_running': runner.running}

    # -------------------------------------------------------------------------
    # Error handlers
    # -------------------------------------------------------------------------

    @app.errorhandler(404)
    def not_found(e):
        return {'error': 'Not found'}, 404

    @app.errorhandler(413)
    def too_large(e):
        return {'error': f'Photo exceeds {config.max_upload_mb}MB upload limit'}, 413

    @app.errorhandler(500)
    def server_error(e):
        logger.error(f'Server error: {e}')
        return {'error': 'Internal server error'}, 500

    return app


def run_development_server():
    """Run the development server."""
    app = create_app()

    port = int(os.environ.get('PORT', 5000))

    logger.info(f'Starting AeroFindr on http://localhost:{port}')
    logger.info(f'Upload photos to POST http://localhost:{port}/api/lookup')

    try:
        app.run(
            host='0.0.0.0',
            port=port,
            debug=config.debug,
            use_reloader=False,  # Reloader would start a second event loop thread
        )
    finally:
        app.config['LOOP_RUNNER'].stop()


if __name__ == '__main__':
    run_development_server()
