"""HR Suite Flask application factory."""
from flask import Flask, jsonify, request
from flask_compress import Compress

from hrsuite.config import config
from hrsuite.core.utils.logging_config import setup_logging, get_logger

app_logger = get_logger('hrsuite.app')


def create_app(app_config=None):
    """Build the Flask app: logging, compression, blueprints, error handlers."""
    app_config = app_config or config
    setup_logging(level=app_config.LOG_LEVEL, json_format=app_config.LOG_JSON)

    if not app_config.SECRET_KEY:
        raise RuntimeError('FLASK_SECRET_KEY environment variable is required')

    app = Flask(__name__)
    app.secret_key = app_config.SECRET_KEY
    app.config['HRSUITE'] = app_config

    # gzip/brotli for the JSON list endpoints
    Compress().init_app(app)

    if not app_config.uses_memory_store:
        from hrsuite.database import init_db
        init_db()

    from hrsuite.claims import claims_bp
    from hrsuite.claims.services import build_claim_service
    app.extensions['claims_service'] = build_claim_service(app_config)
    app.register_blueprint(claims_bp, url_prefix='/claims')

    @app.route('/health')
    def health():
        if app_config.uses_memory_store:
            return jsonify({'status': 'ok', 'store': 'memory'})
        from hrsuite.database import ping_db
        healthy = ping_db()
        return jsonify({'status': 'ok' if healthy else 'degraded',
                        'store': 'postgres'}), (200 if healthy else 503)

    @app.errorhandler(404)
    def handle_404(e):
        return jsonify({'success': False, 'error': 'Not found'}), 404

    @app.errorhandler(405)
    def handle_405(e):
        return jsonify({'success': False, 'error': 'Method not allowed'}), 405

    @app.errorhandler(500)
    def handle_500(e):
        app_logger.exception(f'Unhandled 500 error on {request.path}')
        return jsonify({'success': False, 'error': 'An internal error occurred'}), 500

    app_logger.info(f'HR Suite startup complete — {len(list(app.url_map.iter_rules()))} routes registered '
                    f'(claims store: {app_config.CLAIMS_STORE})')
    return app
