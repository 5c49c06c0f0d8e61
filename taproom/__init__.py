"""Flask application factory."""
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from taproom.database import init_db
import os


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Initialize Sentry for error tracking in production
    dsn = app.config.get('SENTRY_DSN') or os.getenv('SENTRY_DSN')
    if dsn and app.config.get('ENV') == 'production':
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=dsn,
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,  # 10% of transactions for performance monitoring
            environment=os.getenv('FLASK_ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Production: Enable ProxyFix for HTTPS behind Nginx reverse proxy
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=0)

    # Initialize database
    init_db(app)

    # Error Handlers
    from taproom.exceptions import TaproomError

    @app.errorhandler(TaproomError)
    def handle_taproom_error(error):
        """Handle custom application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"TaproomError [{error.status_code}]: {error.message}")
        else:
            app.logger.warning(f"TaproomError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify({'status': 'error', 'message': error.name}), error.code

    @app.errorhandler(500)
    @app.errorhandler(Exception)
    def internal_error(error):
        import traceback
        app.logger.error(f"Unhandled Exception: {error}")
        app.logger.error(f"Traceback: {traceback.format_exc()}")
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from taproom.blueprints.orders import orders_bp
    from taproom.blueprints.promotions import promotions_bp

    app.register_blueprint(orders_bp)
    app.register_blueprint(promotions_bp)

    # Register CLI commands
    from taproom.cli_commands import init_cli_commands
    init_cli_commands(app)

    app.logger.info(
        f"ALLOW_NEGATIVE_STOCK={app.config.get('ALLOW_NEGATIVE_STOCK')} "
        f"DEFAULT_SERVING_VOLUME={app.config.get('DEFAULT_SERVING_VOLUME')}"
    )

    return app
