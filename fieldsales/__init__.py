"""Flask application factory."""
from flask import Flask, jsonify
from flask_wtf.csrf import CSRFProtect, CSRFError
from werkzeug.exceptions import HTTPException
from fieldsales.database import init_db
import logging
import os


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    if not app.debug and not app.testing:
        logging.basicConfig(
            level=logging.INFO,
            format='%(asctime)s %(levelname)s %(name)s: %(message)s'
        )

    # Initialize CSRF protection
    csrf = CSRFProtect(app)

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning(f"CSRF Error: {e.description}")
        return jsonify({'message': 'The session has expired. Reload and try again.'}), 400

    # Error tracking in production
    if os.getenv('SENTRY_DSN') and (app.config.get('ENV') == 'production' or os.getenv('FLASK_ENV') == 'production'):
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=os.getenv('SENTRY_DSN'),
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,  # 10% of transactions for performance monitoring
            environment=os.getenv('FLASK_ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Prometheus metrics instrumentation
    from fieldsales.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Production: Enable ProxyFix for HTTPS behind Nginx reverse proxy
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(
            app.wsgi_app,
            x_for=1,      # Trust X-Forwarded-For with 1 proxy
            x_proto=1,    # Trust X-Forwarded-Proto
            x_host=1,     # Trust X-Forwarded-Host
            x_port=1,     # Trust X-Forwarded-Port
            x_prefix=0    # No prefix (not behind a URL prefix)
        )

    # Initialize database
    init_db(app)

    # Load the logged-in user before each request
    from fieldsales.middleware import load_current_user

    @app.before_request
    def before_request_handler():
        load_current_user()

    # Error Handlers
    from fieldsales.exceptions import AppError

    @app.errorhandler(AppError)
    def handle_app_error(error):
        """Handle custom application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"AppError [{error.status_code}]: {error.message}")
        else:
            app.logger.info(f"AppError [{error.status_code}]: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'message': error.description}), error.code

    @app.errorhandler(Exception)
    def internal_error(error):
        app.logger.exception(f"Unhandled Exception: {error}")
        return jsonify({'message': 'Internal Server Error'}), 500

    # Register blueprints
    from fieldsales.blueprints.auth import auth_bp
    from fieldsales.blueprints.catalog import catalog_bp
    from fieldsales.blueprints.orders import orders_bp
    from fieldsales.blueprints.public_orders import public_orders_bp, public_links_bp
    from fieldsales.blueprints.dispatches import dispatches_bp
    from fieldsales.blueprints.support import support_bp
    from fieldsales.blueprints.metrics import metrics_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(dispatches_bp)
    app.register_blueprint(support_bp)
    app.register_blueprint(metrics_bp)

    # Share links are used without a session, so no CSRF token exists
    csrf.exempt(public_orders_bp)
    csrf.exempt(public_links_bp)
    app.register_blueprint(public_orders_bp)
    app.register_blueprint(public_links_bp)

    # Register CLI commands
    from fieldsales.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
