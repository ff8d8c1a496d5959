import logging
import os

import click
from flask import Flask
from flask_cors import CORS

from servicehub.extensions import db, limiter

LOG_FORMAT = '%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s'

logger = logging.getLogger(__name__)


def _configure_logging(app):
    """Attach one request-id aware stream handler to the ``servicehub`` logger."""
    from servicehub.middleware import RequestIdFilter

    package_logger = logging.getLogger('servicehub')
    package_logger.setLevel(app.config['LOG_LEVEL'])
    if not any(getattr(h, '_servicehub', False) for h in package_logger.handlers):
        handler = logging.StreamHandler()
        handler._servicehub = True
        handler.addFilter(RequestIdFilter())
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)


def _init_sentry(app):
    # Optional: only active when SENTRY_DSN is set
    dsn = app.config.get('SENTRY_DSN')
    if not dsn:
        if not app.debug and not app.testing:
            logger.warning("SENTRY_DSN is not set -- error monitoring is disabled.")
        return
    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration
    sentry_sdk.init(
        dsn=dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=0.1,
    )


def create_app(config_name=None):
    """Flask application factory"""
    app = Flask(__name__)

    # Load configuration
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    from servicehub.config import config
    app.config.from_object(config[config_name])

    _configure_logging(app)
    _init_sentry(app)
    if not app.config.get('TWOFACTOR_API_KEY') and not app.config.get('ALLOW_MOCK_OTP'):
        logger.warning("TWOFACTOR_API_KEY is not set -- OTP login is unavailable.")

    # Initialize extensions
    db.init_app(app)
    CORS(app, resources={r"/api/*": {"origins": app.config['CORS_ORIGINS']}})
    limiter.init_app(app)

    from servicehub.middleware import RequestIdMiddleware, sanitize_json_input, set_security_headers
    app.wsgi_app = RequestIdMiddleware(app.wsgi_app)
    app.before_request(sanitize_json_input)
    app.after_request(set_security_headers)

    from servicehub.errors import register_error_handlers
    register_error_handlers(app)

    # Register blueprints
    from servicehub.routes.admin import admin_bp
    from servicehub.routes.auth import auth_bp
    from servicehub.routes.bids import bids_bp
    from servicehub.routes.jobs import jobs_bp
    from servicehub.routes.notifications import notifications_bp
    from servicehub.routes.users import users_bp

    api_prefix = app.config['API_PREFIX']
    app.register_blueprint(auth_bp, url_prefix=api_prefix)
    app.register_blueprint(users_bp, url_prefix=api_prefix)
    app.register_blueprint(jobs_bp, url_prefix=f'{api_prefix}/jobs')
    app.register_blueprint(bids_bp, url_prefix=f'{api_prefix}/bids')
    app.register_blueprint(notifications_bp, url_prefix=f'{api_prefix}/notifications')
    app.register_blueprint(admin_bp, url_prefix=f'{api_prefix}/admin')

    # Health check endpoint
    @app.route('/health')
    @app.route(f'{api_prefix}/health')
    @limiter.exempt
    def health():
        return {'status': 'healthy', 'service': 'servicehub'}, 200

    with app.app_context():
        from servicehub import models  # noqa: F401  (register tables)
        db.create_all()

    @app.cli.command('seed-admin')
    @click.argument('phone')
    @click.option('--name', default=None, help='Full name for a new admin account')
    def seed_admin(phone, name):
        """Create or promote an admin account: flask seed-admin 9876543210"""
        from servicehub.errors import ValidationError
        from servicehub.onboarding import create_admin
        try:
            user, created = create_admin(phone, name)
        except ValidationError as e:
            raise click.ClickException(e.message)
        click.echo("{} admin {} ({})".format("Created" if created else "Promoted", user.id, user.phone))

    logger.info("App created with %s config", config_name)
    return app


__all__ = ['create_app', 'db']
