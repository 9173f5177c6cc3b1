"""
Helpdesk application package.

Extensions are created here, unbound, so models and blueprints can import
``db``, ``login_manager`` and ``limiter`` before ``create_app()`` runs.
"""

import os
from pathlib import Path

from flask import Flask, has_request_context, redirect, request
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from helpdesk.logger import get_logger

PACKAGE_DIR = Path(__file__).parent

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
csrf = CSRFProtect()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["2000 per day", "500 per hour"],
    storage_uri="memory://"  # Use Redis in production for distributed systems
)

# Bootstrap is served from jsDelivr
CONTENT_SECURITY_POLICY = (
    "default-src 'self'; "
    "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "img-src 'self' data: https:; "
    "font-src 'self' data: https://cdn.jsdelivr.net;"
)


def _env_flag(name, default):
    return os.environ.get(name, default).lower() in ('true', '1', 'yes', 'on')


def _default_database_uri():
    instance_dir = PACKAGE_DIR.parent / 'instance'
    instance_dir.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{(instance_dir / 'helpdesk.db').resolve()}"


def load_config(app, overrides=None):
    """
    Read settings from the environment (see generate_env.py), then apply
    ``overrides``. Secure cookie and HTTPS flags default to on.
    """
    config = app.config
    config['SECRET_KEY'] = os.environ.get('SECRET_KEY')
    config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('DATABASE_URL') or _default_database_uri()
    config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    config['ENABLE_HTTPS'] = _env_flag('ENABLE_HTTPS', 'True')
    config['FORCE_HTTPS_REDIRECT'] = _env_flag('FORCE_HTTPS_REDIRECT', 'True')
    config['SESSION_COOKIE_SECURE'] = _env_flag('SESSION_COOKIE_SECURE', 'True')
    config['SESSION_COOKIE_HTTPONLY'] = True
    config['SESSION_COOKIE_SAMESITE'] = 'Lax'
    config['PERMANENT_SESSION_LIFETIME'] = int(os.environ.get('PERMANENT_SESSION_LIFETIME', '3600'))
    config['REMEMBER_COOKIE_SECURE'] = _env_flag('REMEMBER_COOKIE_SECURE', 'True')
    config['REMEMBER_COOKIE_HTTPONLY'] = True

    # Base for absolute links in e-mails; hosted deployments may only set one of the later names
    config['APP_URL'] = (
        os.environ.get('APP_URL')
        or os.environ.get('NEXT_PUBLIC_APP_URL')
        or os.environ.get('VERCEL_URL')
        or 'http://localhost:5000'
    )

    # SMTP_HOST unset disables e-mail delivery; in-app notifications still work
    smtp_port = os.environ.get('SMTP_PORT')
    config['SMTP_HOST'] = os.environ.get('SMTP_HOST')
    config['SMTP_PORT'] = int(smtp_port) if smtp_port else None  # None: 465 for ssl, 587 otherwise
    config['SMTP_USER'] = os.environ.get('SMTP_USER')
    config['SMTP_PASSWORD'] = os.environ.get('SMTP_PASSWORD')
    config['SMTP_FROM'] = os.environ.get('SMTP_FROM')
    config['SMTP_ENCRYPTION'] = (os.environ.get('SMTP_ENCRYPTION') or 'starttls').lower()

    # Failed sign-ins are e-mailed here when set
    config['LOGIN_ALERT_EMAIL'] = os.environ.get('LOGIN_ALERT_EMAIL')

    if overrides:
        config.update(overrides)

    if not config['SECRET_KEY']:
        raise RuntimeError("SECRET_KEY environment variable is required")


def register_request_hooks(app):
    @app.before_request
    def enforce_https():
        if not (app.config.get('ENABLE_HTTPS') and app.config.get('FORCE_HTTPS_REDIRECT')):
            return None
        if request.is_secure or request.headers.get('X-Forwarded-Proto') == 'https':
            return None
        return redirect(request.url.replace('http://', 'https://', 1), code=301)

    @app.after_request
    def set_security_headers(response):
        response.headers['X-Frame-Options'] = 'SAMEORIGIN'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Content-Security-Policy'] = CONTENT_SECURITY_POLICY
        if app.config.get('ENABLE_HTTPS'):
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        return response


def register_template_helpers(app):
    from flask_login import current_user
    from helpdesk.utils.timezones import to_local

    @app.context_processor
    def inject_unread_notifications():
        # E-mail templates are also rendered outside requests
        if not has_request_context() or not current_user.is_authenticated:
            return {'unread_notifications': 0}
        from helpdesk.buisness.notifications.notifier import unread_count
        return {'unread_notifications': unread_count(current_user.id)}

    @app.template_filter('localtime')
    def localtime_filter(value, fmt='%Y-%m-%d %H:%M'):
        """Stored UTC timestamp shown in America/Mexico_City"""
        return to_local(value).strftime(fmt)


def create_app(config_overrides=None):
    app = Flask(__name__,
                template_folder=str(PACKAGE_DIR / 'presentation' / 'templates'),
                static_folder=str(PACKAGE_DIR / 'presentation' / 'static'))

    logger = get_logger("helpdesk")

    try:
        load_config(app, config_overrides)
    except RuntimeError as e:
        logger.critical(f"{e}. Application cannot start.")
        raise

    if not app.config['ENABLE_HTTPS']:
        logger.warning("HTTPS enforcement DISABLED - Acceptable for development only!")

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)
    login_manager.login_view = 'auth.login'
    login_manager.login_message = 'Please log in to access this page.'
    login_manager.login_message_category = 'info'

    # Models must be imported before create_all() / migrations see the metadata
    from helpdesk.data.core.user_info.user import User  # noqa: F401
    from helpdesk.data.core.user_info.login_audit import LoginAudit  # noqa: F401
    from helpdesk.data.core.location import Location  # noqa: F401
    from helpdesk.data.assets.asset import Asset  # noqa: F401
    from helpdesk.data.assets.asset_type import AssetType  # noqa: F401
    from helpdesk.data.assets.asset_change import AssetChange  # noqa: F401
    from helpdesk.data.assets.disposal_request import DisposalRequest  # noqa: F401
    from helpdesk.data.tickets.ticket import Ticket, TicketStatusHistory, TicketComment  # noqa: F401
    from helpdesk.data.inspections.inspection import Inspection, InspectionArea, InspectionItem  # noqa: F401
    from helpdesk.data.notifications.notification import Notification  # noqa: F401
    from helpdesk.data.academy.course import Course  # noqa: F401

    from helpdesk.auth import auth
    from helpdesk.presentation.routes import main
    from helpdesk.presentation.routes import init_app as init_routes

    app.register_blueprint(auth)
    app.register_blueprint(main)
    init_routes(app)

    register_request_hooks(app)
    register_template_helpers(app)

    logger.info(f"Helpdesk initialised (database: {app.config['SQLALCHEMY_DATABASE_URI'].split(':', 1)[0]})")
    return app
