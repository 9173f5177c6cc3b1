"""
Routes package for the Helpdesk
One blueprint per area, mirroring the business layer
"""

from flask import Blueprint
from helpdesk.logger import get_logger

logger = get_logger("helpdesk.routes")

# Create main blueprint
main = Blueprint('main', __name__)

# Import route modules
from . import main_routes


def init_app(app):
    """Initialize all route blueprints with the Flask app"""
    logger.debug("Initializing route blueprints")

    # main is registered in helpdesk/__init__.py
    from . import tickets, assets, disposals, inspections, notifications, admin, reports, api

    app.register_blueprint(tickets.bp, url_prefix='/tickets')
    app.register_blueprint(assets.bp, url_prefix='/assets')
    app.register_blueprint(disposals.bp, url_prefix='/disposals')
    app.register_blueprint(inspections.bp, url_prefix='/inspections')
    app.register_blueprint(notifications.bp, url_prefix='/notifications')
    app.register_blueprint(admin.bp, url_prefix='/admin')
    app.register_blueprint(reports.bp, url_prefix='/reports')
    app.register_blueprint(api.bp, url_prefix='/api')

    logger.info("All route blueprints registered successfully")
