#!/usr/bin/env python3
"""
Database build orchestrator for the Helpdesk
Creates tables, ensures critical data and optionally loads debug data
"""

import json
import os
import secrets
from pathlib import Path

from helpdesk import create_app, db
from helpdesk.logger import get_logger

logger = get_logger("helpdesk.build")

CRITICAL_DATA_FILE = Path(__file__).parent / 'data' / 'core' / 'build_data_critical.json'


def _admin_password():
    return os.environ.get('ADMIN_PASSWORD') or os.environ.get('ADMIN_USER_PASSWORD')


def verify_critical_data():
    """
    Verify that critical data is present in the database

    Returns:
        bool: True if the system user, the admin user and a location exist
    """
    from helpdesk.data.core.user_info.user import User
    from helpdesk.data.core.location import Location

    if not User.query.filter_by(username='system', is_system=True).first():
        logger.warning("System user not found")
        return False
    if not User.query.filter_by(username='admin').first():
        logger.warning("Admin user not found")
        return False
    if not Location.query.first():
        logger.warning("No location found")
        return False

    logger.info("Critical data verification passed")
    return True


def insert_critical_data():
    """
    Insert data that must always be present.

    Called on every build, regardless of flags. The admin password comes from
    ADMIN_PASSWORD (or ADMIN_USER_PASSWORD); the build stops without it when
    the admin user still has to be created.
    """
    from helpdesk.data.core.user_info.user import User
    from helpdesk.data.core.location import Location

    if not CRITICAL_DATA_FILE.exists():
        raise FileNotFoundError(f"Critical data file not found: {CRITICAL_DATA_FILE}")

    if verify_critical_data():
        logger.info("Critical data already present, skipping insertion")
        return

    with open(CRITICAL_DATA_FILE, 'r', encoding='utf-8') as f:
        critical_data = json.load(f)

    logger.warning("Critical data missing, attempting insertion...")
    try:
        users = critical_data['Essential']['Users']

        system_data = dict(users['System'], password=secrets.token_urlsafe(32))
        system_user, _ = User.find_or_create_from_dict(system_data, lookup_fields=['username'], commit=False)
        db.session.flush()

        if not User.query.filter_by(username='admin').first():
            password = _admin_password()
            if not password:
                raise RuntimeError("ADMIN_PASSWORD environment variable is required to create the admin user")
            User.create_from_dict(dict(users['Admin'], password=password),
                                  user_id=system_user.id, commit=False)
            logger.info("Inserted admin user")

        for location_data in critical_data['Core']['Locations'].values():
            Location.find_or_create_from_dict(location_data, user_id=system_user.id,
                                              lookup_fields=['code'], commit=False)

        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Critical data insertion failed: {e}")
        raise

    admin = User.query.filter_by(username='admin').first()
    if not admin.locations:
        admin.locations = Location.query.order_by(Location.id).limit(1).all()
        db.session.commit()

    if not verify_critical_data():
        raise RuntimeError("Critical data insertion completed but verification failed")
    logger.info("Successfully inserted critical data")


def insert_asset_types():
    """
    Add the default asset types that are missing.

    Runs on every build; types an admin renamed or deactivated are left alone.
    """
    from helpdesk.data.assets.asset_type import AssetType
    from helpdesk.data.core.user_info.user import User

    with open(CRITICAL_DATA_FILE, 'r', encoding='utf-8') as f:
        defaults = json.load(f)['Core'].get('AssetTypes', {})

    system_user = User.query.filter_by(username='system', is_system=True).first()
    created = 0
    for type_data in defaults.values():
        _, was_created = AssetType.find_or_create_from_dict(
            dict(type_data, is_active=True), user_id=system_user.id if system_user else None,
            lookup_fields=['value'], commit=False)
        created += was_created
    db.session.commit()
    if created:
        logger.info(f"Inserted {created} default asset type(s)")


def build_database(enable_debug_data=True, app=None):
    """
    Build the database

    Args:
        enable_debug_data (bool): Insert sample locations, users, assets and tickets.
                                  Critical data is ALWAYS checked and inserted.
        app: Existing application to build into (a new one is created when omitted)
    """
    app = app or create_app()

    with app.app_context():
        logger.info(f"Starting database build (debug data: {enable_debug_data})")

        db.create_all()
        logger.info("All database tables created")

        insert_critical_data()
        insert_asset_types()

        if enable_debug_data:
            from helpdesk.debug.debug_data_manager import insert_debug_data
            logger.info("Inserting debug data...")
            insert_debug_data()

        logger.info("Database build completed successfully")


if __name__ == '__main__':
    import sys
    build_database(enable_debug_data='--no-debug-data' not in sys.argv)
