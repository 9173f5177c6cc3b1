#!/usr/bin/env python3
"""
Debug Data Manager
Loads sample locations, users, assets and tickets for development

Rows go through the business contexts, so validation, history and audit
fields match what the UI would produce. Email delivery follows the normal
SMTP configuration.
"""

import json
import os
from pathlib import Path

from helpdesk import db
from helpdesk.logger import get_logger

logger = get_logger("helpdesk.debug_data_manager")

DEBUG_DATA_FILE = Path(__file__).parent / 'data' / 'helpdesk.json'
DEFAULT_DEBUG_PASSWORD = 'helpdesk-debug-123'


def insert_debug_data(enabled=True):
    """
    Insert debug data

    Returns:
        dict: Number of rows inserted per section

    Raises:
        Exception: If any insertion fails (fail-fast)
    """
    if not enabled:
        logger.info("Debug data insertion is disabled")
        return {}

    from helpdesk.data.core.user_info.user import User

    admin = User.query.filter_by(username='admin').first()
    if admin is None:
        raise RuntimeError("Admin user not found - critical data must be inserted first")

    with open(DEBUG_DATA_FILE, 'r', encoding='utf-8') as f:
        debug_data = json.load(f)

    if User.query.filter_by(username=debug_data['Users'][0]['username']).first():
        logger.info("Debug data already present, skipping")
        return {}

    summary = {}
    try:
        summary['locations'] = _insert_locations(debug_data.get('Locations', []), admin)
        summary['users'] = _insert_users(debug_data.get('Users', []), admin)
        summary['assets'] = _insert_assets(debug_data.get('Assets', []), admin)
        summary['tickets'] = _insert_tickets(debug_data.get('Tickets', []))
    except Exception as e:
        logger.error(f"Failed to insert debug data: {e}")
        db.session.rollback()
        raise

    logger.info(f"Debug data insertion completed: {summary}")
    return summary


def _location_ids(codes):
    from helpdesk.data.core.location import Location
    return [Location.query.filter_by(code=code).one().id for code in codes]


def _user(username):
    from helpdesk.data.core.user_info.user import User
    return User.query.filter_by(username=username).one()


def _insert_locations(locations, admin):
    from helpdesk.data.core.location import Location
    from helpdesk.buisness.core.user_context import create_location

    inserted = 0
    for data in locations:
        if Location.query.filter_by(code=data['code']).first():
            continue
        create_location(admin, data['name'], data['code'], address=data.get('address'), city=data.get('city'))
        inserted += 1
    return inserted


def _insert_users(users, admin):
    from helpdesk.buisness.core.user_context import UserContext

    password = os.environ.get('DEBUG_USER_PASSWORD', DEFAULT_DEBUG_PASSWORD)
    for data in users:
        UserContext.create(
            admin,
            username=data['username'],
            email=data['email'],
            password=password,
            role=data['role'],
            full_name=data.get('full_name'),
            department=data.get('department'),
            asset_category=data.get('asset_category', 'IT'),
            location_ids=_location_ids(data.get('locations', [])),
        )
        logger.debug(f"Inserted debug user {data['username']}")
    return len(users)


def _insert_assets(assets, admin):
    from helpdesk.buisness.assets.context import AssetContext

    for data in assets:
        fields = {k: v for k, v in data.items() if k not in ('location', 'assigned_to')}
        if data.get('location'):
            fields['location_id'] = _location_ids([data['location']])[0]
        if data.get('assigned_to'):
            fields['assigned_to_id'] = _user(data['assigned_to']).id
        AssetContext.create(admin, fields)
    return len(assets)


def _insert_tickets(tickets):
    from helpdesk.data.assets.asset import Asset
    from helpdesk.buisness.tickets.context import TicketContext

    for data in tickets:
        asset = Asset.query.filter_by(asset_tag=data['asset']).one() if data.get('asset') else None
        context = TicketContext.create(
            _user(data['requester']),
            title=data['title'],
            description=data['description'],
            category=data.get('category'),
            priority=data.get('priority', 3),
            asset_id=asset.id if asset else None,
        )
        for step in data.get('workflow', []):
            context.change_status(
                _user(step['actor']),
                step['status'],
                assigned_agent_id=_user(step['agent']).id if step.get('agent') else None,
                resolution=step.get('resolution'),
                note=step.get('note'),
            )
    return len(tickets)
