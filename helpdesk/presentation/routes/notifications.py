"""
Notification inbox routes
"""

from flask import Blueprint, render_template, redirect, url_for, flash, request
from flask_login import login_required, current_user

from helpdesk.buisness.notifications import notifier

bp = Blueprint('notifications', __name__)


@bp.route('/')
@login_required
def inbox():
    unread_only = request.args.get('unread') == '1'
    return render_template('notifications/inbox.html',
                           notifications=notifier.list_for_user(current_user.id, unread_only=unread_only),
                           unread_only=unread_only)


@bp.route('/<int:notification_id>/read', methods=['POST'])
@login_required
def mark_read(notification_id):
    notification = notifier.mark_read(current_user.id, notification_id)
    if notification is None:
        flash('Notification not found', 'error')
        return redirect(url_for('notifications.inbox'))
    # Only follow in-app paths
    if notification.link and notification.link.startswith('/') and not notification.link.startswith('//'):
        return redirect(notification.link)
    return redirect(url_for('notifications.inbox'))


@bp.route('/read-all', methods=['POST'])
@login_required
def mark_all_read():
    updated = notifier.mark_all_read(current_user.id)
    flash(f'{updated} notification(s) marked as read', 'info')
    return redirect(url_for('notifications.inbox'))
