from helpdesk import db
from helpdesk.utils.timezones import utcnow


class Notification(db.Model):
    """In-app notification shown in the user's inbox"""
    __tablename__ = 'notifications'

    TICKET_CREATED = 'ticket_created'
    TICKET_ASSIGNED = 'ticket_assigned'
    TICKET_STATUS_CHANGED = 'ticket_status_changed'
    TICKET_ESCALATED = 'ticket_escalated'
    DISPOSAL_REQUESTED = 'disposal_requested'
    INSPECTION_CRITICAL = 'inspection_critical'
    GENERIC = 'generic'
    TYPES = (TICKET_CREATED, TICKET_ASSIGNED, TICKET_STATUS_CHANGED, TICKET_ESCALATED,
             DISPOSAL_REQUESTED, INSPECTION_CRITICAL, GENERIC)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    type = db.Column(db.String(40), nullable=False, default=GENERIC)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text)
    link = db.Column(db.String(500))
    actor_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    is_read = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    read_at = db.Column(db.DateTime)

    user = db.relationship('User', foreign_keys=[user_id])
    actor = db.relationship('User', foreign_keys=[actor_id])

    def __repr__(self):
        return f'<Notification {self.id} {self.type} -> {self.user_id}>'
