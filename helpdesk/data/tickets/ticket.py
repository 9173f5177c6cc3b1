from helpdesk import db
from helpdesk.data.core.user_created_base import UserCreatedBase
from helpdesk.utils.timezones import utcnow


class Ticket(UserCreatedBase):
    __tablename__ = 'tickets'

    NEW = 'NEW'
    ASSIGNED = 'ASSIGNED'
    IN_PROGRESS = 'IN_PROGRESS'
    NEEDS_INFO = 'NEEDS_INFO'
    WAITING_THIRD_PARTY = 'WAITING_THIRD_PARTY'
    RESOLVED = 'RESOLVED'
    CLOSED = 'CLOSED'

    STATUSES = (NEW, ASSIGNED, IN_PROGRESS, NEEDS_INFO, WAITING_THIRD_PARTY, RESOLVED, CLOSED)
    OPEN_STATUSES = (NEW, ASSIGNED, IN_PROGRESS, NEEDS_INFO, WAITING_THIRD_PARTY, RESOLVED)

    STATUS_LABELS = {
        NEW: 'New',
        ASSIGNED: 'Assigned',
        IN_PROGRESS: 'In progress',
        NEEDS_INFO: 'Needs information',
        WAITING_THIRD_PARTY: 'Waiting on third party',
        RESOLVED: 'Resolved',
        CLOSED: 'Closed',
    }

    PRIORITY_LABELS = {1: 'Low', 2: 'Medium', 3: 'High', 4: 'Critical'}
    PRIORITY_CRITICAL = 4

    SERVICE_AREAS = ('it', 'maintenance')

    ticket_number = db.Column(db.Integer, unique=True, nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(200))
    service_area = db.Column(db.String(20), nullable=False, default='it')
    impact = db.Column(db.Integer, default=3)
    urgency = db.Column(db.Integer, default=3)
    priority = db.Column(db.Integer, nullable=False, default=3)
    status = db.Column(db.String(30), nullable=False, default=NEW)
    support_level = db.Column(db.Integer, nullable=False, default=1)
    requester_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    assigned_agent_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    asset_id = db.Column(db.Integer, db.ForeignKey('assets.id'))
    location_id = db.Column(db.Integer, db.ForeignKey('locations.id'))
    resolution = db.Column(db.Text)
    closed_at = db.Column(db.DateTime)
    closed_by_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    deleted_at = db.Column(db.DateTime)
    deleted_by_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    deleted_reason = db.Column(db.Text)

    requester = db.relationship('User', foreign_keys=[requester_id])
    assigned_agent = db.relationship('User', foreign_keys=[assigned_agent_id])
    closed_by = db.relationship('User', foreign_keys=[closed_by_id])
    deleted_by = db.relationship('User', foreign_keys=[deleted_by_id])
    asset = db.relationship('Asset', foreign_keys=[asset_id])
    location = db.relationship('Location', foreign_keys=[location_id])
    comments = db.relationship('TicketComment', order_by='TicketComment.created_at',
                               cascade='all, delete-orphan')
    status_history = db.relationship('TicketStatusHistory', order_by='TicketStatusHistory.created_at',
                                     cascade='all, delete-orphan')

    @classmethod
    def next_ticket_number(cls):
        current = db.session.query(db.func.max(cls.ticket_number)).scalar()
        return (current or 0) + 1

    @classmethod
    def active(cls):
        """Query of tickets that have not been soft-deleted"""
        return cls.query.filter(cls.deleted_at.is_(None))

    @property
    def is_open(self):
        return self.status in self.OPEN_STATUSES

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    @property
    def status_label(self):
        return self.STATUS_LABELS.get(self.status, self.status)

    @property
    def priority_label(self):
        return self.PRIORITY_LABELS.get(self.priority, str(self.priority))

    @property
    def code(self):
        from helpdesk.buisness.tickets.codes import ticket_display_code
        return ticket_display_code(self)

    def __repr__(self):
        return f'<Ticket #{self.ticket_number} {self.status}>'


class TicketStatusHistory(db.Model):
    __tablename__ = 'ticket_status_history'

    id = db.Column(db.Integer, primary_key=True)
    ticket_id = db.Column(db.Integer, db.ForeignKey('tickets.id'), nullable=False)
    from_status = db.Column(db.String(30))
    to_status = db.Column(db.String(30), nullable=False)
    actor_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    note = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    actor = db.relationship('User', foreign_keys=[actor_id])

    def __repr__(self):
        return f'<TicketStatusHistory {self.ticket_id}: {self.from_status} -> {self.to_status}>'


class TicketComment(UserCreatedBase):
    __tablename__ = 'ticket_comments'

    PUBLIC = 'public'
    INTERNAL = 'internal'
    VISIBILITIES = (PUBLIC, INTERNAL)

    ticket_id = db.Column(db.Integer, db.ForeignKey('tickets.id'), nullable=False)
    author_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    body = db.Column(db.Text, nullable=False)
    visibility = db.Column(db.String(20), nullable=False, default=PUBLIC)

    author = db.relationship('User', foreign_keys=[author_id])

    @property
    def is_internal(self):
        return self.visibility == self.INTERNAL

    def __repr__(self):
        return f'<TicketComment {self.id} on {self.ticket_id}>'
