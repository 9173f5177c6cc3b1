from helpdesk import db
from helpdesk.data.core.user_created_base import UserCreatedBase
from helpdesk.utils.timezones import utcnow


class DisposalRequest(UserCreatedBase):
    __tablename__ = 'asset_disposal_requests'

    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'
    STATUSES = (PENDING, APPROVED, REJECTED)

    asset_id = db.Column(db.Integer, db.ForeignKey('assets.id'), nullable=False)
    reason = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=PENDING)
    requested_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    requested_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    reviewed_by_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    reviewed_at = db.Column(db.DateTime)
    review_notes = db.Column(db.Text)
    asset_snapshot = db.Column(db.JSON)
    notification_sent_at = db.Column(db.DateTime)

    asset = db.relationship('Asset', foreign_keys=[asset_id])
    requested_by = db.relationship('User', foreign_keys=[requested_by_id])
    reviewed_by = db.relationship('User', foreign_keys=[reviewed_by_id])

    @property
    def is_pending(self):
        return self.status == self.PENDING

    def __repr__(self):
        return f'<DisposalRequest {self.id} asset={self.asset_id} {self.status}>'
