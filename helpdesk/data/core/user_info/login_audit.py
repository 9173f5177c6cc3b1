from helpdesk import db
from helpdesk.buisness.core.data_insertion_mixin import DataInsertionMixin
from helpdesk.utils.timezones import utcnow


class LoginAudit(DataInsertionMixin, db.Model):
    """One sign-in attempt, successful or not"""
    __tablename__ = 'login_audits'

    LOGIN = 'LOGIN'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    identifier = db.Column(db.String(320))
    ip = db.Column(db.String(64))
    user_agent = db.Column(db.String(500))
    event = db.Column(db.String(20), nullable=False, default=LOGIN)
    success = db.Column(db.Boolean, nullable=False, default=False)
    error = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)

    user = db.relationship('User', foreign_keys=[user_id])

    def __repr__(self):
        outcome = 'ok' if self.success else 'failed'
        return f'<LoginAudit {self.identifier} {outcome} from {self.ip}>'
