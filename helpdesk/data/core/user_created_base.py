from helpdesk import db
from sqlalchemy.orm import declared_attr
from helpdesk.buisness.core.data_insertion_mixin import DataInsertionMixin
from helpdesk.utils.timezones import utcnow


class UserCreatedBase(db.Model, DataInsertionMixin):
    """
    Abstract base for helpdesk records that keep who created and last changed them
    (tickets, assets, disposal requests, inspections, locations, courses).
    """

    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    created_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
    updated_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)

    @declared_attr
    def created_by(cls):
        return db.relationship('User', foreign_keys=[cls.created_by_id])

    @declared_attr
    def updated_by(cls):
        return db.relationship('User', foreign_keys=[cls.updated_by_id])

    def stamp(self, actor):
        """Record ``actor`` as the last editor, even when only relationships changed."""
        self.updated_by_id = actor.id
        self.updated_at = utcnow()
