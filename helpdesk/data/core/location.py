from helpdesk import db
from helpdesk.data.core.user_created_base import UserCreatedBase


class Location(UserCreatedBase):
    """Property or site that assets, tickets and inspections belong to"""
    __tablename__ = 'locations'

    name = db.Column(db.String(200), nullable=False)
    code = db.Column(db.String(20), unique=True, nullable=False)
    address = db.Column(db.String(255))
    city = db.Column(db.String(100))
    is_active = db.Column(db.Boolean, default=True)

    def __repr__(self):
        return f'<Location {self.code}: {self.name}>'
