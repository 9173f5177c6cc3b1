from helpdesk import db
from helpdesk.data.core.user_created_base import UserCreatedBase


class Asset(UserCreatedBase):
    __tablename__ = 'assets'

    OPERATIONAL = 'OPERATIONAL'
    MAINTENANCE = 'MAINTENANCE'
    OUT_OF_SERVICE = 'OUT_OF_SERVICE'
    RETIRED = 'RETIRED'
    DISPOSED = 'DISPOSED'

    # DISPOSED is reached only through an approved disposal request
    EDITABLE_STATUSES = (OPERATIONAL, MAINTENANCE, OUT_OF_SERVICE, RETIRED)
    STATUSES = EDITABLE_STATUSES + (DISPOSED,)

    STATUS_LABELS = {
        OPERATIONAL: 'Operational',
        MAINTENANCE: 'In maintenance',
        OUT_OF_SERVICE: 'Out of service',
        RETIRED: 'Retired',
        DISPOSED: 'Disposed',
    }

    CATEGORIES = ('IT', 'MAINTENANCE')

    asset_tag = db.Column(db.String(50), unique=True, nullable=False)
    asset_type = db.Column(db.String(50), nullable=False)
    brand = db.Column(db.String(100))
    model = db.Column(db.String(100))
    serial_number = db.Column(db.String(100))
    status = db.Column(db.String(20), nullable=False, default=OPERATIONAL)
    category = db.Column(db.String(20), nullable=False, default='IT')
    department = db.Column(db.String(100))
    location_id = db.Column(db.Integer, db.ForeignKey('locations.id'))
    assigned_to_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    purchase_date = db.Column(db.Date)
    warranty_expires = db.Column(db.Date)
    notes = db.Column(db.Text)
    deleted_at = db.Column(db.DateTime)

    location = db.relationship('Location', foreign_keys=[location_id])
    assigned_to = db.relationship('User', foreign_keys=[assigned_to_id])

    @property
    def status_label(self):
        return self.STATUS_LABELS.get(self.status, self.status)

    @property
    def is_disposed(self):
        return self.status == self.DISPOSED

    def snapshot(self):
        """JSON copy of the asset for audit records"""
        return {
            'asset_tag': self.asset_tag,
            'asset_type': self.asset_type,
            'brand': self.brand,
            'model': self.model,
            'serial_number': self.serial_number,
            'status': self.status,
            'category': self.category,
            'department': self.department,
            'location': self.location.name if self.location else None,
            'assigned_to': self.assigned_to.display_name if self.assigned_to else None,
            'purchase_date': self.purchase_date.isoformat() if self.purchase_date else None,
            'warranty_expires': self.warranty_expires.isoformat() if self.warranty_expires else None,
            'notes': self.notes,
        }

    def __repr__(self):
        return f'<Asset {self.asset_tag}>'
