from helpdesk import db
from helpdesk.data.core.user_created_base import UserCreatedBase


class AssetType(UserCreatedBase):
    """Selectable asset type, e.g. LAPTOP or AIRE_ACONDICIONADO"""
    __tablename__ = 'asset_types'

    value = db.Column(db.String(50), unique=True, nullable=False)
    label = db.Column(db.String(100), nullable=False)
    category = db.Column(db.String(20), nullable=False, default='IT')
    sort_order = db.Column(db.Integer, nullable=False, default=100)
    is_active = db.Column(db.Boolean, default=True)

    def __repr__(self):
        return f'<AssetType {self.value} ({self.category})>'
