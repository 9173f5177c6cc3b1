from helpdesk import db
from helpdesk.utils.timezones import utcnow


class AssetChange(db.Model):
    """Append-only history of asset field changes"""
    __tablename__ = 'asset_changes'

    CREATED = 'created'
    UPDATED = 'updated'
    DISPOSED = 'disposed'

    id = db.Column(db.Integer, primary_key=True)
    asset_id = db.Column(db.Integer, db.ForeignKey('assets.id'), nullable=False)
    asset_tag = db.Column(db.String(50))
    change_type = db.Column(db.String(20), nullable=False, default=UPDATED)
    field_name = db.Column(db.String(50))
    old_value = db.Column(db.Text)
    new_value = db.Column(db.Text)
    reason = db.Column(db.Text)
    changed_by_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    changed_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    asset = db.relationship('Asset', foreign_keys=[asset_id])
    changed_by = db.relationship('User', foreign_keys=[changed_by_id])

    @classmethod
    def record(cls, asset, field_name, old_value, new_value, changed_by_id,
               change_type=UPDATED, reason=None):
        """Add a history row to the session (caller commits)"""
        change = cls(
            asset_id=asset.id,
            asset_tag=asset.asset_tag,
            change_type=change_type,
            field_name=field_name,
            old_value=None if old_value is None else str(old_value),
            new_value=None if new_value is None else str(new_value),
            reason=reason,
            changed_by_id=changed_by_id,
        )
        db.session.add(change)
        return change

    def __repr__(self):
        return f'<AssetChange {self.asset_tag} {self.field_name}: {self.old_value} -> {self.new_value}>'
