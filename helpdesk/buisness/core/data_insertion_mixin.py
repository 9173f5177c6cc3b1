"""
Dictionary <-> row helpers for the helpdesk models.

The build step loads users and locations from JSON, and the JSON API returns
rows as dictionaries; both go through this mixin so dates, passwords and
audit columns are handled in one place.
"""

from datetime import datetime, date

from sqlalchemy import inspect

from helpdesk import db
from helpdesk.logger import get_logger

logger = get_logger("helpdesk.buisness.core.data_insertion")

AUDIT_COLUMNS = ('created_at', 'updated_at', 'created_by_id', 'updated_by_id')
NEVER_SERIALIZED = ('password_hash',)


def _coerce(column, value):
    """JSON seed files carry ISO strings for Date/DateTime columns."""
    if not isinstance(value, str):
        return value
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value
    if python_type is datetime:
        return datetime.fromisoformat(value)
    if python_type is date:
        return date.fromisoformat(value)
    return value


class DataInsertionMixin:

    @classmethod
    def from_dict(cls, data_dict, user_id=None, skip_fields=()):
        """
        Build an unsaved instance.

        Keys that are not columns are ignored, except ``password`` which is
        hashed through ``set_password()`` on models that have it. ``user_id``
        fills the created_by/updated_by audit columns.
        """
        columns = {c.key: c for c in inspect(cls).columns}
        values = {
            key: _coerce(columns[key], value)
            for key, value in data_dict.items()
            if key in columns and key not in skip_fields
            and not (key in AUDIT_COLUMNS and value is None)
        }
        instance = cls(**values)

        if data_dict.get('password') and hasattr(instance, 'set_password'):
            instance.set_password(data_dict['password'])

        if user_id is not None:
            if hasattr(instance, 'created_by_id') and not instance.created_by_id:
                instance.created_by_id = user_id
            if hasattr(instance, 'updated_by_id'):
                instance.updated_by_id = user_id
        return instance

    def to_dict(self, include_audit_fields=True, exclude=()):
        """Column values with dates as ISO strings; password hashes are never included."""
        skipped = set(exclude) | set(NEVER_SERIALIZED)
        if not include_audit_fields:
            skipped |= set(AUDIT_COLUMNS)

        result = {}
        for column in inspect(self.__class__).columns:
            if column.key in skipped:
                continue
            value = getattr(self, column.key)
            result[column.key] = value.isoformat() if isinstance(value, (datetime, date)) else value
        return result

    @classmethod
    def create_from_dict(cls, data_dict, user_id=None, skip_fields=(), commit=True):
        instance = cls.from_dict(data_dict, user_id, skip_fields)
        db.session.add(instance)
        if commit:
            try:
                db.session.commit()
            except Exception as e:
                db.session.rollback()
                logger.error(f"Could not save {cls.__name__}: {e}")
                raise
            logger.info(f"Created {instance!r}")
        return instance

    @classmethod
    def find_or_create_from_dict(cls, data_dict, user_id=None, skip_fields=(),
                                 lookup_fields=None, commit=True):
        """
        Return ``(instance, created)``.

        Without ``lookup_fields`` the model's unique columns present in
        ``data_dict`` are used (username, location code, course slug, ...).
        """
        if lookup_fields is None:
            lookup_fields = [c.key for c in inspect(cls).columns if c.unique and c.key in data_dict]

        lookup = {field: data_dict[field] for field in lookup_fields if field in data_dict}
        if lookup:
            existing = cls.query.filter_by(**lookup).first()
            if existing is not None:
                return existing, False

        return cls.create_from_dict(data_dict, user_id, skip_fields, commit), True
