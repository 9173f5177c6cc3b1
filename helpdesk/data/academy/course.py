from helpdesk import db
from helpdesk.data.core.user_created_base import UserCreatedBase


class Course(UserCreatedBase):
    __tablename__ = 'academy_courses'

    DIFFICULTIES = ('basico', 'intermedio', 'avanzado')

    title = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), unique=True, nullable=False)
    description = db.Column(db.Text)
    area_id = db.Column(db.Integer)
    thumbnail_url = db.Column(db.String(500))
    difficulty_level = db.Column(db.String(20), nullable=False, default='basico')
    estimated_duration_minutes = db.Column(db.Integer, nullable=False, default=60)
    is_mandatory = db.Column(db.Boolean, nullable=False, default=False)
    is_published = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    passing_score = db.Column(db.Integer, nullable=False, default=70)

    def __repr__(self):
        return f'<Course {self.slug}>'
