"""
Course catalogue behind /api/academy/courses.
"""

import re
import unicodedata
from typing import Mapping

from helpdesk import db
from helpdesk.data.academy.course import Course
from helpdesk.buisness.core.errors import PermissionDeniedError, ValidationError
from helpdesk.buisness.core import permissions
from helpdesk.logger import get_logger

logger = get_logger("helpdesk.academy")

# Titles with no letters or digits
DEFAULT_SLUG = 'curso'


def slugify(title: str) -> str:
    text = unicodedata.normalize('NFD', title.lower())
    text = ''.join(ch for ch in text if unicodedata.category(ch) != 'Mn')
    text = re.sub(r'[^a-z0-9]+', '-', text)
    return text.strip('-') or DEFAULT_SLUG


def unique_slug(title: str) -> str:
    base = slugify(title)
    slug, suffix = base, 1
    while Course.query.filter_by(slug=slug).first() is not None:
        suffix += 1
        slug = f'{base}-{suffix}'
    return slug


def _flag(value) -> bool:
    if isinstance(value, str):
        return value.lower() in ('true', '1', 'yes', 'on')
    return bool(value)


def list_courses(user, args: Mapping) -> list:
    """
    Active courses, newest first.

    Unpublished courses are included only when an admin-like user passes
    include_unpublished=true.
    """
    query = Course.query.filter(Course.is_active.is_(True))

    include_unpublished = args.get('include_unpublished') == 'true'
    if not (include_unpublished and permissions.is_admin_like(user)):
        query = query.filter(Course.is_published.is_(True))

    if args.get('area_id'):
        query = query.filter(Course.area_id == int(args['area_id']))
    if args.get('difficulty'):
        query = query.filter(Course.difficulty_level == args['difficulty'])
    if args.get('is_mandatory') == 'true':
        query = query.filter(Course.is_mandatory.is_(True))

    search = (args.get('search') or '').strip()
    if search:
        like = f'%{search}%'
        query = query.filter(db.or_(Course.title.ilike(like), Course.description.ilike(like)))

    return query.order_by(Course.created_at.desc(), Course.id.desc()).all()


def create_course(actor, data: Mapping) -> Course:
    if not permissions.is_admin_like(actor):
        raise PermissionDeniedError("You do not have permission to create courses")

    title = (data.get('title') or '').strip()
    if not title:
        raise ValidationError("A title is required")

    difficulty = data.get('difficulty_level') or 'basico'
    if difficulty not in Course.DIFFICULTIES:
        raise ValidationError(f"Unknown difficulty level: {difficulty}")

    try:
        duration = int(data.get('estimated_duration_minutes', 60))
        passing_score = int(data.get('passing_score', 70))
    except (TypeError, ValueError):
        raise ValidationError("Duration and passing score must be whole numbers")

    course = Course(
        title=title,
        slug=unique_slug(title),
        description=data.get('description'),
        area_id=data.get('area_id'),
        thumbnail_url=data.get('thumbnail_url'),
        difficulty_level=difficulty,
        estimated_duration_minutes=duration,
        is_mandatory=_flag(data.get('is_mandatory', False)),
        is_published=_flag(data.get('is_published', False)),
        passing_score=passing_score,
        created_by_id=actor.id,
        updated_by_id=actor.id,
    )
    db.session.add(course)
    db.session.commit()
    logger.info(f"Course '{course.slug}' created by {actor.username}")
    return course
