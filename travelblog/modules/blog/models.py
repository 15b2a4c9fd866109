"""
Post Schema
===========

Shape, defaults and validation for blog posts stored in the ``posts``
collection. Titles are unique; there is no slug field.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

from travelblog.core.database import utcnow
from travelblog.core.errors import ValidationError
from travelblog.core.forms import clean_str, parse_bool, parse_list

CATEGORIES = ['Travels', 'Tours', 'Hotels', 'Tourism']
TITLE_MAX_LENGTH = 200
SUMMARY_MAX_LENGTH = 500
DERIVED_SUMMARY_LENGTH = 200
DEFAULT_AUTHOR = 'Admin'


def derive_summary(content):
    """Build a summary from the post body when none was supplied."""
    text = re.sub(r'\s+', ' ', content or '').strip()
    if len(text) <= DERIVED_SUMMARY_LENGTH:
        return text
    cut = text[:DERIVED_SUMMARY_LENGTH - 3]
    if ' ' in cut:
        cut = cut.rsplit(' ', 1)[0]
    return cut + '...'


@dataclass
class PostInput:
    """Normalized post fields; None means "not supplied"."""
    title: Optional[str] = None
    category: Optional[str] = None
    summary: Optional[str] = None
    content: Optional[str] = None
    image_url: Optional[str] = None
    is_published: Optional[bool] = None
    tags: Optional[List[str]] = None
    author: Optional[str] = None

    @classmethod
    def from_request(cls, data):
        image_url = data.get('currentImageUrl', data.get('imageUrl'))
        return cls(
            title=clean_str(data.get('title'), 'title'),
            category=clean_str(data.get('category'), 'category'),
            summary=clean_str(data.get('summary'), 'summary'),
            content=clean_str(data.get('content'), 'content', strip=False),
            image_url=clean_str(image_url, 'imageUrl'),
            is_published=parse_bool(data['isPublished']) if 'isPublished' in data else None,
            tags=parse_list(data['tags']) if 'tags' in data else None,
            author=clean_str(data.get('author'), 'author') or None,
        )

    def provided_fields(self):
        """Document fields explicitly present in the request."""
        fields = {
            'title': self.title,
            'category': self.category,
            'summary': self.summary,
            'content': self.content,
            'imageUrl': self.image_url,
            'isPublished': self.is_published,
            'tags': self.tags,
            'author': self.author,
        }
        return {key: value for key, value in fields.items() if value is not None}


def validate_post(doc):
    """Raise a ValidationError listing every failing field."""
    errors = {}

    title = doc.get('title')
    if not title:
        errors['title'] = 'Title is required'
    elif len(title) > TITLE_MAX_LENGTH:
        errors['title'] = f'Title cannot be more than {TITLE_MAX_LENGTH} characters'

    category = doc.get('category')
    if not category:
        errors['category'] = 'Category is required'
    elif category not in CATEGORIES:
        errors['category'] = f"Category must be one of: {', '.join(CATEGORIES)}"

    if not (doc.get('content') or '').strip():
        errors['content'] = 'Content is required'

    if len(doc.get('summary') or '') > SUMMARY_MAX_LENGTH:
        errors['summary'] = f'Summary cannot be more than {SUMMARY_MAX_LENGTH} characters'

    if errors:
        raise ValidationError('Validation failed', errors=errors)


def build_post_document(post_input, image_url=None):
    """Full document for a new post, defaults applied."""
    fields = post_input.provided_fields()
    validate_post(fields)

    now = utcnow()
    return {
        'title': fields['title'],
        'category': fields['category'],
        'summary': fields.get('summary') or derive_summary(fields['content']),
        'content': fields['content'],
        'imageUrl': image_url or fields.get('imageUrl') or '',
        'isPublished': bool(fields.get('isPublished', False)),
        'tags': fields.get('tags', []),
        'views': 0,
        'author': fields.get('author') or DEFAULT_AUTHOR,
        'createdAt': now,
        'updatedAt': now,
    }
