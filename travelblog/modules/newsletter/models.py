"""
Subscriber Schema
=================

One document per normalized email. Unsubscribing only clears isActive, so a
later subscribe reactivates the same document.
"""

import re

from travelblog.core.database import utcnow
from travelblog.core.errors import ValidationError
from travelblog.core.forms import clean_str, normalize_email

SOURCES = ['blog', 'website', 'manual']
DEFAULT_SOURCE = 'blog'
NAME_MAX_LENGTH = 100

# Email validation regex: rejects consecutive dots, leading/trailing dots
EMAIL_REGEX = re.compile(r'^[a-zA-Z0-9_%+-]+(\.[a-zA-Z0-9_%+-]+)*@[a-zA-Z0-9-]+(\.[a-zA-Z0-9-]+)*\.[a-zA-Z]{2,}$')


def validate_email(email):
    """Validate email format"""
    if not email or len(email) > 255:
        return False
    return EMAIL_REGEX.match(email.lower().strip()) is not None


def clean_subscription(data):
    """Normalize and validate a subscribe request body -> (name, email, source)."""
    email = normalize_email(data.get('email'))
    if not email:
        raise ValidationError('Email is required', errors={'email': 'Email is required'})
    if not validate_email(email):
        raise ValidationError('Please provide a valid email address', errors={'email': 'Invalid email address'})

    # name is optional on the blog form; fall back to the mailbox name
    name = clean_str(data.get('name'), 'name') or email.split('@', 1)[0]
    if len(name) > NAME_MAX_LENGTH:
        raise ValidationError('Validation failed', errors={'name': f'Name cannot be more than {NAME_MAX_LENGTH} characters'})

    source = clean_str(data.get('source'), 'source') or DEFAULT_SOURCE
    if source not in SOURCES:
        raise ValidationError('Validation failed', errors={'source': f"Source must be one of: {', '.join(SOURCES)}"})
    return name, email, source


def build_subscriber_document(name, email, source):
    now = utcnow()
    return {
        'name': name,
        'email': email,
        'subscribedAt': now,
        'source': source,
        'isActive': True,
        'lastNotified': None,
        'subscriptionCount': 1,
        'createdAt': now,
        'updatedAt': now,
    }


def subscriber_summary(subscriber):
    return {
        '_id': subscriber['_id'],
        'name': subscriber.get('name'),
        'email': subscriber['email'],
        'subscribedAt': subscriber.get('subscribedAt'),
        'source': subscriber.get('source'),
        'isActive': subscriber.get('isActive'),
        'subscriptionCount': subscriber.get('subscriptionCount', 1),
    }
