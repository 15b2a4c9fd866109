"""
Submission Schema
=================

Status moves new -> viewed -> replied -> closed. Only the reply endpoint
may move a submission to "replied".
"""

from dataclasses import dataclass, field
from typing import List, Optional

from bson import ObjectId

from travelblog.core.database import utcnow
from travelblog.core.errors import ValidationError
from travelblog.core.forms import clean_str, normalize_email, parse_list

STATUS_NEW = 'new'
STATUS_VIEWED = 'viewed'
STATUS_REPLIED = 'replied'
STATUS_CLOSED = 'closed'
STATUSES = [STATUS_NEW, STATUS_VIEWED, STATUS_REPLIED, STATUS_CLOSED]
# statuses an admin may set directly
SETTABLE_STATUSES = [STATUS_NEW, STATUS_VIEWED, STATUS_CLOSED]

ADMIN_LIST_LIMIT = 100
USER_LIST_LIMIT = 50


@dataclass
class SubmissionInput:
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    interests: List[str] = field(default_factory=list)
    experience: Optional[str] = None
    message: Optional[str] = None
    hear_about_us: Optional[str] = None
    user_id: Optional[str] = None

    @classmethod
    def from_request(cls, data):
        return cls(
            first_name=clean_str(data.get('firstName'), 'firstName'),
            last_name=clean_str(data.get('lastName'), 'lastName'),
            email=normalize_email(data.get('email')),
            phone=clean_str(data.get('phone'), 'phone'),
            address=clean_str(data.get('address'), 'address'),
            interests=parse_list(data.get('interests')),
            experience=clean_str(data.get('experience'), 'experience'),
            message=clean_str(data.get('message'), 'message'),
            hear_about_us=clean_str(data.get('hearAboutUs'), 'hearAboutUs'),
            user_id=clean_str(data.get('userId'), 'userId') or None,
        )

    def validate(self):
        errors = {}
        if not self.first_name:
            errors['firstName'] = 'First name is required'
        if not self.last_name:
            errors['lastName'] = 'Last name is required'
        if not self.email:
            errors['email'] = 'Email is required'
        elif '@' not in self.email:
            errors['email'] = 'Please provide a valid email'
        if self.user_id and not ObjectId.is_valid(self.user_id):
            errors['userId'] = 'Invalid user id'
        if errors:
            raise ValidationError('Please fill in all required fields', errors=errors)


def build_submission_document(submission):
    """New submission: unread by admin, one pending admin notification."""
    submission.validate()
    now = utcnow()
    user_id = ObjectId(submission.user_id) if submission.user_id else None

    return {
        'firstName': submission.first_name,
        'lastName': submission.last_name,
        'email': submission.email,
        'phone': submission.phone or '',
        'address': submission.address or '',
        'interests': submission.interests,
        'experience': submission.experience or '',
        'message': submission.message or '',
        'hearAboutUs': submission.hear_about_us or '',
        'userId': user_id,
        'status': STATUS_NEW,
        'adminReply': None,
        'isReadByAdmin': False,
        'isReadByUser': False,
        'notificationCount': {'admin': 1, 'user': 0},
        'createdAt': now,
        'updatedAt': now,
    }


def admin_unread_filter():
    return {'status': STATUS_NEW, 'isReadByAdmin': False}


def user_unread_filter(email):
    return {'email': normalize_email(email), 'status': STATUS_REPLIED, 'isReadByUser': False}
