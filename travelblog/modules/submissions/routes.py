"""
Submissions Routes
==================

Provides:
- POST   /contact/submit                       -- new submission (public)
- GET    /submissions/admin                    -- latest submissions + unread count
- GET    /submissions/user/<email>             -- one submitter's thread + unread count
- POST   /submissions/<id>/reply               -- admin reply
- PUT    /submissions/<id>/read-admin          -- admin has seen it
- PUT    /submissions/<id>/read-user           -- submitter has seen the reply
- PUT    /submissions/<id>/status              -- set new/viewed/closed
- GET    /submissions/admin/unread-count
- GET    /submissions/user/<email>/unread-count
- DELETE /submissions/<id>

Live notifications and emails are dispatched in the background; their
failures never change the HTTP response.
"""

import logging

from flask import jsonify
from pymongo import DESCENDING, ReturnDocument

from travelblog.core.database import parse_object_id, serialize_document, utcnow
from travelblog.core.errors import NotFoundError, ValidationError
from travelblog.core.forms import clean_str, normalize_email, request_data
from travelblog.core.logging_service import db_log
from travelblog.core.providers import get_bridge, get_email_service, get_store
from travelblog.core.tasks import run_in_background
from travelblog.modules.notifications.bridge import EVENT_ADMIN_REPLY, EVENT_NEW_SUBMISSION

from . import contact_bp, submissions_bp
from .models import (
    ADMIN_LIST_LIMIT,
    SETTABLE_STATUSES,
    STATUS_NEW,
    STATUS_REPLIED,
    STATUS_VIEWED,
    USER_LIST_LIMIT,
    SubmissionInput,
    admin_unread_filter,
    build_submission_document,
    user_unread_filter,
)

logger = logging.getLogger(__name__)

NEWEST_FIRST = [('createdAt', DESCENDING), ('_id', DESCENDING)]


def _get_submission_or_404(store, submission_id):
    submission = store.submissions.find_one({'_id': parse_object_id(submission_id)})
    if not submission:
        raise NotFoundError('Submission not found')
    return submission


def _update_submission(store, submission_id, update):
    update.setdefault('$set', {})['updatedAt'] = utcnow()
    submission = store.submissions.find_one_and_update(
        {'_id': parse_object_id(submission_id)},
        update,
        return_document=ReturnDocument.AFTER,
    )
    if not submission:
        raise NotFoundError('Submission not found')
    return submission


# ===== Contact form =====

@contact_bp.route('/submit', methods=['POST'])
def submit_contact_form():
    """Store a submission, then notify admins and email both parties"""
    submission = SubmissionInput.from_request(request_data())
    document = build_submission_document(submission)

    store = get_store()
    document['_id'] = store.submissions.insert_one(document).inserted_id
    saved = serialize_document(document)

    logger.info(f"New submission from {saved['email']} ({saved['id']})")
    db_log('info', 'submissions', 'New submission received', {'id': saved['id'], 'email': saved['email']})

    name = f"{saved['firstName']} {saved['lastName']}"
    run_in_background(get_bridge().notify_admin, EVENT_NEW_SUBMISSION, {
        'message': f"New submission from {name}",
        'submission': saved,
    })
    run_in_background(get_email_service().dispatch_submission_emails, saved)

    return jsonify({
        'success': True,
        'message': 'Thank you for your submission! We will get back to you soon.',
        'submission': saved,
    })


# ===== Admin inbox =====

@submissions_bp.route('/admin', methods=['GET'])
def list_admin_submissions():
    """Most recent submissions for the admin dashboard"""
    store = get_store()
    submissions = list(store.submissions.find().sort(NEWEST_FIRST).limit(ADMIN_LIST_LIMIT))
    return jsonify({
        'success': True,
        'submissions': serialize_document(submissions),
        'unreadCount': store.submissions.count_documents(admin_unread_filter()),
    })


@submissions_bp.route('/admin/unread-count', methods=['GET'])
def admin_unread_count():
    count = get_store().submissions.count_documents(admin_unread_filter())
    return jsonify({'success': True, 'count': count})


# ===== Submitter thread =====

@submissions_bp.route('/user/<email>', methods=['GET'])
def list_user_submissions(email):
    """Submissions sent from one email address"""
    store = get_store()
    email = normalize_email(email)
    submissions = list(
        store.submissions.find({'email': email}).sort(NEWEST_FIRST).limit(USER_LIST_LIMIT)
    )
    return jsonify({
        'success': True,
        'submissions': serialize_document(submissions),
        'unreadCount': store.submissions.count_documents(user_unread_filter(email)),
    })


@submissions_bp.route('/user/<email>/unread-count', methods=['GET'])
def user_unread_count(email):
    count = get_store().submissions.count_documents(user_unread_filter(email))
    return jsonify({'success': True, 'count': count})


# ===== Reply / read tracking =====

@submissions_bp.route('/<submission_id>/reply', methods=['POST'])
def reply_to_submission(submission_id):
    """Attach the admin reply and flag it unread for the submitter"""
    data = request_data()
    message = clean_str(data.get('adminReply', data.get('message')), 'adminReply')
    if not message:
        raise ValidationError('Reply message is required', errors={'adminReply': 'Reply message is required'})

    store = get_store()
    reply = {'message': message, 'repliedAt': utcnow()}
    submission = _update_submission(store, submission_id, {
        '$set': {
            'adminReply': reply,
            'status': STATUS_REPLIED,
            'isReadByUser': False,
        },
        '$inc': {'notificationCount.user': 1},
    })

    logger.info(f"Reply sent for submission {submission_id}")
    db_log('info', 'submissions', 'Admin replied to submission', {'id': submission_id})

    run_in_background(get_bridge().notify_user, submission['email'], EVENT_ADMIN_REPLY, {
        'submissionId': submission_id,
        'message': message,
        'repliedAt': reply['repliedAt'],
    })

    return jsonify({
        'success': True,
        'message': 'Reply sent successfully',
        'submission': serialize_document({
            '_id': submission['_id'],
            'status': submission['status'],
            'adminReply': submission['adminReply'],
            'isReadByUser': submission['isReadByUser'],
            'notificationCount': submission['notificationCount'],
        }),
    })


@submissions_bp.route('/<submission_id>/read-admin', methods=['PUT'])
def mark_read_by_admin(submission_id):
    store = get_store()
    existing = _get_submission_or_404(store, submission_id)
    changes = {'isReadByAdmin': True}
    if existing.get('status') == STATUS_NEW:
        changes['status'] = STATUS_VIEWED
    submission = _update_submission(store, submission_id, {'$set': changes})
    return jsonify({'success': True, 'submission': serialize_document(submission)})


@submissions_bp.route('/<submission_id>/read-user', methods=['PUT'])
def mark_read_by_user(submission_id):
    submission = _update_submission(get_store(), submission_id, {
        '$set': {'isReadByUser': True, 'notificationCount.user': 0},
    })
    return jsonify({'success': True, 'submission': serialize_document(submission)})


@submissions_bp.route('/<submission_id>/status', methods=['PUT'])
def update_submission_status(submission_id):
    status = clean_str(request_data().get('status'), 'status')
    if status not in SETTABLE_STATUSES:
        raise ValidationError(
            f"Status must be one of: {', '.join(SETTABLE_STATUSES)}",
            errors={'status': 'Invalid status'},
        )
    submission = _update_submission(get_store(), submission_id, {'$set': {'status': status}})
    return jsonify({'success': True, 'submission': serialize_document(submission)})


@submissions_bp.route('/<submission_id>', methods=['DELETE'])
def delete_submission(submission_id):
    result = get_store().submissions.delete_one({'_id': parse_object_id(submission_id)})
    if not result.deleted_count:
        raise NotFoundError('Submission not found')

    logger.info(f"Submission deleted: {submission_id}")
    return jsonify({'success': True, 'message': 'Submission deleted successfully'})
