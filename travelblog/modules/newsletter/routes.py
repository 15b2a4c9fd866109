"""
Newsletter Routes
=================

Provides:
- POST /subscribe -- new subscriber, or reactivation of an inactive one
- POST /unsubscribe -- set isActive false
- GET /subscribers -- active subscribers, searchable and paginated
- GET /stats -- total/active/inactive/new today/new this week
- GET /export -- CSV of active subscribers

Admin endpoints rely on middleware mounted in front of the blueprint.
"""

import csv
import io
import logging
import math
import re
from datetime import timedelta

from flask import Response, jsonify, request
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from travelblog.core.database import serialize_document, utcnow
from travelblog.core.errors import ConflictError, NotFoundError, ValidationError
from travelblog.core.forms import normalize_email, request_data
from travelblog.core.logging_service import db_log
from travelblog.core.providers import get_bridge, get_store
from travelblog.core.tasks import run_in_background
from travelblog.modules.notifications.bridge import EVENT_NEW_SUBSCRIBER

from . import newsletter_bp
from .models import (
    build_subscriber_document,
    clean_subscription,
    subscriber_summary,
    validate_email,
)

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 100
MAX_PAGE = 10000
NEWEST_FIRST = [('subscribedAt', DESCENDING), ('_id', DESCENDING)]
CSV_HEADER = ['Name', 'Email', 'Subscribed Date', 'Status']


def _parse_int(value, default):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _active_filter(search=None):
    query = {'isActive': True}
    if search:
        pattern = re.compile(re.escape(search), re.IGNORECASE)
        query['$or'] = [{'name': pattern}, {'email': pattern}]
    return query


def _announce(subscriber, reactivated):
    summary = serialize_document(subscriber_summary(subscriber))
    verb = 'resubscribed' if reactivated else 'subscribed'
    run_in_background(get_bridge().notify_admin, EVENT_NEW_SUBSCRIBER, {
        'message': f"{summary['email']} {verb} to the newsletter",
        'subscriber': summary,
        'reactivated': reactivated,
    })


@newsletter_bp.route('/subscribe', methods=['POST'])
def subscribe():
    """Subscribe an email, reactivating a previous subscription if one exists"""
    name, email, source = clean_subscription(request_data())
    store = get_store()

    existing = store.subscribers.find_one({'email': email})
    if existing and existing.get('isActive'):
        raise ValidationError('This email is already subscribed to our newsletter', field='email')

    if existing:
        subscriber = store.subscribers.find_one_and_update(
            {'_id': existing['_id']},
            {
                '$set': {'isActive': True, 'name': name, 'source': source, 'updatedAt': utcnow()},
                '$inc': {'subscriptionCount': 1},
            },
            return_document=ReturnDocument.AFTER,
        )
        logger.info(f"Reactivated subscription for: {email}")
        db_log('info', 'newsletter', f'Reactivated subscriber: {email}')
        _announce(subscriber, reactivated=True)
        return jsonify({
            'success': True,
            'message': 'Welcome back! Your subscription has been reactivated.',
            'subscriber': serialize_document(subscriber_summary(subscriber)),
        })

    subscriber = build_subscriber_document(name, email, source)
    try:
        subscriber['_id'] = store.subscribers.insert_one(subscriber).inserted_id
    except DuplicateKeyError:
        # a concurrent request created the same email first
        raise ConflictError('This email is already subscribed to our newsletter', field='email')

    logger.info(f"New subscription added: {email}")
    db_log('info', 'newsletter', f'New subscriber: {email}', {'source': source})
    _announce(subscriber, reactivated=False)
    return jsonify({
        'success': True,
        'message': 'Successfully subscribed to our newsletter!',
        'subscriber': serialize_document(subscriber_summary(subscriber)),
    }), 201


@newsletter_bp.route('/unsubscribe', methods=['POST'])
def unsubscribe():
    """Handle unsubscribe requests"""
    email = normalize_email(request_data().get('email'))
    if not validate_email(email):
        raise ValidationError('Please provide a valid email address', errors={'email': 'Invalid email address'})

    subscriber = get_store().subscribers.find_one_and_update(
        {'email': email},
        {'$set': {'isActive': False, 'updatedAt': utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if not subscriber:
        raise NotFoundError('Email address not found in our subscriber list.')

    logger.info(f"Unsubscribed: {email}")
    db_log('info', 'newsletter', f'Unsubscribed: {email}')
    return jsonify({'success': True, 'message': 'Successfully unsubscribed from our newsletter.'})


@newsletter_bp.route('/subscribers', methods=['GET'])
def list_subscribers():
    """Active subscribers, newest first"""
    page = min(max(_parse_int(request.args.get('page'), 1), 1), MAX_PAGE)
    limit = min(max(_parse_int(request.args.get('limit'), DEFAULT_LIMIT), 1), MAX_LIMIT)
    query = _active_filter((request.args.get('search') or '').strip())

    store = get_store()
    total = store.subscribers.count_documents(query)
    total_pages = math.ceil(total / limit)
    subscribers = list(
        store.subscribers.find(query).sort(NEWEST_FIRST).skip((page - 1) * limit).limit(limit)
    )

    return jsonify({
        'success': True,
        'subscribers': serialize_document(subscribers),
        'pagination': {
            'currentPage': page,
            'totalPages': total_pages,
            'totalSubscribers': total,
            'limit': limit,
            'hasNext': page < total_pages,
            'hasPrev': page > 1,
        },
    })


@newsletter_bp.route('/stats', methods=['GET'])
def get_subscriber_stats():
    """Get subscriber statistics"""
    store = get_store()
    now = utcnow()
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    week_ago = now - timedelta(days=7)

    total = store.subscribers.count_documents({})
    active = store.subscribers.count_documents({'isActive': True})
    return jsonify({
        'success': True,
        'stats': {
            'total': total,
            'active': active,
            'inactive': total - active,
            'newToday': store.subscribers.count_documents({'subscribedAt': {'$gte': start_of_day}}),
            'newThisWeek': store.subscribers.count_documents({'subscribedAt': {'$gte': week_ago}}),
        },
    })


@newsletter_bp.route('/export', methods=['GET'])
def export_subscribers():
    """CSV download of every active subscriber"""
    subscribers = get_store().subscribers.find(
        {'isActive': True},
        {'name': 1, 'email': 1, 'subscribedAt': 1, 'isActive': 1},
    ).sort(NEWEST_FIRST)

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_HEADER)
    count = 0
    for subscriber in subscribers:
        subscribed_at = subscriber.get('subscribedAt')
        writer.writerow([
            subscriber.get('name', ''),
            subscriber['email'],
            subscribed_at.strftime('%Y-%m-%d') if subscribed_at else '',
            'Active' if subscriber.get('isActive') else 'Inactive',
        ])
        count += 1

    logger.info(f"Exported {count} subscribers")
    filename = f"newsletter-subscribers-{utcnow().strftime('%Y-%m-%d')}.csv"
    return Response(
        buffer.getvalue(),
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename="{filename}"'},
    )
