"""
Blog Admin Routes
=================

- GET    /admin/blog/posts        -- every post, newest update first
- GET    /admin/blog/posts/<id>   -- single post for editing
- POST   /admin/blog/posts        -- create (JSON or multipart with featuredImage)
- PUT    /admin/blog/posts/<id>   -- update supplied fields
- DELETE /admin/blog/posts/<id>   -- delete

Authentication is left to middleware mounted in front of this blueprint.
"""

import logging
import math

from flask import jsonify, request
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from travelblog.core.database import parse_object_id, serialize_document, utcnow
from travelblog.core.errors import ConflictError, NotFoundError
from travelblog.core.forms import parse_bool, parse_list, request_data
from travelblog.core.logging_service import db_log
from travelblog.core.providers import get_storage, get_store

from . import blog_admin_bp
from .models import PostInput, build_post_document, derive_summary, validate_post
from .query import build_post_query

logger = logging.getLogger(__name__)

IMAGE_FIELD = 'featuredImage'


# ===== Database Helper Functions =====

def ensure_title_available(store, title, exclude_id=None):
    """Reject a title already used by another post."""
    query = {'title': title}
    if exclude_id is not None:
        query['_id'] = {'$ne': exclude_id}
    if store.posts.find_one(query, {'_id': 1}):
        raise ConflictError('A blog post with this title already exists', field='title')


def get_post_db(store, post_id, published_only=False):
    query = {'_id': parse_object_id(post_id)}
    if published_only:
        query['isPublished'] = True
    return store.posts.find_one(query)


def list_posts_db(store, post_query, projection=None, paginate=True):
    cursor = store.posts.find(post_query.filter, projection).sort(post_query.sort)
    if paginate:
        cursor = cursor.skip(post_query.skip).limit(post_query.limit)
    return list(cursor)


def create_post_db(store, document):
    ensure_title_available(store, document['title'])
    try:
        result = store.posts.insert_one(document)
    except DuplicateKeyError:
        raise ConflictError('A blog post with this title already exists', field='title')
    document['_id'] = result.inserted_id
    return document


def update_post_db(store, post_id, changes):
    if 'title' in changes:
        ensure_title_available(store, changes['title'], exclude_id=post_id)
    changes['updatedAt'] = utcnow()
    try:
        return store.posts.find_one_and_update(
            {'_id': post_id},
            {'$set': changes},
            return_document=ReturnDocument.AFTER,
        )
    except DuplicateKeyError:
        raise ConflictError('A blog post with this title already exists', field='title')


def delete_post_db(store, post_id):
    return store.posts.delete_one({'_id': parse_object_id(post_id)}).deleted_count > 0


def _uploaded_image():
    file = request.files.get(IMAGE_FIELD)
    if file is None or not file.filename:
        return None
    return file


def _projection_from(fields_param):
    fields = parse_list(fields_param)
    if not fields:
        return None
    return {field: 1 for field in fields}


# ===== Routes =====

@blog_admin_bp.route('/posts', methods=['GET'])
def list_admin_posts():
    """Every post regardless of publish state"""
    store = get_store()
    post_query = build_post_query(request.args)
    paginate = 'page' in request.args or 'limit' in request.args
    posts = list_posts_db(store, post_query, _projection_from(request.args.get('fields')), paginate)

    response = {'success': True, 'posts': serialize_document(posts)}
    if parse_bool(request.args.get('includeCount')) or paginate:
        total = store.posts.count_documents(post_query.filter)
        response['totalPosts'] = total
        if paginate:
            response['currentPage'] = post_query.page
            response['totalPages'] = math.ceil(total / post_query.limit)
    return jsonify(response)


@blog_admin_bp.route('/posts/<post_id>', methods=['GET'])
def get_admin_post(post_id):
    """Single post, published or not"""
    post = get_post_db(get_store(), post_id)
    if not post:
        raise NotFoundError('Post not found.')
    return jsonify({'success': True, 'post': serialize_document(post)})


@blog_admin_bp.route('/posts', methods=['POST'])
def create_post():
    """Create a new post"""
    post_input = PostInput.from_request(request_data())
    # validate before touching object storage so a bad form leaves no orphan upload
    validate_post(post_input.provided_fields())

    image = _uploaded_image()
    image_url = get_storage().upload_image(image) if image else None

    document = build_post_document(post_input, image_url=image_url)
    post = create_post_db(get_store(), document)

    logger.info(f"Post created: {post['title']} ({post['_id']})")
    db_log('info', 'blog', f"Post created: {post['title']}", {'id': str(post['_id'])})
    return jsonify({
        'success': True,
        'message': 'Post created successfully!',
        'post': serialize_document(post),
    }), 201


@blog_admin_bp.route('/posts/<post_id>', methods=['PUT'])
def update_post(post_id):
    """Update an existing post; unsupplied fields are kept"""
    store = get_store()
    object_id = parse_object_id(post_id)
    existing = store.posts.find_one({'_id': object_id})
    if not existing:
        raise NotFoundError('Post not found for update.')

    changes = PostInput.from_request(request_data()).provided_fields()
    merged = {**existing, **changes}
    if not merged.get('summary'):
        changes['summary'] = merged['summary'] = derive_summary(merged.get('content'))
    validate_post(merged)

    image = _uploaded_image()
    if image:
        # the previous object stays in storage
        changes['imageUrl'] = get_storage().upload_image(image)

    post = update_post_db(store, object_id, changes)
    if not post:
        raise NotFoundError('Post not found for update.')

    logger.info(f"Post updated: {post['title']} ({post_id})")
    return jsonify({
        'success': True,
        'message': 'Post updated successfully!',
        'post': serialize_document(post),
    })


@blog_admin_bp.route('/posts/<post_id>', methods=['DELETE'])
def delete_post(post_id):
    """Delete a post (its stored image is left in place)"""
    if not delete_post_db(get_store(), post_id):
        raise NotFoundError('Post not found for deletion.')

    logger.info(f"Post deleted: {post_id}")
    db_log('info', 'blog', 'Post deleted', {'id': post_id})
    return jsonify({'success': True, 'message': 'Post deleted successfully.'})
