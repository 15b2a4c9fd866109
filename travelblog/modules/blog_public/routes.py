"""
Public blog API -- only published posts are ever returned.
"""

import math

from flask import jsonify, request
from pymongo import ReturnDocument

from travelblog.core.database import parse_object_id, serialize_document
from travelblog.core.errors import NotFoundError
from travelblog.core.providers import get_store
from travelblog.modules.blog.models import CATEGORIES
from travelblog.modules.blog.query import build_post_query

from . import blog_public_bp

# list payloads carry the summary only
LIST_PROJECTION = {'content': 0}


@blog_public_bp.route('/posts', methods=['GET'])
def get_published_posts():
    """Published posts with search, category filter and pagination"""
    store = get_store()
    post_query = build_post_query(request.args, force_published=True)

    total = store.posts.count_documents(post_query.filter)
    total_pages = math.ceil(total / post_query.limit)
    posts = list(
        store.posts.find(post_query.filter, LIST_PROJECTION)
        .sort(post_query.sort)
        .skip(post_query.skip)
        .limit(post_query.limit)
    )

    return jsonify({
        'success': True,
        'posts': serialize_document(posts),
        'totalPosts': total,
        'currentPage': post_query.page,
        'totalPages': total_pages,
        'limit': post_query.limit,
        'hasNext': post_query.page < total_pages,
        'hasPrev': post_query.page > 1,
    })


@blog_public_bp.route('/posts/<post_id>', methods=['GET'])
def get_published_post(post_id):
    """Single published post; each successful read counts one view"""
    post = get_store().posts.find_one_and_update(
        {'_id': parse_object_id(post_id), 'isPublished': True},
        {'$inc': {'views': 1}},
        return_document=ReturnDocument.AFTER,
    )
    if not post:
        raise NotFoundError('Post not found or not published.')
    return jsonify({'success': True, 'post': serialize_document(post)})


@blog_public_bp.route('/categories', methods=['GET'])
def get_categories():
    """Categories that currently have published posts"""
    categories = get_store().posts.distinct('category', {'isPublished': True})
    return jsonify({
        'success': True,
        'categories': sorted(categories),
        'allCategories': CATEGORIES,
    })
