"""
Post Query Builder
==================

Turns listing query parameters (search, category, page, limit, isPublished)
into store filter/sort/skip/limit values. Shared by the admin and public
listings; the public side only forces isPublished.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from pymongo import DESCENDING

from travelblog.core.forms import parse_bool

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 50
# keeps skip inside the store's 64-bit range
MAX_PAGE = 10000
ALL_CATEGORIES = 'All'
SEARCH_FIELDS = ('title', 'summary', 'content', 'tags')

# _id breaks ties so pages never overlap
RECENCY_SORT = [('updatedAt', DESCENDING), ('_id', DESCENDING)]


@dataclass
class PostQuery:
    filter: Dict[str, Any]
    sort: List[Tuple[str, int]]
    page: int
    limit: int
    skip: int


def _parse_int(value, default):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def build_post_query(params, force_published=False) -> PostQuery:
    """
    Build the listing query from a mapping of request parameters.

    Args:
        params: request.args or any mapping with string values
        force_published: pin isPublished=True regardless of params
    """
    query_filter = {}

    search = str(params.get('search') or '').strip()
    if search:
        pattern = re.compile(re.escape(search), re.IGNORECASE)
        query_filter['$or'] = [{field: pattern} for field in SEARCH_FIELDS]

    category = str(params.get('category') or '').strip()
    if category and category != ALL_CATEGORIES:
        query_filter['category'] = category

    if force_published:
        query_filter['isPublished'] = True
    elif str(params.get('isPublished') or '').strip() or params.get('isPublished') is False:
        query_filter['isPublished'] = parse_bool(params.get('isPublished'))

    page = min(max(_parse_int(params.get('page'), DEFAULT_PAGE), 1), MAX_PAGE)
    limit = _parse_int(params.get('limit'), DEFAULT_LIMIT)
    limit = min(max(limit, 1), MAX_LIMIT)

    return PostQuery(
        filter=query_filter,
        sort=list(RECENCY_SORT),
        page=page,
        limit=limit,
        skip=(page - 1) * limit,
    )
