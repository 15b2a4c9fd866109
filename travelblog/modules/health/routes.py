"""
Health and service description routes.
"""

from flask import current_app, jsonify

from travelblog.core.database import utcnow
from travelblog.core.providers import get_extension, get_store

from . import health_bp

ENDPOINTS = {
    'health': '/health',
    'adminBlog': '/admin/blog/posts',
    'publicBlog': '/user/blog/posts',
    'categories': '/user/blog/categories',
    'contact': '/contact/submit',
    'submissions': '/submissions',
    'newsletter': '/newsletter',
    'ingestion': '/admin/ingestion',
}


@health_bp.route('/', methods=['GET'])
def index():
    return jsonify({
        'success': True,
        'message': f"{current_app.config.get('SERVICE_NAME')} is running",
        'endpoints': ENDPOINTS,
    })


@health_bp.route('/health', methods=['GET'])
def health():
    """200 when the document store answers, 503 otherwise"""
    config = current_app.config
    database = get_store().status()
    healthy = database['connected']

    return jsonify({
        'success': healthy,
        'status': 'ok' if healthy else 'degraded',
        'service': config.get('SERVICE_NAME'),
        'time': utcnow().isoformat() + 'Z',
        'database': database,
        'environment': {
            'name': config.get('ENVIRONMENT'),
            'storage': config.get('STORAGE_BACKEND'),
            'emailProvider': config.get('EMAIL_PROVIDER'),
            'cmsConfigured': bool(config.get('CONTENTFUL_SPACE_ID') and config.get('CMA_ACCESS_TOKEN')),
            'newsApiConfigured': bool(config.get('NEWS_API_KEY')),
            'ingestionScheduled': get_extension().ingestion.running,
        },
    }), 200 if healthy else 503
