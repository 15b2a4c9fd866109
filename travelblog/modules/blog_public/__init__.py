from flask import Blueprint

blog_public_bp = Blueprint('blog_public', __name__, url_prefix='/user/blog')

from . import routes

__all__ = ['blog_public_bp']
