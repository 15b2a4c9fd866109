"""
Travel Blog Server
==================

Flask backend for a travel blog:
- Blog post management (admin) and published post browsing (public)
- "Write for us" contact submissions with admin replies
- Newsletter subscriptions with stats and CSV export
- Live admin/user notifications over Socket.IO
- Scheduled news ingestion into the headless CMS

Usage:
    from travelblog import create_app

    app = create_app()
    app.extensions['travelblog'].socketio.run(app, port=5000)

Or attach to an existing app:
    from travelblog import TravelBlog
    blog = TravelBlog(app)
"""

__version__ = '0.1.0'

import logging

from flask import Flask
from flask_cors import CORS
from pymongo.errors import PyMongoError

from .core.config import Config
from .core.database import DocumentStore
from .core.errors import register_error_handlers
from .core.storage import ImageStorage

logger = logging.getLogger(__name__)


class TravelBlog:
    """
    Flask extension wiring the blog modules onto an app.

    Process-scoped providers (document store, image storage, email service,
    notification bridge) are built from app.config unless passed in, and are
    reachable from handlers through ``app.extensions['travelblog']``.
    """

    def __init__(self, app=None, store=None, storage=None, email=None, bridge=None, ingestion=None):
        self.store = store
        self.storage = storage
        self.email = email
        self.bridge = bridge
        self.ingestion = ingestion
        self._modules = []

        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        # Anything already set on app.config wins over the environment defaults
        for key, value in Config.as_dict().items():
            app.config.setdefault(key, value)

        self._init_store(app)
        if self.storage is None:
            self.storage = ImageStorage.from_config(app.config)
        self._init_email(app)
        self._init_bridge(app)

        CORS(
            app,
            origins=app.config.get('CLIENT_URL') or '*',
            methods=['GET', 'POST', 'PUT', 'DELETE'],
            allow_headers=['Content-Type', 'Authorization'],
        )
        register_error_handlers(app)
        self._register_modules(app)

        if self.ingestion is None:
            from .modules.ingestion.job import IngestionJob
            self.ingestion = IngestionJob(app)

        app.extensions['travelblog'] = self
        logger.info(f"Travel blog initialised with modules: {', '.join(self._modules)}")

    def _init_store(self, app):
        if self.store is None:
            self.store = DocumentStore(
                uri=app.config['MONGO_URI'],
                db_name=app.config['MONGO_DB_NAME'],
                timeout_ms=app.config['MONGO_TIMEOUT_MS'],
            )
        try:
            self.store.ensure_indexes()
        except PyMongoError as e:
            # the server still starts; /health reports the store as disconnected
            logger.warning(f"Could not create document store indexes: {e}")

    def _init_email(self, app):
        if self.email is None:
            from .modules.email import EmailService
            self.email = EmailService(app)

    def _init_bridge(self, app):
        if self.bridge is None:
            from .modules.notifications import NotificationBridge
            self.bridge = NotificationBridge()
        self.bridge.init_app(app)

    def _register_modules(self, app):
        from .modules.blog import blog_admin_bp
        from .modules.blog_public import blog_public_bp
        from .modules.health import health_bp
        from .modules.ingestion import ingestion_bp
        from .modules.newsletter import newsletter_bp
        from .modules.submissions import contact_bp, submissions_bp

        modules = [
            ('health', health_bp),
            ('blog_admin', blog_admin_bp),
            ('blog_public', blog_public_bp),
            ('contact', contact_bp),
            ('submissions', submissions_bp),
            ('newsletter', newsletter_bp),
            ('ingestion', ingestion_bp),
        ]
        for name, blueprint in modules:
            app.register_blueprint(blueprint)
            self._modules.append(name)

    def get_registered_modules(self):
        return list(self._modules)

    @property
    def socketio(self):
        return self.bridge.socketio

    def start_ingestion(self):
        return self.ingestion.start()

    def shutdown(self):
        """Stop background work; safe to call more than once."""
        if self.ingestion is not None:
            self.ingestion.stop()


def create_app(config=None, **providers):
    """
    Build a Flask app with every travel blog module registered.

    Args:
        config: mapping of app.config overrides applied before initialisation
        **providers: store, storage, email, bridge or ingestion to inject
    """
    app = Flask(__name__)
    if config:
        app.config.update(config)
    TravelBlog(app, **providers)
    return app


__all__ = ['TravelBlog', 'create_app', '__version__']
