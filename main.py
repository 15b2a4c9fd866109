"""
Travel Blog Server
==================

Run with:
    python main.py

Reads configuration from the environment (or a .env file); see
travelblog/core/config.py for the available keys.
"""

import atexit
import logging

from travelblog import create_app

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
)
logger = logging.getLogger('travelblog.main')

app = create_app()
blog = app.extensions['travelblog']

atexit.register(blog.shutdown)


if __name__ == '__main__':
    if app.config['INGESTION_ENABLED']:
        blog.start_ingestion()
    else:
        logger.info("News ingestion disabled (set INGESTION_ENABLED=true to schedule it)")

    port = app.config['PORT']
    logger.info(f"Starting {app.config['SERVICE_NAME']} on port {port}")
    blog.socketio.run(
        app,
        host='0.0.0.0',
        port=port,
        debug=app.config['ENVIRONMENT'] == 'development',
        use_reloader=False,
        allow_unsafe_werkzeug=True,
    )
