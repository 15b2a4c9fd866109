import os
from dotenv import load_dotenv

load_dotenv(override=True)


def _env_bool(name, default='false'):
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """
    Base configuration for the travel blog server.
    Every attribute can be overridden through the environment (or a .env file),
    and anything already present in app.config wins over these defaults.
    """
    # Runtime
    # error details are only exposed when this is explicitly 'development'
    ENVIRONMENT = os.getenv('ENVIRONMENT') or os.getenv('FLASK_ENV') or 'production'
    PORT = int(os.getenv('PORT', '5000'))
    CLIENT_URL = os.getenv('CLIENT_URL', '*')
    SERVICE_NAME = 'Travel Tour Blog Server'

    # Document store
    MONGO_URI = os.getenv('MONGO_URI') or os.getenv('MONGODB_URI') or 'mongodb://localhost:27017'
    MONGO_DB_NAME = os.getenv('MONGO_DB_NAME', 'travelblog')
    MONGO_TIMEOUT_MS = int(os.getenv('MONGO_TIMEOUT_MS', '10000'))

    # Object storage for featured images ('local' or 'spaces')
    STORAGE_BACKEND = os.getenv('STORAGE_BACKEND', 'local')
    SPACES_REGION = os.getenv('SPACES_REGION')
    SPACES_BUCKET = os.getenv('SPACES_BUCKET')
    SPACES_KEY = os.getenv('SPACES_KEY')
    SPACES_SECRET = os.getenv('SPACES_SECRET')
    SPACES_ENDPOINT = os.getenv('SPACES_ENDPOINT')
    SPACES_FOLDER = os.getenv('SPACES_FOLDER', 'blog-featured-images')
    MAX_IMAGE_BYTES = int(os.getenv('MAX_IMAGE_BYTES', str(5 * 1024 * 1024)))

    # Headless CMS (Contentful management API)
    CONTENTFUL_SPACE_ID = os.getenv('CONTENTFUL_SPACE_ID')
    CONTENTFUL_ENVIRONMENT = os.getenv('CONTENTFUL_ENVIRONMENT', 'master')
    CMA_ACCESS_TOKEN = os.getenv('CMA_ACCESS_TOKEN')
    CONTENTFUL_CONTENT_TYPE = os.getenv('CONTENTFUL_CONTENT_TYPE', 'theConclaveBlog')
    CONTENTFUL_AUTHOR_ID = os.getenv('CONTENTFUL_AUTHOR_ID', '4WOacPkmp1DHGgDf1ToJGw')
    CONTENTFUL_LOCALE = os.getenv('CONTENTFUL_LOCALE', 'en-US')

    # News ingestion
    NEWS_API_KEY = os.getenv('NEWS_API_KEY')
    NEWS_API_URL = os.getenv('NEWS_API_URL', 'https://newsapi.org/v2/everything')
    NEWS_API_QUERY = os.getenv('NEWS_API_QUERY', 'travel AND tourism destination tips')
    NEWS_API_LANGUAGE = os.getenv('NEWS_API_LANGUAGE', 'en')
    NEWS_API_PAGE_SIZE = int(os.getenv('NEWS_API_PAGE_SIZE', '5'))
    INGESTION_ENABLED = _env_bool('INGESTION_ENABLED')
    INGESTION_INTERVAL_HOURS = float(os.getenv('INGESTION_INTERVAL_HOURS', '6'))
    INGESTION_CATEGORY = os.getenv('INGESTION_CATEGORY', 'Tourism')

    # Outbound calls (CMS, news API, email)
    OUTBOUND_TIMEOUT = float(os.getenv('OUTBOUND_TIMEOUT', '15'))
    OUTBOUND_RETRIES = int(os.getenv('OUTBOUND_RETRIES', '2'))

    # Email settings
    EMAIL_PROVIDER = os.getenv('EMAIL_PROVIDER', 'smtp')
    EMAIL_ADDRESS = os.getenv('EMAIL_ADDRESS')
    EMAIL_PASSWORD = os.getenv('EMAIL_PASSWORD')
    EMAIL_HOST = os.getenv('EMAIL_HOST', 'smtp.gmail.com')
    EMAIL_PORT = int(os.getenv('EMAIL_PORT', '587'))
    RESEND_API_KEY = os.getenv('RESEND_API_KEY') or os.getenv('RESEND')
    AWS_REGION = os.getenv('AWS_REGION', 'eu-west-1')
    EMAIL_BRAND_NAME = os.getenv('EMAIL_BRAND_NAME', 'The Conclave Academy Blog')
    EMAIL_WEBSITE_URL = os.getenv('EMAIL_WEBSITE_URL', 'https://the-conclave-academy.netlify.app/blog')
    EMAIL_ADMIN_EMAIL = os.getenv('EMAIL_ADMIN_EMAIL')
    EMAIL_REVIEW_WINDOW = os.getenv('EMAIL_REVIEW_WINDOW', '3-5 business days')

    # Best-effort work (emails, live notifications) runs inline when true
    BACKGROUND_TASKS_INLINE = _env_bool('BACKGROUND_TASKS_INLINE')

    @classmethod
    def as_dict(cls):
        """Upper-case settings as a plain dict."""
        return {key: getattr(cls, key) for key in dir(cls) if key.isupper()}
