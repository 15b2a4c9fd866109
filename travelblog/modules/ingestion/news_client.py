"""
News API Client
===============

Fetches articles from the NewsAPI ``everything`` endpoint.
"""

import logging

import requests

from travelblog.core.http import build_session

logger = logging.getLogger(__name__)


class NewsApiError(Exception):
    pass


class NewsApiClient:

    def __init__(self, api_key, url, query, language='en', page_size=5,
                 timeout=15, retries=2, session=None):
        self.api_key = api_key
        self.url = url
        self.query = query
        self.language = language
        self.page_size = page_size
        self.timeout = timeout
        self.session = session or build_session(retries)

    @classmethod
    def from_config(cls, config):
        return cls(
            api_key=config.get('NEWS_API_KEY'),
            url=config.get('NEWS_API_URL'),
            query=config.get('NEWS_API_QUERY'),
            language=config.get('NEWS_API_LANGUAGE', 'en'),
            page_size=config.get('NEWS_API_PAGE_SIZE', 5),
            timeout=config.get('OUTBOUND_TIMEOUT', 15),
            retries=config.get('OUTBOUND_RETRIES', 2),
        )

    @property
    def configured(self):
        return bool(self.api_key and self.url)

    def fetch_articles(self):
        """Return the latest matching articles as a list of dicts."""
        params = {
            'q': self.query,
            'language': self.language,
            'pageSize': self.page_size,
            'apiKey': self.api_key,
        }
        try:
            resp = self.session.get(self.url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise NewsApiError(f"News API request failed: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = {}

        if resp.status_code != 200 or data.get('status') != 'ok':
            message = data.get('message') or resp.reason
            raise NewsApiError(f"News API returned {resp.status_code}: {message}")

        articles = data.get('articles') or []
        logger.info(f"News API returned {len(articles)} articles")
        return articles
