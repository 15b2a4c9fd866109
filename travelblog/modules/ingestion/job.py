"""
News Ingestion Job
==================

Mirrors travel articles from the news API into the CMS as published entries.

Runs once when started and then every INGESTION_INTERVAL_HOURS on a daemon
thread. A run aborts up front (logged as critical) when the CMS credentials
or environment are unavailable; after that each article is handled on its
own, so one failure does not stop the batch.

Entry ids are derived from the article URL, so a re-run targets the same id.
An entry already published is counted as skipped; a draft left behind by a
failed publish is published on the next run.
"""

import hashlib
import logging
import re
import threading
from datetime import datetime

from travelblog.core.database import utcnow
from travelblog.core.logging_service import LoggingService, db_log

from .cms import ContentfulClient, EntryExistsError, is_published
from .news_client import NewsApiClient

logger = logging.getLogger(__name__)

MIN_CONTENT_LENGTH = 50
SLUG_MAX_LENGTH = 60
ENTRY_SLUG_LENGTH = 40
TITLE_MAX_LENGTH = 250


def create_slug(text):
    """URL-safe slug: lowercase, hyphenated, at most 60 characters."""
    slug = re.sub(r'[^a-z0-9\s-]', '', (text or '').lower()).strip()
    slug = re.sub(r'\s+', '-', slug)
    return slug[:SLUG_MAX_LENGTH]


def create_rich_text(content):
    """Wrap plain text in a single-paragraph rich text document."""
    return {
        'nodeType': 'document',
        'data': {},
        'content': [
            {
                'nodeType': 'paragraph',
                'data': {},
                'content': [
                    {
                        'nodeType': 'text',
                        'value': content,
                        'marks': [],
                        'data': {},
                    },
                ],
            },
        ],
    }


def make_entry_id(article):
    """Stable CMS entry id for an article, keyed on its canonical URL."""
    slug = create_slug(article.get('title'))[:ENTRY_SLUG_LENGTH].strip('-')
    source = article.get('url') or article.get('title') or ''
    digest = hashlib.sha1(source.encode('utf-8')).hexdigest()[:12]
    return f"auto-{slug}-{digest}" if slug else f"auto-{digest}"


def should_skip(article):
    return not article.get('description') or len(article.get('content') or '') < MIN_CONTENT_LENGTH


def _published_date(value):
    if value:
        try:
            return datetime.fromisoformat(value.replace('Z', '+00:00')).isoformat()
        except ValueError:
            pass
    return utcnow().isoformat() + 'Z'


class IngestionJob:
    """Scheduled news -> CMS mirroring, bound to one Flask app."""

    def __init__(self, app, news_client=None, cms_client=None):
        self.app = app
        config = app.config
        self.news_client = news_client or NewsApiClient.from_config(config)
        self.cms_client = cms_client or ContentfulClient.from_config(config)
        self.interval_hours = float(config.get('INGESTION_INTERVAL_HOURS', 6))
        self.content_type = config.get('CONTENTFUL_CONTENT_TYPE')
        self.author_id = config.get('CONTENTFUL_AUTHOR_ID')
        self.category = config.get('INGESTION_CATEGORY', 'Tourism')
        self.locale = config.get('CONTENTFUL_LOCALE', 'en-US')

        self.last_summary = None
        self._run_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread = None

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive()

    # ----- scheduling -----

    def start(self):
        """Run once now, then every interval until stop() is called."""
        if self.running:
            return self._thread
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name='news-ingestion', daemon=True)
        self._thread.start()
        logger.info(f"Ingestion job scheduled every {self.interval_hours}h")
        return self._thread

    def stop(self, timeout=5):
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Ingestion job stopped")

    def _loop(self):
        interval = self.interval_hours * 3600
        while True:
            try:
                self.run_once()
            except Exception as e:
                logger.exception(f"Ingestion run crashed: {e}")
                with self.app.app_context():
                    LoggingService.log_error_with_traceback('ingestion', e)
            if self._stop_event.wait(interval):
                break

    # ----- a single pass -----

    def _entry_fields(self, article):
        loc = self.locale
        return {
            'title': {loc: (article.get('title') or '')[:TITLE_MAX_LENGTH]},
            'slug': {loc: create_slug(article.get('title'))},
            'content': {loc: create_rich_text(article.get('content') or article.get('description'))},
            'category': {loc: self.category},
            'publishedDate': {loc: _published_date(article.get('publishedAt'))},
            'author': {loc: {'sys': {'type': 'Link', 'linkType': 'Entry', 'id': self.author_id}}},
        }

    def _ingest_article(self, article, entry_id):
        """Create and publish one entry; returns the summary key it counts towards."""
        try:
            entry = self.cms_client.create_entry(self.content_type, entry_id, self._entry_fields(article))
        except EntryExistsError:
            # a previous run may have created the entry but failed to publish it
            entry = self.cms_client.get_entry(entry_id)
            if is_published(entry):
                logger.info(f"[INGEST] Already ingested: {entry_id}")
                return 'skipped'
            logger.info(f"[INGEST] Publishing draft left by an earlier run: {entry_id}")

        self.cms_client.publish_entry(entry_id, entry['sys']['version'])
        logger.info(f"[INGEST] Created and published: {article.get('title')}")
        return 'created'

    def _abort(self, summary, message):
        summary['aborted'] = True
        summary['error'] = message
        logger.critical(f"[INGEST] {message}")
        db_log('critical', 'ingestion', message)
        return summary

    def run_once(self):
        """
        One ingestion pass.

        Returns:
            dict: {fetched, created, skipped, failed, aborted, startedAt, finishedAt, error?}
        """
        summary = {
            'fetched': 0,
            'created': 0,
            'skipped': 0,
            'failed': 0,
            'aborted': False,
            'startedAt': utcnow().isoformat(),
        }
        if not self._run_lock.acquire(blocking=False):
            summary['aborted'] = True
            summary['error'] = 'An ingestion run is already in progress'
            return summary

        try:
            with self.app.app_context():
                self._run(summary)
        finally:
            summary['finishedAt'] = utcnow().isoformat()
            self.last_summary = summary
            self._run_lock.release()
        return summary

    def _run(self, summary):
        logger.info("[INGEST] Starting ingestion job")

        if not self.cms_client.configured:
            return self._abort(summary, 'CMS credentials are not configured')
        if not self.news_client.configured:
            return self._abort(summary, 'News API key is not configured')
        try:
            self.cms_client.get_environment()
        except Exception as e:
            return self._abort(summary, f'Failed to retrieve CMS environment: {e}')

        try:
            articles = self.news_client.fetch_articles()
        except Exception as e:
            summary['aborted'] = True
            summary['error'] = str(e)
            logger.error(f"[INGEST] Ingestion job failed: {e}")
            db_log('error', 'ingestion', 'News fetch failed', {'error': str(e)})
            return summary

        summary['fetched'] = len(articles)
        for article in articles:
            if should_skip(article):
                summary['skipped'] += 1
                continue
            entry_id = make_entry_id(article)
            try:
                summary[self._ingest_article(article, entry_id)] += 1
            except Exception as e:
                summary['failed'] += 1
                logger.error(f"[INGEST] Error creating entry {article.get('title')}: {e}")
                db_log('error', 'ingestion', 'Failed to ingest article', {
                    'entryId': entry_id,
                    'title': article.get('title'),
                    'error': str(e),
                })

        logger.info(f"[INGEST] Job finished: {summary['created']} created, "
                    f"{summary['skipped']} skipped, {summary['failed']} failed")
        db_log('info', 'ingestion', 'Ingestion run finished', {
            key: summary[key] for key in ('fetched', 'created', 'skipped', 'failed')
        })
        return summary
