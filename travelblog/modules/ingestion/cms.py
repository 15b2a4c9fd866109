"""
Contentful Management Client
============================

Minimal client for the Contentful Content Management API: look up the
target environment, create an entry under a caller-chosen id, publish it.
"""

import logging

import requests

from travelblog.core.http import build_session

logger = logging.getLogger(__name__)

API_BASE = "https://api.contentful.com"
CMA_CONTENT_TYPE = "application/vnd.contentful.management.v1+json"


class ContentfulError(Exception):

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class EntryExistsError(ContentfulError):
    """An entry with the requested id is already in the space."""


class ContentfulClient:

    def __init__(self, space_id, access_token, environment='master',
                 timeout=15, retries=2, session=None, api_base=API_BASE):
        self.space_id = space_id
        self.access_token = access_token
        self.environment = environment or 'master'
        self.timeout = timeout
        self.api_base = api_base.rstrip('/')
        self.session = session or build_session(retries)

    @classmethod
    def from_config(cls, config):
        return cls(
            space_id=config.get('CONTENTFUL_SPACE_ID'),
            access_token=config.get('CMA_ACCESS_TOKEN'),
            environment=config.get('CONTENTFUL_ENVIRONMENT', 'master'),
            timeout=config.get('OUTBOUND_TIMEOUT', 15),
            retries=config.get('OUTBOUND_RETRIES', 2),
        )

    @property
    def configured(self):
        return bool(self.space_id and self.access_token)

    @property
    def _environment_url(self):
        return f"{self.api_base}/spaces/{self.space_id}/environments/{self.environment}"

    def _headers(self, extra=None):
        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": CMA_CONTENT_TYPE,
        }
        if extra:
            headers.update(extra)
        return headers

    def _request(self, method, url, **kwargs):
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ContentfulError(f"Contentful request failed: {e}") from e

        if resp.status_code == 409:
            raise EntryExistsError("Entry already exists", status_code=409)
        if resp.status_code >= 400:
            try:
                message = resp.json().get('message', resp.reason)
            except ValueError:
                message = resp.reason
            raise ContentfulError(f"Contentful returned {resp.status_code}: {message}", resp.status_code)
        return resp.json()

    def get_environment(self):
        """Environment metadata; fails when the space, environment or token is wrong."""
        return self._request('GET', self._environment_url, headers=self._headers())

    def create_entry(self, content_type, entry_id, fields):
        """Create an entry with a fixed id. Raises EntryExistsError if it is taken."""
        return self._request(
            'PUT',
            f"{self._environment_url}/entries/{entry_id}",
            headers=self._headers({"X-Contentful-Content-Type": content_type}),
            json={'fields': fields},
        )

    def publish_entry(self, entry_id, version):
        return self._request(
            'PUT',
            f"{self._environment_url}/entries/{entry_id}/published",
            headers=self._headers({"X-Contentful-Version": str(version)}),
        )

    def get_entry(self, entry_id):
        return self._request('GET', f"{self._environment_url}/entries/{entry_id}", headers=self._headers())


def is_published(entry):
    """True once any version of the entry has been published."""
    return bool((entry.get('sys') or {}).get('publishedVersion'))
