"""
Outbound HTTP sessions for third-party APIs (news feed, CMS).
Every call carries an explicit timeout; connection errors and gateway
failures are retried a bounded number of times.
"""

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

RETRY_STATUSES = (429, 502, 503, 504)


def build_session(retries=2, backoff_factor=0.5, headers=None):
    """requests.Session with a bounded retry policy mounted for http(s)."""
    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        status=retries,
        backoff_factor=backoff_factor,
        status_forcelist=RETRY_STATUSES,
        allowed_methods=frozenset(['GET', 'PUT']),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)

    session = requests.Session()
    session.mount('https://', adapter)
    session.mount('http://', adapter)
    if headers:
        session.headers.update(headers)
    return session
