"""Lightweight HTTP check used before handing a storage link to a client."""

import logging

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


def url_is_reachable(url: str, timeout: float = DEFAULT_TIMEOUT) -> bool:
    """Return True when a HEAD request for ``url`` answers with a 2xx.

    Redirects are followed. Timeouts and connection errors count as
    unreachable.
    """
    if not url:
        return False
    try:
        response = requests.head(url, allow_redirects=True, timeout=timeout)
    except requests.RequestException as exc:
        logger.warning("Error verifying URL %s: %s", url, exc)
        return False
    if 200 <= response.status_code < 300:
        return True
    logger.debug("URL %s answered HTTP %s", url, response.status_code)
    return False
