import logging
from typing import Optional
from urllib.parse import urljoin

import requests

from spotibot.domain.links import parse_url

logger = logging.getLogger(__name__)


class ShortLinkResolver:
    """Expands spotify.link short URLs to the long open.spotify.com form."""

    def __init__(self, timeout: float = 10.0):
        self._timeout = timeout

    def resolve(self, url: str) -> Optional[str]:
        """Follow the short link's redirect.

        Probes with HEAD first and only falls back to a redirect-following GET when
        the probe neither redirected nor succeeded.

        Returns:
            The redirect target, the final URL of the request, or None when the
            URL is malformed or the network request failed
        """
        if parse_url(url) is None:
            return None

        try:
            head_response = requests.head(url, allow_redirects=False, timeout=self._timeout)

            location = head_response.headers.get('location')
            if location:
                return urljoin(url, location)

            if 200 <= head_response.status_code < 300:
                return head_response.url or url

            get_response = requests.get(url, allow_redirects=True, timeout=self._timeout)
            return get_response.url or url
        except requests.RequestException as e:
            logger.warning(f"Failed to resolve spotify.link redirect {url}: {e}")
            return None
