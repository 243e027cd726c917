import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

import requests

logger = logging.getLogger(__name__)


TOKEN_URL = 'https://accounts.spotify.com/api/token'
DEFAULT_EXPIRES_IN = 3600
EXPIRY_MARGIN_SECONDS = 10


@dataclass(frozen=True)
class CachedToken:
    """Access token together with its absolute expiry time (epoch seconds)."""

    token: str
    expires_at: float

    def is_fresh(self, now: float, margin: float = EXPIRY_MARGIN_SECONDS) -> bool:
        return self.expires_at > now + margin


class TokenCache:
    """Single-slot holder for the current access token.

    The slot is only ever replaced or cleared as a whole.
    """

    def __init__(self):
        self._entry: Optional[CachedToken] = None
        self._lock = threading.Lock()

    def get(self) -> Optional[CachedToken]:
        with self._lock:
            return self._entry

    def replace(self, entry: CachedToken) -> None:
        with self._lock:
            self._entry = entry

    def clear(self) -> None:
        with self._lock:
            self._entry = None


class SpotifyTokenManager:
    """Obtains client-credentials access tokens and caches them until shortly before expiry."""

    def __init__(self,
                 client_id: Optional[str],
                 client_secret: Optional[str],
                 cache: Optional[TokenCache] = None,
                 clock: Callable[[], float] = time.time,
                 timeout: float = 10.0):
        """Initialize token manager.
        
        Args:
            client_id: Spotify application client ID
            client_secret: Spotify application client secret
            cache: Token cache shared by every lookup in this process
            clock: Returns the current time in epoch seconds
            timeout: Timeout for the token request in seconds
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.cache = cache if cache is not None else TokenCache()
        self._clock = clock
        self._timeout = timeout
        # Serializes exchanges so overlapping requests reuse one fresh token
        self._refresh_lock = threading.Lock()

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def get_token(self) -> Optional[str]:
        """Return a valid access token, exchanging credentials when the cached one is stale.

        Returns:
            The bearer token, or None when credentials are missing or the exchange failed
        """
        if not self.has_credentials:
            return None

        cached = self.cache.get()
        if cached and cached.is_fresh(self._clock()):
            return cached.token

        with self._refresh_lock:
            cached = self.cache.get()
            if cached and cached.is_fresh(self._clock()):
                return cached.token
            return self._exchange_credentials()

    def invalidate(self) -> None:
        """Drop the cached token so the next call performs a fresh exchange."""
        logger.info("Invalidating cached Spotify access token")
        self.cache.clear()

    def _exchange_credentials(self) -> Optional[str]:
        now = self._clock()
        logger.debug("Requesting Spotify access token")
        response = requests.post(
            TOKEN_URL,
            data={'grant_type': 'client_credentials'},
            auth=(self.client_id, self.client_secret),
            timeout=self._timeout,
        )

        if not response.ok:
            logger.error(f"Failed to obtain Spotify token: {response.status_code} - {response.text}")
            return None

        payload = response.json()
        access_token = payload.get('access_token')
        if not access_token:
            logger.error("Failed to obtain Spotify token: response has no access_token")
            return None

        expires_in = payload.get('expires_in')
        if expires_in is None:
            expires_in = DEFAULT_EXPIRES_IN

        self.cache.replace(CachedToken(token=access_token, expires_at=now + float(expires_in)))
        logger.info(f"Spotify access token obtained, valid for {expires_in}s")
        return access_token
