import logging
import re
from typing import Any, Callable, Dict, List, Optional

import requests

from spotibot.domain.entities import (
    ALBUM, ARTIST, EPISODE, PLAYLIST, SHOW, TRACK, MetadataRecord,
)
from spotibot.infrastructure.providers.spotify_auth import SpotifyTokenManager

logger = logging.getLogger(__name__)


API_BASE = 'https://api.spotify.com/v1'
OPEN_BASE = 'https://open.spotify.com'

ENDPOINT_TEMPLATES = {
    TRACK: '/tracks/{id}',
    ALBUM: '/albums/{id}',
    PLAYLIST: '/playlists/{id}',
    ARTIST: '/artists/{id}',
    SHOW: '/shows/{id}',
    EPISODE: '/episodes/{id}',
}

_YEAR_PATTERN = re.compile(r'^(\d{4})')


def endpoint_for(kind: str, resource_id: str) -> Optional[str]:
    template = ENDPOINT_TEMPLATES.get(kind)
    if template is None:
        return None
    return API_BASE + template.format(id=resource_id)


def derive_release_year(release_date: Optional[str]) -> Optional[str]:
    """Return the leading four-digit year of a release date, if there is one."""
    if not release_date or not isinstance(release_date, str):
        return None
    match = _YEAR_PATTERN.match(release_date)
    return match.group(1) if match else None


def _first_present(*values: Any, default: Any = None) -> Any:
    for value in values:
        if value is not None:
            return value
    return default


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def _first_image_url(images: Any) -> Optional[str]:
    if isinstance(images, list) and images and isinstance(images[0], dict):
        return images[0].get('url')
    return None


def _artist_names(data: Dict[str, Any]) -> str:
    artists = data.get('artists') or []
    return ', '.join(artist.get('name') or '' for artist in artists if isinstance(artist, dict))


def _canonical_url(data: Dict[str, Any], kind: str, resource_id: str) -> str:
    external = _section(data, 'external_urls').get('spotify')
    return external or f"{OPEN_BASE}/{kind}/{resource_id}"


def map_track(data: Dict[str, Any], resource_id: str) -> MetadataRecord:
    album = _section(data, 'album')
    return MetadataRecord(
        kind=TRACK,
        title=data.get('name') or '',
        subtitle=_artist_names(data),
        release_year=derive_release_year(album.get('release_date')),
        image_url=_first_image_url(album.get('images')),
        canonical_url=_canonical_url(data, TRACK, resource_id),
    )


def map_album(data: Dict[str, Any], resource_id: str) -> MetadataRecord:
    return MetadataRecord(
        kind=ALBUM,
        title=data.get('name') or '',
        subtitle=_artist_names(data),
        release_year=derive_release_year(data.get('release_date')),
        image_url=_first_image_url(data.get('images')),
        canonical_url=_canonical_url(data, ALBUM, resource_id),
    )


def map_playlist(data: Dict[str, Any], resource_id: str) -> MetadataRecord:
    owner = _section(data, 'owner')
    return MetadataRecord(
        kind=PLAYLIST,
        title=data.get('name') or '',
        subtitle=_first_present(owner.get('display_name'), owner.get('id'), default='unknown curator'),
        image_url=_first_image_url(data.get('images')),
        canonical_url=_canonical_url(data, PLAYLIST, resource_id),
    )


def map_artist(data: Dict[str, Any], resource_id: str) -> MetadataRecord:
    genres = data.get('genres')
    if isinstance(genres, list) and genres:
        subtitle = ', '.join(genres[:3])
    else:
        subtitle = 'artist'
    return MetadataRecord(
        kind=ARTIST,
        title=data.get('name') or '',
        subtitle=subtitle,
        image_url=_first_image_url(data.get('images')),
        canonical_url=_canonical_url(data, ARTIST, resource_id),
    )


def map_show(data: Dict[str, Any], resource_id: str) -> MetadataRecord:
    return MetadataRecord(
        kind=SHOW,
        title=data.get('name') or '',
        subtitle=_first_present(data.get('publisher'), default='unknown publisher'),
        image_url=_first_image_url(data.get('images')),
        canonical_url=_canonical_url(data, SHOW, resource_id),
    )


def map_episode(data: Dict[str, Any], resource_id: str) -> MetadataRecord:
    show = _section(data, 'show')
    release_date = _first_present(data.get('release_date'), data.get('release_date_time'))
    return MetadataRecord(
        kind=EPISODE,
        title=data.get('name') or '',
        subtitle=_first_present(show.get('name'), default='podcast'),
        release_year=derive_release_year(release_date),
        image_url=_first_image_url(data.get('images')) or _first_image_url(show.get('images')),
        canonical_url=_canonical_url(data, EPISODE, resource_id),
    )


METADATA_MAPPERS: Dict[str, Callable[[Dict[str, Any], str], MetadataRecord]] = {
    TRACK: map_track,
    ALBUM: map_album,
    PLAYLIST: map_playlist,
    ARTIST: map_artist,
    SHOW: map_show,
    EPISODE: map_episode,
}


def map_metadata(kind: str, data: Dict[str, Any], resource_id: str) -> Optional[MetadataRecord]:
    """Map a raw Web API object to a MetadataRecord, or None for an unknown kind."""
    mapper = METADATA_MAPPERS.get(kind)
    if mapper is None or not isinstance(data, dict):
        return None
    return mapper(data, resource_id)


class SpotifyMetadataProvider:
    """Spotify Web API metadata lookups authorized with client-credentials tokens."""

    def __init__(self, token_manager: SpotifyTokenManager, timeout: float = 10.0):
        """Initialize Spotify metadata provider.
        
        Args:
            token_manager: Supplies and invalidates bearer tokens
            timeout: Timeout for each API request in seconds
        """
        self.token_manager = token_manager
        self._timeout = timeout

    def _get(self, endpoint: str, token: str) -> requests.Response:
        return requests.get(
            endpoint,
            headers={'Authorization': f'Bearer {token}'},
            timeout=self._timeout,
        )

    def fetch(self, kind: str, resource_id: str) -> Optional[MetadataRecord]:
        """Look up a resource and map it to a MetadataRecord.
        
        A 401 answer invalidates the cached token and the request is retried once
        with a fresh token.
        
        Returns:
            The metadata record, or None when credentials are missing or the API refused
        """
        token = self.token_manager.get_token()
        if not token:
            logger.warning("Spotify credentials missing or token unavailable")
            return None

        endpoint = endpoint_for(kind, resource_id)
        if endpoint is None:
            return None

        response = self._get(endpoint, token)

        if response.status_code == 401:
            logger.warning(f"Spotify rejected access token for {kind} {resource_id}, refreshing")
            self.token_manager.invalidate()
            retry_token = self.token_manager.get_token()
            if not retry_token:
                return None
            response = self._get(endpoint, retry_token)

        if not response.ok:
            logger.warning(f"Spotify API request failed: {response.status_code} - {response.text}")
            return None

        return map_metadata(kind, response.json(), resource_id)
