from __future__ import annotations

from typing import Optional

from .entities import PLAYLIST, RESOURCE_KINDS, ResolvedEntity
from .links import MAIN_DOMAIN, parse_url


_LOCALE_PREFIX = "intl-"
_EMBED_MARKER = "embed"
_LEGACY_OWNER_SEGMENT = "user"


def path_segments(path: str) -> list[str]:
    return [segment.strip() for segment in path.split("/") if segment.strip()]


def normalize_kind(segment: str) -> Optional[str]:
    if segment in RESOURCE_KINDS:
        return segment
    return None


def classify_url(url: str) -> Optional[ResolvedEntity]:
    """Map a canonical catalog URL to the resource it points at.

    Handles locale prefixes (``/intl-de/track/...``), embeddable views
    (``/embed/track/...``) and the legacy ``/user/<owner>/playlist/<id>`` path.
    Returns None for any other host or path shape.
    """
    parsed = parse_url(url)
    if parsed is None or not parsed.hostname.endswith(MAIN_DOMAIN):
        return None

    segments = path_segments(parsed.path)
    if len(segments) < 2:
        return None

    if segments[0].startswith(_LOCALE_PREFIX) and len(segments) >= 3:
        segments = segments[1:]

    if segments[0] == _EMBED_MARKER:
        segments = segments[1:]

    kind_segment = segments[0]
    id_segment = segments[1] if len(segments) > 1 else None

    if (kind_segment == _LEGACY_OWNER_SEGMENT and len(segments) > 3
            and segments[2] == PLAYLIST):
        kind_segment = PLAYLIST
        id_segment = segments[3]

    if not id_segment:
        return None

    kind = normalize_kind(kind_segment)
    if kind is None:
        return None

    # Drop any query marker left inside the segment
    resource_id = id_segment.split("?")[0]
    return ResolvedEntity(kind=kind, id=resource_id)
