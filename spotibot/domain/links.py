from __future__ import annotations

import re
from typing import Iterable, List, Optional
from urllib.parse import SplitResult, urlsplit

from .entities import Annotation


MAIN_DOMAIN = "spotify.com"
SHORT_LINK_HOST = "spotify.link"

_LINK_PATTERN = re.compile(
    r"https?://(?:[a-z]+\.)?spotify\.com/\S+|https?://spotify\.link/\S+",
    re.IGNORECASE,
)
_TRAILING_PUNCTUATION = ">)].,!?"

TEXT_LINK = "text_link"
PLAIN_URL = "url"


def parse_url(raw: str) -> Optional[SplitResult]:
    """Split an absolute URL, returning None when it has no scheme or host."""
    try:
        parsed = urlsplit(raw)
        hostname = parsed.hostname
    except ValueError:
        return None
    if not parsed.scheme or not hostname:
        return None
    return parsed


def strip_trailing_punctuation(value: str) -> str:
    return value.rstrip(_TRAILING_PUNCTUATION)


def sanitize_candidate(raw: str) -> Optional[str]:
    """Trim whitespace and strip trailing punctuation picked up from prose."""
    cleaned = strip_trailing_punctuation(raw.strip())
    return cleaned or None


def is_target_domain(raw: str) -> bool:
    parsed = parse_url(raw)
    if parsed is None:
        return False
    return parsed.hostname.endswith(MAIN_DOMAIN) or parsed.hostname == SHORT_LINK_HOST


def is_short_link(raw: str) -> bool:
    parsed = parse_url(raw)
    return parsed is not None and parsed.hostname == SHORT_LINK_HOST


def utf16_slice(text: str, offset: int, length: int) -> str:
    """Cut ``text`` using offsets counted in UTF-16 code units."""
    encoded = text.encode("utf-16-le")
    return encoded[offset * 2:(offset + length) * 2].decode("utf-16-le", errors="ignore")


def collect_links(text: Optional[str], annotations: Optional[Iterable[Annotation]] = None) -> List[str]:
    """Collect candidate links from one text body and its annotations, in discovery order.

    Linked-text annotations contribute their target URL verbatim; plain URL
    annotations are cut out of the text, sanitized and re-checked against the domain.
    The result may repeat a link; callers deduplicate.
    """
    links: List[str] = []
    if not text:
        return links

    for match in _LINK_PATTERN.finditer(text):
        candidate = sanitize_candidate(match.group(0))
        if candidate:
            links.append(candidate)

    for annotation in annotations or ():
        if annotation.type == TEXT_LINK and annotation.url and is_target_domain(annotation.url):
            links.append(annotation.url)

        if annotation.type == PLAIN_URL:
            segment = utf16_slice(text, annotation.offset, annotation.length)
            candidate = sanitize_candidate(segment)
            if candidate and is_target_domain(candidate):
                links.append(candidate)

    return links


def extract_links(text: Optional[str], entities: Optional[Iterable[Annotation]],
                  caption: Optional[str], caption_entities: Optional[Iterable[Annotation]]) -> List[str]:
    """Return the distinct candidate links of a message body and its caption.

    Each link appears once, in the order it was first discovered.
    """
    found = collect_links(text, entities) + collect_links(caption, caption_entities)
    return list(dict.fromkeys(found))
