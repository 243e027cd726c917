from __future__ import annotations

from typing import Optional

from spotibot.domain.entities import (
    ALBUM, ARTIST, EPISODE, PLAYLIST, SHOW, TRACK, MetadataRecord, Sender,
)


DEFAULT_ANNOUNCER = "Someone"


def format_sender_name(sender: Optional[Sender]) -> str:
    """Return ``@username`` when the sender has one, else their full name."""
    if sender is None:
        return DEFAULT_ANNOUNCER

    if sender.username:
        return sender.username if sender.username.startswith("@") else f"@{sender.username}"

    full_name = f"{sender.first_name or ''} {sender.last_name or ''}".strip()
    return full_name or DEFAULT_ANNOUNCER


def _year_suffix(metadata: MetadataRecord) -> str:
    return f" ({metadata.release_year})" if metadata.release_year else ""


def format_caption(metadata: MetadataRecord, announcer: str) -> str:
    who = announcer or DEFAULT_ANNOUNCER
    kind = metadata.kind

    if kind in (TRACK, ALBUM):
        return f"{who} wants you to listen to {metadata.title} by {metadata.subtitle}{_year_suffix(metadata)}!"
    if kind == PLAYLIST:
        return f"{who} wants you to explore the playlist {metadata.title} by {metadata.subtitle}!"
    if kind == ARTIST:
        genres = f" ({metadata.subtitle})" if metadata.subtitle else ""
        return f"{who} wants you to check out {metadata.title}{genres}!"
    if kind == SHOW:
        return f"{who} wants you to listen to the podcast {metadata.title} by {metadata.subtitle}!"
    if kind == EPISODE:
        return f"{who} wants you to hear the episode {metadata.title} from {metadata.subtitle}{_year_suffix(metadata)}!"
    return f"{who} wants you to open {metadata.title}!"


def format_unavailable_notice(announcer: str) -> str:
    return f"{announcer or DEFAULT_ANNOUNCER} shared a Spotify link but I could not load its details."


def format_error_notice(announcer: str) -> str:
    return f"{announcer or DEFAULT_ANNOUNCER} shared a Spotify link but something went wrong while expanding it."
