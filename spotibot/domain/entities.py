from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union


TRACK = "track"
ALBUM = "album"
PLAYLIST = "playlist"
ARTIST = "artist"
SHOW = "show"
EPISODE = "episode"

RESOURCE_KINDS = (TRACK, ALBUM, PLAYLIST, ARTIST, SHOW, EPISODE)

ChatId = Union[int, str]


@dataclass(frozen=True)
class Sender:
    """Author of an inbound chat message."""

    id: Optional[int] = None
    is_bot: bool = False
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


@dataclass(frozen=True)
class Annotation:
    """Rich-text annotation attached to message text or caption.

    Offsets and lengths are expressed in UTF-16 code units, like the chat platform sends them.
    """

    type: str
    offset: int
    length: int
    url: Optional[str] = None


@dataclass(frozen=True)
class InboundPost:
    """A chat message or channel post normalized into a single shape."""

    message_id: int
    chat_id: ChatId
    chat_type: str = "private"
    sender: Optional[Sender] = None
    text: Optional[str] = None
    caption: Optional[str] = None
    entities: Tuple[Annotation, ...] = ()
    caption_entities: Tuple[Annotation, ...] = ()

    @property
    def from_bot(self) -> bool:
        return bool(self.sender and self.sender.is_bot)


@dataclass(frozen=True)
class ResolvedEntity:
    """A catalog resource identified by kind and provider id."""

    kind: str
    id: str


@dataclass(frozen=True)
class MetadataRecord:
    """Uniform preview data for any resource kind.

    The meaning of ``subtitle`` depends on ``kind``: performers for tracks and albums,
    curator for playlists, genres for artists, publisher for shows and the parent
    show for episodes.
    """

    kind: str
    title: str
    subtitle: str
    canonical_url: str
    release_year: Optional[str] = None
    image_url: Optional[str] = None
