from __future__ import annotations

from typing import Optional, Protocol

from .entities import ChatId, MetadataRecord


class MetadataProvider(Protocol):
    """Port for looking up catalog metadata of a classified resource.

    Implementations return ``None`` when metadata is unavailable (missing credentials,
    provider errors) instead of raising.
    """

    def fetch(self, kind: str, resource_id: str) -> Optional[MetadataRecord]:
        """Return the metadata record for the given resource, or None."""


class LinkResolver(Protocol):
    """Port for expanding short redirect links."""

    def resolve(self, url: str) -> Optional[str]:
        """Return the long-form URL, the input unchanged, or None on failure."""


class ChatNotifier(Protocol):
    """Port for replying into the chat the event came from."""

    def send_photo(self, chat_id: ChatId, photo_url: str, caption: str, reply_to_message_id: int) -> None:
        """Send an image with a caption as a reply."""

    def send_message(self, chat_id: ChatId, text: str, reply_to_message_id: int) -> None:
        """Send a plain text reply with link previews disabled."""
