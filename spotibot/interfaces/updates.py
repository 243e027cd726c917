"""Adapter from raw Telegram update payloads to InboundPost."""

from __future__ import annotations

import logging
from typing import Any, Optional, Tuple

from spotibot.domain.entities import Annotation, InboundPost, Sender

logger = logging.getLogger(__name__)


def _annotations(raw: Any) -> Tuple[Annotation, ...]:
    if not isinstance(raw, list):
        return ()

    annotations = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        try:
            annotations.append(Annotation(
                type=str(item['type']),
                offset=int(item['offset']),
                length=int(item['length']),
                url=item.get('url'),
            ))
        except (KeyError, TypeError, ValueError):
            logger.debug(f"Skipping malformed entity: {item!r}")
    return tuple(annotations)


def _sender(raw: Any) -> Optional[Sender]:
    if not isinstance(raw, dict):
        return None
    return Sender(
        id=raw.get('id'),
        is_bot=bool(raw.get('is_bot', False)),
        username=raw.get('username'),
        first_name=raw.get('first_name'),
        last_name=raw.get('last_name'),
    )


def _text(raw: Any) -> Optional[str]:
    return raw if isinstance(raw, str) else None


def post_from_update(update: Any) -> Optional[InboundPost]:
    """Extract the message or channel post carried by an update.

    Returns None when the update has neither, or when the message lacks its id or chat.
    """
    if not isinstance(update, dict):
        return None

    message = update.get('message') or update.get('channel_post')
    if not isinstance(message, dict):
        return None

    chat = message.get('chat')
    if 'message_id' not in message or not isinstance(chat, dict) or 'id' not in chat:
        logger.warning("Update carries a message without message_id or chat id")
        return None

    return InboundPost(
        message_id=message['message_id'],
        chat_id=chat['id'],
        chat_type=chat.get('type', 'private'),
        sender=_sender(message.get('from')),
        text=_text(message.get('text')),
        caption=_text(message.get('caption')),
        entities=_annotations(message.get('entities')),
        caption_entities=_annotations(message.get('caption_entities')),
    )
