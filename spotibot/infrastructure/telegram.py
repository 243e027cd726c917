"""Telegram Bot API dispatcher.

Replies are posted as a reply to the message that carried the link.
"""

import logging
from typing import Any, Dict

import requests

from spotibot.domain.entities import ChatId
from spotibot.domain.errors import DeliveryFailed

logger = logging.getLogger(__name__)


API_BASE = 'https://api.telegram.org'


class TelegramNotifier:
    """Sends replies through the Telegram Bot API."""

    def __init__(self, bot_token: str, timeout: float = 10.0):
        self._bot_token = bot_token
        self._timeout = timeout

    def _endpoint(self, method: str) -> str:
        return f"{API_BASE}/bot{self._bot_token}/{method}"

    def call(self, method: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST a Bot API method and return its decoded JSON answer.

        Raises:
            DeliveryFailed: the request failed or Telegram answered with a non-2xx status
        """
        try:
            response = requests.post(self._endpoint(method), json=payload, timeout=self._timeout)
        except requests.RequestException as e:
            raise DeliveryFailed(method, message=f"Telegram API {method} failed: {e}") from e

        if not response.ok:
            raise DeliveryFailed(
                method,
                status=response.status_code,
                message=f"Telegram API {method} failed: {response.status_code} {response.text}",
            )

        logger.debug(f"Telegram API {method} delivered")
        try:
            return response.json()
        except ValueError:
            return {}

    def send_photo(self, chat_id: ChatId, photo_url: str, caption: str, reply_to_message_id: int) -> None:
        self.call('sendPhoto', {
            'chat_id': chat_id,
            'photo': photo_url,
            'caption': caption,
            'reply_parameters': {'message_id': reply_to_message_id},
        })

    def send_message(self, chat_id: ChatId, text: str, reply_to_message_id: int) -> None:
        self.call('sendMessage', {
            'chat_id': chat_id,
            'text': text,
            'reply_parameters': {'message_id': reply_to_message_id},
            'disable_web_page_preview': True,
        })
