from typing import List, Optional
from dataclasses import dataclass, field
import logging

from spotibot.application.formatting import (
    format_caption, format_error_notice, format_sender_name, format_unavailable_notice,
)
from spotibot.crosscutting.logging import CorrelationContext, log_error, log_with_fields
from spotibot.crosscutting.metrics import MetricsCollector
from spotibot.domain.classification import classify_url
from spotibot.domain.entities import InboundPost, MetadataRecord, ResolvedEntity
from spotibot.domain.errors import DeliveryFailed
from spotibot.domain.links import extract_links, is_short_link, parse_url
from spotibot.domain.ports import ChatNotifier, LinkResolver, MetadataProvider


logger = logging.getLogger(__name__)


PREVIEW = "preview"
FALLBACK = "fallback"
ERROR = "error"
SKIPPED = "skipped"

IGNORED_BOT_SENDER = "bot_sender"
IGNORED_NO_LINKS = "no_links"


@dataclass
class LinkOutcome:
    """How a single candidate link ended."""
    
    link: str
    status: str
    entity: Optional[ResolvedEntity] = None
    delivered: bool = True


@dataclass
class EventResult:
    """Result of processing one inbound post."""
    
    links: List[str] = field(default_factory=list)
    outcomes: List[LinkOutcome] = field(default_factory=list)
    ignored_reason: Optional[str] = None

    @property
    def ignored(self) -> bool:
        return self.ignored_reason is not None


class LinkPreviewPipeline:
    """Turns Spotify links found in a chat post into preview replies.
    
    Links are handled one at a time in discovery order. A failure on one link is
    reported to the chat as a fallback notice and never stops the remaining links.
    """
    
    def __init__(self,
                 metadata_provider: MetadataProvider,
                 notifier: ChatNotifier,
                 link_resolver: LinkResolver,
                 metrics: Optional[MetricsCollector] = None):
        """Initialize link preview pipeline.
        
        Args:
            metadata_provider: Looks up catalog metadata for classified links
            notifier: Delivers replies to the originating chat
            link_resolver: Expands short links
            metrics: Optional counters for processed events and links
        """
        self.metadata_provider = metadata_provider
        self.notifier = notifier
        self.link_resolver = link_resolver
        self.metrics = metrics

    def _count(self, name: str, amount: int = 1) -> None:
        if self.metrics is not None:
            self.metrics.increment(name, amount)

    def handle_post(self, post: InboundPost) -> EventResult:
        """Process every distinct link of a post and reply for each one.
        
        Args:
            post: Normalized chat message or channel post
            
        Returns:
            EventResult listing detected links and the outcome of each
        """
        if post.from_bot:
            logger.debug("Ignoring message from bot sender")
            self._count('events_ignored')
            return EventResult(ignored_reason=IGNORED_BOT_SENDER)

        links = extract_links(post.text, post.entities, post.caption, post.caption_entities)
        if not links:
            self._count('events_ignored')
            return EventResult(ignored_reason=IGNORED_NO_LINKS)

        self._count('links_detected', len(links))
        announcer = format_sender_name(post.sender)
        result = EventResult(links=links)

        with CorrelationContext(chat_id=post.chat_id, message_id=post.message_id):
            log_with_fields(logger, 'INFO', 'Spotify links detected', link_count=len(links))
            for link in links:
                with CorrelationContext(link=link):
                    result.outcomes.append(self._process_link(post, link, announcer))

        return result

    def normalize_link(self, link: str) -> Optional[str]:
        """Return the long-form URL for a candidate link.
        
        Short links are expanded through the resolver; None means the link
        could not be parsed or expanded and must be skipped.
        """
        if parse_url(link) is None:
            return None
        if is_short_link(link):
            return self.link_resolver.resolve(link)
        return link

    def _process_link(self, post: InboundPost, link: str, announcer: str) -> LinkOutcome:
        try:
            normalized = self.normalize_link(link)
            if not normalized:
                logger.info(f"Skipping link that could not be normalized: {link}")
                self._count('links_skipped')
                return LinkOutcome(link=link, status=SKIPPED)

            entity = classify_url(normalized)
            if entity is None:
                logger.info(f"Skipping link without a recognized resource: {normalized}")
                self._count('links_skipped')
                return LinkOutcome(link=link, status=SKIPPED)

            metadata = self.metadata_provider.fetch(entity.kind, entity.id)
            if metadata is None:
                delivered = self._send_notice(post, format_unavailable_notice(announcer))
                self._count('fallbacks_sent')
                return LinkOutcome(link=link, status=FALLBACK, entity=entity, delivered=delivered)

            self._send_preview(post, metadata, announcer)
            self._count('previews_sent')
            return LinkOutcome(link=link, status=PREVIEW, entity=entity)

        except Exception as e:
            log_error(logger, 'Failed to handle Spotify link', e, link=link)
            self._count('errors')
            if isinstance(e, DeliveryFailed):
                self._count('delivery_failures')
            delivered = self._send_notice(post, format_error_notice(announcer))
            return LinkOutcome(link=link, status=ERROR, delivered=delivered)

    def _send_preview(self, post: InboundPost, metadata: MetadataRecord, announcer: str) -> None:
        caption = format_caption(metadata, announcer)
        if metadata.image_url:
            self.notifier.send_photo(post.chat_id, metadata.image_url, caption, post.message_id)
        else:
            self.notifier.send_message(post.chat_id, f"{caption}\n{metadata.canonical_url}", post.message_id)

    def _send_notice(self, post: InboundPost, text: str) -> bool:
        try:
            self.notifier.send_message(post.chat_id, text, post.message_id)
            return True
        except DeliveryFailed as e:
            log_error(logger, 'Failed to deliver fallback notice', e, method=e.method, status=e.status)
            self._count('delivery_failures')
            return False
        except Exception as e:
            log_error(logger, 'Unexpected error while sending notice', e)
            return False
