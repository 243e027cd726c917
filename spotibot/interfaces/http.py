import logging
from typing import Optional
from datetime import datetime
from flask import Flask, request, jsonify

from spotibot.application.pipeline import LinkPreviewPipeline
from spotibot.crosscutting.config import Settings, get_settings
from spotibot.crosscutting.logging import log_error, setup_logging
from spotibot.crosscutting.metrics import MetricsCollector, get_metrics_collector
from spotibot.infrastructure.providers.spotify import SpotifyMetadataProvider
from spotibot.infrastructure.providers.spotify_auth import SpotifyTokenManager, TokenCache
from spotibot.infrastructure.shortlinks import ShortLinkResolver
from spotibot.infrastructure.telegram import TelegramNotifier
from spotibot.interfaces.updates import post_from_update


# One cache per process, shared by every server instance
_token_cache = TokenCache()

_ALL_METHODS = ['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS']


def build_pipeline(settings: Settings,
                   metrics: Optional[MetricsCollector] = None,
                   token_cache: Optional[TokenCache] = None) -> LinkPreviewPipeline:
    """Wire the production pipeline from settings."""
    token_manager = SpotifyTokenManager(
        client_id=settings.spotify_client_id,
        client_secret=settings.spotify_client_secret,
        cache=token_cache if token_cache is not None else _token_cache,
        timeout=settings.http_timeout,
    )
    return LinkPreviewPipeline(
        metadata_provider=SpotifyMetadataProvider(token_manager, timeout=settings.http_timeout),
        notifier=TelegramNotifier(settings.telegram_bot_token, timeout=settings.http_timeout),
        link_resolver=ShortLinkResolver(timeout=settings.http_timeout),
        metrics=metrics,
    )


class HTTPServer:
    """HTTP server exposing the Telegram webhook plus health and metrics endpoints."""

    def __init__(self, host: str = 'localhost', port: int = 3000, debug: bool = False,
                 settings: Optional[Settings] = None,
                 pipeline: Optional[LinkPreviewPipeline] = None,
                 metrics: Optional[MetricsCollector] = None):
        """Initialize HTTP server."""
        self.host = host
        self.port = port
        self.debug = debug
        self.settings = settings or get_settings()
        self.metrics = metrics or get_metrics_collector()
        self.app = Flask(__name__)
        self.logger = logging.getLogger(__name__)
        
        # Version info
        self.version = "0.1.0"
        self.commit = self.settings.commit
        
        self._pipeline = pipeline
        
        self._setup_routes()
        self._setup_logging()

    @property
    def pipeline(self) -> LinkPreviewPipeline:
        if self._pipeline is None:
            self._pipeline = build_pipeline(self.settings, metrics=self.metrics)
        return self._pipeline

    def _setup_logging(self) -> None:
        """Setup logging for HTTP server."""
        setup_logging(self.settings.log_level)

    def _setup_routes(self) -> None:
        """Setup Flask routes."""
        
        @self.app.route('/health', methods=['GET'])
        def health_check():
            """Health check endpoint."""
            return jsonify({
                'status': 'healthy',
                'version': self.version,
                'commit': self.commit,
                'timestamp': datetime.now().isoformat()
            }), 200

        @self.app.route('/metrics', methods=['GET'])
        def metrics():
            """Pipeline counters."""
            return jsonify(self.metrics.snapshot()), 200

        @self.app.route('/webhook', methods=_ALL_METHODS)
        def telegram_webhook():
            """Telegram webhook endpoint."""
            if request.method != 'POST':
                return jsonify({'ok': False, 'error': 'Method Not Allowed'}), 405
            
            if not self.settings.has_bot_token:
                self.logger.error("TELEGRAM_BOT_TOKEN is not configured")
                return jsonify({'ok': False, 'error': 'Bot token missing'}), 500
            
            self.handle_update(request.get_json(silent=True))
            return jsonify({'ok': True}), 200

        @self.app.route('/', methods=['GET'])
        def root():
            """Root endpoint with basic info."""
            return jsonify({
                'service': 'Spotibot Webhook',
                'version': self.version,
                'endpoints': {
                    'health': '/health',
                    'metrics': '/metrics',
                    'webhook': '/webhook'
                }
            }), 200

    def handle_update(self, update) -> None:
        """Run one decoded update through the pipeline.
        
        Failures are logged and never turned into an error response, so Telegram
        does not redeliver an update whose links were already answered.
        """
        self.metrics.increment('events_received')
        post = post_from_update(update)
        if post is None:
            self.metrics.increment('events_ignored')
            return
        
        try:
            self.pipeline.handle_post(post)
        except Exception as e:
            log_error(self.logger, 'Failed to process update', e,
                      chat_id=post.chat_id, message_id=post.message_id)

    def run(self) -> None:
        """Run the HTTP server."""
        self.logger.info(f"Starting Spotibot HTTP server on {self.host}:{self.port}")
        self.app.run(
            host=self.host,
            port=self.port,
            debug=self.debug
        )


def create_app(settings: Optional[Settings] = None,
               pipeline: Optional[LinkPreviewPipeline] = None,
               metrics: Optional[MetricsCollector] = None) -> Flask:
    """Create Flask app for WSGI servers and tests."""
    server = HTTPServer(settings=settings, pipeline=pipeline, metrics=metrics)
    return server.app


if __name__ == '__main__':
    server = HTTPServer()
    server.run()
