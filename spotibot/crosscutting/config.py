import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv


DEFAULT_HTTP_TIMEOUT = 10.0
DEFAULT_LOG_LEVEL = 'INFO'


class ConfigError(Exception):
    """Configuration error."""
    pass


@dataclass(frozen=True)
class Settings:
    """Runtime configuration read from the environment."""

    telegram_bot_token: Optional[str] = None
    spotify_client_id: Optional[str] = None
    spotify_client_secret: Optional[str] = None
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL
    commit: str = 'unknown'

    @property
    def has_bot_token(self) -> bool:
        return bool(self.telegram_bot_token)

    @property
    def has_spotify_credentials(self) -> bool:
        return bool(self.spotify_client_id and self.spotify_client_secret)

    def summary(self) -> Dict[str, Any]:
        """Get configuration summary (without sensitive data)."""
        return {
            'telegram_bot_token': self.has_bot_token,
            'spotify_client_id': bool(self.spotify_client_id),
            'spotify_client_secret': bool(self.spotify_client_secret),
            'http_timeout': self.http_timeout,
            'log_level': self.log_level,
            'commit': self.commit,
        }


def _parse_timeout(raw: Optional[str]) -> float:
    if raw is None or raw.strip() == '':
        return DEFAULT_HTTP_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"SPOTIBOT_HTTP_TIMEOUT must be a number, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"SPOTIBOT_HTTP_TIMEOUT must be positive, got {raw!r}")
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from the given mapping, or from os.environ after loading .env."""
    if environ is None:
        load_dotenv()
        environ = os.environ

    return Settings(
        telegram_bot_token=environ.get('TELEGRAM_BOT_TOKEN') or None,
        spotify_client_id=environ.get('SPOTIFY_CLIENT_ID') or None,
        spotify_client_secret=environ.get('SPOTIFY_CLIENT_SECRET') or None,
        http_timeout=_parse_timeout(environ.get('SPOTIBOT_HTTP_TIMEOUT')),
        log_level=(environ.get('SPOTIBOT_LOG_LEVEL') or DEFAULT_LOG_LEVEL).upper(),
        commit=environ.get('GIT_COMMIT', 'unknown'),
    )


# Global instance, created lazily on first use
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get global settings instance."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def setup_config(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Rebuild the global settings, optionally from an explicit mapping."""
    global _settings
    _settings = load_settings(environ)
    return _settings
