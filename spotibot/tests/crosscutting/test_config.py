import os
from unittest.mock import patch

import pytest

from spotibot.crosscutting import config
from spotibot.crosscutting.config import ConfigError, Settings, get_settings, load_settings, setup_config


class TestLoadSettings:
    """Tests for environment-based configuration."""

    def test_defaults(self):
        settings = load_settings({})

        assert settings == Settings()
        assert settings.http_timeout == 10.0
        assert settings.log_level == 'INFO'
        assert not settings.has_bot_token
        assert not settings.has_spotify_credentials

    def test_reads_all_variables(self):
        settings = load_settings({
            'TELEGRAM_BOT_TOKEN': '123:abc',
            'SPOTIFY_CLIENT_ID': 'id',
            'SPOTIFY_CLIENT_SECRET': 'secret',
            'SPOTIBOT_HTTP_TIMEOUT': '2.5',
            'SPOTIBOT_LOG_LEVEL': 'debug',
            'GIT_COMMIT': 'abc1234',
        })

        assert settings.has_bot_token
        assert settings.has_spotify_credentials
        assert settings.http_timeout == 2.5
        assert settings.log_level == 'DEBUG'
        assert settings.commit == 'abc1234'

    def test_empty_values_count_as_missing(self):
        settings = load_settings({'TELEGRAM_BOT_TOKEN': '', 'SPOTIFY_CLIENT_ID': 'id', 'SPOTIFY_CLIENT_SECRET': ''})

        assert settings.telegram_bot_token is None
        assert not settings.has_spotify_credentials

    @pytest.mark.parametrize('raw', ['soon', '0', '-1'])
    def test_invalid_timeout(self, raw):
        with pytest.raises(ConfigError):
            load_settings({'SPOTIBOT_HTTP_TIMEOUT': raw})

    def test_summary_hides_secrets(self):
        settings = Settings(telegram_bot_token='123:abc', spotify_client_id='id', spotify_client_secret='secret')

        summary = settings.summary()

        assert summary['telegram_bot_token'] is True
        assert summary['spotify_client_secret'] is True
        assert 'secret' not in summary.values()
        assert '123:abc' not in summary.values()

    def test_process_environment_is_used_by_default(self):
        os.environ['TELEGRAM_BOT_TOKEN'] = '999:env'
        with patch('spotibot.crosscutting.config.load_dotenv') as mock_load_dotenv:
            settings = load_settings()

        mock_load_dotenv.assert_called_once()
        assert settings.telegram_bot_token == '999:env'


def test_setup_config_replaces_global_settings():
    try:
        settings = setup_config({'SPOTIFY_CLIENT_ID': 'id', 'SPOTIFY_CLIENT_SECRET': 'secret'})

        assert get_settings() is settings
        assert get_settings().has_spotify_credentials
    finally:
        config._settings = None
