import json
import logging

from spotibot.crosscutting.logging import (
    CorrelationContext, SecretMasker, StructuredFormatter,
    chat_id_var, link_var, log_error, log_with_fields, setup_logging,
)


class TestSecretMasker:
    """Tests for secret masking functionality."""

    def setup_method(self):
        """Set up test fixtures."""
        self.masker = SecretMasker()

    def test_mask_bot_token_in_url(self):
        text = "POST https://api.telegram.org/bot123456:ABCdefGHIjklMNO/sendMessage failed"
        masked = self.masker.mask_secrets(text)
        assert "123456:ABCdefGHIjklMNO" not in masked
        assert "/bot1234" in masked
        assert masked.endswith("lMNO/sendMessage failed")

    def test_mask_bearer_token(self):
        text = "Authorization: Bearer BQDabcdefghijklmnop"
        masked = self.masker.mask_secrets(text)
        assert masked == "Authorization: Bearer BQDa***********mnop"

    def test_mask_client_secret(self):
        text = "client_secret: my_super_secret_key_12345"
        masked = self.masker.mask_secrets(text)
        assert masked == "client_secret: my_s*****************2345"

    def test_short_values_are_left_alone(self):
        text = "token: abc"
        assert self.masker.mask_secrets(text) == text

    def test_plain_text_untouched(self):
        text = "Spotify links detected in chat -100"
        assert self.masker.mask_secrets(text) == text

    def test_mask_dict_recurses(self):
        data = {
            'url': 'https://api.telegram.org/bot123456:ABCdefGHIjklMNO/sendPhoto',
            'nested': {'header': 'Bearer BQDabcdefghijklmnop'},
            'items': ['token=abcdefghijklmnop', 3],
            'count': 2,
        }
        masked = self.masker.mask_dict(data)
        assert '123456:ABCdefGHIjklMNO' not in masked['url']
        assert 'BQDabcdefghijklmnop' not in masked['nested']['header']
        assert masked['items'][0] == 'token=abcd********mnop'
        assert masked['items'][1] == 3
        assert masked['count'] == 2


class TestStructuredFormatter:
    """Tests for JSON log formatting."""

    def _record(self, message, **extra):
        record = logging.LogRecord('spotibot.test', logging.INFO, __file__, 10, message, (), None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_format_basic_fields(self):
        entry = json.loads(StructuredFormatter().format(self._record('hello')))
        assert entry['level'] == 'INFO'
        assert entry['logger'] == 'spotibot.test'
        assert entry['message'] == 'hello'
        assert entry['ts'].endswith('Z')
        assert 'chatId' not in entry

    def test_format_includes_correlation_and_fields(self):
        with CorrelationContext(chat_id=-100, message_id=42, link='https://open.spotify.com/track/a'):
            entry = json.loads(StructuredFormatter().format(self._record('x', fields={'link_count': 2})))
        assert entry['chatId'] == '-100'
        assert entry['messageId'] == '42'
        assert entry['link'] == 'https://open.spotify.com/track/a'
        assert entry['fields'] == {'link_count': 2}

    def test_format_masks_message(self):
        entry = json.loads(StructuredFormatter().format(
            self._record('calling https://api.telegram.org/bot123456:ABCdefGHIjklMNO/sendPhoto')
        ))
        assert '123456:ABCdefGHIjklMNO' not in entry['message']


class TestCorrelationContext:
    """Tests for correlation context management."""

    def test_values_are_restored(self):
        with CorrelationContext(chat_id=1):
            with CorrelationContext(link='l1'):
                assert chat_id_var.get() == '1'
                assert link_var.get() == 'l1'
            assert link_var.get() is None
            assert chat_id_var.get() == '1'
        assert chat_id_var.get() is None

    def test_restored_after_exception(self):
        try:
            with CorrelationContext(chat_id=5):
                raise ValueError('x')
        except ValueError:
            pass
        assert chat_id_var.get() is None


def test_setup_logging_installs_structured_handler(tmp_path):
    log_file = tmp_path / 'spotibot.log'
    logger = setup_logging('debug', log_file=str(log_file))
    try:
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2
        assert all(isinstance(h.formatter, StructuredFormatter) for h in logger.handlers)
    finally:
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()


def test_log_with_fields_and_log_error(caplog):
    logger = logging.getLogger('spotibot.test.fields')
    with caplog.at_level(logging.INFO, logger='spotibot.test.fields'):
        log_with_fields(logger, 'INFO', 'links', {'a': 1}, b=2)
        try:
            raise RuntimeError('boom')
        except RuntimeError as e:
            log_error(logger, 'failed', e, link='x')

    info, error = caplog.records[-2:]
    assert info.fields == {'a': 1, 'b': 2}
    assert error.levelname == 'ERROR'
    assert error.fields['error_type'] == 'RuntimeError'
    assert error.fields['link'] == 'x'
    assert error.exc_info is not None
