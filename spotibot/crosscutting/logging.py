import json
import logging
import re
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from contextvars import ContextVar

# Context variables for correlation
chat_id_var: ContextVar[Optional[str]] = ContextVar('chat_id', default=None)
message_id_var: ContextVar[Optional[str]] = ContextVar('message_id', default=None)
link_var: ContextVar[Optional[str]] = ContextVar('link', default=None)


class SecretMasker:
    """Masks sensitive information in log messages."""
    
    def __init__(self):
        """Initialize secret masker with patterns."""
        # Each pattern captures a prefix to keep and the secret to mask
        self.patterns = [
            # Bot tokens embedded in Bot API URLs
            r'(/bot)(\d+:[A-Za-z0-9_\-]{10,})',
            # Authorization header values
            r'(?i)(bearer |basic )([A-Za-z0-9\-_\.=+/]{10,})',
            # Tokens, keys and secrets written as key: value or key=value
            r'(?i)((?:access_token|bot_token|client_secret|client_id|token|secret|key)["\']?[\s]*[:=][\s]*["\']?)([A-Za-z0-9\-_\.:]{10,})',
        ]
        
        self.compiled_patterns = [re.compile(pattern) for pattern in self.patterns]
    
    @staticmethod
    def _mask(secret: str) -> str:
        # Keep first 4 and last 4 characters, mask the rest
        if len(secret) > 8:
            return secret[:4] + '*' * (len(secret) - 8) + secret[-4:]
        return '*' * len(secret)
    
    def mask_secrets(self, text: str) -> str:
        """Mask sensitive information in text."""
        if not text:
            return text
        
        masked_text = text
        for pattern in self.compiled_patterns:
            masked_text = pattern.sub(
                lambda match: match.group(1) + self._mask(match.group(2)),
                masked_text,
            )
        return masked_text
    
    def mask_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Mask sensitive information in dictionary."""
        if not data:
            return data
        
        masked_data = {}
        
        for key, value in data.items():
            if isinstance(value, str):
                masked_data[key] = self.mask_secrets(value)
            elif isinstance(value, dict):
                masked_data[key] = self.mask_dict(value)
            elif isinstance(value, list):
                masked_data[key] = [self.mask_dict(item) if isinstance(item, dict) 
                                  else self.mask_secrets(item) if isinstance(item, str)
                                  else item for item in value]
            else:
                masked_data[key] = value
        
        return masked_data


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""
    
    def __init__(self):
        """Initialize formatter."""
        super().__init__()
        self.masker = SecretMasker()
    
    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            'ts': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': self.masker.mask_secrets(record.getMessage()),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }
        
        # Add correlation fields if available
        chat_id = chat_id_var.get()
        message_id = message_id_var.get()
        link = link_var.get()
        if chat_id:
            log_entry['chatId'] = chat_id
        if message_id:
            log_entry['messageId'] = message_id
        if link:
            log_entry['link'] = link
        
        if record.exc_info:
            log_entry['exception'] = self.masker.mask_secrets(self.formatException(record.exc_info))
        
        if getattr(record, 'fields', None):
            log_entry['fields'] = self.masker.mask_dict(record.fields)
        
        return json.dumps(log_entry, ensure_ascii=False, default=str)


class CorrelationContext:
    """Context manager binding chat, message and link ids to log records."""
    
    def __init__(self, chat_id: Optional[Any] = None,
                 message_id: Optional[Any] = None,
                 link: Optional[str] = None):
        """Initialize correlation context."""
        self._values = {
            chat_id_var: None if chat_id is None else str(chat_id),
            message_id_var: None if message_id is None else str(message_id),
            link_var: link,
        }
        self._tokens = []
    
    def __enter__(self):
        """Set correlation context."""
        for var, value in self._values.items():
            if value is not None:
                self._tokens.append((var, var.set(value)))
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        """Restore correlation context."""
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens = []


def setup_logging(level: str = 'INFO', log_file: Optional[str] = None) -> logging.Logger:
    """Setup structured logging on the package logger."""
    logger = logging.getLogger('spotibot')
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    
    # Clear existing handlers
    logger.handlers.clear()
    
    formatter = StructuredFormatter()
    
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
    
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    
    return logger


def log_with_fields(logger: logging.Logger, level: str, message: str, 
                   fields: Optional[Dict[str, Any]] = None, exc_info: Any = False, **kwargs):
    """Log message with additional fields."""
    merged = dict(fields or {})
    merged.update(kwargs)
    logger.log(getattr(logging, level.upper()), message,
               extra={'fields': merged} if merged else None, exc_info=exc_info)


def log_error(logger: logging.Logger, message: str, error: Exception, **kwargs):
    """Log error with exception details."""
    log_with_fields(logger, 'ERROR', message, {
        'error_type': type(error).__name__,
        'error_message': str(error),
        **kwargs
    }, exc_info=error)
