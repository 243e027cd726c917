import threading
from dataclasses import dataclass, asdict, fields
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class PipelineMetrics:
    """Counters for webhook events and the links found in them."""
    events_received: int = 0
    events_ignored: int = 0
    links_detected: int = 0
    links_skipped: int = 0
    previews_sent: int = 0
    fallbacks_sent: int = 0
    errors: int = 0
    delivery_failures: int = 0

    @property
    def preview_rate(self) -> float:
        """Share of detected links that ended in a rich preview."""
        if self.links_detected == 0:
            return 0.0
        return self.previews_sent / self.links_detected


class MetricsCollector:
    """Thread-safe collector for pipeline counters."""

    def __init__(self):
        """Initialize metrics collector."""
        self._lock = threading.Lock()
        self._metrics = PipelineMetrics()
        self._started_at = datetime.now()

    def increment(self, name: str, amount: int = 1) -> None:
        """Increase a counter by ``amount``."""
        if not hasattr(self._metrics, name):
            raise KeyError(f"Unknown metric: {name}")
        with self._lock:
            setattr(self._metrics, name, getattr(self._metrics, name) + amount)

    def snapshot(self) -> Dict[str, Any]:
        """Return a copy of all counters plus derived values."""
        with self._lock:
            data = asdict(self._metrics)
            data['preview_rate'] = self._metrics.preview_rate
        data['started_at'] = self._started_at.isoformat()
        return data

    def reset(self) -> None:
        """Zero every counter."""
        with self._lock:
            for field in fields(self._metrics):
                setattr(self._metrics, field.name, 0)
            self._started_at = datetime.now()


# Global instance
_collector: Optional[MetricsCollector] = None


def get_metrics_collector() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _collector
    if _collector is None:
        _collector = MetricsCollector()
    return _collector
