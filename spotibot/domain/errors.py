from typing import Optional


class TemporaryFailure(Exception):
    """Transient provider or network failure. Retrying may succeed."""


class DeliveryFailed(TemporaryFailure):
    """The chat platform refused or never received an outbound notification."""

    def __init__(self, method: str, status: Optional[int] = None, message: str = "Delivery failed") -> None:
        super().__init__(message)
        self.method = method
        self.status = status
