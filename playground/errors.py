# playground/errors.py
"""
Exception types raised by the playground.

- PlaygroundError: base for everything below
- StoreError and friends: embedded record store failures
- KanthorError: non-2xx reply from the delivery platform API
- PortalError: non-2xx reply from the provisioning portal
- WebhookVerificationError: inbound delivery failed signature checks
- DeadlineExceeded: the bootstrap budget ran out
"""
from typing import Optional


class PlaygroundError(Exception):
    """Base exception for playground errors."""


class StoreError(PlaygroundError):
    """Embedded record store failure."""


class RecordNotFound(StoreError, KeyError):
    def __init__(self, key: str):
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"not found: {self.key}"


class RecordDecodeError(StoreError):
    def __init__(self, key: str, reason: str):
        super().__init__(f"could not decode {key}: {reason}")
        self.key = key


class RecordEncodeError(StoreError):
    def __init__(self, key: str, reason: str):
        super().__init__(f"could not encode {key}: {reason}")
        self.key = key


class _HTTPError(PlaygroundError):
    service = "remote"

    def __init__(self, status_code: int, body: str = "", url: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        self.url = url
        super().__init__(f"{self.service} API error {status_code}: {body}")


class KanthorError(_HTTPError):
    service = "Kanthor"


class PortalError(_HTTPError):
    service = "Portal"


class WebhookVerificationError(PlaygroundError):
    """Inbound webhook did not pass signature verification."""


class DeadlineExceeded(PlaygroundError):
    def __init__(self, budget: Optional[float] = None):
        if budget is None:
            super().__init__("context deadline exceeded")
        else:
            super().__init__(f"context deadline exceeded ({budget:g}s)")
        self.budget = budget
