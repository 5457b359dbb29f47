import base64
import hmac
import hashlib
import time
from typing import Mapping, Optional

from .errors import WebhookVerificationError

HEADER_WEBHOOK_ID = "Webhook-Id"
HEADER_WEBHOOK_TIMESTAMP = "Webhook-Timestamp"
HEADER_WEBHOOK_SIGNATURE = "Webhook-Signature"

SIGNATURE_VERSION = "v1"
# Clock skew tolerance in seconds
TOLERANCE = 300

def sign(secret: str, msg_id: str, timestamp: int, payload: bytes) -> str:
    """
    Sign a delivery the way the platform does.

    secret: Endpoint secret key
    msg_id: Value of the Webhook-Id header
    timestamp: Unix seconds, value of the Webhook-Timestamp header
    payload: Raw request body (bytes)
    """
    signed = f"{msg_id}.{timestamp}.".encode() + payload
    mac = hmac.new(secret.encode(), msg=signed, digestmod=hashlib.sha256)
    return f"{SIGNATURE_VERSION},{base64.b64encode(mac.digest()).decode()}"

def generate_headers(secret: str, msg_id: str, payload: bytes, timestamp: Optional[int] = None) -> dict:
    if timestamp is None:
        timestamp = int(time.time())
    return {
        HEADER_WEBHOOK_ID: msg_id,
        HEADER_WEBHOOK_TIMESTAMP: str(timestamp),
        HEADER_WEBHOOK_SIGNATURE: sign(secret, msg_id, timestamp, payload),
    }

def verify_signature(secret: str, payload: bytes, headers: Mapping[str, str],
                     now: Optional[float] = None, tolerance: int = TOLERANCE) -> None:
    """Raise WebhookVerificationError unless one of the signatures in the headers matches."""
    lowered = {k.lower(): v for k, v in headers.items()}
    msg_id = lowered.get(HEADER_WEBHOOK_ID.lower())
    ts = lowered.get(HEADER_WEBHOOK_TIMESTAMP.lower())
    signatures = lowered.get(HEADER_WEBHOOK_SIGNATURE.lower())
    if not secret:
        raise WebhookVerificationError("missing secret")
    if not msg_id or not ts or not signatures:
        raise WebhookVerificationError("missing required webhook headers")

    try:
        timestamp = int(ts)
    except ValueError:
        raise WebhookVerificationError("invalid webhook timestamp") from None
    current = time.time() if now is None else now
    if abs(current - timestamp) > tolerance:
        raise WebhookVerificationError("webhook timestamp out of tolerance")

    expected = sign(secret, msg_id, timestamp, payload)
    # Constant-time comparison against every advertised signature
    for candidate in signatures.split(" "):
        if hmac.compare_digest(expected.encode(), candidate.strip().encode()):
            return
    raise WebhookVerificationError("no matching signature found")
