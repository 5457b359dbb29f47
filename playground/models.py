# playground/models.py
import json
import logging
from dataclasses import asdict, dataclass
from typing import Any, Callable, Iterable, Iterator, Optional

logger = logging.getLogger(__name__)


def key_printout(id: str) -> str:
    return f"printout/{id}"

def key_message(app_id: str, id: str) -> str:
    return f"{app_id}/message/{id}"

def key_endpoint(app_id: str) -> str:
    return f"{app_id}/ep"

def key_credentials(app_id: str) -> str:
    return f"credentials/{app_id}/wsc"


@dataclass(frozen=True)
class Credentials:
    """Login pair for one provisioned application, kept for reload across restarts."""
    app_id: str
    user: str
    password: str

    @classmethod
    def from_dict(cls, data: dict) -> "Credentials":
        return cls(app_id=data["app_id"], user=data["user"], password=data["password"])

    def to_dict(self) -> dict:
        return asdict(self)


def decode_each(values: Iterable[str], into: Optional[Callable[[Any], Any]] = None) -> Iterator[Any]:
    """
    Yield every value that decodes as JSON (and converts with ``into`` if given).
    Malformed entries are logged and dropped.
    """
    for raw in values:
        try:
            item = json.loads(raw)
            yield into(item) if into is not None else item
        except (ValueError, TypeError, KeyError) as e:
            logger.warning("Skipping malformed record: %s", e)


def get_messages(store, app_id: str) -> list:
    return list(decode_each(store.list(key_message(app_id, "*"))))

def get_printout_items(store) -> list:
    return list(decode_each(store.list(key_printout("*"))))
