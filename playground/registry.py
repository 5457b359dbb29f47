# playground/registry.py
"""
In-memory registry of platform clients, one per provisioned application.

Filled at startup from persisted credentials and extended whenever a new
playground is bootstrapped. Access is guarded by a lock so concurrent
bootstrap requests can insert safely.
"""
import logging
import threading
from typing import Callable, Dict, List, Optional

from .errors import PlaygroundError
from .models import Credentials, decode_each, key_credentials

logger = logging.getLogger(__name__)


class ClientRegistry:
    def __init__(self):
        self._clients: Dict[str, object] = {}
        self._lock = threading.Lock()

    def register(self, app_id: str, client) -> None:
        with self._lock:
            self._clients[app_id] = client

    def get(self, app_id: str) -> Optional[object]:
        with self._lock:
            return self._clients.get(app_id)

    def app_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._clients)

    def __contains__(self, app_id: str) -> bool:
        with self._lock:
            return app_id in self._clients

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)

    def load(self, store, factory: Callable[[str, str], object]) -> int:
        """Rebuild clients from every persisted credential; bad entries are logged and skipped."""
        loaded = 0
        for item in decode_each(store.list(key_credentials("*")), into=Credentials.from_dict):
            try:
                client = factory(item.user, item.password)
            except (PlaygroundError, ValueError) as e:
                logger.warning("init.sdk %s: %s", item.app_id, e)
                continue
            self.register(item.app_id, client)
            loaded += 1
        logger.info("Reloaded %d playground client(s)", loaded)
        return loaded
