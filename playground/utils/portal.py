# playground/utils/portal.py
"""
Client for the Kanthor portal, used to provision a workspace and a scoped
credential pair for each new playground.

Requests time out after 15s and are retried (up to 3 times) only when the
portal answers with a 5xx; connection and read failures surface immediately.
Each request carries its own idempotency key, reused across its retries.
"""
import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..errors import DeadlineExceeded, PortalError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15
DEFAULT_RETRIES = 3
CREDENTIALS_LIFETIME = timedelta(days=365)


@dataclass(frozen=True)
class WorkspaceCredentials:
    id: str
    name: str
    user: str
    password: str


def retry_policy(retries: int = DEFAULT_RETRIES) -> Retry:
    return Retry(
        total=retries,
        connect=0,
        read=0,
        other=0,
        status=retries,
        status_forcelist=tuple(range(500, 600)),
        allowed_methods=frozenset({"GET", "POST"}),
        backoff_factor=0.2,
        raise_on_status=False,
        respect_retry_after_header=False,
    )


class PortalClient:
    def __init__(self, base_url: str, token: str, timeout: float = DEFAULT_TIMEOUT,
                 retries: int = DEFAULT_RETRIES, session: Optional[requests.Session] = None):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self.headers = {"Content-Type": "application/json", "Authorization": f"Basic {token}"}
        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(max_retries=retry_policy(retries))
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self.session = session

    @classmethod
    def from_config(cls, config) -> "PortalClient":
        return cls(config["KANTHOR_PORTAL_ENDPOINT"], config["KANTHOR_PORTAL_AUTH_CREDENTIALS"])

    def _timeout(self, deadline: Optional[float]) -> float:
        """Per-request timeout, capped by what is left before ``deadline`` (a ``time.monotonic()`` value)."""
        if deadline is None:
            return self.timeout
        left = deadline - time.monotonic()
        if left <= 0:
            raise DeadlineExceeded()
        return min(self.timeout, left)

    def _post(self, path: str, body: Dict[str, Any], headers: Optional[Dict[str, str]] = None,
              deadline: Optional[float] = None) -> Dict[str, Any]:
        if not self.base_url:
            raise RuntimeError("KANTHOR_PORTAL_ENDPOINT is not set")
        url = f"{self.base_url}{path}"
        req_headers = {**self.headers, "idempotency-key": str(uuid.uuid4()), **(headers or {})}
        resp = self.session.post(url, json=body, headers=req_headers, timeout=self._timeout(deadline))
        if not 200 <= resp.status_code < 300:
            logger.error("Portal POST %s failed: %s %s", path, resp.status_code, resp.text)
            raise PortalError(resp.status_code, resp.text, url=url)
        return resp.json()

    def create_workspace(self, name: str, deadline: Optional[float] = None) -> Dict[str, Any]:
        return self._post("/workspace", {"name": name}, deadline=deadline)

    def create_credentials(self, workspace_id: str, name: str, expired_at: int,
                           deadline: Optional[float] = None) -> Dict[str, Any]:
        return self._post(
            "/credentials",
            {"name": name, "expired_at": expired_at},
            headers={"x-authorization-workspace": workspace_id},
            deadline=deadline,
        )

    def provision(self, deadline: Optional[float] = None) -> WorkspaceCredentials:
        """Create a workspace, then credentials scoped to it. A failed second step leaves the workspace behind."""
        now = datetime.now(timezone.utc)
        name = f"playground at {now.strftime('%Y-%m-%dT%H:%M:%SZ')}"

        ws = self.create_workspace(name, deadline=deadline)
        logger.info("Provisioned workspace %s", ws.get("id"))

        expired_at = int((now + CREDENTIALS_LIFETIME).timestamp() * 1000)
        wsc = self.create_credentials(ws["id"], name, expired_at, deadline=deadline)
        return WorkspaceCredentials(
            id=wsc["id"], name=wsc.get("name", name), user=wsc["user"], password=wsc["password"]
        )
