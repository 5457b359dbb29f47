# playground/utils/kanthor.py
"""
Minimal client for the Kanthor webhook delivery API.

Covers what the playground needs: applications, endpoints, routing rules and
messages. Every call authenticates with the workspace credentials as HTTP
basic auth and raises KanthorError on a non-2xx reply.
"""
import base64
import json
import logging
from typing import Any, Dict, Optional

import requests

from ..errors import KanthorError

logger = logging.getLogger(__name__)

DEFAULT_HOST = "api.kanthorlabs.com"
DEFAULT_SCHEME = "https"
DEFAULT_TIMEOUT = 20

MESSAGE_TYPE = "testing.playground"

# routing rule sources/expressions understood by the platform
CONDITION_SOURCE_APP_ID = "app_id"

def match_equal(value: str) -> str:
    return f"equal::{value}"


class KanthorClient:
    def __init__(self, credentials: str, host: Optional[str] = None, timeout: float = DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None):
        if ":" not in credentials:
            raise ValueError("credentials must be in user:password form")
        self.scheme, self.host = _split_host(host or DEFAULT_HOST)
        self.timeout = timeout
        self.session = session or requests.Session()
        token = base64.b64encode(credentials.encode("utf-8")).decode("utf-8")
        self.authorization = f"Basic {token}"

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}/api"

    def _request(self, method: str, path: str, payload: Optional[dict] = None,
                 timeout: Optional[float] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        headers = {"Content-Type": "application/json", "Authorization": self.authorization}
        if payload is not None:
            logger.debug("%s %s payload=%s", method, url, json.dumps(payload)[:1000])

        resp = self.session.request(method, url, json=payload, headers=headers, timeout=timeout or self.timeout)

        if not 200 <= resp.status_code < 300:
            logger.error("Kanthor %s %s failed: %s %s", method, path, resp.status_code, resp.text)
            raise KanthorError(resp.status_code, resp.text, url=url)
        return resp.json()

    def create_application(self, name: str, timeout: Optional[float] = None) -> Dict[str, Any]:
        return self._request("POST", "/application", {"name": name}, timeout=timeout)

    def get_application(self, app_id: str, timeout: Optional[float] = None) -> Dict[str, Any]:
        return self._request("GET", f"/application/{app_id}", timeout=timeout)

    def create_endpoint(self, app_id: str, name: str, uri: str, method: str = "POST",
                        timeout: Optional[float] = None) -> Dict[str, Any]:
        payload = {"app_id": app_id, "name": name, "method": method, "uri": uri}
        return self._request("POST", "/endpoint", payload, timeout=timeout)

    def create_endpoint_rule(self, ep_id: str, name: str, condition_source: str, condition_expression: str,
                             priority: int = 100, exclusionary: bool = False,
                             timeout: Optional[float] = None) -> Dict[str, Any]:
        payload = {
            "ep_id": ep_id,
            "name": name,
            "condition_source": condition_source,
            "condition_expression": condition_expression,
            "priority": priority,
            "exclusionary": exclusionary,
        }
        return self._request("POST", "/rule", payload, timeout=timeout)

    def create_message(self, app_id: str, type: str, body: Dict[str, Any],
                       headers: Optional[Dict[str, str]] = None, timeout: Optional[float] = None) -> Dict[str, Any]:
        payload = {"app_id": app_id, "type": type, "body": body, "headers": headers or {}}
        return self._request("POST", "/message", payload, timeout=timeout)


def _split_host(host: str):
    if "://" in host:
        scheme, rest = host.split("://", 1)
        return scheme, rest.rstrip("/")
    return DEFAULT_SCHEME, host.rstrip("/")

def init_sdk(user: str, password: str, host: Optional[str] = None) -> KanthorClient:
    return KanthorClient(f"{user}:{password}", host=host or None)
