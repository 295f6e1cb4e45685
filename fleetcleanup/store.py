"""
Client for the etcd v2 keys API.

Only the three calls the cleanup pass needs are implemented: read a single
key, read a subtree recursively, and delete a single key.
"""

import posixpath
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlparse

import requests

from .logger import get_logger

logger = get_logger()

DEFAULT_ETCD_ADDR = "http://localhost:2379"
DEFAULT_TIMEOUT = 10.0

# etcd v2 error code for "Key not found"
KEY_NOT_FOUND = 100


class StoreError(Exception):
    """Base class for failures talking to the store."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"{reason} (key: {key})")


class StoreReadError(StoreError):
    """A read could not be completed or its response could not be decoded."""


class StoreDeleteError(StoreError):
    """A delete request failed."""


@dataclass
class Node:
    """One entry of the etcd key tree."""

    key: str
    value: Optional[str] = None
    dir: bool = False
    nodes: List["Node"] = field(default_factory=list)

    @property
    def name(self) -> str:
        return posixpath.basename(self.key)

    def children(self) -> Dict[str, "Node"]:
        """Child nodes keyed by the last segment of their key."""
        return {child.name: child for child in self.nodes}

    @classmethod
    def from_dict(cls, data: Any) -> "Node":
        if not isinstance(data, dict):
            raise ValueError(f"node must be an object, got {type(data).__name__}")
        key = data.get("key", "/")
        if not isinstance(key, str):
            raise ValueError("node key must be a string")
        value = data.get("value")
        if value is not None and not isinstance(value, str):
            raise ValueError(f"value of {key} must be a string")
        nodes = data.get("nodes") or []
        if not isinstance(nodes, list):
            raise ValueError(f"children of {key} must be a list")
        return cls(
            key=key,
            value=value,
            dir=bool(data.get("dir", False)),
            nodes=[cls.from_dict(n) for n in nodes],
        )


def parse_endpoint(addr: str) -> str:
    """
    Validate an etcd address and return its base URL (scheme://host[:port]).

    A bare host[:port] is treated as plain http.

    Raises:
        ValueError: If the address is empty or has no usable host
    """
    addr = (addr or "").strip()
    if not addr:
        raise ValueError("address is empty")
    if "://" not in addr:
        addr = f"http://{addr}"
    parsed = urlparse(addr)
    if parsed.scheme not in ("http", "https"):
        raise ValueError(f"unsupported scheme '{parsed.scheme}'")
    if not parsed.netloc or not parsed.hostname:
        raise ValueError("address has no host")
    return f"{parsed.scheme}://{parsed.netloc}"


def _error_code(resp: requests.Response) -> Optional[int]:
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("errorCode")
    return None


def _describe(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return f"HTTP {resp.status_code}: {body['message']}"
    return f"HTTP {resp.status_code}"


class EtcdClient:
    """
    Minimal etcd v2 client.

    Example:
        client = EtcdClient("http://localhost:2379")
        node = client.get("/_coreos.com/fleet/job", recursive=True)
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_ETCD_ADDR,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.endpoint = parse_endpoint(endpoint)
        self.timeout = timeout
        self.session = session or requests.Session()

    def _url(self, key: str) -> str:
        return f"{self.endpoint}/v2/keys/{quote(key.lstrip('/'), safe='/')}"

    def get(self, key: str, recursive: bool = False) -> Optional[Node]:
        """
        Read a key, or a whole subtree when recursive is set.

        Returns:
            The node at key, or None when the key does not exist

        Raises:
            StoreReadError: On transport errors, failed requests or malformed responses
        """
        params = {"recursive": "true"} if recursive else None
        logger.record_store_request()
        try:
            resp = self.session.get(self._url(key), params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logger.record_error("Timeout")
            raise StoreReadError(key, "request timed out") from e
        except requests.exceptions.RequestException as e:
            logger.record_error("RequestException")
            raise StoreReadError(key, f"request error: {e}") from e

        if resp.status_code == 404 and _error_code(resp) == KEY_NOT_FOUND:
            logger.debug("Key not found", key=key)
            return None
        if not resp.ok:
            logger.record_error(f"HTTPError_{resp.status_code}")
            raise StoreReadError(key, _describe(resp))

        try:
            body = resp.json()
        except ValueError as e:
            logger.record_error("MalformedResponse")
            raise StoreReadError(key, "response is not valid JSON") from e
        if not isinstance(body, dict) or "node" not in body:
            logger.record_error("MalformedResponse")
            raise StoreReadError(key, "response has no node")
        try:
            return Node.from_dict(body["node"])
        except ValueError as e:
            logger.record_error("MalformedResponse")
            raise StoreReadError(key, f"malformed node: {e}") from e

    def delete(self, key: str) -> bool:
        """
        Delete a single (non-directory) key.

        Returns:
            True if the key was removed, False if it did not exist

        Raises:
            StoreDeleteError: On transport errors or failed requests
        """
        logger.record_store_request()
        try:
            resp = self.session.delete(self._url(key), timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logger.record_error("Timeout")
            raise StoreDeleteError(key, "request timed out") from e
        except requests.exceptions.RequestException as e:
            logger.record_error("RequestException")
            raise StoreDeleteError(key, f"request error: {e}") from e

        if resp.status_code == 404 and _error_code(resp) == KEY_NOT_FOUND:
            return False
        if not resp.ok:
            logger.record_error(f"HTTPError_{resp.status_code}")
            raise StoreDeleteError(key, _describe(resp))
        return True
