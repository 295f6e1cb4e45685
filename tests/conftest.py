"""
Pytest configuration and shared fixtures.
"""

import base64
import json
from typing import Dict, Iterable, List, Optional

import pytest

from fleetcleanup.store import Node, StoreDeleteError, StoreReadError


class FakeStore:
    """
    In-memory stand-in for EtcdClient.

    Entries are flat leaf keys; directories exist implicitly, as in etcd.
    """

    def __init__(
        self,
        entries: Optional[Dict[str, str]] = None,
        fail_delete_on: Iterable[str] = (),
        fail_read_on: Iterable[str] = (),
    ):
        self.entries: Dict[str, str] = dict(entries or {})
        self.fail_delete_on = set(fail_delete_on)
        self.fail_read_on = set(fail_read_on)
        self.delete_attempts: List[str] = []
        self.deleted: List[str] = []

    def get(self, key: str, recursive: bool = False) -> Optional[Node]:
        if key in self.fail_read_on:
            raise StoreReadError(key, "HTTP 500: internal error")
        if key in self.entries:
            return Node(key=key, value=self.entries[key])
        prefix = key.rstrip("/") + "/"
        if not any(k.startswith(prefix) for k in self.entries):
            return None
        return self._dir_node(key, recursive)

    def _dir_node(self, key: str, recursive: bool) -> Node:
        prefix = key.rstrip("/") + "/"
        heads = sorted({k[len(prefix):].split("/", 1)[0] for k in self.entries if k.startswith(prefix)})
        nodes = []
        for head in heads:
            child_key = prefix + head
            if child_key in self.entries:
                nodes.append(Node(key=child_key, value=self.entries[child_key]))
            elif recursive:
                nodes.append(self._dir_node(child_key, recursive))
            else:
                nodes.append(Node(key=child_key, dir=True))
        return Node(key=key, dir=True, nodes=nodes)

    def delete(self, key: str) -> bool:
        self.delete_attempts.append(key)
        if key in self.fail_delete_on:
            raise StoreDeleteError(key, "HTTP 500: internal error")
        if key not in self.entries:
            return False
        del self.entries[key]
        self.deleted.append(key)
        return True


def job_object(name: str, unit_hash: bytes) -> str:
    """JSON job object as fleet writes it (UnitHash base64 encoded)."""
    return json.dumps({"Name": name, "UnitHash": base64.b64encode(unit_hash).decode("ascii")})


def unit_entries(*names: str) -> Dict[str, str]:
    return {f"/_coreos.com/fleet/unit/{n}": "{}" for n in names}


def job_entries(**jobs: bytes) -> Dict[str, str]:
    entries = {}
    for name, unit_hash in jobs.items():
        entries[f"/_coreos.com/fleet/job/{name}/object"] = job_object(name, unit_hash)
        entries[f"/_coreos.com/fleet/job/{name}/target-state"] = "launched"
    return entries


@pytest.fixture
def fake_store():
    """Factory for FakeStore instances."""
    return FakeStore


@pytest.fixture
def fleet_store() -> FakeStore:
    """Store with one job (hash ab12) and two units: ab12 (live) and cd34 (obsolete)."""
    entries = {}
    entries.update(unit_entries("ab12", "cd34"))
    entries.update(job_entries(**{"web.service": bytes.fromhex("ab12")}))
    return FakeStore(entries)
