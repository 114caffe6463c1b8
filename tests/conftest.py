"""Shared fixtures: a scriptable in-memory provider and common resource declarations."""

import itertools
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Tuple
import pytest
from converge.providers.base import ProviderPort
from converge.resources.kinds import ResourceKind
from converge.resources.models import ResourceSpec
from converge.state.store import InMemoryStateStore
from converge.utils.errors import ProviderError, ResourceNotFoundError


class FakeProvider(ProviderPort):
    """
    Records every call and hands out predictable ids.

    fail: {(operation, kind value): message} makes matching calls raise ProviderError.
    delays: {kind value: seconds} slows every call for that kind.
    on_call: hook invoked as on_call(operation, kind value, payload) before each call.
    """

    name = "fake"

    def __init__(
        self,
        fail: Optional[Dict[Tuple[str, str], str]] = None,
        delays: Optional[Dict[str, float]] = None,
        on_call: Optional[Callable[[str, str, Any], None]] = None,
    ):
        self.fail = fail or {}
        self.delays = delays or {}
        self.on_call = on_call
        self.calls: List[Tuple[str, str, Any]] = []
        self.resources: Dict[str, Dict[str, Any]] = {}
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    def _enter(self, operation: str, kind: ResourceKind, payload: Any) -> None:
        kind_value = ResourceKind(kind).value
        with self._lock:
            self.calls.append((operation, kind_value, payload))
        if self.on_call:
            self.on_call(operation, kind_value, payload)
        if kind_value in self.delays:
            time.sleep(self.delays[kind_value])
        if (operation, kind_value) in self.fail:
            raise ProviderError(self.fail[(operation, kind_value)])

    def calls_for(self, operation: str, kind: str = None) -> List[Tuple[str, str, Any]]:
        return [c for c in self.calls if c[0] == operation and (kind is None or c[1] == kind)]

    def create(self, kind, properties):
        self._enter("create", kind, properties)
        with self._lock:
            n = next(self._counter)
        kind_value = ResourceKind(kind).value
        resource_id = f"{kind_value.lower()}-{n}"
        outputs = {
            "id": resource_id,
            "arn": f"arn:fake:{kind_value.lower()}:{n}",
            "name": properties.get("name", resource_id),
        }
        with self._lock:
            self.resources[resource_id] = {"kind": kind_value, "properties": dict(properties), "outputs": outputs}
        return dict(outputs)

    def read(self, kind, resource_id):
        self._enter("read", kind, resource_id)
        with self._lock:
            record = self.resources.get(resource_id)
        if record is None:
            raise ResourceNotFoundError(f"{resource_id} not found")
        return dict(record["properties"])

    def update(self, kind, resource_id, properties):
        self._enter("update", kind, (resource_id, properties))
        with self._lock:
            record = self.resources.get(resource_id)
            if record is None:
                raise ResourceNotFoundError(f"{resource_id} not found")
            record["properties"] = dict(properties)
            return dict(record["outputs"])

    def delete(self, kind, resource_id):
        self._enter("delete", kind, resource_id)
        with self._lock:
            if resource_id not in self.resources:
                raise ResourceNotFoundError(f"{resource_id} not found")
            del self.resources[resource_id]


@pytest.fixture
def fake_provider():
    """Provider that never fails."""
    return FakeProvider()


@pytest.fixture
def make_provider():
    """Factory for providers with injected failures, delays or hooks."""
    return FakeProvider


@pytest.fixture
def memory_store():
    return InMemoryStateStore()


@pytest.fixture
def cluster_specs():
    """Network and role feeding a cluster, the cluster depending on both."""
    return [
        ResourceSpec(name="vpc", kind=ResourceKind.NETWORK, properties={"cidr": "10.0.0.0/16"}),
        ResourceSpec(
            name="cluster-role",
            kind=ResourceKind.ROLE,
            properties={"assumed_by": {"service": "eks.amazonaws.com"}},
        ),
        ResourceSpec(
            name="eks",
            kind=ResourceKind.CLUSTER,
            properties={"vpc_id": "${vpc.id}", "role_arn": "${cluster-role.arn}", "version": "1.29"},
            depends_on=["vpc", "cluster-role"],
        ),
    ]
