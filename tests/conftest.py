"""
Shared fixtures for the test suite.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from k8s_fabric.adapter import ClusterAdapter
from k8s_fabric.kubectl import KubectlError


# ---------------------------------------------------------------------------
# Subprocess mock factory
# ---------------------------------------------------------------------------

def make_proc(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0):
    """Mimics the object returned by asyncio.create_subprocess_exec."""
    proc = MagicMock()
    proc.returncode = returncode
    proc.communicate = AsyncMock(return_value=(stdout, stderr))
    proc.kill = MagicMock()
    return proc


@pytest.fixture
def mock_run(monkeypatch):
    """
    Patches asyncio.create_subprocess_exec with a fake that pops responses
    from a queue and records the argv of every call.

    Usage:
        mock_run((b"output", b"", 0))
        mock_run((b"out1", b"", 0), (b"out2", b"", 0))  # multiple calls
        mock_run.calls[0]  # ("kubectl", "get", "pods", ...)
    """
    responses: list[tuple[bytes, bytes, int]] = []
    calls: list[tuple[str, ...]] = []

    async def fake_exec(*args, **kwargs):
        assert responses, f"Unexpected kubectl call: {args}"
        calls.append(args)
        stdout, stderr, rc = responses.pop(0)
        return make_proc(stdout, stderr, rc)

    monkeypatch.setattr("asyncio.create_subprocess_exec", fake_exec)

    def queue(*items: tuple[bytes, bytes, int]):
        responses.extend(items)

    queue.calls = calls
    return queue


# ---------------------------------------------------------------------------
# Fake cluster client
# ---------------------------------------------------------------------------

class FakeClusterClient:
    """In-memory ClusterClient that records every raw call.

    ``resources`` maps a kind to the items a list call returns, ``objects``
    maps (kind, name) to the object a get call returns, ``custom`` maps a CRD
    plural to its items, and ``errors`` maps a kind or plural to an exception
    raised by any call for it.
    """

    def __init__(self, resources=None, objects=None, custom=None, version=None, errors=None, logs=""):
        self.resources = resources or {}
        self.objects = objects or {}
        self.custom = custom or {}
        self.version = version if version is not None else {"major": "1", "minor": "29", "platform": "linux/amd64"}
        self.errors = errors or {}
        self.logs = logs
        self.calls: list[tuple] = []

    def _maybe_raise(self, key):
        if key in self.errors:
            raise self.errors[key]

    async def server_version(self):
        self.calls.append(("server_version",))
        self._maybe_raise("version")
        return self.version

    async def list_resources(self, kind, namespace=None, *, field_selector=None):
        self.calls.append(("list_resources", kind, namespace, field_selector))
        self._maybe_raise(kind)
        return self.resources.get(kind, [])

    async def get_resource(self, kind, name, namespace=None):
        self.calls.append(("get_resource", kind, name, namespace))
        self._maybe_raise(kind)
        if (kind, name) not in self.objects:
            raise KubectlError(f'Error from server (NotFound): {kind} "{name}" not found')
        return self.objects[(kind, name)]

    async def list_custom_objects(self, group, version, plural, namespace=None):
        self.calls.append(("list_custom_objects", group, version, plural, namespace))
        self._maybe_raise(plural)
        if plural not in self.custom:
            raise KubectlError(f'error: the server doesn\'t have a resource type "{plural}"')
        return self.custom[plural]

    async def get_custom_object(self, group, version, plural, name, namespace):
        self.calls.append(("get_custom_object", group, version, plural, name, namespace))
        self._maybe_raise(plural)
        for item in self.custom.get(plural, []):
            if item.get("metadata", {}).get("name") == name:
                return item
        raise KubectlError(f'Error from server (NotFound): {plural} "{name}" not found')

    async def pod_logs(self, namespace, name, *, container=None, tail_lines=100, since_seconds=None, previous=False):
        self.calls.append(("pod_logs", namespace, name, container, tail_lines, since_seconds, previous))
        self._maybe_raise("logs")
        return self.logs

    def calls_to(self, method: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == method]


@pytest.fixture
def fake_client():
    return FakeClusterClient()


@pytest.fixture
def adapter(fake_client):
    return ClusterAdapter(fake_client)


# ---------------------------------------------------------------------------
# Sample raw objects (as kubectl -o json returns them)
# ---------------------------------------------------------------------------

RUNNING_POD = {
    "metadata": {"name": "app-abc", "namespace": "default", "creationTimestamp": "2024-01-01T00:00:00Z"},
    "spec": {"nodeName": "node-1"},
    "status": {
        "phase": "Running",
        "podIP": "10.42.0.7",
        "conditions": [{"type": "Ready", "status": "True"}],
        "containerStatuses": [
            {"name": "app", "image": "nginx:1.25", "ready": True, "restartCount": 1, "state": {"running": {}}},
            {"name": "sidecar", "image": "envoy:1.29", "ready": True, "restartCount": 2, "state": {"running": {}}},
        ],
    },
}

PENDING_POD = {
    "metadata": {"name": "app-pending", "namespace": "default"},
    "status": {
        "phase": "Pending",
        "message": "0/3 nodes are available",
        "conditions": [{"type": "PodScheduled", "status": "False", "reason": "Unschedulable"}],
    },
}

CRASHING_POD = {
    "metadata": {"name": "crasher", "namespace": "kube-system"},
    "status": {
        "phase": "Running",
        "containerStatuses": [
            {
                "name": "crasher",
                "image": "busybox",
                "ready": False,
                "restartCount": 10,
                "state": {"waiting": {"reason": "CrashLoopBackOff", "message": "back-off 5m0s"}},
            }
        ],
    },
}

READY_NODE = {
    "metadata": {
        "name": "node-1",
        "creationTimestamp": "2024-01-01T00:00:00Z",
        "labels": {
            "node-role.kubernetes.io/control-plane": "",
            "node-role.kubernetes.io/master": "",
            "kubernetes.io/hostname": "node-1",
        },
    },
    "spec": {"podCIDR": "10.42.0.0/24", "taints": [{"key": "node-role.kubernetes.io/master", "effect": "NoSchedule"}]},
    "status": {
        "conditions": [
            {"type": "MemoryPressure", "status": "False", "reason": "KubeletHasSufficientMemory"},
            {"type": "Ready", "status": "True", "reason": "KubeletReady"},
        ],
        "nodeInfo": {"kubeletVersion": "v1.29.3+k3s1", "osImage": "Ubuntu 22.04.4 LTS", "architecture": "arm64"},
        "allocatable": {"cpu": "4", "memory": "7901060Ki", "pods": "110"},
        "capacity": {"cpu": "4", "memory": "8003460Ki", "pods": "110"},
    },
}

WORKER_NODE = {
    "metadata": {"name": "node-2", "labels": {"kubernetes.io/hostname": "node-2"}},
    "status": {"conditions": [{"type": "Ready", "status": "False", "reason": "KubeletNotReady"}]},
}
