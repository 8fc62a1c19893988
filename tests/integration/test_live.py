"""
Integration tests for the tool catalog against a live cluster.
"""

from __future__ import annotations

import json

import pytest

from tests.integration.conftest import skip_no_cluster

pytestmark = [pytest.mark.integration, skip_no_cluster]


def _payload(result):
    assert not result.isError, result.content[0].text
    return json.loads(result.content[0].text)


async def test_cluster_info_live(live_registry):
    info = _payload(await live_registry.call("k8s_cluster_info", {}))
    assert info["nodeCount"] >= 1
    assert info["namespaceCount"] >= 1


async def test_list_namespaces_live(live_registry):
    names = {ns["name"] for ns in _payload(await live_registry.call("k8s_list_namespaces", {}))}
    assert {"default", "kube-system"} <= names


async def test_list_pods_scoped_live(live_registry):
    pods = _payload(await live_registry.call("k8s_list_pods", {"namespace": "kube-system"}))
    assert pods
    assert all(p["namespace"] == "kube-system" for p in pods)


async def test_list_nodes_live(live_registry):
    nodes = _payload(await live_registry.call("k8s_list_nodes", {}))
    assert all(n["status"] in ("Ready", "NotReady") for n in nodes)


async def test_get_node_live(live_registry):
    [first, *_] = _payload(await live_registry.call("k8s_list_nodes", {}))
    node = _payload(await live_registry.call("k8s_get_node", {"name": first["name"]}))
    assert node["allocatable"]["pods"]


async def test_list_events_limit_live(live_registry):
    events = _payload(await live_registry.call("k8s_list_events", {"limit": 3}))
    assert len(events) <= 3


async def test_missing_pod_is_error_live(live_registry):
    result = await live_registry.call("k8s_get_pod", {"namespace": "default", "name": "does-not-exist-xyz"})
    assert result.isError is True
    assert "not found" in result.content[0].text.lower()


@pytest.mark.parametrize(
    "tool",
    ["k8s_list_ingress_routes", "k8s_list_argocd_apps", "k8s_list_scaled_objects", "k8s_list_longhorn_volumes"],
)
async def test_extension_tools_never_error_live(live_registry, tool):
    assert isinstance(_payload(await live_registry.call(tool, {})), list)


async def test_health_live(live_registry):
    assert (await live_registry.health()).status == "healthy"
