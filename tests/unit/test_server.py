"""
Unit tests for k8s_fabric/server.py — wiring, preflight and HTTP routes.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from mcp.types import CallToolRequest, CallToolRequestParams, ListToolsRequest
from starlette.testclient import TestClient

from k8s_fabric.registry import ToolRegistry
from k8s_fabric.server import _preflight, build_server, create_http_app


@pytest.fixture
def server(adapter):
    return build_server(ToolRegistry(adapter))


async def test_list_tools_handler_registered(server):
    handler = server.request_handlers[ListToolsRequest]
    result = await handler(ListToolsRequest(method="tools/list"))
    assert len(result.root.tools) == 21


async def test_call_tool_handler_passes_error_result_through(server):
    handler = server.request_handlers[CallToolRequest]
    request = CallToolRequest(
        method="tools/call",
        params=CallToolRequestParams(name="k8s_get_node", arguments={}),
    )
    result = await handler(request)
    assert result.root.isError is True
    assert "missing required parameter 'name'" in result.root.content[0].text


def test_healthz(server):
    client = TestClient(create_http_app(server))
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.text == "ok"


async def test_preflight_exits_without_kubectl():
    with patch("k8s_fabric.server.kubectl_available", return_value=False):
        with pytest.raises(SystemExit):
            await _preflight(MagicMock())


async def test_preflight_tolerates_unreachable_cluster():
    client = MagicMock()
    client.run = AsyncMock(return_value="Client Version: v1.29.3")
    client.cluster_reachable = AsyncMock(return_value=False)
    with patch("k8s_fabric.server.kubectl_available", return_value=True):
        await _preflight(client)
    client.cluster_reachable.assert_awaited_once()


def test_mcp_endpoint_serves_exact_path(server):
    body = {"jsonrpc": "2.0", "id": 1, "method": "tools/list", "params": {}}
    headers = {"Accept": "application/json, text/event-stream", "Content-Type": "application/json"}
    with TestClient(create_http_app(server), follow_redirects=False) as client:
        response = client.post("/mcp", json=body, headers=headers)
    assert response.status_code == 200
    assert "k8s_cluster_info" in response.text


def test_mcp_endpoint_rejects_other_methods(server):
    with TestClient(create_http_app(server), follow_redirects=False) as client:
        response = client.put("/mcp")
    assert response.status_code == 405
