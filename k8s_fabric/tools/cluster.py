"""
Cluster-level tools (read-only).

Tools:
  k8s_cluster_info      — server version, platform, node/namespace/pod counts
  k8s_list_namespaces   — namespaces with phase and age
  k8s_list_nodes        — nodes with status, roles, kubelet version, OS
  k8s_get_node          — node capacity, allocatable, taints, conditions
  k8s_list_events       — events, newest first, capped at ``limit``
  k8s_health            — probe cluster reachability and latency
"""

from __future__ import annotations

import logging
import time

from mcp.types import Tool, ToolAnnotations

from k8s_fabric.adapter import DEFAULT_EVENT_LIMIT, ClusterAdapter
from k8s_fabric.models import HealthStatus

logger = logging.getLogger(__name__)

APP_NAME = "k8s-fabric"

_RO_ANNOTATIONS = ToolAnnotations(readOnlyHint=True, destructiveHint=False, openWorldHint=True)

_NO_ARGS = {"type": "object", "properties": {}}


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------

CLUSTER_TOOLS: list[Tool] = [
    Tool(
        name="k8s_cluster_info",
        description=(
            "Get Kubernetes cluster information: server version, platform, "
            "node count, namespace count and pod count."
        ),
        inputSchema=_NO_ARGS,
        annotations=_RO_ANNOTATIONS,
    ),
    Tool(
        name="k8s_list_namespaces",
        description="List all namespaces in the cluster with their status and age.",
        inputSchema=_NO_ARGS,
        annotations=_RO_ANNOTATIONS,
    ),
    Tool(
        name="k8s_list_nodes",
        description="List all nodes in the cluster with status, roles, kubelet version and OS image.",
        inputSchema=_NO_ARGS,
        annotations=_RO_ANNOTATIONS,
    ),
    Tool(
        name="k8s_get_node",
        description=(
            "Get full details for a node including capacity, allocatable "
            "resources, taints and conditions."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Node name."},
            },
            "required": ["name"],
        },
        annotations=_RO_ANNOTATIONS,
    ),
    Tool(
        name="k8s_list_events",
        description=(
            "List recent cluster events, newest first, optionally filtered by namespace. "
            "Warning events surface failures and scheduling issues."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "namespace": {"type": "string", "description": "Filter by namespace. Omit for all namespaces."},
                "limit": {
                    "type": "integer",
                    "description": f"Max events to return. Default: {DEFAULT_EVENT_LIMIT}.",
                    "default": DEFAULT_EVENT_LIMIT,
                },
            },
        },
        annotations=_RO_ANNOTATIONS,
    ),
    Tool(
        name="k8s_health",
        description="Check whether the cluster API is reachable and how long a cluster-info read takes.",
        inputSchema=_NO_ARGS,
        annotations=_RO_ANNOTATIONS,
    ),
]


# ---------------------------------------------------------------------------
# Health probe
# ---------------------------------------------------------------------------

async def probe_health(k8s: ClusterAdapter) -> HealthStatus:
    """Time one cluster-info read. Never raises."""
    start = time.monotonic()
    try:
        await k8s.get_cluster_info()
    except Exception as exc:  # noqa: BLE001
        latency = int((time.monotonic() - start) * 1000)
        logger.warning("health probe failed after %dms: %s", latency, exc)
        return HealthStatus(
            app=APP_NAME,
            status="unavailable",
            latency_ms=latency,
            details={"error": str(exc)},
        )
    return HealthStatus(
        app=APP_NAME,
        status="healthy",
        latency_ms=int((time.monotonic() - start) * 1000),
    )


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

async def handle_cluster_info(k8s: ClusterAdapter, _args: dict):
    return await k8s.get_cluster_info()


async def handle_list_namespaces(k8s: ClusterAdapter, _args: dict):
    return await k8s.list_namespaces()


async def handle_list_nodes(k8s: ClusterAdapter, _args: dict):
    return await k8s.list_nodes()


async def handle_get_node(k8s: ClusterAdapter, args: dict):
    return await k8s.get_node(args["name"])


async def handle_list_events(k8s: ClusterAdapter, args: dict):
    limit = args.get("limit")
    limit = DEFAULT_EVENT_LIMIT if limit is None else int(limit)
    return await k8s.list_events(args.get("namespace"), limit)


async def handle_health(k8s: ClusterAdapter, _args: dict):
    return await probe_health(k8s)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

CLUSTER_HANDLERS = {
    "k8s_cluster_info": handle_cluster_info,
    "k8s_list_namespaces": handle_list_namespaces,
    "k8s_list_nodes": handle_list_nodes,
    "k8s_get_node": handle_get_node,
    "k8s_list_events": handle_list_events,
    "k8s_health": handle_health,
}
