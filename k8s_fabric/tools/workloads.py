"""
Workload tools (read-only).

Tools:
  k8s_list_pods          — pods with phase, ready ratio, restarts, node
  k8s_get_pod            — containers, conditions and the 10 newest events
  k8s_get_pod_logs       — tail of a container's log
  k8s_pod_problems       — failing, pending, crash-looping or unready pods
  k8s_list_deployments   — deployments with ready/desired and availability
  k8s_get_deployment     — images, strategy, conditions, labels, annotations
  k8s_list_services      — type, cluster IP, load-balancer address, ports
  k8s_list_pvcs          — persistent volume claims
  k8s_list_cronjobs      — schedule, suspend flag, active runs
  k8s_list_jobs          — completions, duration, Complete/Failed/Running
"""

from __future__ import annotations

from mcp.types import Tool, ToolAnnotations

from k8s_fabric.adapter import DEFAULT_TAIL_LINES, ClusterAdapter

_RO_ANNOTATIONS = ToolAnnotations(readOnlyHint=True, destructiveHint=False, openWorldHint=True)

# ---------------------------------------------------------------------------
# Schemas reused across many tools
# ---------------------------------------------------------------------------

_NS_SCHEMA = {
    "type": "object",
    "properties": {
        "namespace": {"type": "string", "description": "Filter by namespace. Omit for all namespaces."},
    },
}

_NAMED_SCHEMA = {
    "type": "object",
    "properties": {
        "namespace": {"type": "string", "description": "Namespace of the resource."},
        "name": {"type": "string", "description": "Resource name."},
    },
    "required": ["namespace", "name"],
}


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------

WORKLOAD_TOOLS: list[Tool] = [
    Tool(
        name="k8s_list_pods",
        description="List pods with status, ready containers, restart count, node and age.",
        inputSchema=_NS_SCHEMA,
        annotations=_RO_ANNOTATIONS,
    ),
    Tool(
        name="k8s_get_pod",
        description="Get full details for a pod including containers, conditions and recent events.",
        inputSchema=_NAMED_SCHEMA,
        annotations=_RO_ANNOTATIONS,
    ),
    Tool(
        name="k8s_get_pod_logs",
        description="Get logs from a pod container.",
        inputSchema={
            "type": "object",
            "properties": {
                "namespace": {"type": "string", "description": "Namespace of the pod."},
                "name": {"type": "string", "description": "Pod name."},
                "container": {
                    "type": "string",
                    "description": "Container name (required for multi-container pods).",
                },
                "tailLines": {
                    "type": "integer",
                    "description": f"Number of lines from the end. Default: {DEFAULT_TAIL_LINES}.",
                    "default": DEFAULT_TAIL_LINES,
                },
                "sinceSeconds": {
                    "type": "integer",
                    "description": "Return logs from the last N seconds.",
                },
                "previous": {
                    "type": "boolean",
                    "description": "Return logs from the previous container instance. Default: false.",
                    "default": False,
                },
            },
            "required": ["namespace", "name"],
        },
        annotations=_RO_ANNOTATIONS,
    ),
    Tool(
        name="k8s_pod_problems",
        description=(
            "List pods that are failing, pending, crash-looping (more than 5 restarts) "
            "or not ready, across all namespaces or a single one."
        ),
        inputSchema=_NS_SCHEMA,
        annotations=_RO_ANNOTATIONS,
    ),
    Tool(
        name="k8s_list_deployments",
        description="List deployments with ready/desired replicas, up-to-date and available counts.",
        inputSchema=_NS_SCHEMA,
        annotations=_RO_ANNOTATIONS,
    ),
    Tool(
        name="k8s_get_deployment",
        description="Get full details for a deployment including images, strategy and conditions.",
        inputSchema=_NAMED_SCHEMA,
        annotations=_RO_ANNOTATIONS,
    ),
    Tool(
        name="k8s_list_services",
        description="List services with type, cluster IP, external address and ports.",
        inputSchema=_NS_SCHEMA,
        annotations=_RO_ANNOTATIONS,
    ),
    Tool(
        name="k8s_list_pvcs",
        description="List PersistentVolumeClaims with status, capacity and storage class.",
        inputSchema=_NS_SCHEMA,
        annotations=_RO_ANNOTATIONS,
    ),
    Tool(
        name="k8s_list_cronjobs",
        description="List CronJobs with schedule, suspend status and last schedule time.",
        inputSchema=_NS_SCHEMA,
        annotations=_RO_ANNOTATIONS,
    ),
    Tool(
        name="k8s_list_jobs",
        description="List Jobs with completion status and duration.",
        inputSchema=_NS_SCHEMA,
        annotations=_RO_ANNOTATIONS,
    ),
]


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

async def handle_list_pods(k8s: ClusterAdapter, args: dict):
    return await k8s.list_pods(args.get("namespace"))


async def handle_get_pod(k8s: ClusterAdapter, args: dict):
    return await k8s.get_pod(args["namespace"], args["name"])


async def handle_get_pod_logs(k8s: ClusterAdapter, args: dict):
    tail = args.get("tailLines")
    since = args.get("sinceSeconds")
    logs = await k8s.get_pod_logs(
        args["namespace"],
        args["name"],
        container=args.get("container"),
        tail_lines=DEFAULT_TAIL_LINES if tail is None else int(tail),
        since_seconds=None if since is None else int(since),
        previous=bool(args.get("previous", False)),
    )
    return {"logs": logs}


async def handle_pod_problems(k8s: ClusterAdapter, args: dict):
    return await k8s.get_pod_problems(args.get("namespace"))


async def handle_list_deployments(k8s: ClusterAdapter, args: dict):
    return await k8s.list_deployments(args.get("namespace"))


async def handle_get_deployment(k8s: ClusterAdapter, args: dict):
    return await k8s.get_deployment(args["namespace"], args["name"])


async def handle_list_services(k8s: ClusterAdapter, args: dict):
    return await k8s.list_services(args.get("namespace"))


async def handle_list_pvcs(k8s: ClusterAdapter, args: dict):
    return await k8s.list_pvcs(args.get("namespace"))


async def handle_list_cronjobs(k8s: ClusterAdapter, args: dict):
    return await k8s.list_cronjobs(args.get("namespace"))


async def handle_list_jobs(k8s: ClusterAdapter, args: dict):
    return await k8s.list_jobs(args.get("namespace"))


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

WORKLOAD_HANDLERS = {
    "k8s_list_pods": handle_list_pods,
    "k8s_get_pod": handle_get_pod,
    "k8s_get_pod_logs": handle_get_pod_logs,
    "k8s_pod_problems": handle_pod_problems,
    "k8s_list_deployments": handle_list_deployments,
    "k8s_get_deployment": handle_get_deployment,
    "k8s_list_services": handle_list_services,
    "k8s_list_pvcs": handle_list_pvcs,
    "k8s_list_cronjobs": handle_list_cronjobs,
    "k8s_list_jobs": handle_list_jobs,
}
