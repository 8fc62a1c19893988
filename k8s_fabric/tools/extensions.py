"""
Cluster extension tools (read-only). Each one returns an empty list when the
extension's custom resource is not installed.

Tools:
  k8s_list_ingress_routes    — Traefik IngressRoutes
  k8s_list_argocd_apps       — ArgoCD Applications (argocd namespace)
  k8s_get_argocd_app         — one Application with resources and history
  k8s_list_scaled_objects    — KEDA ScaledObjects
  k8s_list_longhorn_volumes  — Longhorn Volumes (longhorn-system namespace)
"""

from __future__ import annotations

from mcp.types import Tool, ToolAnnotations

from k8s_fabric.adapter import ClusterAdapter

_RO_ANNOTATIONS = ToolAnnotations(readOnlyHint=True, destructiveHint=False, openWorldHint=True)

_NS_SCHEMA = {
    "type": "object",
    "properties": {
        "namespace": {"type": "string", "description": "Filter by namespace. Omit for all namespaces."},
    },
}


EXTENSION_TOOLS: list[Tool] = [
    Tool(
        name="k8s_list_ingress_routes",
        description="List Traefik IngressRoutes with entry points and routing rules.",
        inputSchema=_NS_SCHEMA,
        annotations=_RO_ANNOTATIONS,
    ),
    Tool(
        name="k8s_list_argocd_apps",
        description="List all ArgoCD Applications with sync and health status.",
        inputSchema={"type": "object", "properties": {}},
        annotations=_RO_ANNOTATIONS,
    ),
    Tool(
        name="k8s_get_argocd_app",
        description="Get full ArgoCD Application details: resources, conditions and deploy history.",
        inputSchema={
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "ArgoCD Application name."},
            },
            "required": ["name"],
        },
        annotations=_RO_ANNOTATIONS,
    ),
    Tool(
        name="k8s_list_scaled_objects",
        description="List KEDA ScaledObjects with target, replica bounds and trigger types.",
        inputSchema=_NS_SCHEMA,
        annotations=_RO_ANNOTATIONS,
    ),
    Tool(
        name="k8s_list_longhorn_volumes",
        description="List Longhorn volumes with state, robustness, replica count and bound PVC.",
        inputSchema={"type": "object", "properties": {}},
        annotations=_RO_ANNOTATIONS,
    ),
]


async def handle_list_ingress_routes(k8s: ClusterAdapter, args: dict):
    return await k8s.list_ingress_routes(args.get("namespace"))


async def handle_list_argocd_apps(k8s: ClusterAdapter, _args: dict):
    return await k8s.list_argocd_apps()


async def handle_get_argocd_app(k8s: ClusterAdapter, args: dict):
    return await k8s.get_argocd_app(args["name"])


async def handle_list_scaled_objects(k8s: ClusterAdapter, args: dict):
    return await k8s.list_scaled_objects(args.get("namespace"))


async def handle_list_longhorn_volumes(k8s: ClusterAdapter, _args: dict):
    return await k8s.list_longhorn_volumes()


EXTENSION_HANDLERS = {
    "k8s_list_ingress_routes": handle_list_ingress_routes,
    "k8s_list_argocd_apps": handle_list_argocd_apps,
    "k8s_get_argocd_app": handle_get_argocd_app,
    "k8s_list_scaled_objects": handle_list_scaled_objects,
    "k8s_list_longhorn_volumes": handle_list_longhorn_volumes,
}
