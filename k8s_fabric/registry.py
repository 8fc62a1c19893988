"""
Tool registry and dispatcher.

The catalog is fixed at import time. ``ToolRegistry.call`` is the single place
where exceptions are caught: whatever a handler raises (including errors the
adapter lets through from kubectl) comes back as an ``isError`` result, never
as an exception crossing into the transport.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from mcp.types import CallToolResult, TextContent, Tool

from k8s_fabric.adapter import ClusterAdapter
from k8s_fabric.formatters import _err, render
from k8s_fabric.models import HealthStatus
from k8s_fabric.tools.cluster import CLUSTER_HANDLERS, CLUSTER_TOOLS, probe_health
from k8s_fabric.tools.extensions import EXTENSION_HANDLERS, EXTENSION_TOOLS
from k8s_fabric.tools.workloads import WORKLOAD_HANDLERS, WORKLOAD_TOOLS

logger = logging.getLogger(__name__)

Handler = Callable[[ClusterAdapter, dict], Awaitable[Any]]

ALL_TOOLS: list[Tool] = CLUSTER_TOOLS + WORKLOAD_TOOLS + EXTENSION_TOOLS

ALL_HANDLERS: dict[str, Handler] = {
    **CLUSTER_HANDLERS,
    **WORKLOAD_HANDLERS,
    **EXTENSION_HANDLERS,
}


# ---------------------------------------------------------------------------
# Argument validation
# ---------------------------------------------------------------------------

def _matches_type(value: Any, expected: str) -> bool:
    if expected == "string":
        return isinstance(value, str)
    if expected == "boolean":
        return isinstance(value, bool)
    if expected == "integer":
        if isinstance(value, bool):
            return False
        return isinstance(value, int) or (isinstance(value, float) and value.is_integer())
    if expected == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if expected == "object":
        return isinstance(value, dict)
    if expected == "array":
        return isinstance(value, list)
    return True


def normalize_arguments(args: dict | None) -> dict:
    """Drop a blank ``namespace`` so it means "all namespaces" (or missing, where required)."""
    args = dict(args or {})
    namespace = args.get("namespace")
    if isinstance(namespace, str) and not namespace.strip():
        del args["namespace"]
    return args


def validate_arguments(schema: dict, args: dict) -> list[str]:
    """Check ``args`` against a tool's declared input schema.

    Only required parameters and the primitive type of each declared
    parameter are checked; undeclared extras are ignored. A ``None`` value
    counts as absent.
    """
    problems: list[str] = []
    properties = schema.get("properties") or {}
    for name in schema.get("required") or []:
        if args.get(name) is None:
            problems.append(f"missing required parameter '{name}'")
    for name, spec in properties.items():
        value = args.get(name)
        expected = spec.get("type")
        if value is None or not expected:
            continue
        if not _matches_type(value, expected):
            problems.append(f"parameter '{name}' must be of type {expected}, got {type(value).__name__}")
    return problems


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class ToolRegistry:
    def __init__(
        self,
        adapter: ClusterAdapter,
        tools: list[Tool] | None = None,
        handlers: dict[str, Handler] | None = None,
    ):
        self.adapter = adapter
        self._tools = list(ALL_TOOLS if tools is None else tools)
        self._handlers = dict(ALL_HANDLERS if handlers is None else handlers)
        self._by_name = {t.name: t for t in self._tools}
        missing = set(self._by_name) ^ set(self._handlers)
        if missing:
            raise ValueError(f"tools and handlers out of sync: {sorted(missing)}")

    def list_tools(self) -> list[Tool]:
        return list(self._tools)

    def get(self, name: str) -> Tool | None:
        return self._by_name.get(name)

    async def call(self, name: str, arguments: dict | None) -> CallToolResult:
        args = normalize_arguments(arguments)

        tool = self._by_name.get(name)
        if tool is None:
            return CallToolResult(
                content=[TextContent(type="text", text=f"Unknown tool: {name}")],
                isError=True,
            )

        problems = validate_arguments(tool.inputSchema, args)
        if problems:
            return CallToolResult(
                content=_err(f"Invalid arguments for {name}: " + "; ".join(problems)),
                isError=True,
            )

        try:
            value = await self._handlers[name](self.adapter, args)
            return CallToolResult(content=render(value))
        except Exception as exc:  # noqa: BLE001
            logger.warning("tool %s failed: %s", name, exc)
            return CallToolResult(content=_err(str(exc) or type(exc).__name__), isError=True)

    async def health(self) -> HealthStatus:
        return await probe_health(self.adapter)
