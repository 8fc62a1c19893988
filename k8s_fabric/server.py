"""
k8s-fabric — read-only Kubernetes cluster view over MCP

Exposes kubectl-backed, normalized JSON tools across three groups:
  • Cluster    — cluster info, namespaces, nodes, events, health
  • Workloads  — pods, logs, pod problems, deployments, services, PVCs, jobs
  • Extensions — Traefik IngressRoutes, ArgoCD, KEDA, Longhorn (optional CRDs)

Transport:
  stdio by default; streamable HTTP on MCP_HTTP_PORT when that is set
  (POST /mcp for MCP requests, GET /healthz for liveness).

See k8s_fabric.config for the environment variables.

Run with:
    python -m k8s_fabric.server
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import sys

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import CallToolResult, ListToolsResult

from k8s_fabric.adapter import ClusterAdapter
from k8s_fabric.config import Settings
from k8s_fabric.kubectl import KubectlClient, KubectlError, kubectl_available
from k8s_fabric.registry import ToolRegistry
from k8s_fabric.tools.cluster import APP_NAME

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Server setup
# ---------------------------------------------------------------------------

def build_server(registry: ToolRegistry) -> Server:
    server = Server(APP_NAME)

    @server.list_tools()
    async def list_tools() -> ListToolsResult:
        return ListToolsResult(tools=registry.list_tools())

    # arguments are checked by ToolRegistry.call
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict) -> CallToolResult:
        return await registry.call(name, arguments)

    return server


# ---------------------------------------------------------------------------
# Startup preflight
# ---------------------------------------------------------------------------

async def _preflight(client: KubectlClient) -> None:
    """Check kubectl availability and cluster connectivity before serving."""
    if not kubectl_available():
        logger.critical("kubectl not found on PATH. Install kubectl and try again.")
        sys.exit(1)

    try:
        version = await client.run(["version", "--client"])
        logger.info("kubectl client: %s", version.splitlines()[0] if version else "unknown")
    except KubectlError as e:
        logger.warning("kubectl version check failed: %s", e)

    if await client.cluster_reachable():
        logger.info("Cluster connectivity: OK")
    else:
        logger.warning("Cluster unreachable. Tools will fail until credentials or network are fixed.")


# ---------------------------------------------------------------------------
# Transports
# ---------------------------------------------------------------------------

async def _run_stdio(server: Server) -> None:
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


class _MCPEndpoint:
    """Exact-path ASGI endpoint for /mcp; a Mount would only match /mcp/..."""

    def __init__(self, session_manager):
        self.session_manager = session_manager

    async def __call__(self, scope, receive, send):
        await self.session_manager.handle_request(scope, receive, send)


def create_http_app(server: Server):
    """Starlette app serving MCP over stateless streamable HTTP."""
    from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
    from starlette.applications import Starlette
    from starlette.responses import PlainTextResponse
    from starlette.routing import Route

    session_manager = StreamableHTTPSessionManager(app=server, stateless=True)

    @contextlib.asynccontextmanager
    async def lifespan(_app):
        async with session_manager.run():
            yield

    async def healthz(_request):
        return PlainTextResponse("ok")

    return Starlette(
        routes=[
            Route("/healthz", endpoint=healthz, methods=["GET"]),
            Route("/mcp", endpoint=_MCPEndpoint(session_manager), methods=["GET", "POST", "DELETE"]),
        ],
        lifespan=lifespan,
    )


async def _run_http(server: Server, port: int) -> None:
    import uvicorn

    config = uvicorn.Config(create_http_app(server), host="0.0.0.0", port=port, log_level="info")
    logger.info("%s MCP server listening on :%d", APP_NAME, port)
    await uvicorn.Server(config).serve()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

async def _run(settings: Settings) -> None:
    client = KubectlClient(settings)
    registry = ToolRegistry(ClusterAdapter(client))
    server = build_server(registry)
    mode = "in-cluster" if settings.in_cluster else "kubeconfig"
    logger.info(
        "%s MCP server starting — %d tools registered (%s credentials)",
        APP_NAME,
        len(registry.list_tools()),
        mode,
    )
    await _preflight(client)
    if settings.http_port:
        await _run_http(server, settings.http_port)
    else:
        await _run_stdio(server)


def main() -> None:
    settings = Settings.from_env()
    # stdout belongs to the stdio transport
    logging.basicConfig(
        stream=sys.stderr,
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(_run(settings))


if __name__ == "__main__":
    main()
