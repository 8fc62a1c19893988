"""
Async kubectl client — the raw cluster read path.

Uses asyncio.create_subprocess_exec — no shell involved, immune to injection.
Resource names and namespaces are always passed as explicit list elements,
never interpolated into a shell string. Every read asks for ``-o json``.

Safety features:
  - Concurrency semaphore to limit parallel subprocess count
  - Per-call timeout and output size cap
  - Enriched error messages for common failure modes
"""

from __future__ import annotations

import asyncio
import json
import logging
import shutil
from typing import Sequence

from k8s_fabric.config import Settings

logger = logging.getLogger(__name__)

MAX_OUTPUT_BYTES = 10 * 1024 * 1024  # 10 MB

# Kinds that live outside any namespace; --all-namespaces is meaningless for them.
_CLUSTER_SCOPED = {"nodes", "namespaces", "persistentvolumes", "storageclasses"}


# ---------------------------------------------------------------------------
# Error enrichment
# ---------------------------------------------------------------------------

_ERROR_HINTS = {
    "No such file or directory": (
        "kubectl binary not found. Ensure kubectl is installed and on your PATH."
    ),
    "Unable to connect to the server": (
        "Cannot reach the Kubernetes API server. Check that your cluster is running "
        "and kubeconfig is correct."
    ),
    "error: You must be logged in": (
        "Authentication failed. Your kubeconfig credentials may have expired."
    ),
    "the server has asked for the client to provide credentials": (
        "Cluster rejected credentials. Token may be expired."
    ),
    "is forbidden": (
        "The service account or user lacks RBAC permission for this read."
    ),
    "was refused": (
        "Connection refused by the API server. The cluster may be down or the endpoint is wrong."
    ),
}

# stderr fragments kubectl prints when a resource type is not registered.
_MISSING_KIND_PATTERNS = (
    "the server doesn't have a resource type",
    "the server could not find the requested resource",
    "no matches for kind",
)


def _enrich_error(raw_stderr: str) -> str:
    """Prepend an actionable hint to common kubectl errors."""
    for pattern, hint in _ERROR_HINTS.items():
        if pattern in raw_stderr:
            return f"{hint}\n\nkubectl stderr: {raw_stderr}"
    return raw_stderr


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class KubectlError(Exception):
    """Raised when kubectl exits with a non-zero status."""

    @property
    def missing_kind(self) -> bool:
        """True when the error says the resource type is not installed."""
        text = str(self)
        return any(p in text for p in _MISSING_KIND_PATTERNS)


def kubectl_available() -> bool:
    return shutil.which("kubectl") is not None


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class KubectlClient:
    """Read-only cluster client built on the kubectl binary.

    Constructed once at startup; holds only immutable settings and a lazily
    created semaphore, so it is safe to share across concurrent tool calls.
    """

    def __init__(self, settings: Settings | None = None):
        settings = settings or Settings()
        self._global_args: tuple[str, ...] = tuple(settings.kubectl_global_args())
        self._timeout = settings.kubectl_timeout
        self._max_concurrent = settings.max_concurrent
        self._semaphore: asyncio.Semaphore | None = None

    def _get_semaphore(self) -> asyncio.Semaphore:
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self._max_concurrent)
        return self._semaphore

    def _build_args(
        self,
        args: Sequence[str],
        namespace: str | None = None,
        all_namespaces: bool = False,
    ) -> list[str]:
        prefix: list[str] = list(self._global_args)
        suffix: list[str] = []
        if all_namespaces:
            suffix += ["--all-namespaces"]
        elif namespace:
            prefix += ["--namespace", namespace]
        return prefix + list(args) + suffix

    async def run(
        self,
        args: Sequence[str],
        *,
        namespace: str | None = None,
        all_namespaces: bool = False,
        timeout_override: int | None = None,
    ) -> str:
        """Run kubectl and return stdout as a string."""
        full_args = self._build_args(args, namespace=namespace, all_namespaces=all_namespaces)
        timeout = timeout_override or self._timeout
        logger.debug("kubectl %s", " ".join(full_args))

        async with self._get_semaphore():
            proc = await asyncio.create_subprocess_exec(
                "kubectl",
                *full_args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )

            try:
                stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
            except asyncio.TimeoutError:
                proc.kill()
                raise KubectlError(f"kubectl timed out after {timeout}s: kubectl {' '.join(full_args)}")

        if len(stdout) > MAX_OUTPUT_BYTES:
            stdout = stdout[:MAX_OUTPUT_BYTES] + b"\n[... output truncated at 10 MB ...]"

        if proc.returncode != 0:
            err = stderr.decode(errors="replace").strip()
            raise KubectlError(_enrich_error(err) if err else f"kubectl exited with code {proc.returncode}")

        return stdout.decode(errors="replace").strip()

    async def run_json(
        self,
        args: Sequence[str],
        *,
        namespace: str | None = None,
        all_namespaces: bool = False,
    ) -> dict:
        """Run kubectl with -o json and parse the result."""
        output = await self.run(
            list(args) + ["-o", "json"],
            namespace=namespace,
            all_namespaces=all_namespaces,
        )
        try:
            return json.loads(output)
        except json.JSONDecodeError:
            raise KubectlError(
                "Response too large to parse as JSON (likely truncated at 10 MB). "
                "Try narrowing your query with a namespace."
            )

    # -- cluster client capability -------------------------------------------

    async def server_version(self) -> dict:
        data = await self.run_json(["version"])
        return data.get("serverVersion") or {}

    async def list_resources(
        self,
        kind: str,
        namespace: str | None = None,
        *,
        field_selector: str | None = None,
    ) -> list[dict]:
        """List one kind, scoped to ``namespace`` or across all namespaces."""
        cmd = ["get", kind]
        if field_selector:
            cmd += [f"--field-selector={field_selector}"]
        all_ns = not namespace and kind not in _CLUSTER_SCOPED
        data = await self.run_json(cmd, namespace=namespace, all_namespaces=all_ns)
        return data.get("items") or []

    async def get_resource(self, kind: str, name: str, namespace: str | None = None) -> dict:
        return await self.run_json(["get", kind, name], namespace=namespace)

    async def list_custom_objects(
        self,
        group: str,
        version: str,
        plural: str,
        namespace: str | None = None,
    ) -> list[dict]:
        data = await self.run_json(
            ["get", f"{plural}.{version}.{group}"],
            namespace=namespace,
            all_namespaces=not namespace,
        )
        return data.get("items") or []

    async def get_custom_object(
        self,
        group: str,
        version: str,
        plural: str,
        name: str,
        namespace: str,
    ) -> dict:
        return await self.run_json(["get", f"{plural}.{version}.{group}", name], namespace=namespace)

    async def pod_logs(
        self,
        namespace: str,
        name: str,
        *,
        container: str | None = None,
        tail_lines: int = 100,
        since_seconds: int | None = None,
        previous: bool = False,
    ) -> str:
        cmd = ["logs", name, f"--tail={tail_lines}", "--timestamps"]
        if container:
            cmd += ["-c", container]
        if previous:
            cmd.append("--previous")
        if since_seconds:
            cmd += [f"--since={since_seconds}s"]
        return await self.run(cmd, namespace=namespace)

    async def cluster_reachable(self) -> bool:
        try:
            await self.run(["cluster-info"], timeout_override=5)
        except KubectlError:
            return False
        return True
