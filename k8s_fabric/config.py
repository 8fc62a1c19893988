"""
Runtime configuration, read once from the environment at startup.

Environment variables:
  K8S_IN_CLUSTER=true            — use the pod's service account (default)
  K8S_IN_CLUSTER=false           — use a kubeconfig instead
  KUBECONFIG=/path/to/config     — kubeconfig file (out-of-cluster only)
  K8S_CONTEXT=name               — kubeconfig context (out-of-cluster only)
  K8S_MCP_KUBECTL_TIMEOUT=60     — per-call kubectl timeout in seconds
  K8S_MCP_MAX_CONCURRENT=10      — max parallel kubectl subprocesses
  K8S_MCP_LOG_LEVEL=INFO         — log level (logs always go to stderr)
  MCP_HTTP_PORT=8080             — serve streamable HTTP instead of stdio
"""

from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes")


def _env_int(name: str, default: int | None) -> int | None:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_str(name: str) -> str | None:
    raw = os.environ.get(name, "").strip()
    return raw or None


@dataclass(frozen=True)
class Settings:
    in_cluster: bool = True
    kubeconfig: str | None = None
    context: str | None = None
    kubectl_timeout: int = 60
    max_concurrent: int = 10
    log_level: str = "INFO"
    http_port: int | None = None

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            in_cluster=_env_bool("K8S_IN_CLUSTER", True),
            kubeconfig=_env_str("KUBECONFIG"),
            context=_env_str("K8S_CONTEXT"),
            kubectl_timeout=_env_int("K8S_MCP_KUBECTL_TIMEOUT", 60),
            max_concurrent=_env_int("K8S_MCP_MAX_CONCURRENT", 10),
            log_level=(_env_str("K8S_MCP_LOG_LEVEL") or "INFO").upper(),
            http_port=_env_int("MCP_HTTP_PORT", None),
        )

    def kubectl_global_args(self) -> list[str]:
        """Flags placed before every kubectl subcommand.

        In-cluster, kubectl picks up the mounted service account on its own,
        so no kubeconfig or context flags are passed.
        """
        if self.in_cluster:
            return []
        args: list[str] = []
        if self.kubeconfig:
            args += ["--kubeconfig", self.kubeconfig]
        if self.context:
            args += ["--context", self.context]
        return args
