"""
Integration test fixtures — requires a reachable cluster via the current kubeconfig.
"""

from __future__ import annotations

import subprocess

import pytest

from k8s_fabric.adapter import ClusterAdapter
from k8s_fabric.config import Settings
from k8s_fabric.kubectl import KubectlClient
from k8s_fabric.registry import ToolRegistry


def _cluster_reachable() -> bool:
    try:
        result = subprocess.run(
            ["kubectl", "cluster-info"],
            capture_output=True,
            timeout=5,
        )
        return result.returncode == 0
    except (OSError, subprocess.TimeoutExpired):
        return False


skip_no_cluster = pytest.mark.skipif(
    not _cluster_reachable(),
    reason="cluster not reachable — skipping integration tests",
)


@pytest.fixture
def live_registry():
    client = KubectlClient(Settings(in_cluster=False))
    return ToolRegistry(ClusterAdapter(client))
