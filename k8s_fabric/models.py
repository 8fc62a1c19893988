"""
Pydantic models for the normalized records returned by every tool.

Records serialize with camelCase keys (``clusterIP``, ``upToDate``, ...).
Each Detail model extends its Summary model, so a summary is always a strict
field-subset of the detail view.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Cluster ──────────────────────────────────────────────────────────────────

class ClusterInfo(Record):
    server_version: str
    platform: str
    node_count: int
    namespace_count: int
    pod_count: int


class NamespaceSummary(Record):
    name: str
    status: str
    age: str


# ── Shared ───────────────────────────────────────────────────────────────────

class Condition(Record):
    type: str
    status: str
    reason: str | None = None
    message: str | None = None


# ── Pods ─────────────────────────────────────────────────────────────────────

ContainerState = Literal["running", "waiting", "terminated", "unknown"]


class ContainerStatus(Record):
    name: str
    image: str
    ready: bool
    restarts: int
    state: ContainerState
    reason: str | None = None


class PodEvent(Record):
    type: str
    reason: str
    message: str
    count: int
    last_seen: str


class PodSummary(Record):
    namespace: str
    name: str
    status: str
    ready: str
    restarts: int
    age: str
    node: str | None = None


class PodDetail(PodSummary):
    ip: str | None = None
    containers: list[ContainerStatus] = Field(default_factory=list)
    conditions: list[Condition] = Field(default_factory=list)
    events: list[PodEvent] = Field(default_factory=list)


class PodProblem(Record):
    namespace: str
    name: str
    status: str
    restarts: int
    reason: str | None = None
    message: str | None = None


# ── Deployments ──────────────────────────────────────────────────────────────

class DeploymentSummary(Record):
    namespace: str
    name: str
    ready: str
    up_to_date: int
    available: int
    age: str


class DeploymentDetail(DeploymentSummary):
    image: str
    replicas: int
    strategy: str
    conditions: list[Condition] = Field(default_factory=list)
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)


# ── Services ─────────────────────────────────────────────────────────────────

class ServiceSummary(Record):
    namespace: str
    name: str
    type: str
    cluster_ip: str = Field(alias="clusterIP")
    external_ip: str | None = Field(default=None, alias="externalIP")
    ports: str
    age: str


# ── Nodes ────────────────────────────────────────────────────────────────────

class Taint(Record):
    key: str
    effect: str


class NodeResources(Record):
    cpu: str
    memory: str
    pods: str


class NodeSummary(Record):
    name: str
    status: Literal["Ready", "NotReady"]
    roles: str
    age: str
    version: str
    os: str


class NodeDetail(NodeSummary):
    cpu: str
    memory: str
    pod_cidr: str | None = Field(default=None, alias="podCIDR")
    taints: list[Taint] = Field(default_factory=list)
    conditions: list[Condition] = Field(default_factory=list)
    allocatable: NodeResources
    capacity: NodeResources


# ── Events ───────────────────────────────────────────────────────────────────

class EventSummary(Record):
    namespace: str
    name: str
    type: str
    reason: str
    message: str
    count: int
    involved_object: str
    last_seen: str


# ── Storage & batch ──────────────────────────────────────────────────────────

class PVCSummary(Record):
    namespace: str
    name: str
    status: str
    volume: str
    capacity: str
    access_modes: str
    storage_class: str
    age: str


class CronJobSummary(Record):
    namespace: str
    name: str
    schedule: str
    suspend: bool
    active: int
    last_schedule: str | None = None
    age: str


class JobSummary(Record):
    namespace: str
    name: str
    completions: str
    duration: str | None = None
    age: str
    status: Literal["Complete", "Failed", "Running"]


# ── Custom resources ─────────────────────────────────────────────────────────

class IngressRouteRule(Record):
    match: str
    services: list[str] = Field(default_factory=list)


class IngressRouteSummary(Record):
    namespace: str
    name: str
    entry_points: list[str] = Field(default_factory=list)
    rules: list[IngressRouteRule] = Field(default_factory=list)
    age: str


class ArgoCDAppSummary(Record):
    name: str
    project: str
    sync_status: str
    health_status: str
    repo: str
    path: str
    target_revision: str
    namespace: str


class ArgoCDCondition(Record):
    type: str
    message: str


class ArgoCDResource(Record):
    group: str
    kind: str
    namespace: str
    name: str
    status: str
    health: str | None = None


class ArgoCDHistoryEntry(Record):
    revision: str
    deployed_at: str
    id: int


class ArgoCDAppDetail(ArgoCDAppSummary):
    conditions: list[ArgoCDCondition] = Field(default_factory=list)
    resources: list[ArgoCDResource] = Field(default_factory=list)
    history: list[ArgoCDHistoryEntry] = Field(default_factory=list)


class ScaledObjectSummary(Record):
    namespace: str
    name: str
    scale_target_kind: str
    scale_target_name: str
    min_replicas: int
    max_replicas: int
    triggers: str
    ready: str
    active: str
    age: str


class LonghornVolumeSummary(Record):
    name: str
    state: str
    robustness: str
    access_mode: str
    size: str
    replicas: int
    namespace: str | None = None
    pvc: str | None = None


# ── Health ───────────────────────────────────────────────────────────────────

class HealthStatus(Record):
    app: str
    status: Literal["healthy", "unavailable"]
    latency_ms: int
    details: dict[str, str] | None = None
