"""
Normalization adapter — turns raw Kubernetes objects into flat records.

One coroutine per query. Every list query takes an optional namespace: when
given, the client is asked for that namespace only; when omitted, the client
is asked for all namespaces. Results are never filtered client-side.

Absent nested fields fall back to documented defaults ('Unknown', '', 0, []).
Client errors for core resources propagate unchanged; the optional custom
resources (see ``k8s_fabric.crds``) degrade to empty lists instead.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

from k8s_fabric import crds
from k8s_fabric.formatters import age, dig, join, parse_timestamp, ready_ratio, sort_key_timestamp
from k8s_fabric.models import (
    ArgoCDAppDetail,
    ArgoCDAppSummary,
    ClusterInfo,
    Condition,
    ContainerStatus,
    CronJobSummary,
    DeploymentDetail,
    DeploymentSummary,
    EventSummary,
    IngressRouteSummary,
    JobSummary,
    LonghornVolumeSummary,
    NamespaceSummary,
    NodeDetail,
    NodeResources,
    NodeSummary,
    PodDetail,
    PodEvent,
    PodProblem,
    PodSummary,
    PVCSummary,
    ScaledObjectSummary,
    ServiceSummary,
    Taint,
)

NODE_ROLE_PREFIX = "node-role.kubernetes.io/"
RESTART_THRESHOLD = 5
POD_EVENT_LIMIT = 10
DEFAULT_EVENT_LIMIT = 50
DEFAULT_TAIL_LINES = 100


class ClusterClient(Protocol):
    """The raw read capability the adapter depends on."""

    async def server_version(self) -> dict: ...

    async def list_resources(
        self, kind: str, namespace: str | None = None, *, field_selector: str | None = None
    ) -> list[dict]: ...

    async def get_resource(self, kind: str, name: str, namespace: str | None = None) -> dict: ...

    async def list_custom_objects(
        self, group: str, version: str, plural: str, namespace: str | None = None
    ) -> list[dict]: ...

    async def get_custom_object(
        self, group: str, version: str, plural: str, name: str, namespace: str
    ) -> dict: ...

    async def pod_logs(
        self,
        namespace: str,
        name: str,
        *,
        container: str | None = None,
        tail_lines: int = DEFAULT_TAIL_LINES,
        since_seconds: int | None = None,
        previous: bool = False,
    ) -> str: ...


# ---------------------------------------------------------------------------
# Pure derivations
# ---------------------------------------------------------------------------

def container_statuses(pod: dict) -> list[dict]:
    return dig(pod, "status", "containerStatuses", default=[])


def total_restarts(statuses: list[dict]) -> int:
    return sum(c.get("restartCount") or 0 for c in statuses)


def pod_ready(statuses: list[dict]) -> str:
    return ready_ratio(sum(1 for c in statuses if c.get("ready")), len(statuses))


def container_state(status: dict) -> tuple[str, str | None]:
    """Classify a container as running, waiting or terminated, in that priority."""
    state = status.get("state") or {}
    if state.get("running") is not None:
        return "running", None
    if state.get("waiting") is not None:
        return "waiting", state["waiting"].get("reason")
    if state.get("terminated") is not None:
        return "terminated", state["terminated"].get("reason")
    return "unknown", None


def is_problem_pod(pod: dict) -> bool:
    phase = dig(pod, "status", "phase")
    if phase in ("Running", "Succeeded"):
        statuses = container_statuses(pod)
        high_restarts = any((c.get("restartCount") or 0) > RESTART_THRESHOLD for c in statuses)
        not_ready = any(not c.get("ready") for c in statuses)
        return high_restarts or (not_ready and phase == "Running")
    return phase in ("Failed", "Pending", "Unknown")


def node_roles(node: dict) -> str:
    labels = dig(node, "metadata", "labels", default={})
    roles = [k[len(NODE_ROLE_PREFIX):] for k in labels if k.startswith(NODE_ROLE_PREFIX)]
    return ",".join(roles) or "worker"


def node_status(node: dict) -> str:
    for cond in dig(node, "status", "conditions", default=[]):
        if cond.get("type") == "Ready":
            return "Ready" if cond.get("status") == "True" else "NotReady"
    return "NotReady"


def event_timestamp(event: dict) -> str | None:
    # events.k8s.io-style records may only carry eventTime
    return event.get("lastTimestamp") or event.get("eventTime")


def newest_events(events: list[dict], limit: int) -> list[dict]:
    ordered = sorted(events, key=lambda e: sort_key_timestamp(event_timestamp(e)), reverse=True)
    return ordered[:max(limit, 0)]


def job_status(job: dict) -> str:
    conditions = dig(job, "status", "conditions", default=[])
    if any(c.get("type") == "Complete" and c.get("status") == "True" for c in conditions):
        return "Complete"
    if any(c.get("type") == "Failed" and c.get("status") == "True" for c in conditions):
        return "Failed"
    return "Running"


def job_duration(job: dict) -> str | None:
    start = parse_timestamp(dig(job, "status", "startTime"))
    end = parse_timestamp(dig(job, "status", "completionTime"))
    if start is None or end is None:
        return None
    return f"{round((end - start).total_seconds())}s"


def _first(*values):
    for v in values:
        if v is not None:
            return v
    return None


def _conditions(obj: dict, *, with_message: bool = False) -> list[Condition]:
    return [
        Condition(
            type=c.get("type") or "",
            status=c.get("status") or "Unknown",
            reason=c.get("reason"),
            message=c.get("message") if with_message else None,
        )
        for c in dig(obj, "status", "conditions", default=[])
    ]


def _meta(obj: dict) -> tuple[str, str, str]:
    return (
        dig(obj, "metadata", "namespace", default=""),
        dig(obj, "metadata", "name", default=""),
        age(dig(obj, "metadata", "creationTimestamp")),
    )


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------

class ClusterAdapter:
    def __init__(self, client: ClusterClient):
        self.client = client

    # -- cluster ----------------------------------------------------------------

    async def get_cluster_info(self) -> ClusterInfo:
        version, nodes, namespaces, pods = await asyncio.gather(
            self.client.server_version(),
            self.client.list_resources("nodes"),
            self.client.list_resources("namespaces"),
            self.client.list_resources("pods"),
        )
        major, minor = version.get("major"), version.get("minor")
        return ClusterInfo(
            server_version=f"{major}.{minor}" if major or minor else "unknown",
            platform=version.get("platform") or "unknown",
            node_count=len(nodes),
            namespace_count=len(namespaces),
            pod_count=len(pods),
        )

    async def list_namespaces(self) -> list[NamespaceSummary]:
        items = await self.client.list_resources("namespaces")
        return [
            NamespaceSummary(
                name=dig(ns, "metadata", "name", default=""),
                status=dig(ns, "status", "phase", default="Unknown"),
                age=age(dig(ns, "metadata", "creationTimestamp")),
            )
            for ns in items
        ]

    # -- pods -------------------------------------------------------------------

    @staticmethod
    def _pod_summary_fields(pod: dict) -> dict:
        statuses = container_statuses(pod)
        namespace, name, created = _meta(pod)
        return {
            "namespace": namespace,
            "name": name,
            "status": dig(pod, "status", "phase", default="Unknown"),
            "ready": pod_ready(statuses),
            "restarts": total_restarts(statuses),
            "age": created,
            "node": dig(pod, "spec", "nodeName"),
        }

    async def list_pods(self, namespace: str | None = None) -> list[PodSummary]:
        items = await self.client.list_resources("pods", namespace)
        return [PodSummary(**self._pod_summary_fields(pod)) for pod in items]

    async def get_pod(self, namespace: str, name: str) -> PodDetail:
        pod, events = await asyncio.gather(
            self.client.get_resource("pods", name, namespace),
            self.client.list_resources(
                "events", namespace, field_selector=f"involvedObject.name={name}"
            ),
        )
        containers = []
        for c in container_statuses(pod):
            state, reason = container_state(c)
            containers.append(
                ContainerStatus(
                    name=c.get("name") or "",
                    image=c.get("image") or "",
                    ready=bool(c.get("ready")),
                    restarts=c.get("restartCount") or 0,
                    state=state,
                    reason=reason,
                )
            )
        fields = self._pod_summary_fields(pod)
        fields.update(namespace=namespace, name=name)
        return PodDetail(
            **fields,
            ip=dig(pod, "status", "podIP"),
            containers=containers,
            conditions=_conditions(pod),
            events=[
                PodEvent(
                    type=e.get("type") or "",
                    reason=e.get("reason") or "",
                    message=e.get("message") or "",
                    count=e.get("count") or 1,
                    last_seen=age(event_timestamp(e)),
                )
                for e in newest_events(events, POD_EVENT_LIMIT)
            ],
        )

    async def get_pod_logs(
        self,
        namespace: str,
        name: str,
        *,
        container: str | None = None,
        tail_lines: int | None = None,
        since_seconds: int | None = None,
        previous: bool = False,
    ) -> str:
        return await self.client.pod_logs(
            namespace,
            name,
            container=container,
            tail_lines=tail_lines if tail_lines is not None else DEFAULT_TAIL_LINES,
            since_seconds=since_seconds,
            previous=previous,
        )

    async def get_pod_problems(self, namespace: str | None = None) -> list[PodProblem]:
        items = await self.client.list_resources("pods", namespace)
        problems = []
        for pod in items:
            if not is_problem_pod(pod):
                continue
            statuses = container_statuses(pod)
            waiting = next(
                (dig(c, "state", "waiting") for c in statuses if dig(c, "state", "waiting") is not None),
                None,
            )
            failed_condition = next(
                (c for c in dig(pod, "status", "conditions", default=[]) if c.get("status") == "False"),
                {},
            )
            namespace_, name, _ = _meta(pod)
            problems.append(
                PodProblem(
                    namespace=namespace_,
                    name=name,
                    status=dig(pod, "status", "phase", default="Unknown"),
                    restarts=total_restarts(statuses),
                    reason=_first(dig(waiting, "reason"), failed_condition.get("reason")),
                    message=_first(dig(waiting, "message"), dig(pod, "status", "message")),
                )
            )
        return problems

    # -- deployments ------------------------------------------------------------

    @staticmethod
    def _deployment_summary_fields(d: dict) -> dict:
        namespace, name, created = _meta(d)
        return {
            "namespace": namespace,
            "name": name,
            "ready": ready_ratio(
                dig(d, "status", "readyReplicas", default=0),
                dig(d, "spec", "replicas", default=0),
            ),
            "up_to_date": dig(d, "status", "updatedReplicas", default=0),
            "available": dig(d, "status", "availableReplicas", default=0),
            "age": created,
        }

    async def list_deployments(self, namespace: str | None = None) -> list[DeploymentSummary]:
        items = await self.client.list_resources("deployments", namespace)
        return [DeploymentSummary(**self._deployment_summary_fields(d)) for d in items]

    async def get_deployment(self, namespace: str, name: str) -> DeploymentDetail:
        d = await self.client.get_resource("deployments", name, namespace)
        containers = dig(d, "spec", "template", "spec", "containers", default=[])
        fields = self._deployment_summary_fields(d)
        fields.update(namespace=namespace, name=name)
        return DeploymentDetail(
            **fields,
            image=join((c.get("image") for c in containers), ", "),
            replicas=dig(d, "spec", "replicas", default=0),
            strategy=dig(d, "spec", "strategy", "type", default="RollingUpdate"),
            conditions=_conditions(d, with_message=True),
            labels=dig(d, "metadata", "labels", default={}),
            annotations=dig(d, "metadata", "annotations", default={}),
        )

    # -- services ---------------------------------------------------------------

    async def list_services(self, namespace: str | None = None) -> list[ServiceSummary]:
        items = await self.client.list_resources("services", namespace)
        services = []
        for svc in items:
            ports = join(
                f"{p.get('port')}/{p.get('protocol') or 'TCP'}" for p in dig(svc, "spec", "ports", default=[])
            )
            external = join(
                i.get("ip") or i.get("hostname")
                for i in dig(svc, "status", "loadBalancer", "ingress", default=[])
            )
            namespace_, name, created = _meta(svc)
            services.append(
                ServiceSummary(
                    namespace=namespace_,
                    name=name,
                    type=dig(svc, "spec", "type", default="ClusterIP"),
                    cluster_ip=dig(svc, "spec", "clusterIP", default=""),
                    external_ip=external or None,
                    ports=ports,
                    age=created,
                )
            )
        return services

    # -- nodes ------------------------------------------------------------------

    @staticmethod
    def _node_summary_fields(node: dict) -> dict:
        return {
            "name": dig(node, "metadata", "name", default=""),
            "status": node_status(node),
            "roles": node_roles(node),
            "age": age(dig(node, "metadata", "creationTimestamp")),
            "version": dig(node, "status", "nodeInfo", "kubeletVersion", default=""),
            "os": dig(node, "status", "nodeInfo", "osImage", default=""),
        }

    async def list_nodes(self) -> list[NodeSummary]:
        items = await self.client.list_resources("nodes")
        return [NodeSummary(**self._node_summary_fields(node)) for node in items]

    async def get_node(self, name: str) -> NodeDetail:
        node = await self.client.get_resource("nodes", name)

        def _resources(key: str) -> NodeResources:
            return NodeResources(
                cpu=str(dig(node, "status", key, "cpu", default="")),
                memory=str(dig(node, "status", key, "memory", default="")),
                pods=str(dig(node, "status", key, "pods", default="")),
            )

        return NodeDetail(
            **self._node_summary_fields(node),
            cpu=dig(node, "status", "nodeInfo", "architecture", default=""),
            memory=str(dig(node, "status", "allocatable", "memory", default="")),
            pod_cidr=dig(node, "spec", "podCIDR"),
            taints=[
                Taint(key=t.get("key") or "", effect=t.get("effect") or "")
                for t in dig(node, "spec", "taints", default=[])
            ],
            conditions=_conditions(node),
            allocatable=_resources("allocatable"),
            capacity=_resources("capacity"),
        )

    # -- events -----------------------------------------------------------------

    async def list_events(
        self, namespace: str | None = None, limit: int | None = None
    ) -> list[EventSummary]:
        items = await self.client.list_resources("events", namespace)
        limit = DEFAULT_EVENT_LIMIT if limit is None else limit
        events = []
        for e in newest_events(items, limit):
            namespace_, name, _ = _meta(e)
            involved = e.get("involvedObject") or {}
            events.append(
                EventSummary(
                    namespace=namespace_,
                    name=name,
                    type=e.get("type") or "Normal",
                    reason=e.get("reason") or "",
                    message=e.get("message") or "",
                    count=e.get("count") or 1,
                    involved_object=f"{involved.get('kind', '')}/{involved.get('name', '')}",
                    last_seen=age(event_timestamp(e)),
                )
            )
        return events

    # -- storage ----------------------------------------------------------------

    async def list_pvcs(self, namespace: str | None = None) -> list[PVCSummary]:
        items = await self.client.list_resources("persistentvolumeclaims", namespace)
        pvcs = []
        for pvc in items:
            namespace_, name, created = _meta(pvc)
            pvcs.append(
                PVCSummary(
                    namespace=namespace_,
                    name=name,
                    status=dig(pvc, "status", "phase", default="Unknown"),
                    volume=dig(pvc, "spec", "volumeName", default=""),
                    capacity=str(dig(pvc, "status", "capacity", "storage", default="")),
                    access_modes=join(dig(pvc, "spec", "accessModes", default=[])),
                    storage_class=dig(pvc, "spec", "storageClassName", default=""),
                    age=created,
                )
            )
        return pvcs

    # -- batch ------------------------------------------------------------------

    async def list_cronjobs(self, namespace: str | None = None) -> list[CronJobSummary]:
        items = await self.client.list_resources("cronjobs", namespace)
        cronjobs = []
        for cj in items:
            namespace_, name, created = _meta(cj)
            last = dig(cj, "status", "lastScheduleTime")
            cronjobs.append(
                CronJobSummary(
                    namespace=namespace_,
                    name=name,
                    schedule=dig(cj, "spec", "schedule", default=""),
                    suspend=bool(dig(cj, "spec", "suspend", default=False)),
                    active=len(dig(cj, "status", "active", default=[])),
                    last_schedule=age(last) if last else None,
                    age=created,
                )
            )
        return cronjobs

    async def list_jobs(self, namespace: str | None = None) -> list[JobSummary]:
        items = await self.client.list_resources("jobs", namespace)
        jobs = []
        for job in items:
            namespace_, name, created = _meta(job)
            jobs.append(
                JobSummary(
                    namespace=namespace_,
                    name=name,
                    completions=ready_ratio(
                        dig(job, "status", "succeeded", default=0),
                        dig(job, "spec", "completions", default=1),
                    ),
                    duration=job_duration(job),
                    age=created,
                    status=job_status(job),
                )
            )
        return jobs

    # -- custom resources -------------------------------------------------------

    async def list_ingress_routes(self, namespace: str | None = None) -> list[IngressRouteSummary]:
        items = await crds.list_custom_objects(self.client, crds.INGRESS_ROUTES, namespace)
        return [crds.ingress_route_summary(ir) for ir in items]

    async def list_argocd_apps(self) -> list[ArgoCDAppSummary]:
        items = await crds.list_custom_objects(
            self.client, crds.ARGOCD_APPS, crds.ARGOCD_APPS.home_namespace
        )
        return [crds.argocd_app_summary(app) for app in items]

    async def get_argocd_app(self, name: str) -> ArgoCDAppDetail:
        crd = crds.ARGOCD_APPS
        app = await self.client.get_custom_object(
            crd.group, crd.version, crd.plural, name, crd.home_namespace
        )
        return crds.argocd_app_detail(app)

    async def list_scaled_objects(self, namespace: str | None = None) -> list[ScaledObjectSummary]:
        items = await crds.list_custom_objects(self.client, crds.SCALED_OBJECTS, namespace)
        return [crds.scaled_object_summary(so) for so in items]

    async def list_longhorn_volumes(self) -> list[LonghornVolumeSummary]:
        items = await crds.list_custom_objects(
            self.client, crds.LONGHORN_VOLUMES, crds.LONGHORN_VOLUMES.home_namespace
        )
        return [crds.longhorn_volume_summary(v) for v in items]
