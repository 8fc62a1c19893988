"""
Optional custom resources: Traefik IngressRoutes, ArgoCD Applications,
KEDA ScaledObjects and Longhorn Volumes.

These kinds only exist when the matching extension is installed. Listing one
that is absent is not an error for the caller: ``list_custom_objects`` turns
any failure into an empty list and logs why.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from k8s_fabric.formatters import age, dig, join
from k8s_fabric.kubectl import KubectlError
from k8s_fabric.models import (
    ArgoCDAppDetail,
    ArgoCDAppSummary,
    ArgoCDCondition,
    ArgoCDHistoryEntry,
    ArgoCDResource,
    IngressRouteRule,
    IngressRouteSummary,
    LonghornVolumeSummary,
    ScaledObjectSummary,
)

if TYPE_CHECKING:
    from k8s_fabric.adapter import ClusterClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomResource:
    group: str
    version: str
    plural: str
    # Extensions installed into a fixed namespace (ArgoCD, Longhorn).
    home_namespace: str | None = None

    @property
    def label(self) -> str:
        return f"{self.plural}.{self.version}.{self.group}"


INGRESS_ROUTES = CustomResource("traefik.io", "v1alpha1", "ingressroutes")
ARGOCD_APPS = CustomResource("argoproj.io", "v1alpha1", "applications", home_namespace="argocd")
SCALED_OBJECTS = CustomResource("keda.sh", "v1alpha1", "scaledobjects")
LONGHORN_VOLUMES = CustomResource("longhorn.io", "v1beta2", "volumes", home_namespace="longhorn-system")

ARGOCD_HISTORY_LIMIT = 10


async def list_custom_objects(
    client: ClusterClient,
    crd: CustomResource,
    namespace: str | None = None,
) -> list[dict]:
    """List a custom resource kind, degrading to ``[]`` on any failure."""
    try:
        return await client.list_custom_objects(crd.group, crd.version, crd.plural, namespace)
    except Exception as exc:  # noqa: BLE001
        if isinstance(exc, KubectlError) and exc.missing_kind:
            logger.debug("%s not installed in this cluster", crd.label)
        else:
            logger.warning("listing %s failed, returning no results: %s", crd.label, exc)
        return []


# ---------------------------------------------------------------------------
# Normalizers
# ---------------------------------------------------------------------------

def ingress_route_summary(ir: dict) -> IngressRouteSummary:
    rules = [
        IngressRouteRule(
            match=route.get("match") or "",
            services=[f"{s.get('name', '')}:{s.get('port', '')}" for s in route.get("services") or []],
        )
        for route in dig(ir, "spec", "routes", default=[])
    ]
    return IngressRouteSummary(
        namespace=dig(ir, "metadata", "namespace", default=""),
        name=dig(ir, "metadata", "name", default=""),
        entry_points=dig(ir, "spec", "entryPoints", default=[]),
        rules=rules,
        age=age(dig(ir, "metadata", "creationTimestamp")),
    )


def _argocd_summary_fields(app: dict) -> dict:
    return {
        "name": dig(app, "metadata", "name", default=""),
        "project": dig(app, "spec", "project", default="default"),
        "sync_status": dig(app, "status", "sync", "status", default="Unknown"),
        "health_status": dig(app, "status", "health", "status", default="Unknown"),
        "repo": dig(app, "spec", "source", "repoURL", default=""),
        "path": dig(app, "spec", "source", "path", default=""),
        "target_revision": dig(app, "spec", "source", "targetRevision", default="HEAD"),
        "namespace": dig(app, "spec", "destination", "namespace", default=""),
    }


def argocd_app_summary(app: dict) -> ArgoCDAppSummary:
    return ArgoCDAppSummary(**_argocd_summary_fields(app))


def argocd_app_detail(app: dict) -> ArgoCDAppDetail:
    history = dig(app, "status", "history", default=[])[-ARGOCD_HISTORY_LIMIT:]
    return ArgoCDAppDetail(
        **_argocd_summary_fields(app),
        conditions=[
            ArgoCDCondition(type=c.get("type") or "", message=c.get("message") or "")
            for c in dig(app, "status", "conditions", default=[])
        ],
        resources=[
            ArgoCDResource(
                group=r.get("group") or "",
                kind=r.get("kind") or "",
                namespace=r.get("namespace") or "",
                name=r.get("name") or "",
                status=r.get("status") or "",
                health=dig(r, "health", "status"),
            )
            for r in dig(app, "status", "resources", default=[])
        ],
        history=[
            ArgoCDHistoryEntry(
                revision=h.get("revision") or "",
                deployed_at=h.get("deployedAt") or "",
                id=h.get("id") or 0,
            )
            for h in history
        ],
    )


def _condition_status(obj: dict, cond_type: str) -> str:
    for cond in dig(obj, "status", "conditions", default=[]):
        if cond.get("type") == cond_type:
            return cond.get("status") or "Unknown"
    return "Unknown"


def scaled_object_summary(so: dict) -> ScaledObjectSummary:
    return ScaledObjectSummary(
        namespace=dig(so, "metadata", "namespace", default=""),
        name=dig(so, "metadata", "name", default=""),
        scale_target_kind=dig(so, "spec", "scaleTargetRef", "kind", default="Deployment"),
        scale_target_name=dig(so, "spec", "scaleTargetRef", "name", default=""),
        min_replicas=dig(so, "spec", "minReplicaCount", default=0),
        max_replicas=dig(so, "spec", "maxReplicaCount", default=100),
        triggers=join(t.get("type") for t in dig(so, "spec", "triggers", default=[])),
        ready=_condition_status(so, "Ready"),
        active=_condition_status(so, "Active"),
        age=age(dig(so, "metadata", "creationTimestamp")),
    )


def longhorn_volume_summary(v: dict) -> LonghornVolumeSummary:
    return LonghornVolumeSummary(
        name=dig(v, "metadata", "name", default=""),
        state=dig(v, "status", "state", default="unknown"),
        robustness=dig(v, "status", "robustness", default="unknown"),
        access_mode=dig(v, "spec", "accessMode", default=""),
        size=str(dig(v, "spec", "size", default="")),
        replicas=dig(v, "spec", "numberOfReplicas", default=0),
        namespace=dig(v, "status", "kubernetesStatus", "namespace") or None,
        pvc=dig(v, "status", "kubernetesStatus", "pvcName") or None,
    )
