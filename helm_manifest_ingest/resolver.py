"""Resolve cluster identity and descriptive metadata from validated resources.

Identity fields (region, cluster, account id) are each resolved by walking an
ordered chain of sources and stopping at the first hit:

1. Kubernetes topology / cluster labels
2. Helm user-supplied values, then ConfigMap payloads
3. AWS / EKS annotations, including ARNs in annotation values
4. Container environment variables, including ARNs embedded in values
5. The Helm release instance label, for the cluster only

Caller supplied overrides, when given, sit in front of every chain.

Descriptive metadata (images, references, services, ...) is accumulated
across all resources in order.  Each extraction is isolated: a malformed
field in one resource never stops the others.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from helm_manifest_ingest.arn import (
    account_from_arn,
    find_arns,
    is_account_id,
    is_region,
    region_from_arn,
    region_from_zone,
)
from helm_manifest_ingest.models import (
    DeploymentMetadata,
    KubernetesResource,
    MetadataRecord,
    OwnerReference,
    ReplicaCount,
    ResourceFacts,
    ServiceInfo,
    as_list,
    as_mapping,
    as_str,
)
from helm_manifest_ingest.observer import Observer, resolve_observer
from helm_manifest_ingest.values import extract_deployment_metadata, extract_from_configmap_data

logger = logging.getLogger(__name__)

REGION_LABELS = ("topology.kubernetes.io/region", "failure-domain.beta.kubernetes.io/region")
ZONE_LABELS = ("topology.kubernetes.io/zone", "failure-domain.beta.kubernetes.io/zone")
CLUSTER_LABELS = (
    "cluster",
    "cluster-name",
    "eks.amazonaws.com/cluster",
    "eks.amazonaws.com/cluster-name",
)
# Helm release name; only used when nothing else names the cluster.
RELEASE_INSTANCE_LABEL = "app.kubernetes.io/instance"
CLUSTER_ANNOTATIONS = ("eks.amazonaws.com/cluster-name", "eks.amazonaws.com/cluster")
REGION_ANNOTATIONS = ("aws.amazon.com/region",)
ACCOUNT_ANNOTATIONS = ("aws.amazon.com/account-id",)
INGRESS_CLASS_ANNOTATIONS = ("kubernetes.io/ingress.class", "ingressClassName")

REGION_ENV_VARS = {"AWS_REGION", "AWS_DEFAULT_REGION"}
ACCOUNT_ENV_VARS = {"AWS_ACCOUNT_ID", "ACCOUNT_ID"}
CLUSTER_ENV_VARS = {"CLUSTER_NAME", "EKS_CLUSTER_NAME"}

LOAD_BALANCER_MARKERS = ("load-balancer", "loadbalancer")

IDENTITY_FIELDS = ("region", "cluster", "account_id")


# ──────────────────────────── Identity sources ───────────────────────────────


@dataclass
class ResolutionContext:
    """Everything the identity sources look at, prepared once per call."""

    resources: list[KubernetesResource]
    values: DeploymentMetadata = field(default_factory=DeploymentMetadata)
    configmaps: DeploymentMetadata = field(default_factory=DeploymentMetadata)
    overrides: DeploymentMetadata = field(default_factory=DeploymentMetadata)

    def env_entries(self) -> list[tuple[str, str]]:
        """(name, value) of every literal env var across all containers."""
        entries: list[tuple[str, str]] = []
        for resource in self.resources:
            for container in resource.containers:
                for env in as_list(container.get("env")):
                    value = as_str(as_mapping(env).get("value"))
                    if value:
                        entries.append((as_str(env.get("name")) or "", value))
        return entries


Source = Callable[[ResolutionContext], "str | None"]


def _first_label(labels: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = as_str(labels.get(key))
        if value:
            return value
    return None


def _annotation_arns(ctx: ResolutionContext) -> list[str]:
    arns: list[str] = []
    for resource in ctx.resources:
        for value in resource.annotations.values():
            arns.extend(find_arns(value) if isinstance(value, str) else [])
    return arns


def _env_arns(ctx: ResolutionContext) -> list[str]:
    arns: list[str] = []
    for _name, value in ctx.env_entries():
        arns.extend(find_arns(value))
    return arns


def _first(values: list[str | None]) -> str | None:
    for value in values:
        if value:
            return value
    return None


def region_from_labels(ctx: ResolutionContext) -> str | None:
    for resource in ctx.resources:
        region = _first_label(resource.labels, REGION_LABELS)
        if region:
            return region
    for resource in ctx.resources:
        zone = _first_label(resource.labels, ZONE_LABELS)
        region = region_from_zone(zone) if zone else None
        if region:
            return region
    return None


def cluster_from_labels(ctx: ResolutionContext) -> str | None:
    return _first([_first_label(r.labels, CLUSTER_LABELS) for r in ctx.resources])


def cluster_from_release_label(ctx: ResolutionContext) -> str | None:
    return _first([as_str(r.labels.get(RELEASE_INSTANCE_LABEL)) for r in ctx.resources])


def region_from_annotations(ctx: ResolutionContext) -> str | None:
    explicit = _first([_first_label(r.annotations, REGION_ANNOTATIONS) for r in ctx.resources])
    return explicit or _first([region_from_arn(arn) for arn in _annotation_arns(ctx)])


def cluster_from_annotations(ctx: ResolutionContext) -> str | None:
    return _first([_first_label(r.annotations, CLUSTER_ANNOTATIONS) for r in ctx.resources])


def account_from_annotations(ctx: ResolutionContext) -> str | None:
    explicit = _first([_first_label(r.annotations, ACCOUNT_ANNOTATIONS) for r in ctx.resources])
    return explicit or _first([account_from_arn(arn) for arn in _annotation_arns(ctx)])


def region_from_env(ctx: ResolutionContext) -> str | None:
    from_arn = _first([region_from_arn(arn) for arn in _env_arns(ctx)])
    if from_arn:
        return from_arn
    for name, value in ctx.env_entries():
        if name in REGION_ENV_VARS and is_region(value):
            return value
    return None


def account_from_env(ctx: ResolutionContext) -> str | None:
    from_arn = _first([account_from_arn(arn) for arn in _env_arns(ctx)])
    if from_arn:
        return from_arn
    for name, value in ctx.env_entries():
        if name in ACCOUNT_ENV_VARS and is_account_id(value):
            return value
    return None


def _eks_cluster_from_arn(arn: str) -> str | None:
    # arn:aws:eks:<region>:<account>:cluster/<name>
    parts = arn.split(":", 5)
    if len(parts) == 6 and parts[2] == "eks" and parts[5].startswith("cluster/"):
        return parts[5].split("/", 1)[1] or None
    return None


def cluster_from_env(ctx: ResolutionContext) -> str | None:
    from_arn = _first([_eks_cluster_from_arn(arn) for arn in _env_arns(ctx)])
    if from_arn:
        return from_arn
    for name, value in ctx.env_entries():
        if name in CLUSTER_ENV_VARS and not value.startswith("${"):
            return value
    return None


REGION_SOURCES: list[tuple[str, Source]] = [
    ("override", lambda ctx: ctx.overrides.region),
    ("labels", region_from_labels),
    ("values", lambda ctx: ctx.values.region),
    ("configmap", lambda ctx: ctx.configmaps.region),
    ("annotations", region_from_annotations),
    ("env", region_from_env),
]
CLUSTER_SOURCES: list[tuple[str, Source]] = [
    ("override", lambda ctx: ctx.overrides.cluster),
    ("labels", cluster_from_labels),
    ("values", lambda ctx: ctx.values.cluster),
    ("configmap", lambda ctx: ctx.configmaps.cluster),
    ("annotations", cluster_from_annotations),
    ("env", cluster_from_env),
    ("release-label", cluster_from_release_label),
]
ACCOUNT_SOURCES: list[tuple[str, Source]] = [
    ("override", lambda ctx: ctx.overrides.account_id),
    ("values", lambda ctx: ctx.values.account_id),
    ("configmap", lambda ctx: ctx.configmaps.account_id),
    ("annotations", account_from_annotations),
    ("env", account_from_env),
]

SOURCES_BY_FIELD: dict[str, list[tuple[str, Source]]] = {
    "region": REGION_SOURCES,
    "cluster": CLUSTER_SOURCES,
    "account_id": ACCOUNT_SOURCES,
}


def resolve_field(
    ctx: ResolutionContext, sources: list[tuple[str, Source]]
) -> tuple[str | None, str | None]:
    """Return ``(value, source_name)`` from the first source that yields a value."""
    for name, source in sources:
        value = source(ctx)
        if value:
            return value, name
    return None, None


def _configmap_metadata(resources: list[KubernetesResource]) -> DeploymentMetadata:
    merged = DeploymentMetadata()
    for resource in resources:
        if resource.kind != "ConfigMap" or not resource.data:
            continue
        found = extract_from_configmap_data(resource.data)
        merged = DeploymentMetadata(
            region=merged.region or found.region,
            cluster=merged.cluster or found.cluster,
            account_id=merged.account_id or found.account_id,
        )
        if merged.region and merged.cluster and merged.account_id:
            break
    return merged


# ──────────────────────────── Descriptive facts ──────────────────────────────


def _volumes(resource: KubernetesResource) -> list[dict[str, Any]]:
    return [v for v in as_list(resource.pod_spec.get("volumes")) if isinstance(v, dict)]


def _images(resource: KubernetesResource) -> list[str]:
    return [c["image"] for c in resource.containers if as_str(c.get("image"))]


def _container_names(resource: KubernetesResource) -> list[str]:
    return [c["name"] for c in resource.containers if as_str(c.get("name"))]


def _config_refs(resource: KubernetesResource) -> list[str]:
    refs: list[str] = []
    for volume in _volumes(resource):
        name = as_str(as_mapping(volume.get("configMap")).get("name"))
        if name:
            refs.append(name)
        for projected in as_list(as_mapping(volume.get("projected")).get("sources")):
            name = as_str(as_mapping(as_mapping(projected).get("configMap")).get("name"))
            if name:
                refs.append(name)
    for container in resource.containers:
        for env in as_list(container.get("env")):
            value_from = as_mapping(as_mapping(env).get("valueFrom"))
            name = as_str(as_mapping(value_from.get("configMapKeyRef")).get("name"))
            if name:
                refs.append(name)
        for env_from in as_list(container.get("envFrom")):
            name = as_str(as_mapping(as_mapping(env_from).get("configMapRef")).get("name"))
            if name:
                refs.append(name)
    return refs


def _secret_refs(resource: KubernetesResource) -> list[str]:
    refs: list[str] = []
    for volume in _volumes(resource):
        name = as_str(as_mapping(volume.get("secret")).get("secretName"))
        if name:
            refs.append(name)
        for projected in as_list(as_mapping(volume.get("projected")).get("sources")):
            name = as_str(as_mapping(as_mapping(projected).get("secret")).get("name"))
            if name:
                refs.append(name)
    for container in resource.containers:
        for env in as_list(container.get("env")):
            value_from = as_mapping(as_mapping(env).get("valueFrom"))
            name = as_str(as_mapping(value_from.get("secretKeyRef")).get("name"))
            if name:
                refs.append(name)
        for env_from in as_list(container.get("envFrom")):
            name = as_str(as_mapping(as_mapping(env_from).get("secretRef")).get("name"))
            if name:
                refs.append(name)
    return refs


def _claim_templates(resource: KubernetesResource) -> list[dict[str, Any]]:
    return [t for t in as_list(resource.spec.get("volumeClaimTemplates")) if isinstance(t, dict)]


def _volume_claims(resource: KubernetesResource) -> list[str]:
    claims: list[str] = []
    for volume in _volumes(resource):
        name = as_str(as_mapping(volume.get("persistentVolumeClaim")).get("claimName"))
        if name:
            claims.append(name)
    for template in _claim_templates(resource):
        name = as_str(as_mapping(template.get("metadata")).get("name"))
        if name:
            claims.append(name)
    return claims


def _storage_classes(resource: KubernetesResource) -> list[str]:
    if resource.kind == "StorageClass":
        return [resource.name] if resource.name else []
    classes: list[str] = []
    if resource.kind == "PersistentVolumeClaim":
        name = as_str(resource.spec.get("storageClassName"))
        if name:
            classes.append(name)
    for template in _claim_templates(resource):
        name = as_str(as_mapping(template.get("spec")).get("storageClassName"))
        if name:
            classes.append(name)
    return classes


def _arns(resource: KubernetesResource) -> list[str]:
    arns: list[str] = []
    for value in resource.annotations.values():
        if isinstance(value, str):
            arns.extend(find_arns(value))
    for container in resource.containers:
        for env in as_list(container.get("env")):
            value = as_str(as_mapping(env).get("value"))
            if value:
                arns.extend(find_arns(value))
    return arns


def _replicas(resource: KubernetesResource) -> int | None:
    replicas = resource.spec.get("replicas")
    # bool is an int subclass; "replicas: true" is not a count.
    if isinstance(replicas, int) and not isinstance(replicas, bool):
        return replicas
    return None


def _service(resource: KubernetesResource) -> ServiceInfo | None:
    if resource.kind != "Service":
        return None
    spec = resource.spec
    lb_annotations = {
        str(k): str(v)
        for k, v in resource.annotations.items()
        if any(marker in str(k).lower() for marker in LOAD_BALANCER_MARKERS)
    }
    return ServiceInfo(
        name=resource.name,
        namespace=resource.namespace,
        type=as_str(spec.get("type")) or "ClusterIP",
        load_balancer_class=as_str(spec.get("loadBalancerClass")),
        load_balancer_ip=as_str(spec.get("loadBalancerIP")),
        load_balancer_source_ranges=[
            str(r) for r in as_list(spec.get("loadBalancerSourceRanges")) if r
        ],
        external_traffic_policy=as_str(spec.get("externalTrafficPolicy")),
        annotations=lb_annotations,
    )


def _ingress_class(resource: KubernetesResource) -> str | None:
    if resource.kind != "Ingress":
        return None
    return as_str(resource.spec.get("ingressClassName")) or _first_label(
        resource.annotations, INGRESS_CLASS_ANNOTATIONS
    )


def _selector(resource: KubernetesResource) -> dict[str, str]:
    selector = as_mapping(resource.spec.get("selector"))
    match_labels = as_mapping(selector.get("matchLabels"))
    if resource.kind == "Service":
        match_labels = selector
    return {str(k): str(v) for k, v in match_labels.items()}


def _owner_references(resource: KubernetesResource) -> list[OwnerReference]:
    owners: list[OwnerReference] = []
    for ref in as_list(resource.metadata.get("ownerReferences")):
        ref = as_mapping(ref)
        owners.append(
            OwnerReference(
                kind=str(ref.get("kind", "")),
                name=str(ref.get("name", "")),
                uid=str(ref.get("uid", "")),
            )
        )
    return owners


def _core_identifiers(resource: KubernetesResource) -> dict[str, Any]:
    meta = resource.metadata
    generation = meta.get("generation")
    if isinstance(generation, bool) or not isinstance(generation, int):
        generation = None
    return {
        "uid": str(meta["uid"]) if meta.get("uid") else None,
        "resource_version": str(meta["resourceVersion"]) if meta.get("resourceVersion") else None,
        "generation": generation,
        "zone": _first_label(resource.labels, ZONE_LABELS),
    }


_LIST_EXTRACTORS: list[tuple[str, Callable[[KubernetesResource], Any]]] = [
    ("images", _images),
    ("container_names", _container_names),
    ("config_refs", _config_refs),
    ("secret_refs", _secret_refs),
    ("volume_claims", _volume_claims),
    ("storage_classes", _storage_classes),
    ("arns", _arns),
    ("selector", _selector),
    ("owner_references", _owner_references),
]
_SCALAR_EXTRACTORS: list[tuple[str, Callable[[KubernetesResource], Any]]] = [
    ("replicas", _replicas),
    ("service", _service),
    ("ingress_class", _ingress_class),
]


def describe_resource(
    resource: KubernetesResource, observer: Observer | None = None
) -> ResourceFacts:
    """Extract descriptive facts from one resource, tolerating malformed fields."""
    obs = resolve_observer(observer)
    values: dict[str, Any] = {"resource": resource.qualified_name, "kind": resource.kind}

    try:
        values.update(_core_identifiers(resource))
    except Exception as exc:
        obs.debug(f"Failed to read identifiers of {resource.identifier}: {exc}")

    for name, extractor in _LIST_EXTRACTORS + _SCALAR_EXTRACTORS:
        try:
            values[name] = extractor(resource)
        except Exception as exc:
            obs.debug(f"Failed to extract {name} from {resource.identifier}: {exc}")

    return ResourceFacts(**{k: v for k, v in values.items() if v is not None})


# ──────────────────────────── Fold ───────────────────────────────────────────


def resolve_metadata(
    resources: list[KubernetesResource],
    user_supplied_values: str | None = None,
    observer: Observer | None = None,
    overrides: DeploymentMetadata | None = None,
) -> MetadataRecord:
    """Fold every resource (and the Helm values, if any) into one record.

    Never raises for malformed resource content; unresolved identity fields
    are simply left unset.
    """
    obs = resolve_observer(observer)
    values = extract_deployment_metadata(user_supplied_values) or DeploymentMetadata()
    if not values.is_empty:
        obs.debug(
            f"Extracted from user-supplied values: accountId={values.account_id}, "
            f"region={values.region}, cluster={values.cluster}"
        )

    ctx = ResolutionContext(
        resources=resources,
        values=values,
        configmaps=_configmap_metadata(resources),
        overrides=overrides or DeploymentMetadata(),
    )

    identity: dict[str, str | None] = {}
    sources: dict[str, str] = {}
    for field_name in IDENTITY_FIELDS:
        value, source = resolve_field(ctx, SOURCES_BY_FIELD[field_name])
        identity[field_name] = value
        if source:
            sources[field_name] = source
            obs.info(f"✓ Detected {field_name} from {source}: {value}")

    facts = [describe_resource(r, obs) for r in resources]

    return MetadataRecord(
        region=identity["region"],
        cluster=identity["cluster"],
        account_id=identity["account_id"],
        environment=ctx.overrides.environment or values.environment,
        images=[image for f in facts for image in f.images],
        container_names=[name for f in facts for name in f.container_names],
        config_refs=[ref for f in facts for ref in f.config_refs],
        secret_refs=[ref for f in facts for ref in f.secret_refs],
        volume_claims=[claim for f in facts for claim in f.volume_claims],
        services=[f.service for f in facts if f.service is not None],
        storage_classes=[sc for f in facts for sc in f.storage_classes],
        replica_counts=[
            ReplicaCount(resource=f.resource, kind=f.kind, replicas=f.replicas)
            for f in facts
            if f.replicas is not None
        ],
        arns=[arn for f in facts for arn in f.arns],
        sources=sources,
        resources=facts,
    )
