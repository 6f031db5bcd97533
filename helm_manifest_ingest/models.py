"""Pydantic models for ingested manifests and resolved deployment metadata."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def as_mapping(value: Any) -> dict[str, Any]:
    """Return *value* if it is a mapping, otherwise an empty dict."""
    return value if isinstance(value, dict) else {}


def as_list(value: Any) -> list[Any]:
    """Return *value* if it is a list, otherwise an empty list."""
    return value if isinstance(value, list) else []


def as_str(value: Any) -> str | None:
    """Return *value* if it is a non-empty string, otherwise ``None``."""
    return value if isinstance(value, str) and value else None


# ──────────────────────────── Kubernetes Resources ────────────────────────────


class KubernetesResource(BaseModel):
    """A validated manifest document.

    The decoded document is kept verbatim in ``raw`` (insertion ordered, so
    re-serialisation keeps the author's field order).  Everything else is an
    accessor over ``raw`` that tolerates missing or mistyped fields.
    """

    # Keys are not always strings: YAML allows "1:" or "on:" at the top level.
    raw: dict[Any, Any] = Field(default_factory=dict)

    @property
    def api_version(self) -> str:
        return as_str(self.raw.get("apiVersion")) or ""

    @property
    def kind(self) -> str:
        return as_str(self.raw.get("kind")) or ""

    @property
    def metadata(self) -> dict[str, Any]:
        return as_mapping(self.raw.get("metadata"))

    @property
    def name(self) -> str:
        return as_str(self.metadata.get("name")) or ""

    @property
    def namespace(self) -> str:
        return as_str(self.metadata.get("namespace")) or "default"

    @property
    def labels(self) -> dict[str, Any]:
        return as_mapping(self.metadata.get("labels"))

    @property
    def annotations(self) -> dict[str, Any]:
        return as_mapping(self.metadata.get("annotations"))

    @property
    def spec(self) -> dict[str, Any]:
        return as_mapping(self.raw.get("spec"))

    @property
    def data(self) -> dict[str, Any]:
        return as_mapping(self.raw.get("data"))

    @property
    def pod_spec(self) -> dict[str, Any]:
        """The pod spec for Pods, pod templates and CronJob job templates."""
        spec = self.spec
        template_spec = as_mapping(as_mapping(spec.get("template")).get("spec"))
        if template_spec:
            return template_spec
        job_spec = as_mapping(as_mapping(spec.get("jobTemplate")).get("spec"))
        cron_spec = as_mapping(as_mapping(job_spec.get("template")).get("spec"))
        if cron_spec:
            return cron_spec
        if self.kind == "Pod" or "containers" in spec:
            return spec
        return {}

    @property
    def containers(self) -> list[dict[str, Any]]:
        """Containers followed by init containers, skipping malformed entries."""
        pod = self.pod_spec
        entries = as_list(pod.get("containers")) + as_list(pod.get("initContainers"))
        return [c for c in entries if isinstance(c, dict)]

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}/{self.kind}/{self.name}"

    @property
    def identifier(self) -> str:
        return f"{self.kind}/{self.namespace}/{self.name}"


# ──────────────────────────── Parse Output ────────────────────────────────────


class ParsedRelease(BaseModel):
    """Release-level sections found in a ``helm install --dry-run`` transcript."""

    release_name: str | None = None
    namespace: str | None = None
    user_supplied_values: str | None = None
    manifest_body: str = ""


class ParseResult(BaseModel):
    """The canonical manifest plus whatever release context the input carried."""

    manifest_yaml: str
    user_supplied_values: str | None = None
    release_name: str | None = None
    namespace: str | None = None
    resources: list[KubernetesResource] = Field(default_factory=list, exclude=True)


# ──────────────────────────── Metadata ────────────────────────────────────────


class DeploymentMetadata(BaseModel):
    """Cluster identity taken from Helm values or supplied by the caller."""

    account_id: str | None = None
    region: str | None = None
    cluster: str | None = None
    environment: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.account_id or self.region or self.cluster or self.environment)


class ServiceInfo(BaseModel):
    """Exposure details of a Service resource."""

    name: str
    namespace: str = "default"
    type: str = "ClusterIP"
    load_balancer_class: str | None = None
    load_balancer_ip: str | None = None
    load_balancer_source_ranges: list[str] = Field(default_factory=list)
    external_traffic_policy: str | None = None
    annotations: dict[str, str] = Field(
        default_factory=dict,
        description="Load-balancer related annotations only",
    )

    @property
    def is_load_balancer(self) -> bool:
        return self.type == "LoadBalancer"


class ReplicaCount(BaseModel):
    """A numeric ``spec.replicas`` value and the resource that declares it."""

    resource: str = Field(description="qualified name of the declaring resource")
    kind: str
    replicas: int


class OwnerReference(BaseModel):
    kind: str = ""
    name: str = ""
    uid: str = ""


class ResourceFacts(BaseModel):
    """Descriptive facts extracted from a single resource."""

    resource: str = Field(description="qualified name of the resource")
    kind: str = ""
    uid: str | None = None
    resource_version: str | None = None
    generation: int | None = None
    zone: str | None = None
    images: list[str] = Field(default_factory=list)
    container_names: list[str] = Field(default_factory=list)
    config_refs: list[str] = Field(default_factory=list)
    secret_refs: list[str] = Field(default_factory=list)
    volume_claims: list[str] = Field(default_factory=list)
    storage_classes: list[str] = Field(default_factory=list)
    arns: list[str] = Field(default_factory=list)
    replicas: int | None = None
    service: ServiceInfo | None = None
    ingress_class: str | None = None
    selector: dict[str, str] = Field(default_factory=dict)
    owner_references: list[OwnerReference] = Field(default_factory=list)


class MetadataRecord(BaseModel):
    """Identity and descriptive metadata folded over every resource.

    Auxiliary lists keep duplicates: how often an image or reference occurs
    is information the consumer may use.
    """

    model_config = ConfigDict(frozen=True)

    region: str | None = None
    cluster: str | None = None
    account_id: str | None = None
    environment: str | None = None
    images: list[str] = Field(default_factory=list)
    container_names: list[str] = Field(default_factory=list)
    config_refs: list[str] = Field(default_factory=list)
    secret_refs: list[str] = Field(default_factory=list)
    volume_claims: list[str] = Field(default_factory=list)
    services: list[ServiceInfo] = Field(default_factory=list)
    storage_classes: list[str] = Field(default_factory=list)
    replica_counts: list[ReplicaCount] = Field(default_factory=list)
    arns: list[str] = Field(default_factory=list)
    sources: dict[str, str] = Field(
        default_factory=dict,
        description="identity field -> name of the source that supplied it",
    )
    resources: list[ResourceFacts] = Field(default_factory=list)

    @property
    def deployment(self) -> DeploymentMetadata:
        return DeploymentMetadata(
            account_id=self.account_id,
            region=self.region,
            cluster=self.cluster,
            environment=self.environment,
        )


class IngestResult(BaseModel):
    """A parse result together with the metadata resolved from it."""

    parsed: ParseResult
    metadata: MetadataRecord

    @property
    def resources(self) -> list[KubernetesResource]:
        return self.parsed.resources
