"""Summaries, filters and resource identifiers over an ingested release."""

from __future__ import annotations

import logging

from helm_manifest_ingest.config import Settings
from helm_manifest_ingest.models import DeploymentMetadata, IngestResult, KubernetesResource

logger = logging.getLogger(__name__)


def group_by_kind(resources: list[KubernetesResource]) -> dict[str, list[KubernetesResource]]:
    """Group resources by kind, keeping manifest order inside each group."""
    grouped: dict[str, list[KubernetesResource]] = {}
    for r in resources:
        grouped.setdefault(r.kind, []).append(r)
    return grouped


def resource_summary(resources: list[KubernetesResource]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for r in resources:
        counts[r.kind] = counts.get(r.kind, 0) + 1
    return counts


def filter_by_kind(resources: list[KubernetesResource], kinds: list[str]) -> list[KubernetesResource]:
    return [r for r in resources if r.kind in kinds]


def filter_by_namespace(
    resources: list[KubernetesResource], namespaces: list[str]
) -> list[KubernetesResource]:
    return [r for r in resources if r.namespace in namespaces]


def apply_filters(resources: list[KubernetesResource], settings: Settings) -> list[KubernetesResource]:
    """Apply the namespace filter, then the resource type filter, when configured."""
    if settings.namespace_filter:
        before = len(resources)
        resources = filter_by_namespace(resources, settings.namespace_filter)
        logger.info(
            "Applied namespace filter: %d → %d resources (%s)",
            before,
            len(resources),
            ", ".join(settings.namespace_filter),
        )
    if settings.resource_type_filter:
        before = len(resources)
        resources = filter_by_kind(resources, settings.resource_type_filter)
        logger.info(
            "Applied resource type filter: %d → %d resources (%s)",
            before,
            len(resources),
            ", ".join(settings.resource_type_filter),
        )
    return resources


def build_resource_arn(region: str, cluster: str, resource: KubernetesResource) -> str:
    """Synthetic identifier ``region:cluster:namespace:Kind:name`` used for issue lookup."""
    return f"{region}:{cluster}:{resource.namespace}:{resource.kind}:{resource.name}"


def resource_arns(
    resources: list[KubernetesResource], metadata: DeploymentMetadata
) -> dict[str, str]:
    """Map each resource identifier to its synthetic ARN.

    Returns an empty mapping when region or cluster is unknown.
    """
    if not metadata.region or not metadata.cluster:
        logger.warning("Cannot generate ARNs: missing region or cluster in metadata")
        return {}
    arns = {r.identifier: build_resource_arn(metadata.region, metadata.cluster, r) for r in resources}
    logger.info("Annotated %d resources with ARNs", len(arns))
    return arns


def ingest_report(result: IngestResult, settings: Settings | None = None) -> str:
    """Return a human-readable text summary of an ingested release."""
    settings = settings or Settings()
    parsed = result.parsed
    meta = result.metadata
    resources = apply_filters(result.resources, settings)

    lines: list[str] = []
    lines.append("=" * 60)
    lines.append("HELM RELEASE SUMMARY")
    lines.append("=" * 60)
    lines.append(f"Release    : {settings.resolved_release_name(parsed)}")
    lines.append(f"Namespace  : {settings.resolved_namespace(parsed)}")
    lines.append(f"Resources  : {len(resources)} total")
    lines.append("")

    for kind, count in sorted(resource_summary(resources).items()):
        lines.append(f"  {kind:<30s} {count}")

    lines.append("")
    lines.append("-" * 60)
    lines.append("DEPLOYMENT METADATA")
    lines.append("-" * 60)
    for label, value, key in (
        ("Region", meta.region, "region"),
        ("Cluster", meta.cluster, "cluster"),
        ("Account ID", meta.account_id, "account_id"),
    ):
        source = f"  (from {meta.sources[key]})" if key in meta.sources else ""
        lines.append(f"  {label:<12s} {value or '(unknown)'}{source}")
    if meta.environment:
        lines.append(f"  {'Environment':<12s} {meta.environment}")

    if meta.images:
        lines.append("")
        lines.append("-" * 60)
        lines.append("IMAGES")
        lines.append("-" * 60)
        for image in meta.images:
            lines.append(f"  {image}")

    if meta.services:
        lines.append("")
        lines.append("-" * 60)
        lines.append("SERVICES")
        lines.append("-" * 60)
        for svc in meta.services:
            lb = f"  class={svc.load_balancer_class}" if svc.load_balancer_class else ""
            lines.append(f"  {svc.namespace}/{svc.name}  type={svc.type}{lb}")

    if meta.arns:
        lines.append("")
        lines.append("-" * 60)
        lines.append("REFERENCED ARNS")
        lines.append("-" * 60)
        for arn in meta.arns:
            lines.append(f"  {arn}")

    if settings.verbose:
        arns = resource_arns(resources, meta.deployment)
        lines.append("")
        lines.append("-" * 60)
        lines.append("ALL RESOURCES")
        lines.append("-" * 60)
        grouped = group_by_kind(resources)
        for kind in sorted(grouped):
            lines.append(f"  {kind} ({len(grouped[kind])}):")
            for r in sorted(grouped[kind], key=lambda r: r.name):
                arn = arns.get(r.identifier)
                arn_str = f" | ARN: {arn}" if arn else ""
                lines.append(f"    - {r.name} (namespace: {r.namespace}){arn_str}")

    lines.append("")
    return "\n".join(lines)
