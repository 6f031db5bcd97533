"""Render ingestion outputs: the analysis payload and a Markdown summary."""

from __future__ import annotations

import json
import logging
from importlib.resources import files as importlib_files
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from helm_manifest_ingest.analyzer import apply_filters, resource_arns, resource_summary
from helm_manifest_ingest.config import Settings
from helm_manifest_ingest.models import IngestResult

logger = logging.getLogger(__name__)

_TEMPLATES_REF = importlib_files("helm_manifest_ingest") / "templates"


def _get_jinja_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(_TEMPLATES_REF)),
        autoescape=select_autoescape(default=False),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def build_analysis_payload(result: IngestResult, settings: Settings | None = None) -> dict[str, Any]:
    """Assemble the document handed to the external analysis client."""
    settings = settings or Settings()
    parsed = result.parsed
    resources = apply_filters(result.resources, settings)
    arns = resource_arns(resources, result.metadata.deployment)
    facts = {f.resource: f for f in result.metadata.resources}

    records: list[dict[str, Any]] = []
    for r in resources:
        record: dict[str, Any] = {
            "kind": r.kind,
            "name": r.name,
            "namespace": r.namespace,
            "labels": r.labels,
            "annotations": r.annotations,
        }
        if r.identifier in arns:
            record["arn"] = arns[r.identifier]
        if r.qualified_name in facts:
            record["resourceMetadata"] = facts[r.qualified_name].model_dump(
                exclude_none=True, exclude={"resource", "kind"}
            )
        records.append(record)

    return {
        "chart": settings.chart_name(parsed),
        "releaseName": settings.resolved_release_name(parsed),
        "namespace": settings.resolved_namespace(parsed),
        "totalResources": len(resources),
        "summary": resource_summary(resources),
        "metadata": result.metadata.deployment.model_dump(exclude_none=True) or None,
        "resources": records,
    }


def render_summary(result: IngestResult, settings: Settings | None = None) -> str:
    """Render a Markdown summary of the release and its metadata."""
    settings = settings or Settings()
    resources = apply_filters(result.resources, settings)
    template = _get_jinja_env().get_template("ingest_summary.md.j2")
    return template.render(
        release_name=settings.resolved_release_name(result.parsed),
        namespace=settings.resolved_namespace(result.parsed),
        summary=sorted(resource_summary(resources).items()),
        total=len(resources),
        metadata=result.metadata,
    )


def write_outputs(result: IngestResult, output_dir: Path, settings: Settings | None = None) -> list[str]:
    """Write the analysis payload and summary to *output_dir*; return written paths."""
    output_dir.mkdir(parents=True, exist_ok=True)
    written: list[str] = []

    payload_path = output_dir / "analysis-input.json"
    payload_path.write_text(
        json.dumps(build_analysis_payload(result, settings), indent=2, default=str), encoding="utf-8"
    )
    written.append(str(payload_path))
    logger.info("Wrote %s", payload_path)

    manifest_path = output_dir / "manifest.yaml"
    manifest_path.write_text(result.parsed.manifest_yaml, encoding="utf-8")
    written.append(str(manifest_path))
    logger.info("Wrote %s", manifest_path)

    summary_path = output_dir / "ingest-summary.md"
    summary_path.write_text(render_summary(result, settings), encoding="utf-8")
    written.append(str(summary_path))
    logger.info("Wrote %s", summary_path)

    return written
