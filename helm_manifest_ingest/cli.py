"""CLI entry-point for helm-manifest-ingest."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from helm_manifest_ingest import __version__
from helm_manifest_ingest.analyzer import apply_filters, ingest_report
from helm_manifest_ingest.config import Settings, parse_csv
from helm_manifest_ingest.core import ingest, parse
from helm_manifest_ingest.errors import ManifestParseError
from helm_manifest_ingest.models import IngestResult, ParseResult
from helm_manifest_ingest.observer import LoggingObserver
from helm_manifest_ingest.renderer import write_outputs

console = Console()
logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )


def _read_input(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _fail(message: str, raw: str | None = None) -> NoReturn:
    console.print(f"[red bold]Error:[/red bold] {message}")
    if raw is not None:
        snippet = raw[:1000]
        console.print("[dim]First 1000 characters of the input:[/dim]")
        console.print(snippet if snippet else "<empty file>", markup=False, highlight=False)
    sys.exit(1)


def _load_parse(path: str, settings: Settings) -> ParseResult:
    raw = _read_input(path)
    try:
        return parse(raw, LoggingObserver(logger))
    except ManifestParseError as exc:
        _fail(str(exc), raw if settings.verbose else None)


def _load_ingest(path: str, settings: Settings) -> IngestResult:
    raw = _read_input(path)
    try:
        return ingest(raw, LoggingObserver(logger), overrides=settings.overrides())
    except ManifestParseError as exc:
        _fail(str(exc), raw if settings.verbose else None)


@click.group()
@click.version_option(version=__version__, prog_name="helm-ingest")
def main() -> None:
    """Helm manifest ingestion: parse dry-run output and resolve cluster metadata."""


@main.command("parse")
@click.argument("manifest_file", type=click.Path(exists=True, dir_okay=False, allow_dash=True))
@click.option("--json", "as_json", is_flag=True, help="Print the parse result as JSON.")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
def parse_cmd(manifest_file: str, as_json: bool, verbose: bool) -> None:
    """Parse MANIFEST_FILE and print the canonical manifest.

    MANIFEST_FILE is a `helm install --dry-run` transcript, `helm template`
    output, or a JSON object/array of resources. Use - for stdin.
    """
    _configure_logging(verbose)
    settings = Settings(verbose=verbose)
    parsed = _load_parse(manifest_file, settings)

    if as_json:
        click.echo(json.dumps(parsed.model_dump(), indent=2))
        return
    click.echo(parsed.manifest_yaml, nl=False)


@main.command()
@click.argument("manifest_file", type=click.Path(exists=True, dir_okay=False, allow_dash=True))
@click.option("--region", default="", help="Region override (or set HELM_INGEST_REGION).")
@click.option("--cluster", default="", help="Cluster override (or set HELM_INGEST_CLUSTER).")
@click.option("--account-id", default="", help="Account id override (or set HELM_INGEST_ACCOUNT_ID).")
@click.option("--json", "as_json", is_flag=True, help="Print the metadata record as JSON.")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
def metadata(
    manifest_file: str,
    region: str,
    cluster: str,
    account_id: str,
    as_json: bool,
    verbose: bool,
) -> None:
    """Resolve region, cluster, account and descriptive metadata."""
    _configure_logging(verbose)
    settings = Settings(verbose=verbose)
    if region:
        settings.region = region
    if cluster:
        settings.cluster = cluster
    if account_id:
        settings.account_id = account_id

    result = _load_ingest(manifest_file, settings)
    meta = result.metadata

    if as_json:
        click.echo(json.dumps(meta.model_dump(exclude={"resources"}), indent=2))
        return

    table = Table(title="Deployment Metadata", show_lines=True)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_column("Source")
    for label, value, key in (
        ("Region", meta.region, "region"),
        ("Cluster", meta.cluster, "cluster"),
        ("Account ID", meta.account_id, "account_id"),
        ("Environment", meta.environment, "environment"),
    ):
        table.add_row(label, value or "[dim]unknown[/dim]", meta.sources.get(key, ""))
    console.print(table)

    for title, items in (
        ("Images", meta.images),
        ("ConfigMap refs", meta.config_refs),
        ("Secret refs", meta.secret_refs),
        ("Volume claims", meta.volume_claims),
        ("Storage classes", meta.storage_classes),
        ("ARNs", meta.arns),
    ):
        if items:
            console.print(f"\n[bold]{title}:[/bold]")
            for item in items:
                console.print(f"  • {item}", markup=False)

    if meta.services:
        console.print("\n[bold]Services:[/bold]")
        for svc in meta.services:
            console.print(f"  • {svc.namespace}/{svc.name}  type={svc.type}", markup=False)
    if meta.replica_counts:
        console.print("\n[bold]Replicas:[/bold]")
        for rc in meta.replica_counts:
            console.print(f"  • {rc.resource}: {rc.replicas}", markup=False)


@main.command()
@click.argument("manifest_file", type=click.Path(exists=True, dir_okay=False, allow_dash=True))
@click.option("--release-name", default="", help="Release name (defaults to the transcript's NAME).")
@click.option("--namespace", default="", help="Namespace (defaults to the transcript's NAMESPACE).")
@click.option("--namespace-filter", default="", help="Comma separated namespaces to include.")
@click.option("--kind-filter", default="", help="Comma separated resource kinds to include.")
@click.option(
    "--output", "-o", "output_dir", default="", help="Write payload, manifest and summary here."
)
@click.option("--verbose", "-v", is_flag=True, help="List every resource and show debug logging.")
def summary(
    manifest_file: str,
    release_name: str,
    namespace: str,
    namespace_filter: str,
    kind_filter: str,
    output_dir: str,
    verbose: bool,
) -> None:
    """Print a summary of the release and optionally write output files."""
    _configure_logging(verbose)
    settings = Settings(verbose=verbose)
    if release_name:
        settings.release_name = release_name
    if namespace:
        settings.namespace = namespace
    if namespace_filter:
        settings.namespace_filter = parse_csv(namespace_filter)
    if kind_filter:
        settings.resource_type_filter = parse_csv(kind_filter)

    result = _load_ingest(manifest_file, settings)

    console.print(Panel("Helm manifest ingestion", style="bold cyan"))
    console.print(ingest_report(result, settings), markup=False, highlight=False)

    if not apply_filters(result.resources, settings):
        console.print("[yellow]No Kubernetes resources left after filtering.[/yellow]")

    if output_dir:
        written = write_outputs(result, Path(output_dir).resolve(), settings)
        console.print("[green bold]Done![/green bold] Files written:")
        for f in written:
            console.print(f"  • {f}")


if __name__ == "__main__":
    main()
