"""CLI entry point: sf-registry.

Subcommands:
    sf-registry deps component myCard             # print the resolved manifest
    sf-registry package class MyCtrl -o out.zip   # build the archive only
    sf-registry deploy component myCard           # build + upload
    sf-registry download class MyCtrl 1.0.0       # download + place
    sf-registry extract bundle.zip                # place a local archive
    sf-registry catalog --type component          # list registry content
    sf-registry delete component myCard --yes     # remove from the registry
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click

from sf_registry.core.config import DEFAULT_TARGET_DIR, load_settings
from sf_registry.core.logging import setup_logging
from sf_registry.exceptions import AuthError, RegistryError
from sf_registry.models import ArtifactRef, ArtifactType, ExtractionReport
from sf_registry.pipeline import DeploymentPipeline, resolve_root_input, retrieve, unpack_into
from sf_registry.progress import PhaseProgress, ProgressTracker
from sf_registry.scanner import find_project_root
from sf_registry.transport import FileTokenProvider, RegistryClient

_TYPE_CHOICE = click.Choice([t.value for t in ArtifactType])


def _fail(exc: Exception) -> None:
    if isinstance(exc, AuthError):
        click.echo(str(exc), err=True)
    else:
        click.echo(f"Error: {exc}", err=True)
    sys.exit(1)


def _project_root(project: str | None) -> Path:
    return find_project_root(Path(project) if project else Path.cwd())


def _client() -> RegistryClient:
    settings = load_settings()
    return RegistryClient(settings.server_url, FileTokenProvider(settings.auth_file))


def _print_progress(progress: ProgressTracker) -> None:
    summary = progress.get_summary()
    click.echo(f"\nPipeline summary (total: {summary['total_duration']}s):", err=True)
    for p in summary["phases"]:
        status_icon = {
            "completed": "+",
            "failed": "!",
            "skipped": "-",
            "running": "~",
            "pending": ".",
        }.get(p["status"], "?")
        duration = f" ({p['duration']}s)" if p["duration"] else ""
        detail = f" - {p['detail']}" if p["detail"] else ""
        click.echo(f"  [{status_icon}] {p['phase']}{duration}{detail}", err=True)


def _echo_phase(p: PhaseProgress) -> None:
    if p.status == "running":
        click.echo(f"  ... {p.phase}", err=True)


def _new_pipeline(project: str | None, verbose: bool) -> DeploymentPipeline:
    pipeline = DeploymentPipeline(_project_root(project), load_settings())
    if verbose:
        pipeline.progress.callbacks.append(_echo_phase)
    return pipeline


def _print_report(report: ExtractionReport) -> None:
    for artifact_type, name, destination in report.placed:
        click.echo(f'{artifact_type.value} "{name}" extracted to {destination}')
    for name in report.skipped:
        click.echo(f'Warning: an item named "{name}" already exists. Skipped.', err=True)
    for file_name in report.resources_placed:
        click.echo(f'Static resource "{file_name}" placed')
    for file_name in report.resources_skipped:
        click.echo(f'Warning: static resource "{file_name}" already present. Skipped.', err=True)
    for error in report.errors:
        click.echo(f"Error: {error}", err=True)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """sf-registry: package components and classes with their dependencies."""
    setup_logging("DEBUG" if verbose else None)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@main.command("deps")
@click.argument("artifact_type", type=_TYPE_CHOICE)
@click.argument("name")
@click.option("--project", default=None, help="Project directory (default: current directory)")
def deps(artifact_type: str, name: str, project: str | None) -> None:
    """Print the resolved dependency manifest as JSON."""
    try:
        pipeline = DeploymentPipeline(_project_root(project), load_settings())
        manifest = asyncio.run(pipeline.resolve(ArtifactRef(ArtifactType(artifact_type), name)))
    except RegistryError as exc:
        _fail(exc)
    click.echo(json.dumps([e.to_dict() for e in manifest], indent=2))


@main.command("package")
@click.argument("artifact_type", type=_TYPE_CHOICE)
@click.argument("name")
@click.option("--version", "version", default=None, help="Version x.y.z of the root artifact")
@click.option("--description", default=None, help="Description of the root artifact")
@click.option("-o", "--output", default=None, help="Archive path (default: temp file)")
@click.option("--project", default=None, help="Project directory (default: current directory)")
@click.pass_context
def package(
    ctx: click.Context,
    artifact_type: str,
    name: str,
    version: str | None,
    description: str | None,
    output: str | None,
    project: str | None,
) -> None:
    """Build the deployment archive without uploading it."""

    async def _run(pipeline: DeploymentPipeline):
        index = await pipeline.scan()
        metadata = resolve_root_input(
            index, ArtifactType(artifact_type), name, version, description
        )
        result = await pipeline.build(metadata, Path(output) if output else None)
        pipeline.progress.skip_phase("upload", "package only")
        return result

    pipeline: DeploymentPipeline | None = None
    try:
        pipeline = _new_pipeline(project, ctx.obj["verbose"])
        result = asyncio.run(_run(pipeline))
    except RegistryError as exc:
        if pipeline is not None and ctx.obj["verbose"]:
            _print_progress(pipeline.progress)
        _fail(exc)
    click.echo(f"Archive written to {result.archive} ({len(result.manifest)} artifacts)")
    if ctx.obj["verbose"]:
        _print_progress(pipeline.progress)


@main.command("deploy")
@click.argument("artifact_type", type=_TYPE_CHOICE)
@click.argument("name")
@click.option("--version", "version", default=None, help="Version x.y.z of the root artifact")
@click.option("--description", default=None, help="Description of the root artifact")
@click.option("--project", default=None, help="Project directory (default: current directory)")
@click.pass_context
def deploy(
    ctx: click.Context,
    artifact_type: str,
    name: str,
    version: str | None,
    description: str | None,
    project: str | None,
) -> None:
    """Package an artifact with its dependencies and upload it to the registry."""

    async def _run(pipeline: DeploymentPipeline):
        index = await pipeline.scan()
        metadata = resolve_root_input(
            index, ArtifactType(artifact_type), name, version, description
        )
        async with _client() as client:
            return await pipeline.deploy(client, metadata)

    pipeline: DeploymentPipeline | None = None
    try:
        pipeline = _new_pipeline(project, ctx.obj["verbose"])
        result = asyncio.run(_run(pipeline))
    except RegistryError as exc:
        if pipeline is not None and ctx.obj["verbose"]:
            _print_progress(pipeline.progress)
        _fail(exc)
    click.echo(
        f"Deployment of {result.metadata.name}@{result.metadata.version} "
        f"({len(result.manifest)} artifacts) completed."
    )
    if ctx.obj["verbose"]:
        _print_progress(pipeline.progress)


@main.command("download")
@click.argument("artifact_type", type=_TYPE_CHOICE)
@click.argument("name")
@click.argument("version")
@click.option("--target", default=str(DEFAULT_TARGET_DIR), help="Target directory")
def download(artifact_type: str, name: str, version: str, target: str) -> None:
    """Download an artifact and place it under the target directory."""

    async def _run() -> ExtractionReport:
        async with _client() as client:
            return await retrieve(client, ArtifactType(artifact_type), name, version, Path(target))

    try:
        report = asyncio.run(_run())
    except RegistryError as exc:
        _fail(exc)
    _print_report(report)
    if not report.ok:
        sys.exit(1)


@main.command("extract")
@click.argument("archive", type=click.Path(exists=True, dir_okay=False))
@click.option("--target", default=str(DEFAULT_TARGET_DIR), help="Target directory")
def extract(archive: str, target: str) -> None:
    """Place the content of a local deployment archive."""
    try:
        report = asyncio.run(unpack_into(Path(archive), Path(target)))
    except RegistryError as exc:
        _fail(exc)
    _print_report(report)
    if not report.ok:
        sys.exit(1)


@main.command("catalog")
@click.option("--type", "artifact_type", type=_TYPE_CHOICE, default=None, help="Filter by type")
def catalog(artifact_type: str | None) -> None:
    """List the registry content."""

    async def _run():
        async with _client() as client:
            return await client.fetch_catalog()

    try:
        result = asyncio.run(_run())
    except RegistryError as exc:
        _fail(exc)

    types = [ArtifactType(artifact_type)] if artifact_type else list(ArtifactType)
    for t in types:
        entries = result.entries(t)
        click.echo(f"{t.plural} ({len(entries)})")
        for entry in entries:
            click.echo(f"  • {entry.name}")
            for v in entry.versions:
                resources = ", ".join(v.staticresources) or "-"
                line = f"      v{v.version:10s} {v.description or '-'}"
                if t is ArtifactType.COMPONENT:
                    line += f"  [{resources}]"
                click.echo(line)


@main.command("delete")
@click.argument("artifact_type", type=_TYPE_CHOICE)
@click.argument("name")
@click.option("--version", "version", default=None, help="Version to delete (default: all)")
@click.option("--yes", is_flag=True, help="Confirm the deletion")
def delete(artifact_type: str, name: str, version: str | None, yes: bool) -> None:
    """Delete one version (or all versions) of an artifact from the registry."""
    if not yes:
        click.echo("Error: refusing to delete without --yes", err=True)
        sys.exit(1)

    async def _run() -> str:
        async with _client() as client:
            return await client.delete(ArtifactType(artifact_type), name, version)

    try:
        message = asyncio.run(_run())
    except RegistryError as exc:
        _fail(exc)
    click.echo(message or "Deleted.")


if __name__ == "__main__":
    main()
