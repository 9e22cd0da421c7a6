"""Deployment pipeline — scan, resolve, validate, package, and the retrieve counterpart.

Phase 1: scan_project()               components + classes of the project
Phase 2: DependencyResolver.resolve() transitive closure, guarded per artifact
Phase 3: validate_static_resources()  payload + descriptor per referenced resource
Phase 4: build_package()              deterministic ZIP
Phase 5: RegistryClient.upload()      (deploy only)
"""

from __future__ import annotations

import functools
import json
import os
import shutil
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path

import structlog
from pydantic import ValidationError

from sf_registry.core.config import REGISTRY_META_FILENAME, STATIC_RESOURCES_PATH, Settings
from sf_registry.exceptions import (
    InvalidRootInputError,
    MissingRootInputError,
    UnknownArtifactError,
)
from sf_registry.guard import check_forbidden_files
from sf_registry.handlers import handler_for
from sf_registry.models import (
    ArtifactRef,
    ArtifactType,
    ExtractionReport,
    ManifestEntry,
    ProjectIndex,
    RegistryMetaFile,
    ResolvedResource,
    RootMetadata,
)
from sf_registry.packager import build_package
from sf_registry.progress import ProgressTracker
from sf_registry.resolver import DependencyResolver, collect_static_resources
from sf_registry.resources import validate_static_resources
from sf_registry.scanner import scan_project
from sf_registry.transport import RegistryClient
from sf_registry.unpacker import extract_archive, place_extracted

log = structlog.get_logger("sf_registry.engine")


@dataclass
class PackageResult:
    """Everything produced by one packaging run."""

    archive: Path
    manifest: list[ManifestEntry]
    resources: list[ResolvedResource]
    metadata: RootMetadata


def load_registry_meta(directory: Path) -> RegistryMetaFile | None:
    """Read ``registry-meta.json`` from an artifact directory.

    Missing or unparsable files yield None; a file that parses but fails the
    schema is reported with a warning and also yields None.
    """
    meta_path = directory / REGISTRY_META_FILENAME
    try:
        raw = json.loads(meta_path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None
    try:
        return RegistryMetaFile.model_validate(raw)
    except ValidationError as exc:
        log.warning(
            "pipeline.invalid_registry_meta",
            path=str(meta_path),
            errors="; ".join(e["msg"] for e in exc.errors()),
        )
        return None


def resolve_root_input(
    index: ProjectIndex,
    artifact_type: ArtifactType,
    name: str,
    version: str | None = None,
    description: str | None = None,
) -> RootMetadata:
    """Root metadata from explicit values, falling back to ``registry-meta.json``.

    The merged values are checked against the same schema as the meta file:
    an ``x.y.z`` version and a non-empty description.
    """
    if not index.contains(ArtifactRef(artifact_type, name)):
        raise UnknownArtifactError(artifact_type.value, name)

    if version is None or description is None:
        meta = load_registry_meta(handler_for(artifact_type).locate(index, name))
        if meta is not None:
            log.info("pipeline.registry_meta_used", artifact=name)
            version = version if version is not None else meta.version
            description = description if description is not None else meta.description

    if version is None or description is None:
        raise MissingRootInputError(
            f"No version/description given for {artifact_type.label} \"{name}\" "
            f"and no valid {REGISTRY_META_FILENAME} found."
        )
    try:
        checked = RegistryMetaFile.model_validate({"version": version, "description": description})
    except ValidationError as exc:
        raise InvalidRootInputError(
            name, "; ".join(f"{e['loc'][0]}: {e['msg']}" for e in exc.errors())
        ) from exc
    return RootMetadata(
        name=name, type=artifact_type, version=checked.version, description=checked.description
    )


class DeploymentPipeline:
    """Package an artifact with its dependency closure, optionally upload it."""

    def __init__(self, project_root: Path, settings: Settings | None = None) -> None:
        self.project_root = project_root
        self.settings = settings or Settings()
        self.progress = ProgressTracker()
        self._index: ProjectIndex | None = None

    @property
    def resource_dir(self) -> Path:
        return self.project_root / STATIC_RESOURCES_PATH

    async def scan(self) -> ProjectIndex:
        if self._index is None:
            self._index = await scan_project(self.project_root)
        return self._index

    def _resolver(self, index: ProjectIndex) -> DependencyResolver:
        guard = functools.partial(
            check_forbidden_files, extensions=self.settings.forbidden_extensions
        )
        return DependencyResolver(index, guard=guard)

    async def resolve(self, root: ArtifactRef, version: str | None = None) -> list[ManifestEntry]:
        index = await self.scan()
        if not index.contains(root):
            raise UnknownArtifactError(root.type.value, root.name)
        return await self._resolver(index).resolve(root, version)

    async def build(
        self, metadata: RootMetadata, output_path: Path | None = None
    ) -> PackageResult:
        """Run scan → resolve → validate → package. Any failure aborts the run."""
        tracker = ProgressTracker()
        tracker.callbacks.extend(self.progress.callbacks)
        self.progress = tracker
        root = ArtifactRef(metadata.type, metadata.name)

        async with self._phase("scan") as phase:
            index = await self.scan()
            phase.detail = f"{len(index.components)} components, {len(index.classes)} classes"

        async with self._phase("resolve") as phase:
            manifest = await self.resolve(root, metadata.version)
            phase.detail = f"{len(manifest)} artifacts"

        async with self._phase("validate") as phase:
            names = collect_static_resources(manifest)
            resources = await validate_static_resources(self.resource_dir, names)
            phase.detail = f"{len(resources)} static resources"

        async with self._phase("package") as phase:
            archive = build_package(manifest, resources, metadata, index, output_path)
            phase.detail = str(archive)

        return PackageResult(
            archive=archive, manifest=manifest, resources=resources, metadata=metadata
        )

    async def deploy(self, client: RegistryClient, metadata: RootMetadata) -> PackageResult:
        """Build and upload; the archive is removed only after a successful upload."""
        result = await self.build(metadata)
        async with self._phase("upload") as phase:
            await client.upload(result.archive)
            phase.detail = f"{metadata.name}@{metadata.version}"
        result.archive.unlink(missing_ok=True)
        return result

    def _phase(self, name: str) -> _Phase:
        return _Phase(self.progress, name)


class _Phase:
    """Async context manager wrapping one tracked pipeline phase."""

    def __init__(self, tracker: ProgressTracker, name: str) -> None:
        self.tracker = tracker
        self.name = name
        self.detail = ""

    async def __aenter__(self) -> _Phase:
        self.tracker.start_phase(self.name)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc is None:
            self.tracker.complete_phase(self.name, self.detail)
        else:
            self.tracker.fail_phase(self.name, str(exc))
            log.error("pipeline.phase_failed", phase=self.name, error=str(exc))


async def retrieve(
    client: RegistryClient,
    artifact_type: ArtifactType,
    name: str,
    version: str,
    target_dir: Path,
) -> ExtractionReport:
    """Download an artifact archive and place its content under *target_dir*.

    Temporary archive and extraction directory are removed on every path.
    """
    tmp_root = Path(tempfile.gettempdir())
    archive = tmp_root / f"{name}-{version}-{uuid.uuid4().hex}.zip"
    extract_dir = tmp_root / f"registry-download-{uuid.uuid4().hex}"
    try:
        await client.download(artifact_type, name, version, archive)
        return await unpack_into(archive, target_dir, extract_dir)
    finally:
        if archive.exists():
            os.remove(archive)
        shutil.rmtree(extract_dir, ignore_errors=True)


async def unpack_into(
    archive: Path, target_dir: Path, extract_dir: Path | None = None
) -> ExtractionReport:
    """Extract a local archive into a scratch directory and place its items."""
    owns_scratch = extract_dir is None
    scratch = extract_dir or Path(tempfile.mkdtemp(prefix="registry-extract-"))
    try:
        extract_archive(archive, scratch)
        report = await place_extracted(scratch, target_dir)
    finally:
        if owns_scratch:
            shutil.rmtree(scratch, ignore_errors=True)
    log.info(
        "pipeline.extracted",
        placed=len(report.placed),
        skipped=len(report.skipped),
        errors=len(report.errors),
    )
    return report
