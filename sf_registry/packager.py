"""Archive packager — write a deterministic deployment ZIP."""

from __future__ import annotations

import json
import os
import tempfile
import time
import zipfile
from pathlib import Path

import structlog

from sf_registry.core.config import DEPS_FILENAME, METADATA_FILENAME, STATIC_RESOURCES_DIRNAME
from sf_registry.handlers import handler_for
from sf_registry.models import ManifestEntry, ProjectIndex, ResolvedResource, RootMetadata

log = structlog.get_logger("sf_registry.engine")

# Fixed member timestamp: same tree state -> same archive bytes
_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)
_COMPRESS_LEVEL = 9


def default_archive_path() -> Path:
    return Path(tempfile.gettempdir()) / f"sf-deploy-{time.time_ns()}.zip"


def _iter_files(directory: Path) -> list[Path]:
    """All files below *directory*, in sorted depth-first order."""
    files: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(directory):
        dirnames.sort()
        for name in sorted(filenames):
            files.append(Path(dirpath) / name)
    return files


class ArchiveWriter:
    """Sequential writer over a single ZIP stream."""

    def __init__(self, zf: zipfile.ZipFile) -> None:
        self._zf = zf
        self.members: list[str] = []

    def _info(self, arcname: str, mode: int = 0o644) -> zipfile.ZipInfo:
        info = zipfile.ZipInfo(arcname, date_time=_ZIP_EPOCH)
        info.compress_type = zipfile.ZIP_DEFLATED
        info.external_attr = (mode & 0xFFFF) << 16
        return info

    def add_file(self, source: Path, arcname: str) -> None:
        mode = source.stat().st_mode & 0o777
        self._zf.writestr(
            self._info(arcname, mode), source.read_bytes(), compresslevel=_COMPRESS_LEVEL
        )
        self.members.append(arcname)

    def add_directory(self, source: Path, prefix: str) -> None:
        for file_path in _iter_files(source):
            rel = file_path.relative_to(source).as_posix()
            self.add_file(file_path, f"{prefix}/{rel}")

    def add_json(self, arcname: str, payload: object) -> None:
        data = json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")
        self._zf.writestr(self._info(arcname), data, compresslevel=_COMPRESS_LEVEL)
        self.members.append(arcname)


def build_package(
    manifest: list[ManifestEntry],
    resources: list[ResolvedResource],
    metadata: RootMetadata,
    index: ProjectIndex,
    output_path: Path | None = None,
) -> Path:
    """Write the deployment archive and return its path.

    Layout::

        <artifact>/...            one directory per manifest entry, manifest order
        staticresources/<file>    payload and descriptor per resource
        metadata.json             root {name, type, version, description}
        registry-deps.json        full manifest, root first

    The archive is left on disk on failure; removing it is the caller's job.
    """
    target = output_path or default_archive_path()
    target.parent.mkdir(parents=True, exist_ok=True)

    with zipfile.ZipFile(target, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        writer = ArchiveWriter(zf)
        for entry in manifest:
            source_dir = handler_for(entry.type).locate(index, entry.name)
            writer.add_directory(source_dir, entry.name)

        for resource in resources:
            writer.add_file(
                resource.payload, f"{STATIC_RESOURCES_DIRNAME}/{resource.payload.name}"
            )
            writer.add_file(
                resource.descriptor, f"{STATIC_RESOURCES_DIRNAME}/{resource.descriptor.name}"
            )

        writer.add_json(METADATA_FILENAME, metadata.to_dict())
        writer.add_json(DEPS_FILENAME, [entry.to_dict() for entry in manifest])

    log.info(
        "packager.done",
        archive=str(target),
        members=len(writer.members),
        size=target.stat().st_size,
    )
    return target
