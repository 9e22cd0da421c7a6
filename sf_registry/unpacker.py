"""Archive unpacker — classify extracted items and place them without overwriting."""

from __future__ import annotations

import asyncio
import os
import shutil
import zipfile
from pathlib import Path

import structlog

from sf_registry.core.config import STATIC_RESOURCES_DIRNAME
from sf_registry.exceptions import (
    InvalidArchiveError,
    UnrecognizedArtifactError,
    UnsafeArchiveError,
)
from sf_registry.models import ArtifactType, ExtractionReport

log = structlog.get_logger("sf_registry.engine")

_DESTINATION_DIRS: dict[ArtifactType, str] = {
    ArtifactType.COMPONENT: "lwc",
    ArtifactType.CLASS: "classes",
}


class DestinationExistsError(FileExistsError):
    """Raised by :func:`move_no_overwrite` when the target path is taken."""


def extract_archive(archive: Path, dest: Path) -> None:
    """Unzip *archive* into *dest*, refusing members that escape it."""
    dest.mkdir(parents=True, exist_ok=True)
    root = dest.resolve()
    try:
        zf = zipfile.ZipFile(archive)
    except zipfile.BadZipFile as exc:
        raise InvalidArchiveError(archive, str(exc)) from exc
    with zf:
        for member in zf.namelist():
            resolved = (root / member).resolve()
            if resolved != root and root not in resolved.parents:
                raise UnsafeArchiveError(member)
        zf.extractall(root)


def infer_artifact_type(directory: Path) -> ArtifactType:
    """A ``.cls`` file makes a class; otherwise a ``.js``/``.ts`` file makes a component."""
    files = os.listdir(directory)
    if any(f.endswith(".cls") for f in files):
        return ArtifactType.CLASS
    if any(f.endswith((".js", ".ts")) for f in files):
        return ArtifactType.COMPONENT
    raise UnrecognizedArtifactError(directory)


def destination_for(target_dir: Path, artifact_type: ArtifactType, name: str) -> Path:
    return target_dir / _DESTINATION_DIRS[artifact_type] / name


def move_no_overwrite(source: Path, destination: Path) -> None:
    if destination.exists():
        raise DestinationExistsError(str(destination))
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(str(source), str(destination))


async def _place_item(
    extracted: Path, target_dir: Path, name: str, report: ExtractionReport
) -> None:
    source = extracted / name
    try:
        artifact_type = await asyncio.to_thread(infer_artifact_type, source)
        destination = destination_for(target_dir, artifact_type, name)
        await asyncio.to_thread(move_no_overwrite, source, destination)
    except DestinationExistsError:
        log.warning("unpacker.skip_existing", item=name)
        report.skipped.append(name)
        return
    except (UnrecognizedArtifactError, OSError) as exc:
        log.error("unpacker.item_failed", item=name, error=str(exc))
        report.errors.append(f'Error while extracting "{name}": {exc}')
        return
    log.info("unpacker.placed", item=name, type=artifact_type.value, destination=str(destination))
    report.placed.append((artifact_type, name, destination))


async def _place_resource(
    source_dir: Path, target_dir: Path, file_name: str, report: ExtractionReport
) -> None:
    try:
        await asyncio.to_thread(
            move_no_overwrite, source_dir / file_name, target_dir / file_name
        )
    except DestinationExistsError:
        log.warning("unpacker.skip_existing_resource", file=file_name)
        report.resources_skipped.append(file_name)
        return
    except OSError as exc:
        log.error("unpacker.resource_failed", file=file_name, error=str(exc))
        report.errors.append(f'Error while placing static resource "{file_name}": {exc}')
        return
    report.resources_placed.append(file_name)


async def place_extracted(extracted: Path, target_dir: Path) -> ExtractionReport:
    """Move every extracted item and static resource into *target_dir*.

    Items land in ``lwc/<name>`` or ``classes/<name>``; resources in
    ``staticresources/``. Existing destinations are skipped, per-item failures
    are collected in the report, and resources are placed whatever happened to
    the items.
    """
    report = ExtractionReport()
    with os.scandir(extracted) as entries:
        item_names = sorted(
            e.name for e in entries if e.is_dir() and e.name != STATIC_RESOURCES_DIRNAME
        )
    await asyncio.gather(*(_place_item(extracted, target_dir, n, report) for n in item_names))

    resources_src = extracted / STATIC_RESOURCES_DIRNAME
    if resources_src.is_dir():
        resources_dst = target_dir / STATIC_RESOURCES_DIRNAME
        resources_dst.mkdir(parents=True, exist_ok=True)
        file_names = sorted(os.listdir(resources_src))
        await asyncio.gather(
            *(_place_resource(resources_src, resources_dst, f, report) for f in file_names)
        )
    return report
