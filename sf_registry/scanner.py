"""Source-tree scanner — enumerate components and classes of a project."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

import structlog

from sf_registry.core.config import APEX_PATH, LWC_PATH, PROJECT_MARKER
from sf_registry.exceptions import ProjectRootNotFoundError, ScanError
from sf_registry.models import ProjectIndex

log = structlog.get_logger("sf_registry.engine")


def find_project_root(start: Path) -> Path:
    """Walk up from *start* until a directory holding ``sfdx-project.json``."""
    current = start.resolve()
    for candidate in (current, *current.parents):
        if (candidate / PROJECT_MARKER).is_file():
            return candidate
    raise ProjectRootNotFoundError(start)


def list_dir_names(base: Path) -> list[str]:
    """Sorted names of the immediate subdirectories of *base*.

    An absent root yields ``[]``; any other listing failure is a ScanError.
    """
    try:
        with os.scandir(base) as entries:
            return sorted(e.name for e in entries if e.is_dir())
    except FileNotFoundError:
        return []
    except OSError as exc:
        raise ScanError(base, exc.strerror or str(exc)) from exc


def find_all_classes(classes_root: Path) -> tuple[list[str], dict[str, Path]]:
    """Map every class name to the directory holding its ``.cls`` file.

    Classes live one directory per class below *classes_root*.
    """
    classes: list[str] = []
    class_dirs: dict[str, Path] = {}
    for dir_name in list_dir_names(classes_root):
        dir_path = classes_root / dir_name
        try:
            files = sorted(os.listdir(dir_path))
        except OSError as exc:
            raise ScanError(dir_path, exc.strerror or str(exc)) from exc
        for file_name in files:
            if file_name.endswith(".cls") and not file_name.endswith(".cls-meta.xml"):
                class_name = file_name[: -len(".cls")]
                if class_name in class_dirs:
                    log.warning(
                        "scanner.duplicate_class",
                        name=class_name,
                        kept=str(class_dirs[class_name]),
                        ignored=str(dir_path),
                    )
                    continue
                classes.append(class_name)
                class_dirs[class_name] = dir_path
    return classes, class_dirs


async def scan_project(project_root: Path) -> ProjectIndex:
    """Scan component and class roots concurrently."""
    lwc_root = project_root / LWC_PATH
    apex_root = project_root / APEX_PATH

    components, (classes, class_dirs) = await asyncio.gather(
        asyncio.to_thread(list_dir_names, lwc_root),
        asyncio.to_thread(find_all_classes, apex_root),
    )
    log.debug(
        "scanner.done",
        project=str(project_root),
        components=len(components),
        classes=len(classes),
    )
    return ProjectIndex(
        lwc_root=lwc_root,
        components=components,
        classes=classes,
        class_dirs=class_dirs,
    )
