"""Safety guard — refuse artifacts that carry executable or script files."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Iterable
from pathlib import Path

import structlog

from sf_registry.core.config import DEFAULT_FORBIDDEN_EXTENSIONS
from sf_registry.exceptions import ForbiddenFileError

log = structlog.get_logger("sf_registry.engine")


def find_forbidden_file(
    directory: Path, extensions: Iterable[str] = DEFAULT_FORBIDDEN_EXTENSIONS
) -> Path | None:
    """Return the first file under *directory* whose extension is denylisted.

    Walks sorted, depth-first, and stops at the first hit.
    """
    denied = {ext.lower() for ext in extensions}

    def _walk(current: Path) -> Path | None:
        with os.scandir(current) as it:
            entries = sorted(it, key=lambda e: e.name)
        for entry in entries:
            path = Path(entry.path)
            if entry.is_dir(follow_symlinks=False):
                found = _walk(path)
                if found is not None:
                    return found
            elif path.suffix.lower() in denied:
                return path
        return None

    return _walk(directory)


async def check_forbidden_files(
    directory: Path, extensions: Iterable[str] = DEFAULT_FORBIDDEN_EXTENSIONS
) -> None:
    """Raise :class:`ForbiddenFileError` if *directory* holds a denylisted file."""
    found = await asyncio.to_thread(find_forbidden_file, directory, tuple(extensions))
    if found is not None:
        log.error("guard.forbidden_file", path=str(found), extension=found.suffix.lower())
        raise ForbiddenFileError(found, found.suffix.lower())
