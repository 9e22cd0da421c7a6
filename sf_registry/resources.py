"""Static resource validation — every referenced resource needs a payload and a descriptor."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Iterable
from pathlib import Path

import structlog

from sf_registry.core.config import RESOURCE_META_SUFFIX
from sf_registry.exceptions import MissingResourceDescriptorError, MissingResourceError
from sf_registry.models import ResolvedResource

log = structlog.get_logger("sf_registry.engine")


def descriptor_path(resource_dir: Path, name: str) -> Path:
    return resource_dir / f"{name}{RESOURCE_META_SUFFIX}"


def find_static_resource_file(resource_dir: Path, name: str) -> Path | None:
    """Payload file for resource *name*: ``name`` itself or ``name.<ext>``.

    Descriptor files never count as payloads. Returns ``None`` when the
    resource directory is missing or holds no match.
    """
    try:
        files = sorted(os.listdir(resource_dir))
    except OSError:
        return None
    for file_name in files:
        if file_name.endswith(RESOURCE_META_SUFFIX):
            continue
        if file_name == name or file_name.startswith(name + "."):
            candidate = resource_dir / file_name
            if candidate.is_file():
                return candidate
    return None


def _validate_one(resource_dir: Path, name: str) -> ResolvedResource:
    payload = find_static_resource_file(resource_dir, name)
    if payload is None:
        raise MissingResourceError(name)
    descriptor = descriptor_path(resource_dir, name)
    if not descriptor.is_file():
        raise MissingResourceDescriptorError(name)
    return ResolvedResource(name=name, payload=payload, descriptor=descriptor)


async def validate_static_resources(
    resource_dir: Path, names: Iterable[str]
) -> list[ResolvedResource]:
    """Check all *names* concurrently; the first failure aborts the whole set."""
    ordered = list(dict.fromkeys(names))
    resolved = await asyncio.gather(
        *(asyncio.to_thread(_validate_one, resource_dir, name) for name in ordered)
    )
    log.debug("resources.validated", count=len(resolved))
    return list(resolved)
