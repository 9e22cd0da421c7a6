"""Dependency graph resolver — transitive closure of an artifact, cycle-safe."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path

import structlog

from sf_registry.guard import check_forbidden_files
from sf_registry.handlers import handler_for
from sf_registry.models import ArtifactRef, ManifestEntry, ProjectIndex

log = structlog.get_logger("sf_registry.engine")

Guard = Callable[[Path], Awaitable[None]]


class VisitedSet:
    """``type:name`` keys already claimed during one resolution.

    Shared by every branch of the walk; :meth:`claim` is atomic with respect
    to concurrent branches.
    """

    def __init__(self) -> None:
        self._keys: set[str] = set()
        self._lock = asyncio.Lock()

    async def claim(self, ref: ArtifactRef) -> bool:
        """Mark *ref* visited. Returns False if another branch got there first."""
        async with self._lock:
            if ref.key in self._keys:
                return False
            self._keys.add(ref.key)
            return True

    def __contains__(self, ref: object) -> bool:
        return isinstance(ref, ArtifactRef) and ref.key in self._keys

    def __len__(self) -> int:
        return len(self._keys)


class DependencyResolver:
    """Walk the reference graph from a root artifact and build its manifest.

    Manifest order is discovery order: the root, then the full subtree of its
    first dependency, then the subtree of its second dependency, and so on.
    With ``parallel=True`` sibling subtrees are resolved concurrently; entries
    are still unique but a node shared by two siblings may land in either
    subtree.
    """

    def __init__(
        self,
        index: ProjectIndex,
        guard: Guard = check_forbidden_files,
        parallel: bool = False,
    ) -> None:
        self.index = index
        self.guard = guard
        self.parallel = parallel

    async def resolve(self, root: ArtifactRef, version: str | None = None) -> list[ManifestEntry]:
        visited = VisitedSet()
        manifest = await self._visit(root, visited, version)
        log.info(
            "resolver.done",
            root=root.key,
            entries=len(manifest),
        )
        return manifest

    async def _visit(
        self,
        ref: ArtifactRef,
        visited: VisitedSet,
        version: str | None = None,
    ) -> list[ManifestEntry]:
        if not await visited.claim(ref):
            return []

        handler = handler_for(ref.type)
        directory = handler.locate(self.index, ref.name)
        await self.guard(directory)

        dependencies, static_resources = await asyncio.gather(
            handler.extract_dependencies(self.index, ref.name),
            handler.extract_resources(self.index, ref.name),
        )
        log.debug(
            "resolver.visit",
            artifact=ref.key,
            dependencies=[d.key for d in dependencies],
            staticresources=static_resources,
        )

        entry = ManifestEntry(
            name=ref.name,
            type=ref.type,
            dependencies=dependencies,
            static_resources=static_resources,
            version=version,
        )

        if self.parallel:
            subtrees = await asyncio.gather(
                *(self._visit(dep, visited) for dep in dependencies)
            )
        else:
            subtrees = [await self._visit(dep, visited) for dep in dependencies]

        return [entry, *(e for subtree in subtrees for e in subtree)]


def collect_static_resources(manifest: list[ManifestEntry]) -> list[str]:
    """Ordered union of every entry's static resources."""
    return list(dict.fromkeys(r for entry in manifest for r in entry.static_resources))
