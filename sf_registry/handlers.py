"""Per-type artifact handlers: locate sources, extract dependencies and resources."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Protocol

from sf_registry.exceptions import UnresolvedDirectoryError
from sf_registry.models import ArtifactRef, ArtifactType, ProjectIndex
from sf_registry.references import (
    RESOURCE_TARGET,
    ExtractionContext,
    ReferencePattern,
    extract_references,
    patterns_for,
)


class ArtifactHandler(Protocol):
    """Capabilities every artifact type provides to the resolver."""

    artifact_type: ArtifactType

    def locate(self, index: ProjectIndex, name: str) -> Path: ...

    async def extract_dependencies(self, index: ProjectIndex, name: str) -> list[ArtifactRef]: ...

    async def extract_resources(self, index: ProjectIndex, name: str) -> list[str]: ...


async def _run_patterns(
    directory: Path, patterns: list[ReferencePattern], ctx: ExtractionContext
) -> list[tuple[ReferencePattern, list[str]]]:
    """Run independent patterns concurrently; results keep pattern order."""
    results = await asyncio.gather(
        *(extract_references(directory, p, ctx) for p in patterns)
    )
    return list(zip(patterns, results))


def _filter_edges(
    index: ProjectIndex,
    source: ArtifactRef,
    hits: list[tuple[ReferencePattern, list[str]]],
) -> list[ArtifactRef]:
    """Keep references to known artifacts, drop self edges and duplicates.

    Component edges come before class edges.
    """
    edges: dict[str, ArtifactRef] = {}
    for target_type in (ArtifactType.COMPONENT, ArtifactType.CLASS):
        known = set(index.known(target_type))
        for pattern, names in hits:
            if pattern.target is not target_type:
                continue
            for name in names:
                ref = ArtifactRef(target_type, name)
                if name in known and ref != source:
                    edges.setdefault(ref.key, ref)
    return list(edges.values())


class ComponentHandler:
    artifact_type = ArtifactType.COMPONENT

    def locate(self, index: ProjectIndex, name: str) -> Path:
        return index.lwc_root / name

    def _context(self, index: ProjectIndex, name: str) -> ExtractionContext:
        return ExtractionContext(self_name=name, known_classes=tuple(index.classes))

    async def extract_dependencies(self, index: ProjectIndex, name: str) -> list[ArtifactRef]:
        patterns = [p for p in patterns_for(self.artifact_type) if p.target != RESOURCE_TARGET]
        hits = await _run_patterns(self.locate(index, name), patterns, self._context(index, name))
        return _filter_edges(index, ArtifactRef(self.artifact_type, name), hits)

    async def extract_resources(self, index: ProjectIndex, name: str) -> list[str]:
        patterns = [p for p in patterns_for(self.artifact_type) if p.target == RESOURCE_TARGET]
        hits = await _run_patterns(self.locate(index, name), patterns, self._context(index, name))
        return list(dict.fromkeys(n for _, names in hits for n in names))


class ClassHandler:
    artifact_type = ArtifactType.CLASS

    def locate(self, index: ProjectIndex, name: str) -> Path:
        directory = index.class_dirs.get(name)
        if directory is None:
            raise UnresolvedDirectoryError(name)
        return directory

    async def extract_dependencies(self, index: ProjectIndex, name: str) -> list[ArtifactRef]:
        ctx = ExtractionContext(self_name=name, known_classes=tuple(index.classes))
        hits = await _run_patterns(
            self.locate(index, name), patterns_for(self.artifact_type), ctx
        )
        return _filter_edges(index, ArtifactRef(self.artifact_type, name), hits)

    async def extract_resources(self, index: ProjectIndex, name: str) -> list[str]:
        return []


HANDLERS: dict[ArtifactType, ArtifactHandler] = {
    ArtifactType.COMPONENT: ComponentHandler(),
    ArtifactType.CLASS: ClassHandler(),
}


def handler_for(artifact_type: ArtifactType) -> ArtifactHandler:
    return HANDLERS[artifact_type]
