"""Reference pattern registry — one matcher per reference shape."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

from sf_registry.models import ArtifactType

# Pattern targets that are not artifacts
RESOURCE_TARGET = "resource"


@dataclass(frozen=True)
class ExtractionContext:
    """What a pattern may need to know besides the file content."""

    self_name: str
    known_classes: tuple[str, ...] = field(default_factory=tuple)


@runtime_checkable
class ReferencePattern(Protocol):
    """Interface that every reference matcher must satisfy."""

    name: str
    source_type: ArtifactType  # artifact kind whose files are scanned
    target: ArtifactType | str  # referenced artifact kind, or RESOURCE_TARGET
    file_suffixes: list[str]  # e.g. [".ts", ".js"], appended to the artifact name

    def extract(self, content: str, ctx: ExtractionContext) -> list[str]: ...


PATTERN_REGISTRY: dict[str, ReferencePattern] = {}


def register_pattern(pattern: ReferencePattern) -> None:
    """Register a pattern instance by its name."""
    PATTERN_REGISTRY[pattern.name] = pattern


def patterns_for(source_type: ArtifactType) -> list[ReferencePattern]:
    """Registered patterns scanning *source_type* files, in registration order."""
    return [p for p in PATTERN_REGISTRY.values() if p.source_type is source_type]


def unique(names: list[str]) -> list[str]:
    """Deduplicate keeping first occurrence order."""
    return list(dict.fromkeys(names))


def _read_text(file_path: Path) -> str | None:
    # Undecodable bytes become U+FFFD.
    try:
        return file_path.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        return None


async def extract_from_file(
    file_path: Path, pattern: ReferencePattern, ctx: ExtractionContext
) -> list[str]:
    """Names referenced by *file_path* according to *pattern*.

    A missing file contributes nothing; other read errors propagate.
    """
    content = await asyncio.to_thread(_read_text, file_path)
    if content is None:
        return []
    return unique(pattern.extract(content, ctx))


async def extract_references(
    directory: Path, pattern: ReferencePattern, ctx: ExtractionContext
) -> list[str]:
    """Run *pattern* over every candidate file of an artifact, merged in suffix order."""
    results = await asyncio.gather(
        *(
            extract_from_file(directory / f"{ctx.self_name}{suffix}", pattern, ctx)
            for suffix in pattern.file_suffixes
        )
    )
    return unique([name for names in results for name in names])
