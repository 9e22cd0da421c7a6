"""Script imports of another component: ``import x from 'c/child'``."""

from __future__ import annotations

from sf_registry.models import ArtifactType
from sf_registry.references.patterns._imports import import_from
from sf_registry.references.registry import ExtractionContext, register_pattern

_COMPONENT_IMPORT_RE = import_from(r"c/([a-zA-Z0-9_]+)")


class ScriptComponentPattern:
    name = "script-component"
    source_type = ArtifactType.COMPONENT
    target = ArtifactType.COMPONENT
    file_suffixes = [".ts", ".js"]

    def extract(self, content: str, ctx: ExtractionContext) -> list[str]:
        return _COMPONENT_IMPORT_RE.findall(content)


register_pattern(ScriptComponentPattern())
