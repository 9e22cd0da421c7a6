"""Script imports of a shared static resource: ``@salesforce/resourceUrl/<name>``."""

from __future__ import annotations

from sf_registry.models import ArtifactType
from sf_registry.references.patterns._imports import import_from
from sf_registry.references.registry import (
    RESOURCE_TARGET,
    ExtractionContext,
    register_pattern,
)

_RESOURCE_IMPORT_RE = import_from(r"@salesforce/resourceUrl/([a-zA-Z0-9_]+)")


class ScriptResourcePattern:
    name = "script-resource"
    source_type = ArtifactType.COMPONENT
    target = RESOURCE_TARGET
    file_suffixes = [".ts", ".js"]

    def extract(self, content: str, ctx: ExtractionContext) -> list[str]:
        return _RESOURCE_IMPORT_RE.findall(content)


register_pattern(ScriptResourcePattern())
