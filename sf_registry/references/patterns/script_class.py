"""Script imports of a server-side class method.

``import getItems from '@salesforce/apex/ItemController.getItems'`` references
class ``ItemController``; the member suffix is ignored.
"""

from __future__ import annotations

from sf_registry.models import ArtifactType
from sf_registry.references.patterns._imports import import_from
from sf_registry.references.registry import ExtractionContext, register_pattern

_APEX_IMPORT_RE = import_from(r"@salesforce/apex/([a-zA-Z0-9_]+)\.[^'\"]+")


class ScriptClassPattern:
    name = "script-class"
    source_type = ArtifactType.COMPONENT
    target = ArtifactType.CLASS
    file_suffixes = [".ts", ".js"]

    def extract(self, content: str, ctx: ExtractionContext) -> list[str]:
        return _APEX_IMPORT_RE.findall(content)


register_pattern(ScriptClassPattern())
