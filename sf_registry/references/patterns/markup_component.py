"""Markup tags referencing another component: ``<c-my-child ...>``."""

from __future__ import annotations

import re

from sf_registry.models import ArtifactType
from sf_registry.references.registry import ExtractionContext, register_pattern

_TAG_RE = re.compile(r"<c-([a-zA-Z0-9_-]+?)[\s/>]")


def tag_to_component_name(tag: str) -> str:
    """Map a kebab-case tag suffix to its camelCase component name."""
    head, *rest = tag.split("-")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


class MarkupComponentPattern:
    name = "markup-component"
    source_type = ArtifactType.COMPONENT
    target = ArtifactType.COMPONENT
    file_suffixes = [".html"]

    def extract(self, content: str, ctx: ExtractionContext) -> list[str]:
        return [tag_to_component_name(m.group(1)) for m in _TAG_RE.finditer(content)]


register_pattern(MarkupComponentPattern())
