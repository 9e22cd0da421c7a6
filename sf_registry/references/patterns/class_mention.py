"""Whole-word mentions of another known class inside a class source.

This is a textual heuristic: a class name that appears in a comment or a
string literal still counts as a reference.
"""

from __future__ import annotations

import re

from sf_registry.models import ArtifactType
from sf_registry.references.registry import ExtractionContext, register_pattern


class ClassMentionPattern:
    name = "class-mention"
    source_type = ArtifactType.CLASS
    target = ArtifactType.CLASS
    file_suffixes = [".cls"]

    def extract(self, content: str, ctx: ExtractionContext) -> list[str]:
        # Result follows the known-class order, not the order of appearance.
        return [
            class_name
            for class_name in ctx.known_classes
            if class_name != ctx.self_name
            and re.search(rf"\b{re.escape(class_name)}\b", content)
        ]


register_pattern(ClassMentionPattern())
