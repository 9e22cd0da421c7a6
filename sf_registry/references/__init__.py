"""Reference extractor — static scan of artifact sources for cross-artifact references."""

# Ensure patterns are registered before any extraction runs.
import sf_registry.references.patterns  # noqa: F401
from sf_registry.references.registry import (
    PATTERN_REGISTRY,
    RESOURCE_TARGET,
    ExtractionContext,
    ReferencePattern,
    extract_from_file,
    extract_references,
    patterns_for,
    register_pattern,
)

__all__ = [
    "PATTERN_REGISTRY",
    "RESOURCE_TARGET",
    "ExtractionContext",
    "ReferencePattern",
    "extract_from_file",
    "extract_references",
    "patterns_for",
    "register_pattern",
]
