"""sf-registry: dependency-closure packaging for LWC components and Apex classes."""

__version__ = "0.1.0"

from sf_registry.models import (
    ArtifactRef,
    ArtifactType,
    ExtractionReport,
    ManifestEntry,
    ProjectIndex,
    ResolvedResource,
    RootMetadata,
)
from sf_registry.packager import build_package
from sf_registry.pipeline import DeploymentPipeline, PackageResult, resolve_root_input, retrieve
from sf_registry.resolver import DependencyResolver, VisitedSet
from sf_registry.scanner import scan_project
from sf_registry.transport import FileTokenProvider, RegistryClient
from sf_registry.unpacker import place_extracted

__all__ = [
    "ArtifactRef",
    "ArtifactType",
    "DependencyResolver",
    "DeploymentPipeline",
    "ExtractionReport",
    "FileTokenProvider",
    "ManifestEntry",
    "PackageResult",
    "ProjectIndex",
    "RegistryClient",
    "ResolvedResource",
    "RootMetadata",
    "VisitedSet",
    "build_package",
    "place_extracted",
    "resolve_root_input",
    "retrieve",
    "scan_project",
]
