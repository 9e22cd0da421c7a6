"""Data models for artifacts, manifests and the remote catalog."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ArtifactType(str, Enum):
    """Kinds of deployable artifacts."""

    COMPONENT = "component"
    CLASS = "class"

    @property
    def label(self) -> str:
        return "LWC component" if self is ArtifactType.COMPONENT else "Apex class"

    @property
    def plural(self) -> str:
        return "LWC components" if self is ArtifactType.COMPONENT else "Apex classes"


@dataclass(frozen=True)
class ArtifactRef:
    """Identity of an artifact: ``(type, name)``."""

    type: ArtifactType
    name: str

    @property
    def key(self) -> str:
        return f"{self.type.value}:{self.name}"

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "type": self.type.value}


@dataclass
class ProjectIndex:
    """Scanner output: known artifact names and where their sources live."""

    lwc_root: Path
    components: list[str] = field(default_factory=list)
    classes: list[str] = field(default_factory=list)
    class_dirs: dict[str, Path] = field(default_factory=dict)

    def known(self, artifact_type: ArtifactType) -> list[str]:
        if artifact_type is ArtifactType.COMPONENT:
            return self.components
        return self.classes

    def contains(self, ref: ArtifactRef) -> bool:
        return ref.name in self.known(ref.type)


@dataclass
class ManifestEntry:
    """One artifact's record inside a packaged closure (``registry-deps.json``)."""

    name: str
    type: ArtifactType
    dependencies: list[ArtifactRef] = field(default_factory=list)
    static_resources: list[str] = field(default_factory=list)
    version: str | None = None  # set on the root entry only

    @property
    def ref(self) -> ArtifactRef:
        return ArtifactRef(self.type, self.name)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "type": self.type.value,
            "dependencies": [d.to_dict() for d in self.dependencies],
            "staticresources": list(self.static_resources),
        }
        if self.version is not None:
            data["version"] = self.version
        return data


@dataclass(frozen=True)
class RootMetadata:
    """Body of ``metadata.json`` for the requested root artifact."""

    name: str
    type: ArtifactType
    version: str
    description: str

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "type": self.type.value,
            "version": self.version,
            "description": self.description,
        }


@dataclass(frozen=True)
class ResolvedResource:
    """A validated static resource: payload file plus its descriptor."""

    name: str
    payload: Path
    descriptor: Path


@dataclass
class ExtractionReport:
    """Outcome of placing an extracted archive into a target directory."""

    placed: list[tuple[ArtifactType, str, Path]] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    resources_placed: list[str] = field(default_factory=list)
    resources_skipped: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


# ── pydantic schemas ────────────────────────────────────────────────────


class RegistryMetaFile(BaseModel):
    """Local ``registry-meta.json`` supplying version and description."""

    version: str = Field(pattern=r"^\d+\.\d+\.\d+$")
    description: str = Field(min_length=1)


class CatalogDependency(BaseModel):
    name: str
    type: str
    version: str


class CatalogVersion(BaseModel):
    version: str
    description: str
    hash: str
    staticresources: list[str]
    registryDependencies: list[CatalogDependency]  # noqa: N815


class CatalogEntry(BaseModel):
    name: str
    versions: list[CatalogVersion]


class Catalog(BaseModel):
    """Full registry listing returned by ``GET /catalog``."""

    model_config = ConfigDict(populate_by_name=True)

    component: list[CatalogEntry]
    class_: list[CatalogEntry] = Field(alias="class")

    def entries(self, artifact_type: ArtifactType) -> list[CatalogEntry]:
        if artifact_type is ArtifactType.COMPONENT:
            return self.component
        return self.class_
