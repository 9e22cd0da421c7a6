"""Runtime settings — environment-driven, validated at load time."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_SERVER_URL = "https://registry.kiliogene.com"

DEFAULT_FORBIDDEN_EXTENSIONS: tuple[str, ...] = (
    ".sh",
    ".bash",
    ".zsh",
    ".bat",
    ".cmd",
    ".ps1",
    ".exe",
    ".scr",
    ".vbs",
    ".msi",
    ".php",
    ".py",
    ".pl",
    ".rb",
    ".jar",
    ".com",
    ".wsf",
)

# Project-relative source roots
LWC_PATH = Path("force-app/main/default/lwc")
APEX_PATH = Path("force-app/main/default/classes")
STATIC_RESOURCES_PATH = Path("force-app/main/default/staticresources")
DEFAULT_TARGET_DIR = Path("force-app/main/default")

PROJECT_MARKER = "sfdx-project.json"

# Archive member names
METADATA_FILENAME = "metadata.json"
DEPS_FILENAME = "registry-deps.json"
STATIC_RESOURCES_DIRNAME = "staticresources"

# Local helper file holding version + description for a deployable artifact
REGISTRY_META_FILENAME = "registry-meta.json"

RESOURCE_META_SUFFIX = ".resource-meta.xml"


@dataclass(frozen=True)
class Settings:
    server_url: str = DEFAULT_SERVER_URL
    auth_file: Path = Path.home() / ".my-registry-auth.json"
    forbidden_extensions: tuple[str, ...] = DEFAULT_FORBIDDEN_EXTENSIONS

    def __post_init__(self) -> None:
        if not self.server_url.startswith(("http://", "https://")):
            raise ValueError(f"server_url must be an http(s) URL, got {self.server_url!r}")
        if not self.forbidden_extensions:
            raise ValueError("forbidden_extensions must not be empty")
        bad = [ext for ext in self.forbidden_extensions if not ext.startswith(".")]
        if bad:
            raise ValueError(f"forbidden extensions must start with '.': {bad}")


def load_settings() -> Settings:
    """Build :class:`Settings` from the environment.

    Reads:
        SF_REGISTRY_URL                  — registry base URL
        SF_REGISTRY_AUTH_FILE            — token file path
        SF_REGISTRY_FORBIDDEN_EXTENSIONS — comma-separated denylist override
    """
    server_url = os.environ.get("SF_REGISTRY_URL", DEFAULT_SERVER_URL).rstrip("/")
    auth_file = os.environ.get("SF_REGISTRY_AUTH_FILE")
    raw_exts = os.environ.get("SF_REGISTRY_FORBIDDEN_EXTENSIONS")

    forbidden = DEFAULT_FORBIDDEN_EXTENSIONS
    if raw_exts:
        forbidden = tuple(e.strip().lower() for e in raw_exts.split(",") if e.strip())

    return Settings(
        server_url=server_url,
        auth_file=Path(auth_file).expanduser() if auth_file else Settings.auth_file,
        forbidden_extensions=forbidden,
    )
