"""Shared pytest fixtures for sf-registry tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from sf_registry.core.config import APEX_PATH, LWC_PATH, PROJECT_MARKER, STATIC_RESOURCES_PATH


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


class ProjectBuilder:
    """Write a minimal project tree on disk."""

    def __init__(self, root: Path) -> None:
        self.root = root
        (root / PROJECT_MARKER).write_text('{"packageDirectories": []}')
        self.lwc = root / LWC_PATH
        self.classes = root / APEX_PATH
        self.resources = root / STATIC_RESOURCES_PATH

    def component(
        self,
        name: str,
        js: str = "",
        html: str | None = None,
        ts: str | None = None,
        extra: dict[str, str] | None = None,
    ) -> Path:
        d = self.lwc / name
        d.mkdir(parents=True, exist_ok=True)
        (d / f"{name}.js").write_text(js)
        (d / f"{name}.js-meta.xml").write_text("<LightningComponentBundle/>")
        if html is not None:
            (d / f"{name}.html").write_text(html)
        if ts is not None:
            (d / f"{name}.ts").write_text(ts)
        for rel, content in (extra or {}).items():
            p = d / rel
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_text(content)
        return d

    def apex_class(self, name: str, body: str = "", directory: str | None = None) -> Path:
        d = self.classes / (directory or name)
        d.mkdir(parents=True, exist_ok=True)
        (d / f"{name}.cls").write_text(body or f"public class {name} {{}}")
        (d / f"{name}.cls-meta.xml").write_text("<ApexClass/>")
        return d

    def resource(self, name: str, ext: str = ".js", descriptor: bool = True) -> Path:
        self.resources.mkdir(parents=True, exist_ok=True)
        payload = self.resources / f"{name}{ext}"
        payload.write_text(f"// {name}")
        if descriptor:
            (self.resources / f"{name}.resource-meta.xml").write_text("<StaticResource/>")
        return payload


@pytest.fixture
def project(tmp_path) -> ProjectBuilder:
    root = tmp_path / "project"
    root.mkdir()
    return ProjectBuilder(root)
