"""Tests for DeploymentPipeline, root input resolution and retrieve."""

from __future__ import annotations

import io
import json
import zipfile
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from sf_registry.core.config import Settings
from sf_registry.exceptions import (
    ForbiddenFileError,
    InvalidRootInputError,
    MissingResourceError,
    MissingRootInputError,
    TransportError,
    UnknownArtifactError,
)
from sf_registry.models import ArtifactRef, ArtifactType, RootMetadata
from sf_registry.pipeline import (
    DeploymentPipeline,
    load_registry_meta,
    resolve_root_input,
    retrieve,
)
from sf_registry.scanner import scan_project

COMP = ArtifactType.COMPONENT


def _meta(name="card", version="1.0.0"):
    return RootMetadata(name=name, type=COMP, version=version, description="desc")


class TestLoadRegistryMeta:
    def test_valid(self, tmp_path):
        (tmp_path / "registry-meta.json").write_text(
            json.dumps({"version": "2.1.0", "description": "Shiny"})
        )
        meta = load_registry_meta(tmp_path)
        assert meta.version == "2.1.0"
        assert meta.description == "Shiny"

    def test_missing(self, tmp_path):
        assert load_registry_meta(tmp_path) is None

    def test_bad_version(self, tmp_path):
        (tmp_path / "registry-meta.json").write_text(
            json.dumps({"version": "v2", "description": "x"})
        )
        assert load_registry_meta(tmp_path) is None

    def test_not_json(self, tmp_path):
        (tmp_path / "registry-meta.json").write_text("{")
        assert load_registry_meta(tmp_path) is None


class TestResolveRootInput:
    @pytest.mark.anyio
    async def test_explicit_values(self, project):
        project.component("card")
        index = await scan_project(project.root)
        meta = resolve_root_input(index, COMP, "card", "1.0.0", "A card")
        assert meta == RootMetadata("card", COMP, "1.0.0", "A card")

    @pytest.mark.anyio
    async def test_falls_back_to_registry_meta(self, project):
        project.component(
            "card",
            extra={"registry-meta.json": json.dumps({"version": "3.0.0", "description": "Fb"})},
        )
        index = await scan_project(project.root)
        meta = resolve_root_input(index, COMP, "card", description="Explicit")
        assert meta.version == "3.0.0"
        assert meta.description == "Explicit"

    @pytest.mark.anyio
    async def test_missing_inputs(self, project):
        project.component("card")
        index = await scan_project(project.root)
        with pytest.raises(MissingRootInputError):
            resolve_root_input(index, COMP, "card")

    @pytest.mark.anyio
    async def test_unknown_artifact(self, project):
        index = await scan_project(project.root)
        with pytest.raises(UnknownArtifactError):
            resolve_root_input(index, COMP, "ghost", "1.0.0", "x")


class TestDeploymentPipeline:
    @pytest.mark.anyio
    async def test_build_runs_all_phases(self, project, tmp_path):
        project.component("card", js="import lib from '@salesforce/resourceUrl/lib';")
        project.resource("lib")
        pipeline = DeploymentPipeline(project.root)

        result = await pipeline.build(_meta(), tmp_path / "out.zip")

        assert result.archive == tmp_path / "out.zip"
        assert [r.name for r in result.resources] == ["lib"]
        phases = [(p.phase, p.status) for p in pipeline.progress.phases]
        assert phases == [
            ("scan", "completed"),
            ("resolve", "completed"),
            ("validate", "completed"),
            ("package", "completed"),
        ]

    @pytest.mark.anyio
    async def test_missing_resource_fails_validate_phase(self, project, tmp_path):
        project.component("card", js="import lib from '@salesforce/resourceUrl/lib';")
        pipeline = DeploymentPipeline(project.root)

        with pytest.raises(MissingResourceError):
            await pipeline.build(_meta(), tmp_path / "out.zip")

        assert pipeline.progress.failed.phase == "validate"
        assert not (tmp_path / "out.zip").exists()

    @pytest.mark.anyio
    async def test_settings_denylist_applies(self, project, tmp_path):
        project.component("card", extra={"notes.md": "x"})
        settings = Settings(forbidden_extensions=(".md",))
        pipeline = DeploymentPipeline(project.root, settings)

        with pytest.raises(ForbiddenFileError):
            await pipeline.build(_meta(), tmp_path / "out.zip")
        assert pipeline.progress.failed.phase == "resolve"

    @pytest.mark.anyio
    async def test_resolve_unknown_root(self, project):
        pipeline = DeploymentPipeline(project.root)
        with pytest.raises(UnknownArtifactError):
            await pipeline.resolve(ArtifactRef(COMP, "ghost"))

    @pytest.mark.anyio
    async def test_deploy_uploads_then_removes_archive(self, project):
        project.component("card")
        client = AsyncMock()
        client.upload.return_value = "ok"
        pipeline = DeploymentPipeline(project.root)

        result = await pipeline.deploy(client, _meta())

        client.upload.assert_awaited_once_with(result.archive)
        assert not result.archive.exists()
        assert pipeline.progress.phases[-1].phase == "upload"

    @pytest.mark.anyio
    async def test_failed_upload_keeps_archive(self, project, tmp_path):
        project.component("card")
        client = AsyncMock()
        client.upload.side_effect = TransportError(500, "boom")
        pipeline = DeploymentPipeline(project.root)

        with pytest.raises(TransportError):
            await pipeline.deploy(client, _meta())

        archive = Path(pipeline.progress.phases[3].detail)
        assert archive.exists()
        archive.unlink()


class TestRetrieve:
    @pytest.mark.anyio
    async def test_download_and_place(self, tmp_path):
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            zf.writestr("Svc/Svc.cls", "public class Svc {}")
            zf.writestr("metadata.json", "{}")

        async def fake_download(artifact_type, name, version, dest):
            dest.write_bytes(buf.getvalue())
            fake_download.dest = dest
            return dest

        client = AsyncMock()
        client.download.side_effect = fake_download
        target = tmp_path / "target"

        report = await retrieve(client, ArtifactType.CLASS, "Svc", "1.0.0", target)

        assert report.ok
        assert (target / "classes" / "Svc" / "Svc.cls").is_file()
        assert not fake_download.dest.exists()

    @pytest.mark.anyio
    async def test_failed_download_propagates(self, tmp_path):
        client = AsyncMock()
        client.download.side_effect = TransportError(404, "not found")
        with pytest.raises(TransportError):
            await retrieve(client, COMP, "card", "9.9.9", tmp_path / "target")


class TestRootInputValidation:
    @pytest.mark.anyio
    @pytest.mark.parametrize(
        "version, description",
        [("../../evil", "A card"), ("1.0", "A card"), ("1.0.0", "")],
    )
    async def test_rejects_bad_explicit_values(self, project, version, description):
        project.component("card")
        index = await scan_project(project.root)
        with pytest.raises(InvalidRootInputError) as exc_info:
            resolve_root_input(index, COMP, "card", version, description)
        assert exc_info.value.name == "card"

    @pytest.mark.anyio
    async def test_bad_explicit_version_not_rescued_by_meta_file(self, project):
        project.component(
            "card",
            extra={"registry-meta.json": json.dumps({"version": "1.0.0", "description": "ok"})},
        )
        index = await scan_project(project.root)
        with pytest.raises(InvalidRootInputError):
            resolve_root_input(index, COMP, "card", version="latest")


class TestProgressCallbacks:
    @pytest.mark.anyio
    async def test_callbacks_survive_rebuild(self, project, tmp_path):
        project.component("card")
        pipeline = DeploymentPipeline(project.root)
        seen = []
        pipeline.progress.callbacks.append(lambda p: seen.append((p.phase, p.status)))

        await pipeline.build(_meta(), tmp_path / "a.zip")
        await pipeline.build(_meta(), tmp_path / "b.zip")

        assert seen.count(("package", "completed")) == 2
        assert seen[0] == ("scan", "running")
