import logging
import tempfile
from pathlib import Path
from typing import Any

import pytest

from findingaid.application.services.finding_aid_service import FindingAidWriter, build_writer
from findingaid.application.services.project_service import ProjectService
from findingaid.core.config import AppPaths, ToolConfig, load_paths
from findingaid.core.errors import EadExportError, ValidationError
from findingaid.domain.models.finding_aid import TRANSCRIPT_SCOPE
from findingaid.domain.models.resource import ROOT_ID, ArchivalResource
from findingaid.infrastructure.db.repos.property_repo import PropertyRepo
from findingaid.infrastructure.db.repos.resource_repo import ResourceRepo
from findingaid.infrastructure.db.repos.setting_repo import SettingRepo
from findingaid.infrastructure.tools.runner import CommandResult

TOOLS = ToolConfig(
    java_bin="java",
    saxon_jar=Path("/opt/saxon9he.jar"),
    fop_bin="fop",
    pdftotext_bin="pdftotext",
    cache_xml_on_save=False,
)


class RecordingIndex:
    def __init__(self) -> None:
        self.updates: list[tuple[int, dict[str, Any]]] = []

    def partial_update(self, resource: ArchivalResource, data: dict[str, Any]) -> None:
        self.updates.append((resource.id, data))


class FakeToolchain:
    """Stands in for saxon, fop and pdftotext."""

    def __init__(
        self,
        *,
        saxon_exit: int = 0,
        fop_exit: int = 0,
        pdftotext_exit: int = 0,
        pdftotext_lines: list[str] | None = None,
    ) -> None:
        self.saxon_exit = saxon_exit
        self.fop_exit = fop_exit
        self.pdftotext_exit = pdftotext_exit
        self.pdftotext_lines = pdftotext_lines or []
        self.calls: list[str] = []
        self.saxon_source = b""
        self.saxon_stylesheet = ""

    def run(self, command: str, args: list[str]) -> CommandResult:
        self.calls.append(command)
        if command == "java":
            opts = {arg.split(":", 1)[0]: arg.split(":", 1)[1] for arg in args if arg.startswith("-") and ":" in arg}
            self.saxon_source = Path(opts["-s"]).read_bytes()
            self.saxon_stylesheet = Path(opts["-xsl"]).read_text(encoding="utf-8")
            if self.saxon_exit:
                return CommandResult(exit_code=self.saxon_exit, stdout_lines=["Error at line 3", "XTSE0010"])
            Path(opts["-o"]).write_text("<fo:root/>", encoding="utf-8")
            return CommandResult(exit_code=0)
        if command == "fop":
            Path(args[-1]).write_bytes(b"%PDF-1.4 partial")
            if self.fop_exit:
                return CommandResult(exit_code=self.fop_exit, stdout_lines=["SEVERE: Exception in FO"])
            return CommandResult(exit_code=0)
        if command == "pdftotext":
            return CommandResult(exit_code=self.pdftotext_exit, stdout_lines=list(self.pdftotext_lines))
        raise AssertionError(f"Unexpected command: {command}")


def _project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, slug: str | None = None) -> tuple[AppPaths, ArchivalResource]:
    for name in ("FINDINGAID_HOME", "FINDINGAID_WEB_DIR", "FINDINGAID_APP_ROOT", "FINDINGAID_TEMPLATE_DIR"):
        monkeypatch.delenv(name, raising=False)
    paths = load_paths(tmp_path)
    ProjectService(paths).init_project()

    paths.template_dir.mkdir(parents=True)
    (paths.template_dir / "ead-pdf-inventory-summary.xsl").write_text(
        '<xsl:import href="{{ app_root }}/lib/task/pdf/common.xsl"/>',
        encoding="utf-8",
    )

    resource = ArchivalResource(id=42, slug=slug, title="Fonds A")
    ResourceRepo(paths.db_path).insert(resource)
    return paths, resource


def _writer(paths: AppPaths, resource: ArchivalResource, runner: FakeToolchain, index: RecordingIndex) -> FindingAidWriter:
    return build_writer(paths, resource, tools=TOOLS, runner=runner, search_index=index)


def test_root_resource_is_rejected_without_side_effects(tmp_path: Path) -> None:
    paths = load_paths(tmp_path)

    with pytest.raises(ValidationError, match=f"Invalid resource id: {ROOT_ID}"):
        build_writer(paths, ArchivalResource(id=ROOT_ID), tools=TOOLS, runner=FakeToolchain())

    assert list(tmp_path.iterdir()) == []


def test_generate_renders_artifact_and_records_status(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    paths, resource = _project(tmp_path, monkeypatch)
    runner = FakeToolchain()
    index = RecordingIndex()

    assert _writer(paths, resource, runner, index).generate() is True

    assert (paths.downloads_dir / "42.pdf").read_bytes() == b"%PDF-1.4 partial"
    status = PropertyRepo(paths.db_path).get_one(42, "findingAidStatus")
    assert status is not None and status.value == "Generated"
    assert index.updates == [(42, {"findingAid": {"status": "Generated"}})]

    assert runner.calls == ["java", "fop"]
    assert b'xmlns="urn:isbn:1-931666-22-9"' in runner.saxon_source
    assert runner.saxon_stylesheet == f'<xsl:import href="{paths.app_root}/lib/task/pdf/common.xsl"/>'
    # Working copies and the uncached export are gone.
    assert list(paths.tmp_dir.iterdir()) == []


def test_generate_uses_slug_and_rtf_setting(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    paths, resource = _project(tmp_path, monkeypatch, slug="fonds-a")
    SettingRepo(paths.db_path).set_value("findingAidFormat", "rtf")

    assert _writer(paths, resource, FakeToolchain(), RecordingIndex()).generate() is True

    assert [p.name for p in paths.downloads_dir.iterdir()] == ["fonds-a.rtf"]


def test_fo_render_failure_leaves_status_and_target_untouched(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    paths, resource = _project(tmp_path, monkeypatch)
    PropertyRepo(paths.db_path).upsert(42, "findingAidStatus", "Uploaded")
    index = RecordingIndex()

    with caplog.at_level(logging.ERROR):
        ok = _writer(paths, resource, FakeToolchain(fop_exit=1), index).generate()

    assert ok is False
    assert list(paths.downloads_dir.iterdir()) == []
    assert PropertyRepo(paths.db_path).get_one(42, "findingAidStatus").value == "Uploaded"
    assert index.updates == []
    assert "ERROR(FOP): SEVERE: Exception in FO" in caplog.text
    assert list(paths.tmp_dir.iterdir()) == []


def test_saxon_failure_is_fatal_and_logs_each_line(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    paths, resource = _project(tmp_path, monkeypatch)
    runner = FakeToolchain(saxon_exit=2)

    with caplog.at_level(logging.ERROR):
        ok = _writer(paths, resource, runner, RecordingIndex()).generate()

    assert ok is False
    assert runner.calls == ["java"]
    assert "Transforming the EAD with Saxon has failed." in caplog.text
    assert "ERROR(SAXON): Error at line 3" in caplog.text
    assert "ERROR(SAXON): XTSE0010" in caplog.text
    assert PropertyRepo(paths.db_path).get_one(42, "findingAidStatus") is None
    assert list(paths.tmp_dir.iterdir()) == []


def test_generate_prefers_cached_ead_and_keeps_it_pristine(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    paths, resource = _project(tmp_path, monkeypatch)
    cached = paths.xml_cache_dir / "ead" / "42.xml"
    cached.parent.mkdir(parents=True)
    cached.write_text('<ead audience="external"><eadheader/></ead>', encoding="utf-8")

    class FailingExporter:
        def export(self, resource: ArchivalResource) -> str:
            raise AssertionError("cached EAD should have been used")

    runner = FakeToolchain()
    writer = build_writer(
        paths,
        resource,
        tools=TOOLS,
        runner=runner,
        exporter=FailingExporter(),
        search_index=RecordingIndex(),
    )

    assert writer.generate() is True
    assert cached.read_text(encoding="utf-8") == '<ead audience="external"><eadheader/></ead>'
    assert b"xmlns:xsi" in runner.saxon_source


def test_export_failure_propagates(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    paths, resource = _project(tmp_path, monkeypatch)

    class BrokenExporter:
        def export(self, resource: ArchivalResource) -> str:
            raise RuntimeError("boom")

    writer = build_writer(paths, resource, tools=TOOLS, runner=FakeToolchain(), exporter=BrokenExporter())

    with pytest.raises(EadExportError):
        writer.generate()


def test_generate_reports_temp_file_failure(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    paths, resource = _project(tmp_path, monkeypatch)
    runner = FakeToolchain()

    def no_space(*args: Any, **kwargs: Any) -> tuple[int, str]:
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(tempfile, "mkstemp", no_space)

    with caplog.at_level(logging.ERROR):
        ok = _writer(paths, resource, runner, RecordingIndex()).generate()

    assert ok is False
    assert "Failed to create temporary file." in caplog.text
    assert runner.calls == []
    assert PropertyRepo(paths.db_path).get_one(42, "findingAidStatus") is None
    assert list(paths.tmp_dir.iterdir()) == []


def test_generate_reports_missing_stylesheet(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    paths, resource = _project(tmp_path, monkeypatch)
    (paths.template_dir / "ead-pdf-inventory-summary.xsl").unlink()
    runner = FakeToolchain()

    with caplog.at_level(logging.ERROR):
        ok = _writer(paths, resource, runner, RecordingIndex()).generate()

    assert ok is False
    assert "Finding aid stylesheet not found" in caplog.text
    assert runner.calls == []
    assert PropertyRepo(paths.db_path).get_one(42, "findingAidStatus") is None
    assert list(paths.tmp_dir.iterdir()) == []


def test_generate_accepts_latin1_cached_ead(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    paths, resource = _project(tmp_path, monkeypatch)
    cached = paths.xml_cache_dir / "ead" / "42.xml"
    cached.parent.mkdir(parents=True)
    original = b'<?xml version="1.0" encoding="ISO-8859-1"?>\r\n<ead><c>caf\xe9</c></ead>\r\n'
    cached.write_bytes(original)
    runner = FakeToolchain()

    assert _writer(paths, resource, runner, RecordingIndex()).generate() is True

    assert runner.saxon_source.endswith(b"<c>caf\xe9</c></ead>\r\n")
    assert b"xmlns:xsi" in runner.saxon_source
    assert cached.read_bytes() == original


def test_upload_non_extractable_format_nulls_transcript(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    paths, resource = _project(tmp_path, monkeypatch)
    SettingRepo(paths.db_path).set_value("findingAidFormat", "rtf")
    properties = PropertyRepo(paths.db_path)
    properties.upsert(42, "findingAidTranscript", "older text", scope=TRANSCRIPT_SCOPE)
    runner = FakeToolchain(pdftotext_lines=["never read"])
    index = RecordingIndex()

    assert _writer(paths, resource, runner, index).upload(paths.downloads_dir / "42.rtf") is True

    assert properties.get_one(42, "findingAidStatus").value == "Uploaded"
    assert properties.get_one(42, "findingAidTranscript", scope=TRANSCRIPT_SCOPE).value == "older text"
    assert runner.calls == []
    assert index.updates == [(42, {"findingAid": {"transcript": None, "status": "Uploaded"}})]


def test_upload_pdf_stores_truncated_transcript(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    paths, resource = _project(tmp_path, monkeypatch)
    runner = FakeToolchain(pdftotext_lines=["ü" * 40_000])
    index = RecordingIndex()

    assert _writer(paths, resource, runner, index).upload(paths.downloads_dir / "42.pdf") is True

    transcript = PropertyRepo(paths.db_path).get_one(42, "findingAidTranscript", scope=TRANSCRIPT_SCOPE)
    assert transcript is not None
    assert len(transcript.value.encode("utf-8")) <= 65535
    assert index.updates[-1][1]["findingAid"]["transcript"] == transcript.value


def test_upload_survives_extraction_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    paths, resource = _project(tmp_path, monkeypatch)
    index = RecordingIndex()

    ok = _writer(paths, resource, FakeToolchain(pdftotext_exit=1), index).upload(paths.downloads_dir / "42.pdf")

    assert ok is True
    assert PropertyRepo(paths.db_path).get_one(42, "findingAidTranscript", scope=TRANSCRIPT_SCOPE) is None
    assert index.updates == [(42, {"findingAid": {"transcript": None, "status": "Uploaded"}})]


def test_delete_removes_every_candidate_and_is_idempotent(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    paths, resource = _project(tmp_path, monkeypatch, slug="fonds-a")
    for name in ("42.pdf", "42.rtf", "fonds-a.pdf", "fonds-a.rtf"):
        (paths.downloads_dir / name).write_bytes(b"x")
    properties = PropertyRepo(paths.db_path)
    properties.upsert(42, "findingAidStatus", "Generated")
    properties.upsert(42, "findingAidTranscript", "text", scope=TRANSCRIPT_SCOPE)
    index = RecordingIndex()
    writer = _writer(paths, resource, FakeToolchain(), index)

    assert writer.delete() is True
    assert writer.delete() is True

    assert list(paths.downloads_dir.iterdir()) == []
    assert properties.list_for_object(42) == []
    assert index.updates == [(42, {"findingAid": {"transcript": None, "status": None}})] * 2
