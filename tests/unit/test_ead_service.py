from pathlib import Path

import pytest

from findingaid.application.services.ead_service import EadService, tidy_xml
from findingaid.core.errors import EadExportError
from findingaid.domain.models.resource import ArchivalResource
from findingaid.infrastructure.db.repos.resource_repo import ResourceRepo
from findingaid.infrastructure.db.sqlite import initialize_schema
from findingaid.infrastructure.export.ead_exporter import TreeEadExporter
from findingaid.infrastructure.export.xml_cache import XmlCache

RESOURCE = ArchivalResource(id=42, slug="fonds-a", title="Fonds A")


class CountingExporter:
    def __init__(self, xml: str = "<ead><eadheader><eadid>42</eadid></eadheader></ead>") -> None:
        self.xml = xml
        self.calls = 0

    def export(self, resource: ArchivalResource) -> str:
        self.calls += 1
        return self.xml


class BrokenExporter:
    def export(self, resource: ArchivalResource) -> str:
        raise RuntimeError("template blew up")


def test_cached_file_is_returned_without_exporting(tmp_path: Path) -> None:
    cache = XmlCache(tmp_path / "cache", tmp_path / "tmp")
    cached = cache.resource_export_file_path(RESOURCE, "ead")
    cached.parent.mkdir(parents=True)
    cached.write_text("<ead/>", encoding="utf-8")
    exporter = CountingExporter()

    ead = EadService(exporter, cache).get_ead_file(RESOURCE)

    assert ead.path == cached
    assert ead.cached is True
    assert exporter.calls == 0


def test_export_without_caching_uses_fallback_filename(tmp_path: Path) -> None:
    cache = XmlCache(tmp_path / "cache", tmp_path / "tmp")

    ead = EadService(CountingExporter(), cache).get_ead_file(RESOURCE)

    assert ead.cached is False
    assert ead.path == tmp_path / "tmp" / "ead_0000000042_fonds-a.xml"
    assert "<eadid>42</eadid>" in ead.path.read_text(encoding="utf-8")
    assert not cache.resource_export_file_path(RESOURCE, "ead").exists()


def test_export_with_caching_enabled_persists_cache_file(tmp_path: Path) -> None:
    cache = XmlCache(tmp_path / "cache", tmp_path / "tmp")
    exporter = CountingExporter()
    service = EadService(exporter, cache, cache_xml_on_save=True)

    first = service.get_ead_file(RESOURCE)
    second = service.get_ead_file(RESOURCE)

    assert first.path == cache.resource_export_file_path(RESOURCE, "ead")
    assert first.cached is True
    assert second.path == first.path
    assert exporter.calls == 1


def test_exporter_failure_names_the_resource(tmp_path: Path) -> None:
    service = EadService(BrokenExporter(), XmlCache(tmp_path / "cache", tmp_path / "tmp"))

    with pytest.raises(EadExportError, match="fonds-a"):
        service.get_ead_file(RESOURCE)


def test_malformed_export_is_an_export_error(tmp_path: Path) -> None:
    service = EadService(CountingExporter("<ead><unclosed></ead>"), XmlCache(tmp_path / "c", tmp_path / "t"))

    with pytest.raises(EadExportError):
        service.get_ead_file(RESOURCE)


def test_write_failure_names_resource_and_target(tmp_path: Path) -> None:
    blocker = tmp_path / "tmp"
    blocker.write_text("not a directory", encoding="utf-8")
    service = EadService(CountingExporter(), XmlCache(tmp_path / "cache", blocker))

    with pytest.raises(EadExportError, match=r"Couldn't write file for 'fonds-a'.*ead_0000000042_fonds-a\.xml"):
        service.get_ead_file(RESOURCE)


def test_tidy_xml_reindents_and_drops_blank_text() -> None:
    tidy = tidy_xml("<ead>\n\n   <eadheader>   <eadid>x</eadid></eadheader></ead>")

    assert tidy.splitlines()[1:] == [
        "<ead>",
        "  <eadheader>",
        "    <eadid>x</eadid>",
        "  </eadheader>",
        "</ead>",
    ]


def test_tree_exporter_nests_descendants(tmp_path: Path) -> None:
    db_path = tmp_path / "findingaid.db"
    initialize_schema(db_path)
    repo = ResourceRepo(db_path)
    repo.insert(ArchivalResource(id=42, slug="fonds-a", title="Fonds A", identifier="F-1", level_of_description="fonds"))
    repo.insert(ArchivalResource(id=43, slug="series-1", parent_id=42, title="Series 1", level_of_description="series"))
    repo.insert(ArchivalResource(id=44, parent_id=43, title="File 1", scope_and_content="Letters"))

    xml = TreeEadExporter(repo).export(repo.get_by_id(42))

    assert xml.startswith("<ead>")
    assert '<archdesc level="fonds">' in xml
    assert "<unitid>F-1</unitid>" in xml
    assert '<c level="series" id="series-1">' in xml
    assert "<p>Letters</p>" in xml
    assert xml.index("Series 1") < xml.index("File 1")
