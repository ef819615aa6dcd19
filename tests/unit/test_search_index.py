from pathlib import Path

from findingaid.domain.models.resource import ArchivalResource
from findingaid.infrastructure.db.sqlite import initialize_schema
from findingaid.infrastructure.search.index import SqliteSearchIndex, merge_document


def test_merge_document_keeps_untouched_fields() -> None:
    document = {"slug": "fonds-a", "findingAid": {"status": "Uploaded", "transcript": "text"}}

    merged = merge_document(document, {"findingAid": {"status": "Generated"}})

    assert merged == {"slug": "fonds-a", "findingAid": {"status": "Generated", "transcript": "text"}}
    assert document["findingAid"]["status"] == "Uploaded"


def test_sqlite_index_applies_partial_updates_in_order(tmp_path: Path) -> None:
    db_path = tmp_path / "findingaid.db"
    initialize_schema(db_path)
    index = SqliteSearchIndex(db_path)
    resource = ArchivalResource(id=42, slug="fonds-a")

    assert index.get_document(42) is None

    index.partial_update(resource, {"findingAid": {"transcript": "text", "status": "Uploaded"}})
    index.partial_update(resource, {"findingAid": {"status": "Generated"}})
    assert index.get_document(42) == {
        "slug": "fonds-a",
        "findingAid": {"transcript": "text", "status": "Generated"},
    }

    index.partial_update(resource, {"findingAid": {"transcript": None, "status": None}})
    assert index.get_document(42) == {"slug": "fonds-a", "findingAid": {"transcript": None, "status": None}}
