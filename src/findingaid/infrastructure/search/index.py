from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol

from findingaid.core.time import now_utc_iso
from findingaid.domain.models.resource import ArchivalResource
from findingaid.infrastructure.db.sqlite import get_connection


class SearchIndex(Protocol):
    def partial_update(self, resource: ArchivalResource, data: dict[str, Any]) -> None:
        """Merge ``data`` into the resource's indexed document."""


def merge_document(document: dict[str, Any], data: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``data`` into ``document``; untouched keys survive."""
    merged = dict(document)
    for key, value in data.items():
        current = merged.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            merged[key] = merge_document(current, value)
        else:
            merged[key] = value
    return merged


class SqliteSearchIndex:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def partial_update(self, resource: ArchivalResource, data: dict[str, Any]) -> None:
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT document_json FROM search_documents WHERE object_id = ?",
                (resource.id,),
            ).fetchone()
            document = json.loads(row["document_json"]) if row else {"slug": resource.slug}
            merged = merge_document(document, data)
            conn.execute(
                """
                INSERT INTO search_documents (object_id, document_json, updated_at) VALUES (?, ?, ?)
                ON CONFLICT (object_id) DO UPDATE SET
                    document_json = excluded.document_json,
                    updated_at = excluded.updated_at
                """,
                (resource.id, json.dumps(merged, ensure_ascii=False), now_utc_iso()),
            )
            conn.commit()

    def get_document(self, object_id: int) -> dict[str, Any] | None:
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT document_json FROM search_documents WHERE object_id = ?",
                (object_id,),
            ).fetchone()
        return json.loads(row["document_json"]) if row else None
