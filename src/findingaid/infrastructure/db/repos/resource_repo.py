from __future__ import annotations

from pathlib import Path

from findingaid.core.time import now_utc_iso
from findingaid.domain.models.resource import ArchivalResource
from findingaid.infrastructure.db.sqlite import get_connection


class ResourceRepo:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def insert(self, resource: ArchivalResource) -> None:
        with get_connection(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO resources (
                    id,
                    parent_id,
                    slug,
                    title,
                    identifier,
                    level_of_description,
                    scope_and_content,
                    created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    resource.id,
                    resource.parent_id,
                    resource.slug,
                    resource.title,
                    resource.identifier,
                    resource.level_of_description,
                    resource.scope_and_content,
                    now_utc_iso(),
                ),
            )
            conn.commit()

    def get_by_id(self, resource_id: int) -> ArchivalResource | None:
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM resources WHERE id = ?",
                (resource_id,),
            ).fetchone()
        return self._to_model(row) if row else None

    def get_slug(self, resource_id: int) -> str | None:
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT slug FROM resources WHERE id = ?",
                (resource_id,),
            ).fetchone()
        return row["slug"] if row else None

    def children(self, parent_id: int) -> list[ArchivalResource]:
        with get_connection(self.db_path) as conn:
            rows = conn.execute(
                "SELECT * FROM resources WHERE parent_id = ? ORDER BY id",
                (parent_id,),
            ).fetchall()
        return [self._to_model(row) for row in rows]

    def list(self, limit: int = 100) -> list[ArchivalResource]:
        with get_connection(self.db_path) as conn:
            rows = conn.execute(
                """
                SELECT * FROM resources
                WHERE parent_id IS NOT NULL
                ORDER BY id
                LIMIT ?
                """,
                (limit,),
            ).fetchall()
        return [self._to_model(row) for row in rows]

    @staticmethod
    def _to_model(row) -> ArchivalResource:
        return ArchivalResource(
            id=row["id"],
            parent_id=row["parent_id"],
            slug=row["slug"],
            title=row["title"],
            identifier=row["identifier"],
            level_of_description=row["level_of_description"],
            scope_and_content=row["scope_and_content"],
        )
