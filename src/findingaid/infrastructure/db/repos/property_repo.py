from __future__ import annotations

from pathlib import Path

from findingaid.core.time import now_utc_iso
from findingaid.domain.models.property import SOURCE_CULTURE, FindingAidProperty
from findingaid.infrastructure.db.sqlite import get_connection


class PropertyRepo:
    """Named, culture-tagged key/value properties attached to a resource.

    A property is identified by ``(object_id, name, scope, culture)``; an unset
    scope is stored as the empty string so the unique index applies to it.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def get_one(
        self,
        object_id: int,
        name: str,
        scope: str | None = None,
        culture: str = SOURCE_CULTURE,
    ) -> FindingAidProperty | None:
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                """
                SELECT * FROM properties
                WHERE object_id = ? AND name = ? AND scope = ? AND culture = ?
                """,
                (object_id, name, scope or "", culture),
            ).fetchone()
        return self._to_model(row) if row else None

    def upsert(
        self,
        object_id: int,
        name: str,
        value: str,
        scope: str | None = None,
        culture: str = SOURCE_CULTURE,
    ) -> FindingAidProperty:
        with get_connection(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO properties (object_id, name, scope, culture, value, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT (object_id, name, scope, culture)
                DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (object_id, name, scope or "", culture, value, now_utc_iso()),
            )
            row = conn.execute(
                """
                SELECT * FROM properties
                WHERE object_id = ? AND name = ? AND scope = ? AND culture = ?
                """,
                (object_id, name, scope or "", culture),
            ).fetchone()
            conn.commit()

        return self._to_model(row)

    def delete(
        self,
        object_id: int,
        name: str,
        scope: str | None = None,
        culture: str = SOURCE_CULTURE,
    ) -> bool:
        with get_connection(self.db_path) as conn:
            cursor = conn.execute(
                """
                DELETE FROM properties
                WHERE object_id = ? AND name = ? AND scope = ? AND culture = ?
                """,
                (object_id, name, scope or "", culture),
            )
            conn.commit()
        return cursor.rowcount > 0

    def list_for_object(self, object_id: int) -> list[FindingAidProperty]:
        with get_connection(self.db_path) as conn:
            rows = conn.execute(
                "SELECT * FROM properties WHERE object_id = ? ORDER BY name, scope",
                (object_id,),
            ).fetchall()
        return [self._to_model(row) for row in rows]

    @staticmethod
    def _to_model(row) -> FindingAidProperty:
        return FindingAidProperty(
            id=row["id"],
            object_id=row["object_id"],
            name=row["name"],
            value=row["value"],
            scope=row["scope"] or None,
            culture=row["culture"],
            updated_at=row["updated_at"],
        )
