from __future__ import annotations

from pathlib import Path

from findingaid.core.time import now_utc_iso
from findingaid.infrastructure.db.sqlite import get_connection


class SettingRepo:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def get_value(self, name: str) -> str | None:
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT value FROM settings WHERE name = ?",
                (name,),
            ).fetchone()
        return row["value"] if row else None

    def set_value(self, name: str, value: str) -> None:
        with get_connection(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO settings (name, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT (name) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (name, value, now_utc_iso()),
            )
            conn.commit()

    def all(self) -> dict[str, str | None]:
        with get_connection(self.db_path) as conn:
            rows = conn.execute("SELECT name, value FROM settings ORDER BY name").fetchall()
        return {row["name"]: row["value"] for row in rows}
