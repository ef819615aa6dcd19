from __future__ import annotations

import json
from pathlib import Path

from findingaid.domain.models.job import Job
from findingaid.infrastructure.db.sqlite import get_connection


class JobRepo:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def insert(self, job: Job) -> None:
        with get_connection(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO jobs (id, name, object_id, status_id, notes_json, created_at, finished_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    job.id,
                    job.name,
                    job.object_id,
                    job.status_id,
                    json.dumps(job.notes, ensure_ascii=False),
                    job.created_at,
                    job.finished_at,
                ),
            )
            conn.commit()

    def finalize(self, job_id: str, *, status_id: int, finished_at: str) -> None:
        with get_connection(self.db_path) as conn:
            conn.execute(
                "UPDATE jobs SET status_id = ?, finished_at = ? WHERE id = ?",
                (status_id, finished_at, job_id),
            )
            conn.commit()

    def add_note(self, job_id: str, text: str) -> None:
        with get_connection(self.db_path) as conn:
            row = conn.execute("SELECT notes_json FROM jobs WHERE id = ?", (job_id,)).fetchone()
            if row is None:
                return
            notes = json.loads(row["notes_json"] or "[]")
            notes.append(text)
            conn.execute(
                "UPDATE jobs SET notes_json = ? WHERE id = ?",
                (json.dumps(notes, ensure_ascii=False), job_id),
            )
            conn.commit()

    def get_by_id(self, job_id: str) -> Job | None:
        with get_connection(self.db_path) as conn:
            row = conn.execute("SELECT * FROM jobs WHERE id = ?", (job_id,)).fetchone()
        return self._to_model(row) if row else None

    def latest_status(self, name: str, object_id: int) -> int | None:
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                """
                SELECT status_id FROM jobs
                WHERE name = ? AND object_id = ?
                ORDER BY created_at DESC
                LIMIT 1
                """,
                (name, object_id),
            ).fetchone()
        return int(row["status_id"]) if row else None

    @staticmethod
    def _to_model(row) -> Job:
        return Job(
            id=row["id"],
            name=row["name"],
            object_id=row["object_id"],
            status_id=row["status_id"],
            created_at=row["created_at"],
            finished_at=row["finished_at"],
            notes=json.loads(row["notes_json"] or "[]"),
        )
