from __future__ import annotations

import uuid
from collections.abc import Callable
from pathlib import Path

from findingaid.application.services.finding_aid_service import (
    FindingAidWriter,
    build_writer,
    resolve_settings,
)
from findingaid.core.config import AppPaths
from findingaid.core.errors import ResourceNotFoundError
from findingaid.core.files import safe_copy_atomic
from findingaid.core.time import now_utc_iso
from findingaid.domain.models.finding_aid import JOB_NAME
from findingaid.domain.models.job import Job, JobStatus
from findingaid.domain.models.resource import ArchivalResource
from findingaid.infrastructure.db.repos.job_repo import JobRepo
from findingaid.infrastructure.db.repos.resource_repo import ResourceRepo

WriterFactory = Callable[[AppPaths, ArchivalResource, Job], FindingAidWriter]


def _default_writer_factory(paths: AppPaths, resource: ArchivalResource, job: Job) -> FindingAidWriter:
    return build_writer(paths, resource, job=job)


class FindingAidJobService:
    """Records one job row around each synchronous finding aid action."""

    def __init__(self, paths: AppPaths, writer_factory: WriterFactory | None = None) -> None:
        self.paths = paths
        self.resource_repo = ResourceRepo(paths.db_path)
        self.job_repo = JobRepo(paths.db_path)
        self.writer_factory = writer_factory or _default_writer_factory

    def generate(self, resource_id: int) -> tuple[Job, bool]:
        return self._run(resource_id, lambda writer: writer.generate())

    def upload(self, resource_id: int, source_file: Path) -> tuple[Job, bool]:
        def action(writer: FindingAidWriter) -> bool:
            settings = resolve_settings(writer.setting_repo)
            target = writer.locator.canonical_abspath(writer.resource.id, writer.resource.slug, settings.format)
            safe_copy_atomic(source_file.expanduser().resolve(), target)
            return writer.upload(target, settings)

        return self._run(resource_id, action)

    def delete(self, resource_id: int) -> tuple[Job, bool]:
        return self._run(resource_id, lambda writer: writer.delete())

    def status(self, resource_id: int) -> int | None:
        return FindingAidWriter.get_status(resource_id, self.job_repo)

    def _run(self, resource_id: int, action: Callable[[FindingAidWriter], bool]) -> tuple[Job, bool]:
        resource = self.resource_repo.get_by_id(resource_id)
        if resource is None:
            raise ResourceNotFoundError(f"Archival resource not found: {resource_id}")

        # Built before the job row exists so a rejected resource leaves no trace.
        job = Job(
            id=str(uuid.uuid4()),
            name=JOB_NAME,
            object_id=resource.id,
            status_id=int(JobStatus.IN_PROGRESS),
            created_at=now_utc_iso(precise=True),
        )
        writer = self.writer_factory(self.paths, resource, job)
        self.job_repo.insert(job)

        ok = False
        try:
            ok = action(writer)
        finally:
            status = JobStatus.COMPLETED if ok else JobStatus.ERROR
            job.status_id = int(status)
            job.finished_at = now_utc_iso(precise=True)
            self.job_repo.finalize(job.id, status_id=job.status_id, finished_at=job.finished_at)

        return job, ok
