from __future__ import annotations

import argparse
from pathlib import Path

from rich.panel import Panel

from findingaid.application.services.job_service import FindingAidJobService
from findingaid.cli.context import EXIT_JOB_FAILED, EXIT_OK, CLIContext
from findingaid.core.errors import ResourceNotFoundError
from findingaid.domain.models.job import Job, JobStatus
from findingaid.infrastructure.db.repos.job_repo import JobRepo
from findingaid.infrastructure.db.repos.resource_repo import ResourceRepo
from findingaid.infrastructure.storage.locator import FindingAidLocator


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("finding-aid", help="Generate, upload or delete finding aid documents")
    fa_sub = parser.add_subparsers(dest="finding_aid_command", required=True)

    generate = fa_sub.add_parser("generate", help="Render the finding aid from EAD")
    generate.add_argument("resource_id", type=int)
    generate.set_defaults(handler=run_generate)

    upload = fa_sub.add_parser("upload", help="Install a prepared finding aid file")
    upload.add_argument("resource_id", type=int)
    upload.add_argument("file", type=Path)
    upload.set_defaults(handler=run_upload)

    delete = fa_sub.add_parser("delete", help="Delete the finding aid and its properties")
    delete.add_argument("resource_id", type=int)
    delete.set_defaults(handler=run_delete)

    status = fa_sub.add_parser("status", help="Show the latest finding aid job status")
    status.add_argument("resource_id", type=int)
    status.set_defaults(handler=run_status)

    path = fa_sub.add_parser("path", help="Show the download path of an existing finding aid")
    path.add_argument("resource_id", type=int)
    path.set_defaults(handler=run_path)


def run_generate(args: argparse.Namespace, ctx: CLIContext) -> int:
    ctx.require_project()
    job, ok = FindingAidJobService(ctx.paths).generate(args.resource_id)
    return _report(ctx, "Generate", job, ok)


def run_upload(args: argparse.Namespace, ctx: CLIContext) -> int:
    ctx.require_project()
    source = args.file.expanduser().resolve()
    if not source.is_file():
        raise ResourceNotFoundError(f"File not found: {source}")
    job, ok = FindingAidJobService(ctx.paths).upload(args.resource_id, source)
    return _report(ctx, "Upload", job, ok)


def run_delete(args: argparse.Namespace, ctx: CLIContext) -> int:
    ctx.require_project()
    job, ok = FindingAidJobService(ctx.paths).delete(args.resource_id)
    return _report(ctx, "Delete", job, ok)


def run_status(args: argparse.Namespace, ctx: CLIContext) -> int:
    ctx.require_project()
    status_id = FindingAidJobService(ctx.paths).status(args.resource_id)
    if status_id is None:
        ctx.console.print(f"No finding aid job recorded for resource {args.resource_id}")
        return 0

    try:
        label = JobStatus(status_id).name.lower()
    except ValueError:
        label = "unknown"
    ctx.console.print(f"Resource {args.resource_id}: {label} ({status_id})")
    return 0


def run_path(args: argparse.Namespace, ctx: CLIContext) -> int:
    ctx.require_project()
    repo = ResourceRepo(ctx.paths.db_path)
    if repo.get_by_id(args.resource_id) is None:
        raise ResourceNotFoundError(f"Archival resource not found: {args.resource_id}")

    relpath = FindingAidLocator(ctx.paths.web_dir).path_for_download(
        args.resource_id, repo.get_slug(args.resource_id)
    )
    if relpath is None:
        ctx.console.print(f"[yellow]No finding aid available for resource {args.resource_id}[/yellow]")
        return 1

    ctx.console.print(str(relpath))
    return 0


def _report(ctx: CLIContext, action: str, job: Job, ok: bool) -> int:
    stored = JobRepo(ctx.paths.db_path).get_by_id(job.id)
    body = "\n".join(stored.notes) if stored and stored.notes else "(no notes)"
    style = "green" if ok else "red"
    ctx.console.print(
        Panel.fit(
            f"Job: {job.id}\nStatus: {'OK' if ok else 'FAILED'}\n\n{body}",
            title=f"{action} finding aid",
            border_style=style,
        )
    )
    return EXIT_OK if ok else EXIT_JOB_FAILED
