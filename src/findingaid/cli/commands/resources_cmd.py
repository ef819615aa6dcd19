from __future__ import annotations

import argparse
import sqlite3

from rich.table import Table

from findingaid.cli.context import CLIContext
from findingaid.core.errors import ValidationError
from findingaid.domain.models.resource import ROOT_ID, ArchivalResource
from findingaid.infrastructure.db.repos.resource_repo import ResourceRepo


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("resources", help="Manage archival descriptions")
    resource_sub = parser.add_subparsers(dest="resources_command", required=True)

    add = resource_sub.add_parser("add", help="Add an archival description")
    add.add_argument("--id", type=int, required=True)
    add.add_argument("--slug")
    add.add_argument("--title")
    add.add_argument("--identifier")
    add.add_argument("--level", dest="level_of_description")
    add.add_argument("--scope-and-content")
    add.add_argument("--parent", type=int, default=ROOT_ID, help="Parent id (default: root)")
    add.set_defaults(handler=run_add)

    list_parser = resource_sub.add_parser("list", help="List archival descriptions")
    list_parser.add_argument("--limit", type=int, default=50)
    list_parser.set_defaults(handler=run_list)


def run_add(args: argparse.Namespace, ctx: CLIContext) -> int:
    ctx.require_project()
    if args.id == ROOT_ID:
        raise ValidationError(f"Resource id {ROOT_ID} is reserved for the root description")

    resource = ArchivalResource(
        id=args.id,
        slug=args.slug,
        parent_id=args.parent,
        title=args.title,
        identifier=args.identifier,
        level_of_description=args.level_of_description,
        scope_and_content=args.scope_and_content,
    )
    try:
        ResourceRepo(ctx.paths.db_path).insert(resource)
    except sqlite3.IntegrityError as exc:
        raise ValidationError(f"Cannot add resource {args.id}: {exc}") from exc

    ctx.console.print(f"[green]Added[/green] resource {resource.id} ({resource.label})")
    return 0


def run_list(args: argparse.Namespace, ctx: CLIContext) -> int:
    ctx.require_project()

    resources = ResourceRepo(ctx.paths.db_path).list(limit=args.limit)

    table = Table(title=f"Resources ({len(resources)})")
    table.add_column("ID")
    table.add_column("Parent")
    table.add_column("Slug")
    table.add_column("Identifier")
    table.add_column("Title", overflow="fold")

    for r in resources:
        table.add_row(str(r.id), str(r.parent_id), r.slug or "", r.identifier or "", r.title or "")

    ctx.console.print(table)
    return 0
