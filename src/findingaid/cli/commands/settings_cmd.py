from __future__ import annotations

import argparse

from rich.table import Table

from findingaid.cli.context import CLIContext
from findingaid.core.errors import ValidationError
from findingaid.domain.models.finding_aid import FORMAT_SETTING, MODEL_SETTING, SUPPORTED_FORMATS
from findingaid.infrastructure.db.repos.setting_repo import SettingRepo

_KNOWN_SETTINGS = (MODEL_SETTING, FORMAT_SETTING)


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("settings", help="Show or change finding aid settings")
    settings_sub = parser.add_subparsers(dest="settings_command", required=True)

    show = settings_sub.add_parser("get", help="Show current settings")
    show.set_defaults(handler=run_get)

    change = settings_sub.add_parser("set", help="Change a setting")
    change.add_argument("name", choices=_KNOWN_SETTINGS)
    change.add_argument("value")
    change.set_defaults(handler=run_set)


def run_get(args: argparse.Namespace, ctx: CLIContext) -> int:
    ctx.require_project()
    values = SettingRepo(ctx.paths.db_path).all()

    table = Table(title="Settings")
    table.add_column("Name")
    table.add_column("Value")
    for name in _KNOWN_SETTINGS:
        table.add_row(name, values.get(name) or "[dim](default)[/dim]")

    ctx.console.print(table)
    return 0


def run_set(args: argparse.Namespace, ctx: CLIContext) -> int:
    ctx.require_project()
    value = args.value.strip()
    if args.name == FORMAT_SETTING:
        value = value.lower()
        if value not in SUPPORTED_FORMATS:
            raise ValidationError(f"{FORMAT_SETTING} must be one of: {', '.join(SUPPORTED_FORMATS)}")

    SettingRepo(ctx.paths.db_path).set_value(args.name, value)
    ctx.console.print(f"[green]Set[/green] {args.name} = {value}")
    return 0
