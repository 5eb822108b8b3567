"""
CLI commands for directory imports.

``flask importer import-assignments FILE`` and ``flask importer import-users FILE``
run the full pipeline inline; ``template`` writes a CSV template and
``recompute-supervisor-roles`` re-applies the supervisor role cascade.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Tuple

import click
from flask import current_app
from flask.cli import ScriptInfo, with_appcontext

from directory_app.importer.contracts import ImportKind
from directory_app.importer.errors import ImporterError
from directory_app.importer.pipeline import ImportProgress, recompute_supervisor_roles
from directory_app.importer.service import DirectoryImportService, ImportRunResult
from directory_app.importer.template import generate_template, template_filename
from directory_app.importer.utils import read_local_file
from directory_app.utils.importer import get_allowed_extensions, is_importer_enabled


@click.group(name="importer", invoke_without_command=True)
@click.pass_context
def importer_cli(ctx):
    """
    Directory import commands.

    Lists the available import kinds when invoked without a subcommand.
    """
    info = ctx.ensure_object(ScriptInfo)
    app = info.load_app()
    if not is_importer_enabled(app):
        raise click.ClickException(
            "Importer is disabled via IMPORTER_ENABLED=false. " "Enable it to run importer CLI commands."
        )
    if ctx.invoked_subcommand is None:
        click.echo("Available import kinds:")
        for kind in ImportKind:
            click.echo(f"  - {kind.value}")


def get_disabled_importer_group() -> click.Group:
    """
    Return a minimal command group that informs the operator the importer is disabled.
    """

    @click.group(name="importer", invoke_without_command=True)
    def disabled_group():
        raise click.ClickException("Importer commands are unavailable because IMPORTER_ENABLED=false.")

    return disabled_group


def _parse_mapping_options(values: Tuple[str, ...]) -> dict[str, str | None]:
    overrides: dict[str, str | None] = {}
    for value in values:
        field_name, sep, header = value.partition("=")
        if not sep or not field_name.strip():
            raise click.BadParameter(f"Expected FIELD=HEADER, got '{value}'.", param_hint="--map")
        overrides[field_name.strip()] = header.strip() or None
    return overrides


def _format_summary(result: ImportRunResult) -> str:
    stats = result.preview.validation.stats
    lines = [
        f"Run {result.run_id} ({result.kind.value}) completed with status {result.status.value} "
        f"(dry_run={result.dry_run}).",
        f"  rows_total        : {stats.total}",
        f"  rows_valid        : {stats.valid}",
        f"  rows_invalid      : {stats.invalid}",
        f"  rows_with_warnings: {stats.warnings}",
        f"  rows_duplicate    : {stats.duplicates}",
    ]
    if result.outcome is not None:
        lines.extend(
            [
                f"  written           : {result.outcome.success_count}",
                f"  write_failures    : {result.outcome.failure_count}",
            ]
        )
        for failure in result.outcome.failures:
            lines.append(f"    - row {failure.row_number}: {failure.message}")
        for warning in result.outcome.side_effect_warnings:
            lines.append(f"    ! {warning}")
    errors = result.preview.validation.error_messages()
    if errors:
        lines.append("Validation errors:")
        lines.extend(f"  {message}" for message in errors)
    warnings = result.preview.validation.warning_messages()
    if warnings:
        lines.append("Warnings:")
        lines.extend(f"  {message}" for message in warnings)
    return "\n".join(lines)


def _run_import(
    kind: ImportKind,
    file_path: Path,
    *,
    dry_run: bool,
    chunk_size: Optional[int],
    mappings: Tuple[str, ...],
    summary_format: str,
    show_progress: bool,
) -> None:
    overrides = _parse_mapping_options(mappings)

    def echo_progress(progress: ImportProgress) -> None:
        click.echo(f"  progress {progress.current}/{progress.total} ({progress.percentage}%)")

    try:
        filename, content = read_local_file(file_path, allowed_extensions=get_allowed_extensions())
        result = DirectoryImportService().run(
            kind,
            content,
            filename,
            mapping_overrides=overrides or None,
            dry_run=dry_run,
            chunk_size=chunk_size,
            progress_callback=echo_progress if show_progress else None,
        )
    except ImporterError as exc:
        current_app.logger.warning("Importer CLI %s run failed: %s", kind.value, exc)
        raise click.ClickException(str(exc)) from exc

    if summary_format == "json":
        click.echo(json.dumps(result.to_dict(), indent=2, sort_keys=True))
    else:
        click.echo(_format_summary(result))


def _import_options(func):
    func = click.option(
        "--summary-format",
        type=click.Choice(["text", "json"], case_sensitive=False),
        default="text",
        show_default=True,
        help="Output format for the run summary.",
    )(func)
    func = click.option("--progress/--no-progress", "show_progress", default=False, help="Echo per-record progress.")(
        func
    )
    func = click.option(
        "--map",
        "mappings",
        multiple=True,
        metavar="FIELD=HEADER",
        help="Override the suggested column mapping (repeatable).",
    )(func)
    func = click.option("--chunk-size", type=click.IntRange(min=1), help="Records written per chunk.")(func)
    func = click.option("--dry-run", is_flag=True, help="Validate only; do not write to the directory.")(func)
    func = click.argument("file_path", type=click.Path(path_type=Path, exists=True, dir_okay=False))(func)
    return func


@importer_cli.command("import-assignments")
@_import_options
@with_appcontext
def import_assignments_command(file_path, dry_run, chunk_size, mappings, show_progress, summary_format):
    """Import supervisor -> collaborator assignments from FILE."""
    _run_import(
        ImportKind.ASSIGNMENTS,
        file_path,
        dry_run=dry_run,
        chunk_size=chunk_size,
        mappings=mappings,
        summary_format=summary_format.lower(),
        show_progress=show_progress,
    )


@importer_cli.command("import-users")
@_import_options
@with_appcontext
def import_users_command(file_path, dry_run, chunk_size, mappings, show_progress, summary_format):
    """Import people into the directory from FILE."""
    _run_import(
        ImportKind.USERS,
        file_path,
        dry_run=dry_run,
        chunk_size=chunk_size,
        mappings=mappings,
        summary_format=summary_format.lower(),
        show_progress=show_progress,
    )


@importer_cli.command("template")
@click.argument("kind", type=click.Choice([kind.value for kind in ImportKind]))
@click.option(
    "--output",
    "output_path",
    type=click.Path(path_type=Path, dir_okay=False, writable=True),
    help="Write the template to this path instead of stdout.",
)
def template_command(kind: str, output_path: Optional[Path]):
    """Print or save the CSV template for KIND."""
    content = generate_template(kind)
    if output_path is None:
        click.echo(content, nl=False)
        return
    output_path.write_text(content, encoding="utf-8")
    click.echo(f"Wrote {template_filename(kind)} template to {output_path}")


@importer_cli.command("recompute-supervisor-roles")
@with_appcontext
def recompute_supervisor_roles_command():
    """Promote every supervisor with an active assignment to the jefe role."""
    summary = recompute_supervisor_roles()
    click.echo(
        f"Supervisors considered: {summary.supervisors_considered}\n"
        f"  promoted          : {summary.promoted}\n"
        f"  already_supervisor: {summary.already_supervisor}\n"
        f"  skipped_protected : {summary.skipped_protected}\n"
        f"  missing           : {summary.missing}\n"
        f"  failures          : {len(summary.failures)}"
    )
    for failure in summary.failures:
        click.echo(f"    - {failure}")
