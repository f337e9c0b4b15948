"""CLI entry point for template-cleaner."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table as RichTable

from template_cleaner import OPTION_NAMES, PENDING_OPTIONS, __version__
from template_cleaner.io import MAX_INPUT_BYTES, load_table, write_json
from template_cleaner.models import CleaningOptions, CleaningResult, RunManifest, Table
from template_cleaner.pipeline import preview_alignment
from template_cleaner.qc import write_cleaning_summary
from template_cleaner.report import write_export
from template_cleaner.session import CleaningSession, FileRole, Stage
from template_cleaner.utils import format_file_size, sha256_file, utc_today, utcnow_iso

app = typer.Typer(
    name="tclean",
    help="template-cleaner — Align a data sheet to a template sheet and tidy its cells.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()


class CleaningOptionName(str, Enum):
    remove_duplicates = "remove-duplicates"
    remove_empty_rows = "remove-empty-rows"
    remove_empty_columns = "remove-empty-columns"
    trim_whitespace = "trim-whitespace"
    normalize_text = "normalize-text"
    remove_special_characters = "remove-special-characters"
    standardize_dates = "standardize-dates"
    convert_to_uppercase = "convert-to-uppercase"
    convert_to_lowercase = "convert-to-lowercase"
    remove_leading_zeros = "remove-leading-zeros"


class ExportFormatOption(str, Enum):
    csv = "csv"
    xlsx = "xlsx"


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {msg}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"template-cleaner v{__version__}")
        raise typer.Exit()


def _load_profile_options(profile: Path | None) -> list[str]:
    """Return option names listed one per line in a profile file."""
    if not profile:
        return []
    if not profile.exists():
        raise ValueError(f"Profile not found: {profile} (expected lines like trim-whitespace)")
    if profile.is_dir():
        raise ValueError(f"Profile is a directory, not a file: {profile}")
    try:
        text = profile.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Cannot read profile {profile}: {exc}") from exc

    names: list[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        names.append(stripped)
    return names


def _resolve_options(
    profile: Path | None, selected: list[CleaningOptionName] | None
) -> CleaningOptions:
    names = _load_profile_options(profile) + [opt.value for opt in selected or []]
    return CleaningOptions.from_names(names)


def _write_manifest(
    out_dir: Path,
    data_file: Path,
    template_file: Path,
    created_at: str,
    *,
    options: CleaningOptions | None = None,
    result: CleaningResult | None = None,
    rows_in: int = 0,
    output_path: Path | None = None,
    status: str = "success",
    error_code: int | None = None,
    error_message: str = "",
) -> Path:
    manifest = RunManifest(
        version=__version__,
        data_path=str(data_file.resolve()),
        template_path=str(template_file.resolve()),
        output_path=str(output_path.resolve()) if output_path else "",
        created_at_utc=created_at,
        options=options.enabled() if options else [],
        rows_in=rows_in,
        rows_out=result.total_rows_cleaned if result else 0,
        data_sha256=sha256_file(data_file),
        template_sha256=sha256_file(template_file),
        status=status,
        error_code=error_code,
        error_message=error_message,
    )
    return write_json(out_dir / "run_manifest.json", manifest.to_dict())


def _fail(
    out_dir: Path,
    data_file: Path,
    template_file: Path,
    created_at: str,
    message: str,
    *,
    options: CleaningOptions | None = None,
    rows_in: int = 0,
    error_code: int = 2,
) -> typer.Exit:
    manifest_path = _write_manifest(
        out_dir,
        data_file,
        template_file,
        created_at,
        options=options,
        rows_in=rows_in,
        status="failed",
        error_code=error_code,
        error_message=message,
    )
    _err(message)
    console.print(f"  Manifest -> {manifest_path}")
    return typer.Exit(code=error_code)


def _load_pair(data_file: Path, template_file: Path) -> tuple[Table, Table]:
    return (
        load_table(data_file, max_bytes=MAX_INPUT_BYTES),
        load_table(template_file, max_bytes=MAX_INPUT_BYTES),
    )


def _describe(path: Path, table: Table) -> str:
    size = format_file_size(path.stat().st_size)
    return f"{path.name}: {table.row_count} rows x {table.column_count} columns ({size})"


def _result_table(result: CleaningResult) -> RichTable:
    tbl = RichTable(title="Cleaning Summary", show_lines=True)
    tbl.add_column("Metric", style="bold")
    tbl.add_column("Value")
    tbl.add_row("Total rows cleaned", str(result.total_rows_cleaned))
    tbl.add_row("Columns deleted", str(result.columns_deleted))
    tbl.add_row("Duplicate rows removed", str(result.duplicate_rows_removed))
    tbl.add_row("Kept columns", ", ".join(result.kept_columns) or "[dim]none[/dim]")
    return tbl


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """template-cleaner CLI."""


# ── clean command ────────────────────────────────────────────────


@app.command()
def clean(
    data_file: Path = typer.Option(
        ..., "--data", "-d",
        help="CSV or XLSX file holding the rows to clean.",
        exists=True, readable=True, dir_okay=False,
    ),
    template_file: Path = typer.Option(
        ..., "--template", "-t",
        help="CSV or XLSX file whose header defines the columns and their order.",
        exists=True, readable=True, dir_okay=False,
    ),
    option: list[CleaningOptionName] | None = typer.Option(
        None, "--option", "-O",
        help="Cleaning option to enable (repeatable). See `tclean options`.",
    ),
    profile: Path | None = typer.Option(
        None, "--profile",
        help="Profile file listing cleaning options, one per line.",
    ),
    fmt: ExportFormatOption = typer.Option(
        ExportFormatOption.csv, "--format", "-f",
        help="Export format: csv or xlsx.",
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for the export, summary and manifest.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes all artifacts.",
    ),
) -> None:
    """Align the data file to the template and write the cleaned export."""
    echo = _printer(quiet)
    created_at = utcnow_iso()
    out_dir.mkdir(parents=True, exist_ok=True)

    try:
        options = _resolve_options(profile, option)
    except ValueError as exc:
        raise _fail(out_dir, data_file, template_file, created_at, str(exc))

    if not quiet:
        console.print(Panel(
            f"[bold]template-cleaner[/bold] v{__version__}\n"
            f"Data:     {data_file}\nTemplate: {template_file}\nOutput:   {out_dir}",
            title="Cleaning Start", border_style="blue",
        ))
        if profile:
            console.print(f"  Using profile: {profile}")
        enabled = options.enabled()
        console.print(f"  Options: {', '.join(enabled) if enabled else 'none'}")

    # ── Load ─────────────────────────────────────────────────────
    echo("[blue]>[/blue] Loading input files …")
    try:
        data_table, template_table = _load_pair(data_file, template_file)
    except (FileNotFoundError, ValueError, OSError) as exc:
        raise _fail(out_dir, data_file, template_file, created_at, str(exc), options=options)
    except Exception as exc:
        raise _fail(
            out_dir, data_file, template_file, created_at,
            f"Unexpected error while loading input: {exc}",
            options=options, error_code=1,
        )

    echo(f"  {_describe(data_file, data_table)}")
    echo(f"  {_describe(template_file, template_table)}")

    rows_in = data_table.row_count
    try:
        session = CleaningSession()
        session.add_file(str(data_file), data_table, size=data_file.stat().st_size)
        session.add_file(str(template_file), template_table, size=template_file.stat().st_size)
        session.assign_role(str(data_file), FileRole.DATA)
        session.assign_role(str(template_file), FileRole.TEMPLATE)
        session.configure(options)
        session.go_to(Stage.REVIEWING)
    except ValueError as exc:
        raise _fail(
            out_dir, data_file, template_file, created_at, str(exc),
            options=options, rows_in=rows_in,
        )

    try:
        # ── Clean ────────────────────────────────────────────────
        echo("[blue]>[/blue] Cleaning …")
        result = session.process()

        if not quiet:
            for w in result.warnings:
                console.print(f"  [yellow]![/yellow] {w}")
            console.print(f"  {result.total_rows_cleaned} clean rows retained")

        # ── Export ───────────────────────────────────────────────
        echo(f"[blue]>[/blue] Writing {fmt.value.upper()} export …")
        export_path = write_export(out_dir, result, options, fmt.value, today=utc_today())
        echo(f"  Export   -> {export_path}")

        summary_path = write_cleaning_summary(out_dir, result, options)
        echo(f"  Summary  -> {summary_path}")

        manifest_path = _write_manifest(
            out_dir,
            data_file,
            template_file,
            created_at,
            options=options,
            result=result,
            rows_in=rows_in,
            output_path=export_path,
        )
        echo(f"  Manifest -> {manifest_path}")

        if not quiet:
            console.print(_result_table(result))
            console.print(Panel(
                f"[green]Done[/green] — {result.total_rows_cleaned} rows -> {export_path}",
                title="Cleaning Complete", border_style="green",
            ))
    except typer.Exit:
        raise
    except ValueError as exc:
        raise _fail(
            out_dir, data_file, template_file, created_at, str(exc),
            options=options, rows_in=rows_in,
        )
    except Exception as exc:
        raise _fail(
            out_dir, data_file, template_file, created_at,
            f"Unexpected internal error: {exc}",
            options=options, rows_in=rows_in, error_code=1,
        )


# ── preview command ──────────────────────────────────────────────


@app.command()
def preview(
    data_file: Path = typer.Option(
        ..., "--data", "-d",
        help="CSV or XLSX file holding the rows to clean.",
        exists=True, readable=True, dir_okay=False,
    ),
    template_file: Path = typer.Option(
        ..., "--template", "-t",
        help="CSV or XLSX file whose header defines the columns and their order.",
        exists=True, readable=True, dir_okay=False,
    ),
) -> None:
    """Show which columns the template keeps and removes, without writing files.

    Exit 0 = at least one column kept, exit 2 = unreadable input or no
    matching columns.
    """
    try:
        data_table, template_table = _load_pair(data_file, template_file)
    except (FileNotFoundError, ValueError, OSError) as exc:
        _err(str(exc))
        raise typer.Exit(code=2)
    except Exception as exc:
        _err(f"Unexpected error while loading input: {exc}")
        raise typer.Exit(code=1)

    alignment = preview_alignment(data_table, template_table)

    tbl = RichTable(title="Column Alignment", show_lines=True)
    tbl.add_column("Check", style="bold")
    tbl.add_column("Columns")
    tbl.add_row("Data", _describe(data_file, data_table))
    tbl.add_row("Template", _describe(template_file, template_table))
    tbl.add_row(
        "Kept", ", ".join(alignment.kept_columns) or "[red]none[/red]"
    )
    tbl.add_row(
        "Removed", ", ".join(alignment.removed_columns) or "[green]none[/green]"
    )
    if alignment.missing_columns:
        tbl.add_row(
            "Not in data",
            f"[yellow]{', '.join(alignment.missing_columns)}[/yellow]",
        )
    console.print(tbl)

    if not alignment.kept_columns:
        _err("No template column matches a data column")
        raise typer.Exit(code=2)


# ── options command ──────────────────────────────────────────────


@app.command("options")
def list_options() -> None:
    """List the cleaning options accepted by ``clean --option``."""
    tbl = RichTable(title="Cleaning Options")
    tbl.add_column("Option", style="bold")
    tbl.add_column("Status")
    for name in OPTION_NAMES:
        status = (
            "[yellow]not implemented yet[/yellow]"
            if name in PENDING_OPTIONS
            else "[green]active[/green]"
        )
        tbl.add_row(name, status)
    console.print(tbl)
