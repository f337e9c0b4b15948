"""Export writers — cleaned table as CSV or a styled XLSX workbook."""

from __future__ import annotations

import csv
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Literal

import pandas as pd
from openpyxl import Workbook
from openpyxl.cell.cell import Cell
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from template_cleaner.models import CleaningOptions, CleaningResult

ExportFormat = Literal["csv", "xlsx"]
EXPORT_FORMATS: tuple[str, ...] = ("csv", "xlsx")

DATA_SHEET = "Cleaned Data"
SUMMARY_SHEET = "Summary"

# ── Style constants ──────────────────────────────────────────────

HEADER_FONT = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
HEADER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)

TITLE_FONT = Font(name="Calibri", bold=True, size=14, color="2F5496")
SUBTITLE_FONT = Font(name="Calibri", bold=False, size=10, color="808080")
LABEL_FONT = Font(name="Calibri", bold=True, size=11)
VALUE_FONT = Font(name="Calibri", size=11)
WARN_FONT = Font(name="Calibri", italic=True, size=10, color="CC6600")

NOTE_FILL = PatternFill(start_color="FFF2CC", end_color="FFF2CC", fill_type="solid")
STAT_FILL = PatternFill(start_color="D6E4F0", end_color="D6E4F0", fill_type="solid")

_AUTO_WIDTH_SAMPLE_ROWS = 300


def export_filename(fmt: str, today: date | None = None) -> str:
    """Return ``cleaned-data-YYYY-MM-DD.<fmt>``."""
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt!r}. Use csv or xlsx")
    day = today or datetime.now(timezone.utc).date()
    return f"cleaned-data-{day.isoformat()}.{fmt}"


# ── Helpers ──────────────────────────────────────────────────────


def _style_header(ws: Worksheet, ncols: int) -> None:
    for c in range(1, ncols + 1):
        cell = ws.cell(row=1, column=c)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGN


def _auto_width(ws: Worksheet) -> None:
    max_row = min(ws.max_row, _AUTO_WIDTH_SAMPLE_ROWS + 1)  # include header row
    for c_idx in range(1, ws.max_column + 1):
        letter = get_column_letter(c_idx)
        width = 0
        for row in ws.iter_rows(min_row=1, max_row=max_row, min_col=c_idx, max_col=c_idx):
            width = max(width, len(str(row[0].value or "")))
        ws.column_dimensions[letter].width = min(width + 4, 30)


def _text_cell(ws: Worksheet, row: int, column: int, val: str) -> Cell:
    cell = ws.cell(row=row, column=column, value=val)
    # Keep "=..." and "#N/A" as literal text, not formulas or error cells.
    cell.data_type = "s"
    if val.startswith("="):
        cell.quotePrefix = True
    return cell


def _write_data_sheet(wb: Workbook, result: CleaningResult) -> None:
    ws = wb.create_sheet(title=DATA_SHEET)
    header = result.table.header

    if not header:
        ws.cell(row=1, column=1, value="No matching columns").font = VALUE_FONT
        ws.column_dimensions["A"].width = 24
        return

    for c_idx, name in enumerate(header, 1):
        if name:
            _text_cell(ws, 1, c_idx, name)
    for r_idx, row in enumerate(result.table.rows, 2):
        for c_idx, val in enumerate(row, 1):
            if val:
                _text_cell(ws, r_idx, c_idx, val)
    _style_header(ws, len(header))
    ws.freeze_panes = "A2"
    if result.table.row_count > 0:
        ws.auto_filter.ref = ws.dimensions
    _auto_width(ws)


def _write_summary_sheet(
    wb: Workbook, result: CleaningResult, options: CleaningOptions
) -> None:
    ws = wb.create_sheet(title=SUMMARY_SHEET)

    ws.cell(row=1, column=1, value="template-cleaner — Summary").font = TITLE_FONT
    ws.merge_cells("A1:C1")
    generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    ws.cell(row=2, column=1, value=f"Generated {generated}").font = SUBTITLE_FONT
    ws.merge_cells("A2:C2")

    row = 4
    stats = [
        ("Total Rows Cleaned", result.total_rows_cleaned),
        ("Columns Deleted", result.columns_deleted),
        ("Duplicate Rows Removed", result.duplicate_rows_removed),
    ]
    for label, value in stats:
        lbl_cell = ws.cell(row=row, column=1, value=label)
        lbl_cell.font = LABEL_FONT
        lbl_cell.fill = STAT_FILL
        val_cell = ws.cell(row=row, column=2, value=value)
        val_cell.font = VALUE_FONT
        val_cell.fill = STAT_FILL
        val_cell.alignment = Alignment(horizontal="right")
        row += 1

    row += 1
    listings = [
        ("Kept columns", list(result.kept_columns)),
        ("Removed columns", list(result.removed_columns)),
        ("Options", options.enabled()),
    ]
    for label, values in listings:
        ws.cell(row=row, column=1, value=label).font = LABEL_FONT
        text = ", ".join(values) if values else "none"
        _text_cell(ws, row, 2, text).font = VALUE_FONT
        row += 1

    row += 1
    ws.cell(row=row, column=1, value="Notes").font = LABEL_FONT
    ws.cell(row=row, column=1).fill = NOTE_FILL
    row += 1
    if result.warnings:
        for warn in result.warnings:
            ws.cell(row=row, column=1, value=f"⚠ {warn}").font = WARN_FONT
            row += 1
    else:
        ws.cell(row=row, column=1, value="No warnings").font = VALUE_FONT

    ws.column_dimensions["A"].width = 26
    ws.column_dimensions["B"].width = 40
    ws.column_dimensions["C"].width = 18


# ── Public API ───────────────────────────────────────────────────


def write_csv(path: Path, result: CleaningResult) -> Path:
    """Write header + rows to *path* with every field quoted."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    frame = pd.DataFrame(result.cleaned_data, dtype="object")
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    frame.to_csv(
        tmp_path,
        header=False,
        index=False,
        quoting=csv.QUOTE_ALL,
        lineterminator="\n",
        encoding="utf-8",
    )
    tmp_path.replace(path)
    return path


def write_workbook(
    path: Path, result: CleaningResult, options: CleaningOptions | None = None
) -> Path:
    """Write the cleaned table plus a summary sheet to *path*."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    active_sheet = wb.active
    if active_sheet is not None:
        wb.remove(active_sheet)  # remove default sheet

    _write_data_sheet(wb, result)
    _write_summary_sheet(wb, result, options or CleaningOptions())

    tmp_path = path.with_name(f"{path.stem}.tmp{path.suffix}")
    wb.save(tmp_path)
    tmp_path.replace(path)
    return path


def write_export(
    out_dir: Path,
    result: CleaningResult,
    options: CleaningOptions | None = None,
    fmt: ExportFormat = "csv",
    today: date | None = None,
) -> Path:
    """Write the export named by :func:`export_filename` into *out_dir*."""
    path = Path(out_dir) / export_filename(fmt, today)
    if fmt == "csv":
        return write_csv(path, result)
    return write_workbook(path, result, options)
