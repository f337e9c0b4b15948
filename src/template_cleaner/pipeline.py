"""Template alignment + cleaning pipeline — pure functions, no side effects."""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

from template_cleaner.models import (
    AlignmentPreview,
    CleaningOptions,
    CleaningResult,
    MissingDataError,
    Table,
)

Row = tuple[str, ...]
TableInput = Table | Sequence[Sequence[Any]] | None

_SPECIAL_CHARS_RE = re.compile(r"[^a-zA-Z0-9\s]")
# The whole zero run must be followed by a digit: "007" -> "7", "00" stays.
_LEADING_ZEROS_RE = re.compile(r"^0+(?=[1-9])")


def _as_table(value: TableInput, role: str) -> Table:
    if value is None:
        raise MissingDataError(f"No {role} table supplied")
    if isinstance(value, Table):
        return value
    try:
        return Table.from_rows(value)
    except MissingDataError as exc:
        raise MissingDataError(f"{role.capitalize()} table has no header row") from exc


# ── Column alignment ────────────────────────────────────────────


def align_columns(
    data_header: Sequence[str], template_header: Sequence[str]
) -> list[tuple[int, str]]:
    """Return ``(data_index, name)`` pairs for template names found in *data_header*.

    Pairs follow template order; a name matches the first data column with
    exactly the same text.
    """
    first_index: dict[str, int] = {}
    for idx, name in enumerate(data_header):
        first_index.setdefault(name, idx)
    return [
        (first_index[name], name) for name in template_header if name in first_index
    ]


def project_rows(
    rows: Sequence[Sequence[str]], positions: Sequence[int]
) -> list[Row]:
    """Select *positions* from every row; cells past a row's end read as ``""``."""
    return [
        tuple(row[pos] if pos < len(row) else "" for pos in positions) for row in rows
    ]


def preview_alignment(data: TableInput, template: TableInput) -> AlignmentPreview:
    """Describe which columns cleaning would keep, remove and not find."""
    data_table = _as_table(data, "data")
    template_table = _as_table(template, "template")
    kept = [name for _idx, name in align_columns(data_table.header, template_table.header)]
    kept_set = set(kept)
    data_names = set(data_table.header)
    return AlignmentPreview(
        kept_columns=tuple(kept),
        removed_columns=tuple(n for n in data_table.header if n not in kept_set),
        missing_columns=tuple(n for n in template_table.header if n not in data_names),
    )


# ── Row filters ─────────────────────────────────────────────────


def drop_duplicate_rows(rows: Sequence[Row]) -> tuple[list[Row], int]:
    """Keep the first occurrence of every distinct row; return ``(rows, removed)``."""
    seen: set[Row] = set()
    unique: list[Row] = []
    removed = 0
    for row in rows:
        if row in seen:
            removed += 1
            continue
        seen.add(row)
        unique.append(row)
    return unique, removed


def drop_empty_rows(rows: Sequence[Row]) -> list[Row]:
    return [row for row in rows if any(cell.strip() for cell in row)]


# ── Cell transforms ─────────────────────────────────────────────


def transform_cell(value: Any, options: CleaningOptions) -> str:
    """Apply the enabled text transforms to one cell, in their fixed order."""
    text = "" if value is None else str(value)

    if options.trim_whitespace:
        text = text.strip()

    if options.convert_to_uppercase:
        text = text.upper()
    elif options.convert_to_lowercase:
        text = text.lower()

    if options.remove_special_characters:
        text = _SPECIAL_CHARS_RE.sub("", text)

    if options.remove_leading_zeros:
        text = _LEADING_ZEROS_RE.sub("", text, count=1)

    return text


# ── Main cleaning function ──────────────────────────────────────


def clean_tables(
    data: TableInput,
    template: TableInput,
    options: CleaningOptions | None = None,
) -> CleaningResult:
    """Align *data* to the header of *template* and clean the surviving rows.

    Both tables may be :class:`Table` instances or raw row lists whose
    first row is the header.

    Raises
    ------
    MissingDataError
        If either table, or its header row, is missing.
    """
    data_table = _as_table(data, "data")
    template_table = _as_table(template, "template")
    options = options or CleaningOptions()

    # 1. Align columns to the template
    pairs = align_columns(data_table.header, template_table.header)
    positions = [idx for idx, _name in pairs]
    kept = tuple(name for _idx, name in pairs)
    kept_set = set(kept)
    removed = tuple(n for n in data_table.header if n not in kept_set)
    columns_deleted = max(len(set(data_table.header)) - len(kept), 0)

    warnings: list[str] = []
    data_names = set(data_table.header)
    missing = [n for n in template_table.header if n not in data_names]
    if missing:
        warnings.append(f"Template columns not found in data: {', '.join(missing)}")

    # 2. Project rows
    rows = project_rows(data_table.rows, positions)

    # 3. Deduplicate (before any text transform)
    duplicates = 0
    if options.remove_duplicates:
        rows, duplicates = drop_duplicate_rows(rows)

    # 4. Drop rows with nothing but whitespace
    if options.remove_empty_rows:
        rows = drop_empty_rows(rows)

    # 5. Per-cell text transforms
    if options.has_text_transforms:
        rows = [tuple(transform_cell(cell, options) for cell in row) for row in rows]

    for name in options.pending():
        warnings.append(f"Option {name!r} is not implemented yet; ignored")

    return CleaningResult(
        table=Table(header=kept, rows=tuple(rows)),
        total_rows_cleaned=len(rows),
        columns_deleted=columns_deleted,
        duplicate_rows_removed=duplicates,
        kept_columns=kept,
        removed_columns=removed,
        warnings=tuple(warnings),
    )
