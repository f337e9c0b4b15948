"""Data models shared by the cleaner, the session and the CLI."""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, fields
from numbers import Integral
from typing import Any

from template_cleaner import OPTION_NAMES, PENDING_OPTIONS


class MissingDataError(ValueError):
    """A table, its header row or its row list was not supplied."""


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"{field_name} must be a boolean")
    return value


def _to_string_tuple(values: Sequence[Any] | None, field_name: str) -> tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return tuple(normalized)


def cell_to_str(value: Any) -> str:
    """Coerce a parsed scalar to the string form the cleaner works on."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)


def _to_row(values: Any, field_name: str) -> tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, (str, bytes)):
        raise TypeError(f"{field_name} must be a sequence of cells, not a string")
    return tuple(cell_to_str(v) for v in values)


# ── Tables ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class Table:
    """A header row plus data rows, every cell held as a string.

    Rows may be shorter or longer than the header; positional lookups
    past the end of a row read as ``""``.
    """

    header: tuple[str, ...]
    rows: tuple[tuple[str, ...], ...] = ()

    def __post_init__(self) -> None:
        if self.header is None:
            raise MissingDataError("Table has no header row")
        if self.rows is None:
            raise MissingDataError("Table has no row data")
        object.__setattr__(self, "header", _to_row(self.header, "header"))
        if isinstance(self.rows, (str, bytes)):
            raise TypeError("rows must be a sequence of rows")
        object.__setattr__(
            self,
            "rows",
            tuple(_to_row(row, f"rows[{idx}]") for idx, row in enumerate(self.rows)),
        )

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[Any]] | None) -> Table:
        """Build a table from raw rows where row 0 is the header."""
        if rows is None or len(rows) == 0:
            raise MissingDataError("Table has no header row")
        return cls(header=tuple(rows[0]), rows=tuple(rows[1:]))

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.header)

    def to_rows(self) -> list[list[str]]:
        return [list(self.header), *(list(row) for row in self.rows)]


# ── Options ──────────────────────────────────────────────────────

_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def option_key(name: str) -> str:
    """Normalise ``removeDuplicates`` / ``remove_duplicates`` to ``remove-duplicates``."""
    key = _CAMEL_BOUNDARY_RE.sub("-", str(name).strip())
    return key.replace("_", "-").replace(" ", "-").lower()


@dataclass(frozen=True)
class CleaningOptions:
    """The ten independent cleaning switches; all default to off."""

    remove_duplicates: bool = False
    remove_empty_rows: bool = False
    remove_empty_columns: bool = False
    trim_whitespace: bool = False
    normalize_text: bool = False
    remove_special_characters: bool = False
    standardize_dates: bool = False
    convert_to_uppercase: bool = False
    convert_to_lowercase: bool = False
    remove_leading_zeros: bool = False

    def __post_init__(self) -> None:
        for f in fields(self):
            _to_bool(getattr(self, f.name), f.name)

    @classmethod
    def from_names(cls, names: Iterable[str] | None) -> CleaningOptions:
        """Enable the options listed in *names*.

        Raises
        ------
        ValueError
            If a name is not one of :data:`template_cleaner.OPTION_NAMES`.
        """
        flags: dict[str, bool] = {}
        for raw in names or ():
            key = option_key(raw)
            if key not in OPTION_NAMES:
                raise ValueError(
                    f"Unknown cleaning option: {raw!r}. "
                    f"Choose from: {', '.join(OPTION_NAMES)}"
                )
            flags[key.replace("-", "_")] = True
        return cls(**flags)

    def enabled(self) -> list[str]:
        return [
            f.name.replace("_", "-") for f in fields(self) if getattr(self, f.name)
        ]

    def pending(self) -> list[str]:
        """Enabled options that are accepted but have no effect yet."""
        return [name for name in self.enabled() if name in PENDING_OPTIONS]

    @property
    def has_text_transforms(self) -> bool:
        return (
            self.trim_whitespace
            or self.convert_to_uppercase
            or self.convert_to_lowercase
            or self.remove_special_characters
            or self.remove_leading_zeros
        )

    def to_dict(self) -> dict[str, bool]:
        return {f.name.replace("_", "-"): getattr(self, f.name) for f in fields(self)}


# ── Results ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class AlignmentPreview:
    """Which columns a template keeps, drops and cannot find."""

    kept_columns: tuple[str, ...] = ()
    removed_columns: tuple[str, ...] = ()
    missing_columns: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "kept_columns", _to_string_tuple(self.kept_columns, "kept_columns")
        )
        object.__setattr__(
            self, "removed_columns", _to_string_tuple(self.removed_columns, "removed_columns")
        )
        object.__setattr__(
            self, "missing_columns", _to_string_tuple(self.missing_columns, "missing_columns")
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "kept_columns": list(self.kept_columns),
            "removed_columns": list(self.removed_columns),
            "missing_columns": list(self.missing_columns),
        }


@dataclass(frozen=True)
class CleaningResult:
    """Snapshot produced by one cleaning run.

    Contract invariant: ``total_rows_cleaned == len(table.rows)``.
    """

    table: Table
    total_rows_cleaned: int = 0
    columns_deleted: int = 0
    duplicate_rows_removed: int = 0
    kept_columns: tuple[str, ...] = ()
    removed_columns: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.table, Table):
            raise TypeError("table must be a Table")
        for name in ("total_rows_cleaned", "columns_deleted", "duplicate_rows_removed"):
            object.__setattr__(self, name, _to_non_negative_int(getattr(self, name), name))
        for name in ("kept_columns", "removed_columns", "warnings"):
            object.__setattr__(self, name, _to_string_tuple(getattr(self, name), name))
        if self.total_rows_cleaned != self.table.row_count:
            raise ValueError("total_rows_cleaned must equal the number of cleaned rows")

    @property
    def cleaned_data(self) -> list[list[str]]:
        """Header plus rows, ready for an export writer."""
        return self.table.to_rows()

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_rows_cleaned": self.total_rows_cleaned,
            "columns_deleted": self.columns_deleted,
            "duplicate_rows_removed": self.duplicate_rows_removed,
            "kept_columns": list(self.kept_columns),
            "removed_columns": list(self.removed_columns),
            "warnings": list(self.warnings),
        }


@dataclass
class RunManifest:
    """Audit-trail manifest for a single CLI run."""

    tool: str = "template-cleaner"
    version: str = ""
    data_path: str = ""
    template_path: str = ""
    output_path: str = ""
    created_at_utc: str = ""
    options: list[str] = field(default_factory=list)
    rows_in: int = 0
    rows_out: int = 0
    data_sha256: str = ""
    template_sha256: str = ""
    status: str = "success"
    error_code: int | None = None
    error_message: str = ""

    def __post_init__(self) -> None:
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.rows_out = _to_non_negative_int(self.rows_out, "rows_out")
        self.options = list(_to_string_tuple(self.options, "options"))
        if self.status not in {"success", "failed"}:
            raise ValueError("status must be 'success' or 'failed'")
        if self.error_code is not None:
            self.error_code = _to_non_negative_int(self.error_code, "error_code")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "data_path": self.data_path,
            "template_path": self.template_path,
            "output_path": self.output_path,
            "created_at_utc": self.created_at_utc,
            "options": list(self.options),
            "rows_in": self.rows_in,
            "rows_out": self.rows_out,
            "data_sha256": self.data_sha256,
            "template_sha256": self.template_sha256,
            "status": self.status,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }
