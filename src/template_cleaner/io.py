"""I/O helpers — load input sheets as tables, write JSON artifacts."""

from __future__ import annotations

import csv
import json
import re
import warnings
import zipfile
from datetime import date, datetime
from io import StringIO
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from template_cleaner.models import MissingDataError, Table

MAX_INPUT_BYTES = 5 * 1024 * 1024
EXCEL_SUFFIXES = (".xlsx", ".xlsm", ".xltx", ".xltm")

_CSV_ENCODINGS = ("utf-8-sig", "utf-8", "latin-1")
_CSV_DELIMITERS = ",;\t|"
_LEADING_BLANK_LINES_RE = re.compile(r"\A(?:[ \t]*\r?\n)+")

# ── Loading ──────────────────────────────────────────────────────


def _frame_to_table(df: pd.DataFrame, path: Path) -> Table:
    if df.empty:
        raise MissingDataError(f"Input file has no header row: {path}")
    df = df.astype("string").fillna("")
    return Table.from_rows(df.values.tolist())


def _decode(raw: bytes, path: Path) -> str:
    last_exc: UnicodeDecodeError | None = None
    for encoding in _CSV_ENCODINGS:
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError as exc:
            last_exc = exc
    raise ValueError(f"Could not read CSV {path} (decode failed)") from last_exc


def _pick_sep(first_line: str) -> str | None:
    present = [ch for ch in _CSV_DELIMITERS if ch in first_line]
    if not present:
        return ","  # single column
    if len(present) == 1:
        return present[0]
    return None  # let pandas sniff between the candidates


def _keep_long_row(fields: list[str]) -> list[str]:
    # pandas cuts the row back to the header width; extra cells are never aligned.
    return fields


def _read_csv(text: str, delimiter: str | None) -> pd.DataFrame:
    text = _LEADING_BLANK_LINES_RE.sub("", text)
    sep = delimiter or _pick_sep(text.split("\n", 1)[0])
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", pd.errors.ParserWarning)
        return pd.read_csv(
            StringIO(text),
            header=None,
            sep=sep,
            engine="python",
            dtype="string",
            keep_default_na=False,
            na_filter=False,
            skip_blank_lines=True,
            on_bad_lines=_keep_long_row,
        )


def _read_excel(path: Path) -> pd.DataFrame:
    try:
        df = pd.read_excel(path, engine="openpyxl", header=None, dtype="string")
    except (zipfile.BadZipFile, InvalidFileException, KeyError) as exc:
        raise ValueError(f"Could not read workbook {path}: {exc}") from exc
    return df.dropna(how="all")


def load_table(
    path: Path,
    delimiter: str | None = None,
    max_bytes: int | None = MAX_INPUT_BYTES,
) -> Table:
    """Load a CSV or Excel file; the first non-blank row becomes the header.

    Blank lines are skipped. Rows longer than the header keep only the
    header's width; shorter rows are padded with ``""``.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    MissingDataError
        If the file holds no rows at all.
    ValueError
        If the extension is not supported, the file is larger than
        *max_bytes*, CSV decoding/parsing fails or the workbook is corrupt.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    size = path.stat().st_size
    if max_bytes is not None and size > max_bytes:
        raise ValueError(
            f"Input file {path.name} is {size} bytes; the limit is {max_bytes} bytes"
        )

    suffix = path.suffix.lower()
    if suffix == ".csv":
        text = _decode(path.read_bytes(), path)
        try:
            return _frame_to_table(_read_csv(text, delimiter), path)
        except pd.errors.EmptyDataError as exc:
            raise MissingDataError(f"Input file is empty: {path}") from exc
        except (pd.errors.ParserError, csv.Error) as exc:
            raise ValueError(f"Could not read CSV {path} (parse failed)") from exc

    if suffix in EXCEL_SUFFIXES:
        return _frame_to_table(_read_excel(path), path)

    raise ValueError(f"Unsupported file type: {suffix!r}. Use .csv or .xlsx")


# ── Writing ──────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(payload, encoding="utf-8")
    tmp_path.replace(path)
    return path
