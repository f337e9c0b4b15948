from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import pandas as pd
import pytest
from openpyxl import Workbook

from template_cleaner.io import load_table, write_json
from template_cleaner.models import MissingDataError


def test_load_table_csv_keeps_header_row_and_raw_strings(tmp_path: Path) -> None:
    csv_path = tmp_path / "data.csv"
    csv_path.write_text("Name,Code,Note\nAlice,007,NA\nBob,,  x \n", encoding="utf-8")

    table = load_table(csv_path)

    assert table.header == ("Name", "Code", "Note")
    assert table.rows == (("Alice", "007", "NA"), ("Bob", "", "  x "))


def test_load_table_csv_with_explicit_delimiter(tmp_path: Path) -> None:
    csv_path = tmp_path / "data.csv"
    csv_path.write_text("a|b\n1|2\n", encoding="utf-8")

    table = load_table(csv_path, delimiter="|")

    assert table.header == ("a", "b")
    assert table.rows == (("1", "2"),)


def test_load_table_single_column_csv(tmp_path: Path) -> None:
    csv_path = tmp_path / "template.csv"
    csv_path.write_text("Name\nAlice\n", encoding="utf-8")

    table = load_table(csv_path)

    assert table.header == ("Name",)
    assert table.rows == (("Alice",),)


def test_load_table_csv_detects_semicolon_and_pipe_delimiters(tmp_path: Path) -> None:
    semi = tmp_path / "semi.csv"
    semi.write_text("Full Name;Age\nAlice Smith;30\n", encoding="utf-8")
    pipe = tmp_path / "pipe.csv"
    pipe.write_text("Full Name|Age\nAlice Smith|30\n", encoding="utf-8")

    assert load_table(semi).rows == (("Alice Smith", "30"),)
    assert load_table(pipe).header == ("Full Name", "Age")


def test_load_table_csv_lets_pandas_sniff_between_candidates(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    csv_path = tmp_path / "data.csv"
    csv_path.write_text('"Last, First";Age\n"Smith, Al";30\n', encoding="utf-8")
    real_read_csv = pd.read_csv
    calls: list[dict[str, object]] = []

    def _spy_read_csv(source: object, **kwargs: object) -> pd.DataFrame:
        calls.append(kwargs)
        return real_read_csv(source, **kwargs)

    monkeypatch.setattr(pd, "read_csv", _spy_read_csv)

    table = load_table(csv_path)

    assert table.header == ("Last, First", "Age")
    assert table.rows == (("Smith, Al", "30"),)
    assert calls[0]["sep"] is None
    assert calls[0]["engine"] == "python"
    assert calls[0]["header"] is None
    assert calls[0]["dtype"] == "string"
    assert calls[0]["keep_default_na"] is False


def test_load_table_csv_ignores_cells_past_the_header(tmp_path: Path) -> None:
    csv_path = tmp_path / "data.csv"
    csv_path.write_text("Name,Age\nAlice,30,extra\nBob,41,\nCara\n", encoding="utf-8")

    table = load_table(csv_path)

    assert table.header == ("Name", "Age")
    assert table.rows == (("Alice", "30"), ("Bob", "41"), ("Cara", ""))


def test_load_table_csv_skips_blank_lines(tmp_path: Path) -> None:
    csv_path = tmp_path / "data.csv"
    csv_path.write_text("\n\nName,Age\nAlice,30\n\nBob,40\n\n", encoding="utf-8")

    table = load_table(csv_path)

    assert table.header == ("Name", "Age")
    assert table.rows == (("Alice", "30"), ("Bob", "40"))


def test_load_table_csv_falls_back_to_latin1(tmp_path: Path) -> None:
    csv_path = tmp_path / "data.csv"
    csv_path.write_bytes("City\nMünchen\n".encode("latin-1"))

    table = load_table(csv_path)

    assert table.rows == (("München",),)


def test_load_table_csv_strips_utf8_bom(tmp_path: Path) -> None:
    csv_path = tmp_path / "data.csv"
    csv_path.write_bytes("Name,Age\nAlice,30\n".encode("utf-8-sig"))

    assert load_table(csv_path).header == ("Name", "Age")


def test_load_table_csv_raises_value_error_when_parsing_fails(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    csv_path = tmp_path / "data.csv"
    csv_path.write_text("a,b\n", encoding="utf-8")

    def _fail_read_csv(source: object, **kwargs: object) -> pd.DataFrame:
        del source, kwargs
        raise pd.errors.ParserError("broken")

    monkeypatch.setattr(pd, "read_csv", _fail_read_csv)

    with pytest.raises(ValueError, match="Could not read CSV"):
        load_table(csv_path)


def test_load_table_empty_csv_raises_missing_data(tmp_path: Path) -> None:
    csv_path = tmp_path / "empty.csv"
    csv_path.write_text("", encoding="utf-8")

    with pytest.raises(MissingDataError):
        load_table(csv_path)


def test_load_table_xlsx_reads_cells_as_strings(tmp_path: Path) -> None:
    xlsx_path = tmp_path / "data.xlsx"
    wb = Workbook()
    ws = wb.active
    assert ws is not None
    ws.append(["Name", "Age", "City"])
    ws.append(["Alice", 30, None])
    ws.append(["Bob", 41, "Oslo"])
    wb.save(xlsx_path)

    table = load_table(xlsx_path)

    assert table.header == ("Name", "Age", "City")
    assert table.rows == (("Alice", "30", ""), ("Bob", "41", "Oslo"))


def test_load_table_xlsx_skips_fully_empty_rows(tmp_path: Path) -> None:
    xlsx_path = tmp_path / "data.xlsx"
    wb = Workbook()
    ws = wb.active
    assert ws is not None
    ws["A2"] = "Name"
    ws["B2"] = "Age"
    ws["A3"] = "Alice"
    ws["B3"] = 30
    ws["A5"] = "Bob"
    wb.save(xlsx_path)

    table = load_table(xlsx_path)

    assert table.header == ("Name", "Age")
    assert table.rows == (("Alice", "30"), ("Bob", ""))


def test_load_table_corrupt_workbook_raises_value_error(tmp_path: Path) -> None:
    xlsx_path = tmp_path / "bad.xlsx"
    xlsx_path.write_bytes(b"not a zip")

    with pytest.raises(ValueError, match="Could not read workbook"):
        load_table(xlsx_path)


def test_load_table_rejects_missing_unsupported_and_oversized_files(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_table(tmp_path / "missing.csv")

    txt = tmp_path / "notes.txt"
    txt.write_text("a,b\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Unsupported file type"):
        load_table(txt)

    big = tmp_path / "big.csv"
    big.write_text("a,b\n1,2\n", encoding="utf-8")
    with pytest.raises(ValueError, match="limit"):
        load_table(big, max_bytes=4)


def test_write_json_is_deterministic_and_handles_non_json_types(tmp_path: Path) -> None:
    out = tmp_path / "nested" / "payload.json"
    payload = {
        "z": 1,
        "a": "é",
        "path": Path("/tmp/example"),
        "ts": datetime(2024, 1, 2, 3, 4, 5),
    }

    write_json(out, payload)

    text = out.read_text(encoding="utf-8")
    assert text.endswith("\n")
    assert text.index('"a"') < text.index('"z"')
    data = json.loads(text)
    assert data["a"] == "é"
    assert data["path"] == "/tmp/example"
    assert data["ts"] == "2024-01-02T03:04:05"
    assert not (tmp_path / "nested" / "payload.json.tmp").exists()
