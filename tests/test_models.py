from __future__ import annotations

import dataclasses

import pytest

from template_cleaner import OPTION_NAMES
from template_cleaner.models import (
    CleaningOptions,
    CleaningResult,
    MissingDataError,
    RunManifest,
    Table,
    cell_to_str,
    option_key,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, ""),
        ("  a ", "  a "),
        (30, "30"),
        (30.0, "30"),
        (1.5, "1.5"),
        (float("nan"), ""),
    ],
)
def test_cell_to_str(value: object, expected: str) -> None:
    assert cell_to_str(value) == expected


def test_table_coerces_cells_to_strings() -> None:
    table = Table(header=["Name", None], rows=[["Alice", 30], [None, 2.0]])

    assert table.header == ("Name", "")
    assert table.rows == (("Alice", "30"), ("", "2"))
    assert table.row_count == 2
    assert table.column_count == 2


def test_table_from_rows_splits_header() -> None:
    table = Table.from_rows([["A", "B"], ["1", "2"], ["3"]])

    assert table.header == ("A", "B")
    assert table.rows == (("1", "2"), ("3",))
    assert table.to_rows() == [["A", "B"], ["1", "2"], ["3"]]


def test_table_requires_header_and_rows() -> None:
    with pytest.raises(MissingDataError, match="header"):
        Table.from_rows([])

    with pytest.raises(MissingDataError, match="header"):
        Table(header=None)  # type: ignore[arg-type]

    with pytest.raises(MissingDataError, match="row data"):
        Table(header=("A",), rows=None)  # type: ignore[arg-type]


def test_table_rejects_string_rows() -> None:
    with pytest.raises(TypeError, match="rows"):
        Table(header=("A",), rows=["abc"])  # type: ignore[list-item]


def test_table_is_immutable() -> None:
    table = Table(header=("A",))

    with pytest.raises(dataclasses.FrozenInstanceError):
        table.header = ("B",)  # type: ignore[misc]


def test_missing_data_error_is_a_value_error() -> None:
    assert issubclass(MissingDataError, ValueError)


# ── Options ──────────────────────────────────────────────────────


def test_options_default_to_off() -> None:
    options = CleaningOptions()

    assert options.enabled() == []
    assert set(options.to_dict()) == set(OPTION_NAMES)
    assert not any(options.to_dict().values())
    assert options.has_text_transforms is False


@pytest.mark.parametrize(
    "name", ["remove-duplicates", "remove_duplicates", "removeDuplicates", " Remove-Duplicates "]
)
def test_option_names_accept_several_spellings(name: str) -> None:
    assert option_key(name) == "remove-duplicates"
    assert CleaningOptions.from_names([name]).remove_duplicates is True


def test_from_names_rejects_unknown_options() -> None:
    with pytest.raises(ValueError, match="Unknown cleaning option"):
        CleaningOptions.from_names(["remove-everything"])


def test_enabled_lists_names_in_declaration_order() -> None:
    options = CleaningOptions.from_names(["remove-leading-zeros", "remove-duplicates"])

    assert options.enabled() == ["remove-duplicates", "remove-leading-zeros"]
    assert options.has_text_transforms is True


def test_pending_lists_options_without_effect() -> None:
    options = CleaningOptions.from_names(["normalize-text", "trim-whitespace"])

    assert options.pending() == ["normalize-text"]


def test_options_reject_non_bool_flags() -> None:
    with pytest.raises(TypeError, match="remove_duplicates"):
        CleaningOptions(remove_duplicates=1)  # type: ignore[arg-type]


# ── Results ──────────────────────────────────────────────────────


def test_cleaning_result_to_dict_omits_rows() -> None:
    result = CleaningResult(
        table=Table(header=("A",), rows=(("1",),)),
        total_rows_cleaned=1,
        columns_deleted=2,
        duplicate_rows_removed=3,
        kept_columns=("A",),
        removed_columns=("B", "C"),
        warnings=("warn",),
    )

    assert result.to_dict() == {
        "total_rows_cleaned": 1,
        "columns_deleted": 2,
        "duplicate_rows_removed": 3,
        "kept_columns": ["A"],
        "removed_columns": ["B", "C"],
        "warnings": ["warn"],
    }
    assert result.cleaned_data == [["A"], ["1"]]


def test_cleaning_result_rejects_negative_or_non_integer_counts() -> None:
    table = Table(header=("A",))

    with pytest.raises(ValueError, match="columns_deleted"):
        CleaningResult(table=table, columns_deleted=-1)

    with pytest.raises(TypeError, match="duplicate_rows_removed"):
        CleaningResult(table=table, duplicate_rows_removed=True)  # type: ignore[arg-type]


def test_cleaning_result_row_count_must_match_table() -> None:
    with pytest.raises(ValueError, match="total_rows_cleaned"):
        CleaningResult(table=Table(header=("A",), rows=(("1",),)), total_rows_cleaned=0)


def test_cleaning_result_is_immutable() -> None:
    result = CleaningResult(table=Table(header=("A",)))

    with pytest.raises(dataclasses.FrozenInstanceError):
        result.columns_deleted = 5  # type: ignore[misc]


def test_run_manifest_rejects_bad_counts_and_status() -> None:
    with pytest.raises(TypeError, match="rows_in"):
        RunManifest(rows_in=True)  # type: ignore[arg-type]

    with pytest.raises(ValueError, match="rows_out"):
        RunManifest(rows_out=-2)

    with pytest.raises(ValueError, match="status"):
        RunManifest(status="pending")


def test_run_manifest_to_dict_copies_options() -> None:
    manifest = RunManifest(options=["trim-whitespace"], status="failed", error_code=2)

    payload = manifest.to_dict()
    payload["options"].append("remove-duplicates")

    assert manifest.options == ["trim-whitespace"]
    assert payload["status"] == "failed"
    assert payload["error_code"] == 2
