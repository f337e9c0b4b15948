"""Cleaning summary persistence."""

from __future__ import annotations

from pathlib import Path

from template_cleaner.io import write_json
from template_cleaner.models import CleaningOptions, CleaningResult

SUMMARY_FILENAME = "cleaning_summary.json"


def write_cleaning_summary(
    out_dir: Path, result: CleaningResult, options: CleaningOptions
) -> Path:
    """Write ``cleaning_summary.json`` into *out_dir* and return the path."""
    payload = result.to_dict()
    payload["options"] = options.enabled()
    payload["pending_options"] = options.pending()
    return write_json(Path(out_dir) / SUMMARY_FILENAME, payload)
