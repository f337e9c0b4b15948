"""template-cleaner — Align a data sheet to a template sheet and tidy its cells."""

__version__ = "0.1.0"

OPTION_NAMES: list[str] = [
    "remove-duplicates",
    "remove-empty-rows",
    "remove-empty-columns",
    "trim-whitespace",
    "normalize-text",
    "remove-special-characters",
    "standardize-dates",
    "convert-to-uppercase",
    "convert-to-lowercase",
    "remove-leading-zeros",
]

# Accepted on the options surface, no transformation behind them yet.
PENDING_OPTIONS: list[str] = [
    "remove-empty-columns",
    "normalize-text",
    "standardize-dates",
]
