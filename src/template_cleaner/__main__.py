"""Allow ``python -m template_cleaner``."""

from template_cleaner import cli

cli.app()
