"""Explicit state for a data/template cleaning session.

A session walks through four stages::

    UPLOADING -> REVIEWING -> PROCESSING -> DONE

Files are added while uploading; once two or more are present the largest
becomes the data file and the runner-up the template, and either role can
be reassigned before processing. :meth:`CleaningSession.process` hands
both tables and the options to :func:`template_cleaner.pipeline.clean_tables`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from template_cleaner.models import (
    CleaningOptions,
    CleaningResult,
    MissingDataError,
    Table,
)
from template_cleaner.pipeline import clean_tables

ROLES_MISSING_MESSAGE = (
    "Please assign Template and Data labels to files before proceeding."
)


class Stage(str, Enum):
    UPLOADING = "uploading"
    REVIEWING = "reviewing"
    PROCESSING = "processing"
    DONE = "done"


class FileRole(str, Enum):
    DATA = "data"
    TEMPLATE = "template"


_STAGE_ORDER = {stage: idx for idx, stage in enumerate(Stage)}


class SessionError(RuntimeError):
    """An action is not allowed in the session's current stage."""


@dataclass
class UploadedFile:
    name: str
    table: Table
    size: int = 0
    role: FileRole | None = None

    @property
    def row_count(self) -> int:
        return self.table.row_count


@dataclass
class CleaningSession:
    files: list[UploadedFile] = field(default_factory=list)
    options: CleaningOptions = field(default_factory=CleaningOptions)
    stage: Stage = Stage.UPLOADING
    result: CleaningResult | None = None

    # ── Files ────────────────────────────────────────────────────

    def _find(self, name: str) -> UploadedFile:
        for uploaded in self.files:
            if uploaded.name == name:
                return uploaded
        raise ValueError(f"No uploaded file named {name!r}")

    def _detect_roles(self) -> None:
        if len(self.files) < 2:
            return
        ranked = sorted(self.files, key=lambda f: (-f.row_count, -f.size))
        for uploaded in self.files:
            if uploaded is ranked[0]:
                uploaded.role = FileRole.DATA
            elif uploaded is ranked[1]:
                uploaded.role = FileRole.TEMPLATE
            else:
                uploaded.role = None

    def add_file(self, name: str, table: Table, size: int = 0) -> UploadedFile:
        if self.stage is Stage.PROCESSING:
            raise SessionError("Cannot add files while processing")
        if any(f.name == name for f in self.files):
            raise ValueError(f"A file named {name!r} is already uploaded")
        uploaded = UploadedFile(name=name, table=table, size=size)
        self.files.append(uploaded)
        self._detect_roles()
        return uploaded

    def remove_file(self, name: str) -> None:
        if self.stage is Stage.PROCESSING:
            raise SessionError("Cannot remove files while processing")
        self.files.remove(self._find(name))
        self._detect_roles()

    def assign_role(self, name: str, role: FileRole) -> None:
        """Give *role* to *name*, taking it away from whichever file held it."""
        target = self._find(name)
        for uploaded in self.files:
            if uploaded is not target and uploaded.role is role:
                uploaded.role = None
        target.role = role

    def _with_role(self, role: FileRole) -> UploadedFile | None:
        return next((f for f in self.files if f.role is role), None)

    @property
    def data_file(self) -> UploadedFile | None:
        return self._with_role(FileRole.DATA)

    @property
    def template_file(self) -> UploadedFile | None:
        return self._with_role(FileRole.TEMPLATE)

    # ── Stages ───────────────────────────────────────────────────

    def can_enter(self, stage: Stage) -> bool:
        if stage is Stage.UPLOADING:
            return self.stage is not Stage.PROCESSING
        if stage is Stage.PROCESSING:
            return False
        if _STAGE_ORDER[stage] <= _STAGE_ORDER[self.stage]:
            return True
        if stage is Stage.REVIEWING:
            return len(self.files) >= 2
        return self.result is not None

    def go_to(self, stage: Stage) -> None:
        if not self.can_enter(stage):
            raise SessionError(f"Cannot move from {self.stage.value} to {stage.value}")
        self.stage = stage

    def configure(self, options: CleaningOptions) -> None:
        if not isinstance(options, CleaningOptions):
            raise TypeError("options must be CleaningOptions")
        self.options = options

    def process(self) -> CleaningResult:
        """Clean the data file against the template and move to ``DONE``.

        Raises
        ------
        MissingDataError
            If no file holds the data or the template role.
        """
        if self.stage is Stage.PROCESSING:
            raise SessionError("Session is already processing")
        data_file = self.data_file
        template_file = self.template_file
        if data_file is None or template_file is None:
            raise MissingDataError(ROLES_MISSING_MESSAGE)

        previous = self.stage
        self.stage = Stage.PROCESSING
        try:
            result = clean_tables(data_file.table, template_file.table, self.options)
        except Exception:
            self.stage = previous
            raise
        self.result = result
        self.stage = Stage.DONE
        return result

    def reset(self) -> None:
        self.files.clear()
        self.options = CleaningOptions()
        self.result = None
        self.stage = Stage.UPLOADING
