"""Record types shared by the tracker, collector and writer."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Column order is part of the file format; downstream spreadsheets key on it.
HEADER = (
    "UserId",
    "SessionId",
    "Date",
    "ProjectName",
    "ProjectNumber",
    "ProjectFileName",
    "Action",
    "LogStart",
    "LogEnd",
    "DurationSeconds",
    "SessionDurationSeconds",
    "SynchronizedProjectsCount",
    "UserComputer",
    "RevitServicePackage",
    "Warnings",
    "FileSizeBytes",
    "Worksets",
    "LinkedModels",
    "ImportedImages",
    "Views",
    "Sheets",
    "ModelElements",
    "ModelGroups",
    "DetailGroups",
    "DesignOptions",
    "Diroot",
    "DesktopConnector",
    "ImportedCADFiles",
)


class Action(Enum):
    """Actions a log row can describe."""

    CLOSE_PROJECT = "CloseProject"


@dataclass(frozen=True)
class SessionState:
    """Identity of one host process run.

    Attributes:
        session_id: Random identifier shared by every row of this run.
        started_at: Local time the plugin was loaded.
    """

    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    started_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class LogRecord:
    """One row of the monthly close log."""

    user_id: str
    session_id: str
    date: datetime
    project_name: str
    project_number: str
    project_file_name: str
    action: Action
    log_start: datetime
    log_end: datetime
    duration: timedelta
    session_duration: timedelta
    synchronized_projects_count: int
    user_computer: str
    host_version: str
    warnings: int = 0
    file_size_bytes: int = 0
    worksets: int = 0
    linked_models: int = 0
    imported_images: int = 0
    views: int = 0
    sheets: int = 0
    model_elements: int = 0
    model_groups: int = 0
    detail_groups: int = 0
    design_options: int = 0
    diroot: str = ""
    desktop_connector: bool = False
    imported_cad_files: int = 0

    def to_row(self) -> list[str]:
        """Serialize the record to unescaped strings in HEADER order."""
        return [
            self.user_id,
            self.session_id,
            _format_timestamp(self.date),
            self.project_name,
            self.project_number,
            self.project_file_name,
            self.action.value,
            _format_timestamp(self.log_start),
            _format_timestamp(self.log_end),
            _format_seconds(self.duration),
            _format_seconds(self.session_duration),
            str(self.synchronized_projects_count),
            self.user_computer,
            self.host_version,
            str(self.warnings),
            str(self.file_size_bytes),
            str(self.worksets),
            str(self.linked_models),
            str(self.imported_images),
            str(self.views),
            str(self.sheets),
            str(self.model_elements),
            str(self.model_groups),
            str(self.detail_groups),
            str(self.design_options),
            self.diroot,
            "1" if self.desktop_connector else "0",
            str(self.imported_cad_files),
        ]


def _format_timestamp(value: datetime) -> str:
    return value.strftime(TIMESTAMP_FORMAT)


def _format_seconds(value: timedelta) -> str:
    # Truncate toward zero, matching whole elapsed seconds.
    return str(int(value.total_seconds()))
