"""Build a LogRecord from a closing document.

Counts are best-effort telemetry. Each sub-query goes through
:func:`safe_query`, so a host object that is not ready, a feature missing from
this host version, or any other failure yields a zero value for that one
column instead of losing the row.
"""

from __future__ import annotations

import getpass
import logging
import ntpath
import os
import platform
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any, TypeVar

from closelog import host
from closelog.config import DEFAULT_DESKTOP_CONNECTOR_MARKERS
from closelog.models import Action, LogRecord, SessionState
from closelog.tracker import TrackingSnapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")


def safe_query(query: Callable[[], T], default: T) -> T:
    """Run a host query, returning *default* if it raises or yields None."""
    try:
        result = query()
    except Exception as e:
        logger.debug("Metric query %s failed: %s", getattr(query, "__name__", query), e)
        return default
    return default if result is None else result


def _count(items: Iterable[Any] | None) -> int:
    if items is None:
        return 0
    if hasattr(items, "__len__"):
        return len(items)  # type: ignore[arg-type]
    return sum(1 for _ in items)


def _stored_path(document: host.HostDocument) -> str:
    path = document.path_name
    return path if path and path.strip() else ""


def _split_path(path: str) -> tuple[str, str]:
    # Host paths are usually Windows paths; accept either separator.
    if "\\" in path:
        return ntpath.split(path)
    return os.path.split(path)


def host_version(application: host.HostApplication | None) -> str:
    """Format the host version the way it appears in the log."""
    if application is None:
        return ""

    def query() -> str:
        parts = (
            application.version_name,
            application.version_number,
            application.sub_version_number,
        )
        return " ".join("" if p is None else str(p) for p in parts)

    return safe_query(query, "")


def user_id(document: host.HostDocument) -> str:
    """Host user name when set, otherwise the OS login name."""
    name = safe_query(lambda: document.application.username, "")
    if name.strip():
        return name
    return safe_query(getpass.getuser, "")


def project_parameter(document: host.HostDocument, name: str) -> str:
    return safe_query(lambda: document.project_parameter(name), "")


def project_file_name(document: host.HostDocument, default_extension: str = ".rvt") -> str:
    """File name of the stored path, or the title plus extension if unsaved."""

    def query() -> str:
        path = _stored_path(document)
        if not path:
            return f"{document.title}{default_extension}"
        return _split_path(path)[1]

    return safe_query(query, "")


def containing_directory(document: host.HostDocument) -> str:
    def query() -> str:
        path = _stored_path(document)
        return _split_path(path)[0] if path else ""

    return safe_query(query, "")


def file_size(document: host.HostDocument) -> int:
    """Size on disk, or 0 for unsaved or cloud-only documents."""

    def query() -> int:
        path = _stored_path(document)
        if not path or not os.path.isfile(path):
            return 0
        return os.path.getsize(path)

    return safe_query(query, 0)


def is_desktop_connector_path(
    path: str | None,
    markers: Iterable[str] = DEFAULT_DESKTOP_CONNECTOR_MARKERS,
) -> bool:
    """Whether *path* lives under a cloud desktop connector folder."""
    if not path:
        return False
    lowered = path.lower()
    return any(marker.lower() in lowered for marker in markers)


def warning_count(document: host.HostDocument) -> int:
    return safe_query(lambda: _count(document.warnings()), 0)


def workset_count(document: host.HostDocument) -> int:
    def query() -> int:
        if not document.is_workshared:
            return 0
        return _count(document.user_worksets())

    return safe_query(query, 0)


def class_count(document: host.HostDocument, of_class: str) -> int:
    return safe_query(lambda: _count(document.collect_elements(of_class=of_class)), 0)


def category_count(document: host.HostDocument, category: str) -> int:
    return safe_query(lambda: _count(document.collect_elements(category=category)), 0)


def view_count(document: host.HostDocument) -> int:
    """Views excluding view templates."""

    def query() -> int:
        views = document.collect_elements(of_class=host.VIEW)
        return sum(1 for v in views if v is not None and not v.is_template)

    return safe_query(query, 0)


def model_element_count(document: host.HostDocument) -> int:
    def query() -> int:
        return sum(
            1
            for e in document.collect_elements()
            if getattr(e, "category_type", None) == host.MODEL_CATEGORY_TYPE
        )

    return safe_query(query, 0)


class MetricsCollector:
    """Turns a closing document plus tracker state into a LogRecord."""

    def __init__(
        self,
        host_version: str = "",
        desktop_connector_markers: Iterable[str] = DEFAULT_DESKTOP_CONNECTOR_MARKERS,
        default_extension: str = ".rvt",
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.host_version = host_version
        self.desktop_connector_markers = tuple(desktop_connector_markers)
        self.default_extension = default_extension
        self._clock = clock

    def collect(
        self,
        document: host.HostDocument,
        session: SessionState,
        snapshot: TrackingSnapshot,
        now: datetime | None = None,
    ) -> LogRecord:
        """Build the close record for *document*.

        Args:
            document: The document being closed.
            session: The running plugin session.
            snapshot: Open time and sync count from the tracker.
            now: Close time. Defaults to the collector's clock.

        Returns:
            A fully populated record; no field is None.
        """
        now = now or self._clock()
        path = safe_query(lambda: _stored_path(document), "")

        return LogRecord(
            user_id=user_id(document),
            session_id=session.session_id,
            date=now,
            project_name=project_parameter(document, host.PROJECT_NAME),
            project_number=project_parameter(document, host.PROJECT_NUMBER),
            project_file_name=project_file_name(document, self.default_extension),
            action=Action.CLOSE_PROJECT,
            log_start=snapshot.opened_at,
            log_end=now,
            duration=now - snapshot.opened_at,
            session_duration=now - session.started_at,
            synchronized_projects_count=snapshot.sync_count,
            user_computer=safe_query(platform.node, ""),
            host_version=self.host_version,
            warnings=warning_count(document),
            file_size_bytes=file_size(document),
            worksets=workset_count(document),
            linked_models=class_count(document, host.LINK_INSTANCE),
            imported_images=class_count(document, host.IMAGE_TYPE),
            views=view_count(document),
            sheets=class_count(document, host.VIEW_SHEET),
            model_elements=model_element_count(document),
            model_groups=category_count(document, host.MODEL_GROUPS),
            detail_groups=category_count(document, host.DETAIL_GROUPS),
            design_options=class_count(document, host.DESIGN_OPTION),
            diroot=containing_directory(document),
            desktop_connector=is_desktop_connector_path(
                path, self.desktop_connector_markers
            ),
            imported_cad_files=class_count(document, host.IMPORT_INSTANCE),
        )
