"""Protocols describing the host application surface.

The host wrapper (for example a pyRevit startup hook) adapts the host's own
object model to these protocols. Nothing in closelog imports host modules
directly, so the core can be exercised with plain Python fakes.
"""

from __future__ import annotations

from collections.abc import Iterable, Sized
from typing import Any, Protocol

# Host class names passed to HostDocument.collect_elements(of_class=...)
LINK_INSTANCE = "RevitLinkInstance"
IMAGE_TYPE = "ImageType"
VIEW = "View"
VIEW_SHEET = "ViewSheet"
DESIGN_OPTION = "DesignOption"
IMPORT_INSTANCE = "ImportInstance"

# Host categories passed to HostDocument.collect_elements(category=...)
MODEL_GROUPS = "OST_IOSModelGroups"
DETAIL_GROUPS = "OST_IOSDetailGroups"

# Parameter names passed to HostDocument.project_parameter()
PROJECT_NAME = "PROJECT_NAME"
PROJECT_NUMBER = "PROJECT_NUMBER"

MODEL_CATEGORY_TYPE = "Model"


class HostApplication(Protocol):
    """The running host application."""

    username: str | None
    version_name: str
    version_number: str
    sub_version_number: str


class HostDocument(Protocol):
    """An open project document.

    Identity matters: the same Python object must be delivered for every
    lifecycle event of one open document.
    """

    title: str
    path_name: str | None
    is_workshared: bool
    application: HostApplication

    def project_parameter(self, name: str) -> str | None:
        """Return a project-information parameter as text, or None."""
        ...

    def warnings(self) -> Sized:
        """Return the document's current warnings."""
        ...

    def user_worksets(self) -> Iterable[Any]:
        """Return the user-created worksets of a workshared document."""
        ...

    def collect_elements(
        self,
        of_class: str | None = None,
        category: str | None = None,
    ) -> Iterable[Any]:
        """Return non-type element instances, optionally filtered.

        Returned views expose ``is_template``; returned elements expose
        ``category_type`` (``"Model"``, ``"Annotation"``, ... or None).
        """
        ...


class Notifier(Protocol):
    """Non-blocking user notification, e.g. a host task dialog."""

    def notify(self, title: str, message: str) -> None: ...
