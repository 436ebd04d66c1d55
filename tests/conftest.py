"""Shared fixtures."""

from __future__ import annotations

import pytest

from closelog import host
from closelog.config import Config

from fakes import FakeDocument, element, view


@pytest.fixture
def rich_document() -> FakeDocument:
    """A saved, workshared document with something in every column."""
    return FakeDocument(
        title="Tower",
        path_name=r"C:\Projects\Tower\tower.rvt",
        is_workshared=True,
        parameters={host.PROJECT_NAME: "Tower, Phase 2", host.PROJECT_NUMBER: "P-100"},
        warning_list=["w1", "w2", "w3"],
        worksets=["Shared Levels", "Architecture"],
        by_class={
            host.LINK_INSTANCE: ["link"],
            host.IMAGE_TYPE: ["img1", "img2"],
            host.VIEW: [view(), view(), view(is_template=True)],
            host.VIEW_SHEET: ["A101", "A102", "A103", "A104"],
            host.DESIGN_OPTION: ["opt"],
            host.IMPORT_INSTANCE: ["dwg1", "dwg2"],
        },
        by_category={
            host.MODEL_GROUPS: ["g1"],
            host.DETAIL_GROUPS: ["d1", "d2"],
        },
        elements=[element(), element(), element("Annotation"), element(None)],
    )


@pytest.fixture
def config(tmp_path) -> Config:
    return Config(
        logs_dir=tmp_path / "logs",
        settings_file=tmp_path / "profile" / "settings.json",
    )
