"""End-to-end tests for the plugin's event handlers."""

import csv
from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from closelog.config import CONFIG_ENV_VAR, Config
from closelog.events import Event, EventDispatcher, EventType
from closelog.models import HEADER
from closelog.plugin import NOTIFY_TITLE, CloseLoggerPlugin

from fakes import FakeApplication, FakeDocument, RecordingNotifier

T0 = datetime(2026, 3, 14, 9, 0, 0)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def plugin(config, notifier):
    return CloseLoggerPlugin(config=config, notifier=notifier, clock=lambda: T0)


@pytest.fixture
def source(plugin):
    dispatcher = EventDispatcher()
    plugin.start(dispatcher, FakeApplication())
    return dispatcher


def emit(source, event_type, document, when):
    source.emit(Event(event_type=event_type, document=document, timestamp=when))


def read_log(plugin, when=T0):
    with open(plugin.writer.monthly_log_path(when), newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    return [dict(zip(HEADER, row)) for row in rows[1:]]


def test_open_sync_close_scenario(plugin, source):
    doc = FakeDocument(title="Tower", path_name=None)

    emit(source, EventType.DOCUMENT_OPENED, doc, T0)
    emit(source, EventType.DOCUMENT_SYNCHRONIZED, doc, T0 + timedelta(seconds=100))
    emit(source, EventType.DOCUMENT_SYNCHRONIZED, doc, T0 + timedelta(seconds=400))
    emit(source, EventType.DOCUMENT_CLOSING, doc, T0 + timedelta(seconds=630))

    [row] = read_log(plugin)
    assert row["DurationSeconds"] == "630"
    assert row["SynchronizedProjectsCount"] == "2"
    assert row["FileSizeBytes"] == "0"
    assert row["Diroot"] == ""
    assert row["LogStart"] == "2026-03-14 09:00:00"
    assert row["LogEnd"] == "2026-03-14 09:10:30"
    assert row["SessionId"] == plugin.session.session_id
    assert row["RevitServicePackage"] == "Autodesk Revit 2024 2024 2024.2"
    assert doc not in plugin.tracker


@pytest.mark.parametrize("syncs", [0, 1, 5])
def test_sync_count_matches(plugin, source, syncs):
    doc = FakeDocument()
    emit(source, EventType.DOCUMENT_OPENED, doc, T0)
    for _ in range(syncs):
        emit(source, EventType.DOCUMENT_SYNCHRONIZED, doc, T0)
    emit(source, EventType.DOCUMENT_CLOSING, doc, T0 + timedelta(seconds=59.7))

    [row] = read_log(plugin)
    assert row["SynchronizedProjectsCount"] == str(syncs)
    assert row["DurationSeconds"] == "59"


def test_close_without_open(plugin, source):
    close = T0 + timedelta(hours=3)

    emit(source, EventType.DOCUMENT_CLOSING, FakeDocument(), close)

    [row] = read_log(plugin)
    assert row["DurationSeconds"] == "0"
    assert row["LogStart"] == row["LogEnd"] == "2026-03-14 12:00:00"
    assert row["SessionDurationSeconds"] == "10800"


def test_sync_without_open_has_zero_duration(plugin, source):
    doc = FakeDocument()

    emit(source, EventType.DOCUMENT_SYNCHRONIZED, doc, T0 + timedelta(seconds=100))
    emit(source, EventType.DOCUMENT_CLOSING, doc, T0 + timedelta(seconds=700))

    [row] = read_log(plugin)
    assert row["DurationSeconds"] == "0"
    assert row["LogStart"] == row["LogEnd"] == "2026-03-14 09:11:40"
    assert row["SynchronizedProjectsCount"] == "1"
    assert doc not in plugin.tracker


def test_two_equal_documents_logged_separately(plugin, source):
    first = FakeDocument(title="Copy")
    second = FakeDocument(title="Copy")

    emit(source, EventType.DOCUMENT_OPENED, first, T0)
    emit(source, EventType.DOCUMENT_OPENED, second, T0 + timedelta(seconds=60))
    emit(source, EventType.DOCUMENT_SYNCHRONIZED, first, T0)
    emit(source, EventType.DOCUMENT_CLOSING, second, T0 + timedelta(seconds=120))
    emit(source, EventType.DOCUMENT_CLOSING, first, T0 + timedelta(seconds=300))

    rows = read_log(plugin)
    assert [(r["DurationSeconds"], r["SynchronizedProjectsCount"]) for r in rows] == [
        ("60", "0"),
        ("300", "1"),
    ]


def test_disabled_export_writes_nothing_but_cleans_up(plugin, source):
    doc = FakeDocument()
    plugin.settings.set_export_enabled(False)
    emit(source, EventType.DOCUMENT_OPENED, doc, T0)

    emit(source, EventType.DOCUMENT_CLOSING, doc, T0)

    assert not plugin.writer.monthly_log_path(T0).exists()
    assert len(plugin.tracker) == 0


def test_write_failure_notifies_and_cleans_up(plugin, source, notifier):
    doc = FakeDocument()
    emit(source, EventType.DOCUMENT_OPENED, doc, T0)

    with patch.object(plugin.writer, "append_row", side_effect=PermissionError("locked")):
        result = plugin.on_document_closing(
            Event(event_type=EventType.DOCUMENT_CLOSING, document=doc, timestamp=T0)
        )

    assert result is None
    assert doc not in plugin.tracker
    assert notifier.messages == [(NOTIFY_TITLE, "Logging failed: locked")]


def test_notifier_failure_is_swallowed(config):
    class BrokenNotifier:
        def notify(self, title, message):
            raise RuntimeError("no UI")

    plugin = CloseLoggerPlugin(config=config, notifier=BrokenNotifier(), clock=lambda: T0)
    with patch.object(plugin.collector, "collect", side_effect=RuntimeError("bad")):
        assert plugin.on_document_closing(
            Event(event_type=EventType.DOCUMENT_CLOSING, document=FakeDocument())
        ) is None


def test_none_document_ignored(plugin):
    event = Event(event_type=EventType.DOCUMENT_CLOSING, document=None)
    assert plugin.on_document_closing(event) is None


def test_stop_unsubscribes_and_clears(plugin, source):
    doc = FakeDocument()
    emit(source, EventType.DOCUMENT_OPENED, doc, T0)

    plugin.stop(source)

    assert len(plugin.tracker) == 0
    for event_type in EventType:
        assert source.handlers_for(event_type) == []
    emit(source, EventType.DOCUMENT_CLOSING, doc, T0)
    assert not plugin.writer.monthly_log_path(T0).exists()


def test_toggle_export(plugin, notifier):
    assert plugin.toggle_export() is False
    assert plugin.settings.is_export_enabled() is False
    assert plugin.toggle_export() is True

    assert notifier.messages[0][1].startswith("Export DISABLED")
    assert notifier.messages[1][1].startswith("Export ENABLED")


def test_default_notifier_logs(config, caplog):
    plugin = CloseLoggerPlugin(config=config, clock=lambda: T0)
    plugin.toggle_export()
    assert "Export DISABLED" in caplog.text


def test_invalid_config_falls_back_to_defaults(tmp_path, monkeypatch, notifier):
    bad = tmp_path / "config.yaml"
    bad.write_text("logs_dir: [1, 2\n", encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(bad))

    plugin = CloseLoggerPlugin(notifier=notifier, clock=lambda: T0)

    assert plugin.config == Config()
    [(title, message)] = notifier.messages
    assert title == NOTIFY_TITLE
    assert message.startswith("Invalid configuration, using defaults")
