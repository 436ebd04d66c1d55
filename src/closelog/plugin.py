"""Plugin lifetime: event handlers and the export toggle command."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from closelog import host
from closelog.collector import MetricsCollector, host_version
from closelog.config import Config, ConfigError
from closelog.events import Event, EventSource, EventType
from closelog.models import SessionState
from closelog.settings import SettingsStore
from closelog.tracker import DocumentTracker
from closelog.writer import CsvAppendWriter

logger = logging.getLogger(__name__)

NOTIFY_TITLE = "Project Close Logger"


class LogNotifier:
    """Fallback notifier that reports through the logging system."""

    def notify(self, title: str, message: str) -> None:
        logger.warning("%s: %s", title, message)


class CloseLoggerPlugin:
    """Wires the tracker, collector, writer and settings to host events.

    One instance lives from plugin load to unload. The host delivers
    notifications serially on its own thread, so no locking is done here.
    """

    def __init__(
        self,
        config: Config | None = None,
        notifier: host.Notifier | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the plugin.

        Args:
            config: Paths and tunables. Defaults to Config.load_or_default().
            notifier: User-facing notifications. Defaults to logging.
            clock: Source of local wall-clock time.
        """
        self.notifier = notifier or LogNotifier()
        self._clock = clock

        if config is None:
            try:
                config = Config.load_or_default()
            except ConfigError as e:
                logger.exception("Invalid configuration, using defaults")
                self._notify(f"Invalid configuration, using defaults: {e}")
                config = Config()
        self.config = config

        self.session = SessionState(started_at=clock())
        self.tracker = DocumentTracker(clock=clock)
        self.settings = SettingsStore(self.config.settings_file)
        self.collector = MetricsCollector(
            desktop_connector_markers=self.config.desktop_connector_markers,
            default_extension=self.config.default_extension,
            clock=clock,
        )
        self.writer = CsvAppendWriter(
            self.config.logs_dir,
            file_prefix=self.config.file_prefix,
            clock=clock,
        )

    @property
    def _handlers(self) -> dict[EventType, Callable[[Event], None]]:
        return {
            EventType.DOCUMENT_OPENED: self.on_document_opened,
            EventType.DOCUMENT_SYNCHRONIZED: self.on_document_synchronized,
            EventType.DOCUMENT_CLOSING: self.on_document_closing,
        }

    def start(
        self,
        source: EventSource,
        application: host.HostApplication | None = None,
    ) -> None:
        """Register handlers with *source* and cache the host version."""
        self.collector.host_version = host_version(application)
        for event_type, handler in self._handlers.items():
            source.subscribe(event_type, handler)
        logger.info(
            "Project close logging started (session %s, export %s)",
            self.session.session_id,
            "enabled" if self.settings.is_export_enabled() else "disabled",
        )

    def stop(self, source: EventSource) -> None:
        """Deregister handlers and forget all tracked documents."""
        for event_type, handler in self._handlers.items():
            source.unsubscribe(event_type, handler)
        self.tracker.clear()
        logger.info("Project close logging stopped")

    def on_document_opened(self, event: Event) -> None:
        self.tracker.record_open(event.document, now=event.timestamp)

    def on_document_synchronized(self, event: Event) -> None:
        self.tracker.record_sync(event.document)

    def on_document_closing(self, event: Event) -> Path | None:
        """Log the closing document.

        Never raises: a logging failure must not block the host's close.

        Returns:
            The CSV file written, or None if nothing was written.
        """
        document = event.document
        if document is None:
            return None

        now = event.timestamp
        # Popped before any other work so the entry cannot leak on failure.
        snapshot = self.tracker.consume_on_close(document, now=now)

        try:
            if not self.settings.is_export_enabled():
                return None
            record = self.collector.collect(document, self.session, snapshot, now=now)
            return self.writer.append_row(record, self.writer.monthly_log_path(now))
        except Exception as e:
            logger.exception("Failed to log project close")
            self._notify(f"Logging failed: {e}")
            return None

    def toggle_export(self) -> bool:
        """Flip the export setting and tell the user the new state."""
        enabled = self.settings.toggle()
        self._notify(
            f"Export {'ENABLED' if enabled else 'DISABLED'}. This setting controls "
            "whether a row is appended to the CSV log when a project is closed."
        )
        return enabled

    def _notify(self, message: str) -> None:
        try:
            self.notifier.notify(NOTIFY_TITLE, message)
        except Exception:
            logger.exception("Notifier failed")
