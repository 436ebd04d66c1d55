"""Persisted export toggle.

The flag lives in a one-field JSON file, ``{"ExportEnabled": true}``. Logging
is opt-out: anything short of a readable ``false`` counts as enabled.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

EXPORT_ENABLED_KEY = "ExportEnabled"


class SettingsStore:
    """Reads and writes the export flag.

    Nothing is cached; each call goes to disk so that several host processes
    sharing one profile see each other's changes.
    """

    def __init__(self, path: Path):
        self.path = path

    def is_export_enabled(self) -> bool:
        """Return the stored flag, or True if it cannot be read."""
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return True
        except (OSError, ValueError) as e:
            logger.debug("Unreadable settings file %s: %s", self.path, e)
            return True

        if not isinstance(data, dict):
            return True
        value = data.get(EXPORT_ENABLED_KEY, True)
        if not isinstance(value, bool):
            return True
        return value

    def set_export_enabled(self, enabled: bool) -> None:
        """Persist the flag. Best effort: failures are logged, not raised."""
        payload = json.dumps({EXPORT_ENABLED_KEY: bool(enabled)}, indent=2)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(payload + "\n", encoding="utf-8")
        except OSError as e:
            logger.warning("Failed to write settings file %s: %s", self.path, e)

    def toggle(self) -> bool:
        """Flip the flag and return the new value."""
        enabled = not self.is_export_enabled()
        self.set_export_enabled(enabled)
        return enabled
