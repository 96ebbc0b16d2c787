"""
Device-local backup of the last fetched availability schedule.

One JSON file per user under the backup directory, named
``schedule_backup_<userId>.json``. The backup is only a display fallback
for when the remote fetch fails: it carries no version or timestamp and is
never compared against server state. Storage errors are logged and
ignored.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from trainer_schedule.config import settings

logger = logging.getLogger(__name__)


class LocalBackup:
    """Best-effort key/value storage for schedule backups."""

    def __init__(self, directory: Optional[str] = None, prefix: Optional[str] = None) -> None:
        self.directory = Path(directory or settings.backup.backup_dir)
        self.prefix = prefix or settings.backup.key_prefix

    def key_for(self, user_id: str) -> str:
        return f"{self.prefix}{user_id}"

    def _path(self, user_id: str) -> Path:
        return self.directory / f"{self.key_for(user_id)}.json"

    def save(self, user_id: str, payload: Any) -> bool:
        """Write the payload; returns False if the device refused the write."""
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            self._path(user_id).write_text(json.dumps(payload), encoding="utf-8")
        except (OSError, TypeError, ValueError) as exc:
            logger.debug("Schedule backup not written for %s: %s", user_id, exc)
            return False
        logger.debug("Schedule backup written: %s", self.key_for(user_id))
        return True

    def load(self, user_id: str) -> Optional[Any]:
        """Read the payload, or None when missing or unreadable."""
        path = self._path(user_id)
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.debug("Schedule backup unreadable for %s: %s", user_id, exc)
            return None

    def clear(self, user_id: str) -> None:
        try:
            self._path(user_id).unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.debug("Schedule backup not removed for %s: %s", user_id, exc)
