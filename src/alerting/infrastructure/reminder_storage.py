"""Local persistence for reminder state."""

import contextlib
import os
import tempfile
from pathlib import Path

from loguru import logger

from src.alerting.domain.exceptions import ReminderStorageError
from src.alerting.domain.models import ReminderState
from src.alerting.domain.protocols import ReminderStorage


class JsonFileReminderStorage(ReminderStorage):
    """Stores reminder timestamps as a JSON object in a local file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> ReminderState:
        """Read state from disk; a missing or corrupt file yields empty state."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ReminderState()
        except OSError as e:
            logger.warning(f"Could not read reminder state from {self.path}: {e}")
            return ReminderState()

        state = ReminderState.from_json(raw)
        logger.debug(f"Loaded {len(state.last_reminded)} reminder entries from {self.path}")
        return state

    def save(self, state: ReminderState) -> None:
        """Write state atomically (temp file + rename)."""
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".reminders-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(state.to_json())
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_path)
            raise ReminderStorageError(f"Could not save reminder state: {e}", details={"path": str(self.path)}) from e


class InMemoryReminderStorage(ReminderStorage):
    """Keeps the serialized state in memory, for tests and ephemeral runs."""

    def __init__(self, raw: str | None = None):
        self.raw = raw
        self.saves = 0

    def load(self) -> ReminderState:
        return ReminderState.from_json(self.raw)

    def save(self, state: ReminderState) -> None:
        self.raw = state.to_json()
        self.saves += 1
