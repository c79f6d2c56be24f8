"""Durable key/value slots for the persisted session."""

import json
import logging
import os
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

TOKEN_SLOT = "token"
IDENTITY_SLOT = "currentUser"

DEFAULT_SESSION_FILE = Path.home() / ".videovote" / "session.json"
FILE_MODE = 0o600


class SessionStorage(Protocol):
    """String slots that survive client restarts."""

    def get(self, slot: str) -> Optional[str]: ...

    def set(self, slot: str, value: str) -> None: ...

    def remove(self, slot: str) -> None: ...


class MemorySessionStorage:
    """In-process storage; nothing survives the process."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._slots: dict[str, str] = dict(initial or {})

    def get(self, slot: str) -> Optional[str]:
        return self._slots.get(slot)

    def set(self, slot: str, value: str) -> None:
        self._slots[slot] = value

    def remove(self, slot: str) -> None:
        self._slots.pop(slot, None)

    def snapshot(self) -> dict[str, str]:
        return dict(self._slots)


class FileSessionStorage:
    """Slots persisted as one JSON object on disk.

    The file is re-read on every ``get`` so several client processes share
    the latest login. An unreadable file reads as empty; it is rewritten on
    the next ``set``/``remove``.
    """

    def __init__(self, path: str | Path = DEFAULT_SESSION_FILE):
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            return {}
        return {key: value for key, value in data.items() if isinstance(value, str)}

    def _save(self, slots: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not slots:
            if self.path.exists():
                self.path.unlink()
            return
        # Owner-only from the moment it exists
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
        with os.fdopen(fd, "w") as f:
            f.write(json.dumps(slots, indent=2))
        # O_CREAT's mode does not apply to a file that already existed
        self.path.chmod(FILE_MODE)

    def get(self, slot: str) -> Optional[str]:
        return self._load().get(slot)

    def set(self, slot: str, value: str) -> None:
        slots = self._load()
        slots[slot] = value
        self._save(slots)

    def remove(self, slot: str) -> None:
        slots = self._load()
        if slot in slots:
            del slots[slot]
            self._save(slots)
        elif not slots and self.path.exists():
            # Corrupt file with nothing usable in it
            self.path.unlink()
