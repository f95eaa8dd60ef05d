"""
Persistence layer for the idle-time, force-idle and activity-log files.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol

IDLE_TIME_KEY = "idle-time"
FORCE_IDLE_KEY = "force-idle"
ACTIVITY_LOG_KEY = "fnotify"

# Only the tail of the activity log is read when looking for the last line.
_TAIL_CHUNK_BYTES = 4096


class StateStore(Protocol):
    """Key/value view over timestamped text blobs."""

    def read_text(self, key: str) -> Optional[str]: ...

    def write_text(self, key: str, text: str) -> None: ...

    def modified_at(self, key: str) -> Optional[float]: ...

    def delete(self, key: str) -> None: ...

    def last_line(self, key: str) -> Optional[str]: ...


class FileStateStore:
    """Stores each key as a plain-text file beneath ``base_dir``."""

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir)

    def path_for(self, key: str) -> Path:
        return self.base_dir / key

    def read_text(self, key: str) -> Optional[str]:
        try:
            return self.path_for(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def write_text(self, key: str, text: str) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        target = self.path_for(key)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", dir=str(self.base_dir))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def modified_at(self, key: str) -> Optional[float]:
        try:
            return self.path_for(key).stat().st_mtime
        except FileNotFoundError:
            return None

    def delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)

    def last_line(self, key: str) -> Optional[str]:
        try:
            with self.path_for(key).open("rb") as handle:
                handle.seek(0, os.SEEK_END)
                size = handle.tell()
                chunk = b""
                position = size
                while position > 0:
                    step = min(_TAIL_CHUNK_BYTES, position)
                    position -= step
                    handle.seek(position)
                    chunk = handle.read(step) + chunk
                    lines = chunk.splitlines()
                    # The first line may be truncated unless we reached the start of the file.
                    candidates = lines if position == 0 else lines[1:]
                    for line in reversed(candidates):
                        if line.strip():
                            return line.decode("utf-8", errors="replace")
        except FileNotFoundError:
            return None
        return None
