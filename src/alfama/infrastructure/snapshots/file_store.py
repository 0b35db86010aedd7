from __future__ import annotations

import os
import tempfile
from pathlib import Path

from alfama.application.ports.snapshots import PersistenceError, SnapshotStore


class FileSnapshotStore(SnapshotStore):
    """One JSON file per snapshot key, replaced atomically on every save."""

    def __init__(self, directory: Path | str) -> None:
        self._directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self._directory / f"{key.replace(':', '-')}.json"

    def load(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise PersistenceError(f"failed to read snapshot {path}") from exc

    def save(self, key: str, payload: str) -> None:
        path = self.path_for(key)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=".snapshot-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise PersistenceError(f"failed to write snapshot {path}") from exc

    def ping(self) -> bool:
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
        except OSError:
            return False
        return os.access(self._directory, os.W_OK)
