"""JSON blob persistence for the exam and progress state.

Each key maps to one ``<key>.json`` file under the data directory. Writes go
to a temporary sibling first and are moved into place, so a crash never
leaves a half-written blob behind.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any

from manaquiz.constants.network_constants import DEFAULT_DATA_DIR

logger = logging.getLogger(__name__)


class StateStore:
    """Key-value store of JSON documents on local disk."""

    def __init__(self, data_dir: Path | str = DEFAULT_DATA_DIR) -> None:
        self._root = Path(data_dir).resolve()
        self._lock = Lock()

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, key: str) -> Path:
        return self._root / f"{key}.json"

    def load(self, key: str) -> Any | None:
        """Return the stored document, or None when absent or unreadable."""
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable state file %s: %s", path, exc)
            return None

    def save(self, key: str, payload: Any) -> None:
        path = self.path_for(key)
        with self._lock:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(path.suffix + ".tmp")
            tmp.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
            tmp.replace(path)
