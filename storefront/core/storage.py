import json
import logging
import os
import tempfile
from collections.abc import Iterable, Mapping
from pathlib import Path

logger = logging.getLogger(__name__)


class LocalStorage:
    """String key/value store that survives restarts.

    Backed by a single JSON file; every mutation rewrites the file through a
    temporary file and ``os.replace`` so a batch of keys lands together.
    Without a path the store lives in memory only.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else None
        self._items: dict[str, str] = self._load()

    def _load(self) -> dict[str, str]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("local_storage_unreadable", extra={"path": str(self.path)})
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _flush(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".storage-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(self._items, handle)
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def get_items(self, keys: Iterable[str]) -> dict[str, str | None]:
        return {key: self._items.get(key) for key in keys}

    def set_item(self, key: str, value: str) -> None:
        self.set_items({key: value})

    def set_items(self, items: Mapping[str, str]) -> None:
        self._items.update(items)
        self._flush()

    def remove_item(self, key: str) -> None:
        self.remove_items([key])

    def remove_items(self, keys: Iterable[str]) -> None:
        changed = False
        for key in keys:
            if self._items.pop(key, None) is not None:
                changed = True
        if changed:
            self._flush()

    def keys(self) -> list[str]:
        return list(self._items)

    def __contains__(self, key: object) -> bool:
        return key in self._items
