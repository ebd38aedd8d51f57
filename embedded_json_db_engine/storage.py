from __future__ import annotations
import json
import logging
import os
from typing import Any, Dict

from .errors import IOCorruptionError
from .utils import ID_FIELD, now_stamp, pretty_json

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


class FileStorage:
    """
    Whole-file I/O for a single JSON object of records keyed by `_id`.
    Every write replaces the file atomically via a sibling temp file.
    """
    def __init__(self, path: str, indent: int = 2) -> None:
        self.path = path
        self.indent = indent

    @property
    def tmp_path(self) -> str:
        return self.path + ".tmp"

    def read_all(self) -> Dict[str, Dict[str, Any]]:
        """
        Parse the file into an ordered id -> record mapping.
        Raises FileNotFoundError/OSError when unreadable, IOCorruptionError
        when the content is not a valid collection.
        """
        with open(self.path, "rb") as f:
            raw = f.read()
        try:
            data = json.loads(raw.decode("utf-8"), parse_constant=_reject_constant)
        except ValueError as e:
            # JSONDecodeError, UnicodeDecodeError and NaN/Infinity literals
            raise IOCorruptionError(f"{self.path}: invalid JSON ({e})") from e
        if not isinstance(data, dict):
            raise IOCorruptionError(f"{self.path}: top level must be an object, got {type(data).__name__}")
        for key, rec in data.items():
            if not isinstance(rec, dict):
                raise IOCorruptionError(f"{self.path}: record {key!r} is not an object")
            if rec.get(ID_FIELD) != key:
                raise IOCorruptionError(f"{self.path}: record {key!r} has mismatched {ID_FIELD}")
        return data

    def create_empty(self) -> None:
        parent = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(parent, exist_ok=True)
        self._write_text("{}")

    def write_all(self, data: Dict[str, Dict[str, Any]]) -> int:
        """Serialize and replace the file. Returns bytes written."""
        text = pretty_json(data, indent=self.indent)
        return self._write_text(text)

    def _write_text(self, text: str) -> int:
        payload = text.encode("utf-8")
        tmp = self.tmp_path
        try:
            with open(tmp, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except OSError:
            try:
                os.remove(tmp)
            except OSError:
                pass
            raise
        return len(payload)

    def backup_corrupt(self) -> str:
        dest = f"{self.path}.corrupt-{now_stamp()}"
        os.replace(self.path, dest)
        logger.warning("Moved unreadable database %s to %s", self.path, dest)
        return dest

    def size_bytes(self) -> int:
        return os.path.getsize(self.path)
