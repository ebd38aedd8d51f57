from __future__ import annotations
import logging
import os
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .errors import ConnectError, IOCorruptionError, NotConnectedError, PersistenceError, ValidationError
from .progress import Progress, ProgressCallback
from .query import first_match, is_simple_filter, scan
from .storage import FileStorage
from .utils import ID_FIELD, check_mapping, json_copy, new_uid

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class ConnectStatus(str, Enum):
    CONNECTED = "connected"
    CREATED = "created"
    RECREATED = "recreated"


class Database:
    """
    A single collection of schemaless records mirrored in memory and persisted
    as one pretty-printed JSON object ({_id: record}) at `path`.

    Every mutation that changes something rewrites the whole file. Records
    returned to callers are detached copies; change data through the API.
    """

    def __init__(
        self,
        path: str | os.PathLike,
        *,
        on_progress: Optional[ProgressCallback] = None,
        id_length: int = 16,
        indent: int = 2,
        recreate_on_corrupt: bool = False,
    ) -> None:
        if id_length < 8:
            raise ValueError("id_length must be >= 8")
        self.path = os.fspath(path)
        self._fs = FileStorage(self.path, indent=indent)
        self._progress = Progress(on_progress)
        self._id_length = id_length
        self._recreate_on_corrupt = recreate_on_corrupt
        self._data: Dict[str, Record] = {}
        self._connected = False
        self._dirty = False

    @classmethod
    def open(cls, path: str | os.PathLike, **kwargs: Any) -> "Database":
        db = cls(path, **kwargs)
        db.connect()
        return db

    def __repr__(self) -> str:
        state = "connected" if self._connected else "not connected"
        return f"<Database {self.path!r} {state}, {len(self._data)} records>"

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, rec_id: object) -> bool:
        return isinstance(rec_id, str) and rec_id in self._data

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def dirty(self) -> bool:
        return self._dirty

    # ----- Lifecycle -----

    def connect(self) -> ConnectStatus:
        """
        Load the file into memory, or create it as `{}` when it does not exist.

        A file that exists but does not parse raises IOCorruptionError and is
        left untouched, unless recreate_on_corrupt=True, in which case it is
        moved aside and an empty store is created.
        """
        self._progress.emit("open.start", 0, self.path)
        data: Dict[str, Record] = {}
        try:
            data = self._fs.read_all()
            status = ConnectStatus.CONNECTED
        except FileNotFoundError:
            status = ConnectStatus.CREATED
        except IOCorruptionError:
            if not self._recreate_on_corrupt:
                raise
            try:
                self._fs.backup_corrupt()
            except OSError as e:
                raise ConnectError(f"cannot move corrupt file {self.path} aside: {e}") from e
            status = ConnectStatus.RECREATED
        except OSError as e:
            raise ConnectError(f"cannot read {self.path}: {e}") from e

        if status is not ConnectStatus.CONNECTED:
            try:
                self._fs.create_empty()
            except OSError as e:
                raise ConnectError(f"cannot create {self.path}: {e}") from e

        self._data = data
        self._connected = True
        self._dirty = False
        logger.info("Database %s: %s (%d records)", self.path, status.value, len(data))
        self._progress.emit("open.done", 100, status.value)
        return status

    def flush(self) -> None:
        """Write the in-memory collection to disk now."""
        self._require_connected()
        self._persist()

    # ----- Insert -----

    def insert(self, data: Record | Sequence[Record]) -> Record | List[Record]:
        if isinstance(data, dict):
            return self.insert_one(data)
        if isinstance(data, (list, tuple)):
            return self.insert_many(data)
        raise ValidationError(f"insert() expects a dict or a list of dicts, got {type(data).__name__}")

    def insert_one(self, record: Record) -> Record:
        self._require_connected()
        check_mapping(record, "record")
        rec = self._new_record(record)
        self._data[rec[ID_FIELD]] = rec
        self._persist()
        return json_copy(rec)

    def insert_many(self, records: Sequence[Record]) -> List[Record]:
        self._require_connected()
        if not isinstance(records, (list, tuple)):
            raise ValidationError(f"insert_many() expects a list of dicts, got {type(records).__name__}")
        for i, rec in enumerate(records):
            check_mapping(rec, f"records[{i}]")
        total = len(records)
        self._progress.emit("insert.start", 0, f"{total} records")
        inserted: List[Record] = []
        for i, record in enumerate(records, 1):
            rec = self._new_record(record)
            self._data[rec[ID_FIELD]] = rec
            inserted.append(rec)
            self._progress.step("insert.progress", i, total)
        if inserted:
            self._persist()
        self._progress.emit("insert.done", 100, f"{total} records")
        return [json_copy(r) for r in inserted]

    # ----- Read -----

    def find(self, flt: Optional[Mapping[str, Any]] = None) -> List[Record]:
        self._require_connected()
        flt = self._check_filter(flt)
        if not flt:
            return [json_copy(r) for r in self._data.values()]
        return self.find_many(flt)

    def find_one(self, flt: Optional[Mapping[str, Any]] = None) -> Optional[Record]:
        self._require_connected()
        rec_id = first_match(self._data, self._check_filter(flt))
        return None if rec_id is None else json_copy(self._data[rec_id])

    def find_many(self, flt: Optional[Mapping[str, Any]] = None) -> List[Record]:
        self._require_connected()
        return [json_copy(self._data[rid]) for rid in self._scan_ids(self._check_filter(flt))]

    def find_by_id(self, rec_id: str) -> Optional[Record]:
        self._require_connected()
        rec = self._data.get(self._check_id(rec_id))
        return None if rec is None else json_copy(rec)

    def exists(self, flt: Optional[Mapping[str, Any]] = None) -> bool:
        self._require_connected()
        return first_match(self._data, self._check_filter(flt)) is not None

    def count(self) -> int:
        self._require_connected()
        return len(self._data)

    def db_size(self) -> str:
        self._require_connected()
        return f"{self._fs.size_bytes()} bytes"

    # ----- Update (shallow merge) -----

    def find_one_and_update(self, flt: Mapping[str, Any], patch: Record) -> Optional[Record]:
        self._require_connected()
        flt = self._check_filter(flt)
        check_mapping(patch, "patch")
        rec_id = first_match(self._data, flt)
        if rec_id is None:
            return None
        self._merge(rec_id, patch)
        self._persist()
        return json_copy(self._data[rec_id])

    def find_many_and_update(self, flt: Mapping[str, Any], patch: Record) -> List[Record]:
        self._require_connected()
        flt = self._check_filter(flt)
        check_mapping(patch, "patch")
        ids = self._scan_ids(flt)
        self._progress.emit("update.start", 0, f"{len(ids)} matched")
        for i, rec_id in enumerate(ids, 1):
            self._merge(rec_id, patch)
            self._progress.step("update.progress", i, len(ids))
        if ids:
            self._persist()
        self._progress.emit("update.done", 100, f"{len(ids)} updated")
        return [json_copy(self._data[rid]) for rid in ids]

    def update_one(self, flt: Mapping[str, Any], patch: Record) -> int:
        return 0 if self.find_one_and_update(flt, patch) is None else 1

    def update_many(self, flt: Mapping[str, Any], patch: Record) -> int:
        return len(self.find_many_and_update(flt, patch))

    def find_by_id_and_update(self, rec_id: str, patch: Record) -> Optional[Record]:
        self._require_connected()
        rec_id = self._check_id(rec_id)
        check_mapping(patch, "patch")
        if rec_id not in self._data:
            return None
        self._merge(rec_id, patch)
        self._persist()
        return json_copy(self._data[rec_id])

    # ----- Replace (full overwrite, _id kept) -----

    def find_one_and_replace(self, flt: Mapping[str, Any], record: Record) -> Optional[Record]:
        self._require_connected()
        flt = self._check_filter(flt)
        check_mapping(record, "record")
        rec_id = first_match(self._data, flt)
        if rec_id is None:
            return None
        self._replace(rec_id, record)
        self._persist()
        return json_copy(self._data[rec_id])

    def find_many_and_replace(self, flt: Mapping[str, Any], record: Record) -> List[Record]:
        self._require_connected()
        flt = self._check_filter(flt)
        check_mapping(record, "record")
        ids = self._scan_ids(flt)
        self._progress.emit("replace.start", 0, f"{len(ids)} matched")
        for i, rec_id in enumerate(ids, 1):
            self._replace(rec_id, record)
            self._progress.step("replace.progress", i, len(ids))
        if ids:
            self._persist()
        self._progress.emit("replace.done", 100, f"{len(ids)} replaced")
        return [json_copy(self._data[rid]) for rid in ids]

    def replace_one(self, flt: Mapping[str, Any], record: Record) -> int:
        return 0 if self.find_one_and_replace(flt, record) is None else 1

    def replace_many(self, flt: Mapping[str, Any], record: Record) -> int:
        return len(self.find_many_and_replace(flt, record))

    def find_by_id_and_replace(self, rec_id: str, record: Record) -> Optional[Record]:
        self._require_connected()
        rec_id = self._check_id(rec_id)
        check_mapping(record, "record")
        if rec_id not in self._data:
            return None
        self._replace(rec_id, record)
        self._persist()
        return json_copy(self._data[rec_id])

    # ----- Delete -----

    def find_one_and_delete(self, flt: Mapping[str, Any]) -> Optional[Record]:
        self._require_connected()
        rec_id = first_match(self._data, self._check_filter(flt))
        if rec_id is None:
            return None
        removed = self._data.pop(rec_id)
        self._persist()
        return removed

    def find_many_and_delete(self, flt: Mapping[str, Any]) -> List[Record]:
        self._require_connected()
        ids = self._scan_ids(self._check_filter(flt))
        self._progress.emit("delete.start", 0, f"{len(ids)} matched")
        removed: List[Record] = []
        for i, rec_id in enumerate(ids, 1):
            removed.append(self._data.pop(rec_id))
            self._progress.step("delete.progress", i, len(ids))
        if removed:
            self._persist()
        self._progress.emit("delete.done", 100, f"{len(removed)} deleted")
        return removed

    def delete_one(self, flt: Mapping[str, Any]) -> int:
        return 0 if self.find_one_and_delete(flt) is None else 1

    def delete_many(self, flt: Mapping[str, Any]) -> int:
        return len(self.find_many_and_delete(flt))

    def find_by_id_and_delete(self, rec_id: str) -> Optional[Record]:
        self._require_connected()
        removed = self._data.pop(self._check_id(rec_id), None)
        if removed is None:
            return None
        self._persist()
        return removed

    # ----- Internals -----

    def _require_connected(self) -> None:
        if not self._connected:
            raise NotConnectedError(f"{self.path}: call connect() first")

    @staticmethod
    def _check_filter(flt: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
        if flt is None:
            return {}
        return check_mapping(flt, "filter")

    @staticmethod
    def _check_id(rec_id: Any) -> str:
        if not isinstance(rec_id, str):
            raise ValidationError(f"id must be a string, got {type(rec_id).__name__}")
        return rec_id

    def _scan_ids(self, flt: Mapping[str, Any]) -> List[str]:
        ids = scan(self._data, flt, keys=True)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("scan %d records, simple=%s, matched %d", len(self._data), is_simple_filter(flt), len(ids))
        return ids

    def _new_record(self, record: Record) -> Record:
        rec = json_copy(record)
        rec[ID_FIELD] = new_uid(self._id_length)
        return rec

    def _merge(self, rec_id: str, patch: Record) -> None:
        target = self._data[rec_id]
        for key, value in json_copy(patch).items():
            if key == ID_FIELD:
                continue
            target[key] = value

    def _replace(self, rec_id: str, record: Record) -> None:
        rec = json_copy(record)
        rec[ID_FIELD] = rec_id
        self._data[rec_id] = rec

    def _persist(self) -> None:
        """
        Write the full collection. On failure memory is kept as is, the store
        stays dirty and PersistenceError is raised.
        """
        self._dirty = True
        try:
            size = self._fs.write_all(self._data)
        except OSError as e:
            logger.error("Failed to write %s: %s", self.path, e)
            raise PersistenceError(f"cannot write {self.path}: {e}; in-memory state kept") from e
        self._dirty = False
        logger.debug("Persisted %d records to %s (%d bytes)", len(self._data), self.path, size)
        self._progress.emit("persist.done", 100, f"{size} bytes")
