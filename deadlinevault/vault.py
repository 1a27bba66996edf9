from __future__ import annotations

import json
import logging
import os
import stat
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional, Protocol
from uuid import UUID

from .errors import DeserializationError, PersistenceError
from .models import DeadlineRecord

log = logging.getLogger(__name__)


class AccessScope(Protocol):
    """
    Permission handshake around file access (e.g. a sandbox grant).

    acquire() returns whether access was granted; release() is only owed
    for a successful acquire.
    """

    def acquire(self, path: Path) -> bool: ...

    def release(self, path: Path) -> None: ...


class NullScope:
    def acquire(self, path: Path) -> bool:
        return True

    def release(self, path: Path) -> None:
        pass


def _iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat()


def _parse_ts(value: Any, name: str) -> datetime:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a timestamp string, got {type(value).__name__}")
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def record_to_dict(r: DeadlineRecord) -> dict:
    return {
        "id": str(r.id),
        "title": r.title,
        "targetDate": _iso(r.target_date),
        "createdDate": _iso(r.created_date),
        "isCompleted": r.is_completed,
        "completedDate": _iso(r.completed_date) if r.completed_date else None,
    }


def dict_to_record(d: Any) -> DeadlineRecord:
    if not isinstance(d, dict):
        raise TypeError(f"record must be an object, got {type(d).__name__}")
    title = d["title"]
    if not isinstance(title, str):
        raise TypeError("title must be a string")
    if not isinstance(d["id"], str):
        raise TypeError("id must be a string")
    is_completed = d.get("isCompleted", False)
    if not isinstance(is_completed, bool):
        raise TypeError("isCompleted must be a boolean")
    raw_completed = d.get("completedDate")
    completed = _parse_ts(raw_completed, "completedDate") if raw_completed is not None else None
    if is_completed != (completed is not None):
        raise ValueError("completedDate must be present exactly when isCompleted is true")
    return DeadlineRecord(
        id=UUID(d["id"]),
        title=title,
        target_date=_parse_ts(d["targetDate"], "targetDate"),
        created_date=_parse_ts(d["createdDate"], "createdDate"),
        is_completed=is_completed,
        completed_date=completed,
    )


def decode(text: str) -> list[DeadlineRecord]:
    """
    Parse vault content. Blank content is an empty vault; anything else
    must be a JSON array of records with unique ids.
    """
    if not text.strip():
        return []
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DeserializationError(f"vault is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise DeserializationError(f"vault must hold a JSON array, got {type(data).__name__}")

    records: list[DeadlineRecord] = []
    seen: set[UUID] = set()
    for i, raw in enumerate(data):
        try:
            r = dict_to_record(raw)
        except KeyError as e:
            raise DeserializationError(f"record #{i} is missing field {e}") from e
        except (TypeError, ValueError) as e:
            raise DeserializationError(f"record #{i} is invalid: {e}") from e
        if r.id in seen:
            raise DeserializationError(f"record #{i} repeats id {r.id}")
        seen.add(r.id)
        records.append(r)
    return records


def encode(records: Iterable[DeadlineRecord]) -> str:
    return json.dumps([record_to_dict(r) for r in records], indent=2, ensure_ascii=False)


class Vault:
    """The single JSON file holding a whole collection of deadlines."""

    def __init__(self, path: Path, scope: Optional[AccessScope] = None) -> None:
        self.path = Path(path)
        self.scope: AccessScope = scope if scope is not None else NullScope()

    def __repr__(self) -> str:
        return f"Vault({str(self.path)!r})"

    @contextmanager
    def access(self) -> Iterator[None]:
        granted = self.scope.acquire(self.path)
        if not granted:
            log.debug("access scope not granted for %s; trying plain file access", self.path)
        try:
            yield
        finally:
            if granted:
                self.scope.release(self.path)

    def exists(self) -> bool:
        with self.access():
            return self.path.exists()

    def load(self) -> list[DeadlineRecord]:
        with self.access():
            if not self.path.exists():
                log.debug("vault %s does not exist yet", self.path)
                return []
            try:
                raw = self.path.read_bytes()
            except OSError as e:
                raise PersistenceError(f"cannot read vault {self.path}: {e}") from e
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DeserializationError(f"vault is not UTF-8 text: {e}") from e
        records = decode(text)
        log.debug("loaded %d records from %s", len(records), self.path)
        return records

    def save(self, records: Iterable[DeadlineRecord]) -> None:
        try:
            payload = encode(records).encode("utf-8")
        except (TypeError, ValueError, AttributeError) as e:
            raise PersistenceError(f"cannot serialize records: {e}") from e

        with self.access():
            tmp_name: Optional[str] = None
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(
                    dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
                )
                with os.fdopen(fd, "wb") as f:
                    f.write(payload)
                    f.flush()
                    os.fsync(f.fileno())
                # mkstemp files are 0600; keep the existing vault's mode
                if self.path.exists():
                    os.chmod(tmp_name, stat.S_IMODE(self.path.stat().st_mode))
                os.replace(tmp_name, self.path)
                tmp_name = None
            except OSError as e:
                raise PersistenceError(f"cannot write vault {self.path}: {e}") from e
            finally:
                if tmp_name is not None:
                    try:
                        os.unlink(tmp_name)
                    except OSError:
                        log.debug("could not remove temp file %s", tmp_name)
        log.debug("saved vault %s (%d bytes)", self.path, len(payload))
