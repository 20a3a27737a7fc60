"""
In-memory gateway for tests and offline runs (GATEWAY_MODE=memory).
Same contract as the HTTP gateway, backed by plain dicts.
"""

import copy
import itertools
import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from .gateway import (
    AuthProvider,
    BlobStore,
    Gateway,
    GatewayError,
    ProgressCallback,
    RecordStore,
    UploadResult,
    matches,
    sort_records,
)
from .models import User, new_id

logger = logging.getLogger("voxen.mock")

# Collections whose wire fields are snake_case
SNAKE_CASE_COLLECTIONS = {"friends", "direct_messages"}

_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


class MemoryRecordStore(RecordStore):
    def __init__(self):
        self.data: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.calls: Counter = Counter()
        self._clock = itertools.count(1)
        self._failures = 0
        self.failure_message = "Simulated gateway failure"

    def fail_next(self, count: int = 1, message: Optional[str] = None):
        """Make the next ``count`` calls raise GatewayError"""
        self._failures = count
        if message:
            self.failure_message = message

    def _check_failure(self):
        if self._failures > 0:
            self._failures -= 1
            raise GatewayError(self.failure_message, status_code=503)

    def _collection(self, name: str) -> Dict[str, Dict[str, Any]]:
        return self.data.setdefault(name, {})

    def _timestamp(self) -> str:
        # Strictly increasing so creation-order sorts are deterministic
        return (_EPOCH + timedelta(milliseconds=next(self._clock))).isoformat()

    def seed(self, collection: str, *records: Dict[str, Any]):
        for record in records:
            self._stamp(collection, dict(record))

    def _stamp(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        record.setdefault("id", new_id(collection.rstrip("s")))
        created_key = "created_at" if collection in SNAKE_CASE_COLLECTIONS else "createdAt"
        record.setdefault(created_key, self._timestamp())
        self._collection(collection)[record["id"]] = record
        return record

    async def list(self, collection: str, where: Optional[Dict[str, Any]] = None,
                   order_by: Optional[Dict[str, str]] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        self.calls[("list", collection)] += 1
        self._check_failure()
        rows = [r for r in self._collection(collection).values() if matches(r, where)]
        rows = sort_records(rows, order_by)
        if limit is not None:
            rows = rows[:limit]
        return copy.deepcopy(rows)

    async def create(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        self.calls[("create", collection)] += 1
        self._check_failure()
        record = dict(record)
        if record.get("id") in self._collection(collection):
            raise GatewayError(f"Duplicate id {record['id']} in {collection}", status_code=409)
        return copy.deepcopy(self._stamp(collection, record))

    async def update(self, collection: str, record_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        self.calls[("update", collection)] += 1
        self._check_failure()
        existing = self._collection(collection).get(record_id)
        if existing is None:
            raise GatewayError(f"{collection} record {record_id} not found", status_code=404)
        existing.update({k: v for k, v in patch.items() if k != "id"})
        return copy.deepcopy(existing)

    async def delete(self, collection: str, record_id: str) -> None:
        self.calls[("delete", collection)] += 1
        self._check_failure()
        if self._collection(collection).pop(record_id, None) is None:
            raise GatewayError(f"{collection} record {record_id} not found", status_code=404)

    def total_calls(self) -> int:
        return sum(self.calls.values())


class MemoryBlobStore(BlobStore):
    def __init__(self, steps: int = 4):
        self.blobs: Dict[str, Dict[str, Any]] = {}
        self.calls = 0
        self.steps = steps
        self._failures = 0

    def fail_next(self, count: int = 1):
        self._failures = count

    async def upload(self, file, path: str, *, upsert: bool = True,
                     on_progress: Optional[ProgressCallback] = None) -> UploadResult:
        self.calls += 1
        if self._failures > 0:
            self._failures -= 1
            raise GatewayError("Simulated upload failure", status_code=503)
        if path in self.blobs and not upsert:
            raise GatewayError(f"Object {path} already exists", status_code=409)
        for i in range(1, self.steps + 1):
            if on_progress:
                on_progress(i * 100.0 / self.steps)
        self.blobs[path] = {"name": file.name, "size": file.size, "mime_type": file.mime_type}
        logger.debug(f"[MOCK] Stored blob {path}")
        return UploadResult(public_url=f"memory://{path}")


class MemoryAuthProvider(AuthProvider):
    def __init__(self, users: Optional[Dict[str, Dict[str, Any]]] = None, current: Optional[User] = None):
        super().__init__()
        # email -> {"password": ..., "user": User}
        self.users = users or {}
        self._current = current

    def register(self, email: str, password: str, user_id: Optional[str] = None) -> User:
        user = User(id=user_id or new_id("user"), email=email)
        self.users[email.lower()] = {"password": password, "user": user}
        return user

    async def restore(self) -> Optional[User]:
        self._emit(self._current)
        return self._current

    async def login(self, email: str, password: str) -> User:
        entry = self.users.get(email.lower())
        if entry is None or entry["password"] != password:
            raise GatewayError("Invalid email or password", status_code=401)
        self._current = entry["user"]
        self._emit(self._current)
        return self._current

    async def logout(self) -> None:
        self._current = None
        self._emit(None)

    async def me(self) -> Optional[User]:
        return self._current


def build_memory_gateway(user: Optional[User] = None) -> Gateway:
    return Gateway(auth=MemoryAuthProvider(current=user), records=MemoryRecordStore(), storage=MemoryBlobStore())
