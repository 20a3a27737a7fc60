"""
Remote Data Gateway contract.

The backend-as-a-service is seen through three capability groups: session
observation (AuthProvider), record CRUD with filter/sort/limit (RecordStore,
wrapped per collection by a typed Collection) and blob upload with progress
(BlobStore). Records are validated against the pydantic models at this boundary.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, Generic, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from .models import (
    AuthState,
    Channel,
    DirectMessage,
    Friend,
    Message,
    Record,
    Server,
    ServerMember,
    ThemeColors,
    User,
    UserProfile,
)

if TYPE_CHECKING:
    from .uploads import LocalFile

logger = logging.getLogger("voxen.gateway")

ProgressCallback = Callable[[float], None]
AuthListener = Callable[[AuthState], None]
Unsubscribe = Callable[[], None]

T = TypeVar("T", bound=Record)


class GatewayError(Exception):
    """Any failure talking to the remote gateway (network, auth, server, bad payload)"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


# Predicates
def eq(field: str, value: Any) -> Dict[str, Any]:
    return {field: value}


def all_of(*predicates: Dict[str, Any]) -> Dict[str, Any]:
    return {"AND": list(predicates)}


def any_of(*predicates: Dict[str, Any]) -> Dict[str, Any]:
    return {"OR": list(predicates)}


def is_in(field: str, values: Iterable[Any]) -> Dict[str, Any]:
    return {field: {"in": list(values)}}


def order_by(field: str, direction: str = "asc") -> Dict[str, str]:
    if direction not in ("asc", "desc"):
        raise ValueError(f"Invalid sort direction: {direction}")
    return {field: direction}


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def matches(record: Dict[str, Any], where: Optional[Dict[str, Any]]) -> bool:
    """Evaluate a where-filter against a wire record. Multiple keys are ANDed."""
    if not where:
        return True
    for key, cond in where.items():
        if key == "AND":
            if not all(matches(record, p) for p in cond):
                return False
        elif key == "OR":
            if not any(matches(record, p) for p in cond):
                return False
        elif isinstance(cond, dict):
            value = _plain(record.get(key))
            if "in" in cond and value not in [_plain(v) for v in cond["in"]]:
                return False
            if "eq" in cond and value != _plain(cond["eq"]):
                return False
            if "neq" in cond and value == _plain(cond["neq"]):
                return False
        elif _plain(record.get(key)) != _plain(cond):
            return False
    return True


def sort_records(records: List[Dict[str, Any]], order: Optional[Dict[str, str]]) -> List[Dict[str, Any]]:
    """Stable multi-key sort; None sorts first when ascending"""
    if not order:
        return list(records)
    result = list(records)
    for field, direction in reversed(list(order.items())):
        result.sort(
            key=lambda r: (r.get(field) is not None, r.get(field) if r.get(field) is not None else 0),
            reverse=(direction == "desc"),
        )
    return result


@dataclass
class UploadResult:
    public_url: str


class RecordStore(ABC):
    """Raw record CRUD over wire dicts"""

    @abstractmethod
    async def list(self, collection: str, where: Optional[Dict[str, Any]] = None,
                   order_by: Optional[Dict[str, str]] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def create(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def update(self, collection: str, record_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def delete(self, collection: str, record_id: str) -> None:
        ...


class BlobStore(ABC):
    @abstractmethod
    async def upload(self, file: "LocalFile", path: str, *, upsert: bool = True,
                     on_progress: Optional[ProgressCallback] = None) -> UploadResult:
        ...


class AuthProvider(ABC):
    """Session observation: subscribers receive the current AuthState immediately and on every change"""

    def __init__(self):
        self._listeners: List[AuthListener] = []
        self._state = AuthState(user=None, is_loading=True)

    @property
    def state(self) -> AuthState:
        return self._state

    def on_auth_state_changed(self, callback: AuthListener) -> Unsubscribe:
        self._listeners.append(callback)
        callback(self._state)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _emit(self, user: Optional[User], is_loading: bool = False) -> None:
        self._state = AuthState(user=user, is_loading=is_loading)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("[AUTH] Auth listener failed")

    @abstractmethod
    async def restore(self) -> Optional[User]:
        """Resolve the initial session and leave the loading state"""

    @abstractmethod
    async def login(self, email: str, password: str) -> User:
        ...

    @abstractmethod
    async def logout(self) -> None:
        ...

    @abstractmethod
    async def me(self) -> Optional[User]:
        ...


def _wire_value(value: Any) -> Any:
    if isinstance(value, ThemeColors):
        return value.to_json()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json")
    return value


class Collection(Generic[T]):
    """Typed view over one record collection"""

    def __init__(self, store: RecordStore, name: str, model: Type[T]):
        self.store = store
        self.name = name
        self.model = model

    def _validate(self, raw: Dict[str, Any]) -> T:
        try:
            return self.model.model_validate(raw)
        except SchemaError as e:
            logger.error(f"[GATEWAY] Invalid {self.name} record: {e}")
            raise GatewayError(f"Invalid {self.name} record from gateway") from e

    def to_wire_patch(self, patch: Dict[str, Any]) -> Dict[str, Any]:
        """Map python field names onto wire aliases"""
        wire = {}
        fields = self.model.model_fields
        for key, value in patch.items():
            field = fields.get(key)
            wire_key = field.alias if field is not None and field.alias else key
            wire[wire_key] = _wire_value(value)
        return wire

    async def list(self, where: Optional[Dict[str, Any]] = None, order_by: Optional[Dict[str, str]] = None,
                   limit: Optional[int] = None) -> List[T]:
        rows = await self.store.list(self.name, where=where, order_by=order_by, limit=limit)
        return [self._validate(row) for row in rows]

    async def create(self, record: Any) -> T:
        payload = record.to_wire() if isinstance(record, Record) else self.to_wire_patch(dict(record))
        created = await self.store.create(self.name, payload)
        return self._validate(created or payload)

    async def update(self, record_id: str, patch: Dict[str, Any]) -> Optional[T]:
        updated = await self.store.update(self.name, record_id, self.to_wire_patch(patch))
        return self._validate(updated) if updated else None

    async def delete(self, record_id: str) -> None:
        await self.store.delete(self.name, record_id)


class Gateway:
    """Bundle of auth, typed collections and blob storage"""

    def __init__(self, auth: AuthProvider, records: RecordStore, storage: BlobStore):
        self.auth = auth
        self.records = records
        self.storage = storage

        self.servers: Collection[Server] = Collection(records, "servers", Server)
        self.channels: Collection[Channel] = Collection(records, "channels", Channel)
        self.messages: Collection[Message] = Collection(records, "messages", Message)
        self.direct_messages: Collection[DirectMessage] = Collection(records, "direct_messages", DirectMessage)
        self.friends: Collection[Friend] = Collection(records, "friends", Friend)
        self.server_members: Collection[ServerMember] = Collection(records, "serverMembers", ServerMember)
        self.user_profiles: Collection[UserProfile] = Collection(records, "userProfiles", UserProfile)

    async def close(self) -> None:
        closer = getattr(self.records, "close", None)
        if closer is not None:
            await closer()
