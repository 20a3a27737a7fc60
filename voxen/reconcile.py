"""
Entity reconciliation: fetch-on-mount, optimistic append, wholesale replace.

An EntityList is a disposable, ordered copy of gateway records owned by one
controller. It is never merged with the gateway: every mount re-fetches and
replaces the items, and results that arrive for a stale mount are dropped.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Iterator, List, Optional, TypeVar

logger = logging.getLogger("voxen.reconcile")

T = TypeVar("T")


@dataclass(frozen=True)
class Mount:
    generation: int
    key: Any = None


class EntityList(Generic[T]):
    def __init__(self, name: str):
        self.name = name
        self.items: List[T] = []
        self._generation = 0
        self._key: Any = None
        self._listeners: List[Callable[["EntityList[T]"], None]] = []

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> T:
        return self.items[index]

    @property
    def key(self) -> Any:
        return self._key

    def subscribe(self, callback: Callable[["EntityList[T]"], None]) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _changed(self):
        for listener in list(self._listeners):
            listener(self)

    def mount(self, key: Any = None) -> Mount:
        """Start a new generation; anything still in flight for older mounts is ignored"""
        self._generation += 1
        self._key = key
        return Mount(self._generation, key)

    def current_mount(self) -> Mount:
        """The live mount, for results that should land only if nothing re-mounts first"""
        return Mount(self._generation, self._key)

    def is_current(self, mount: Optional[Mount]) -> bool:
        return mount is None or mount.generation == self._generation

    def clear(self):
        self.mount(None)
        self.items = []
        self._changed()

    async def refresh(self, loader: Callable[[], Awaitable[List[T]]], *, mount: Optional[Mount] = None) -> bool:
        """Replace the items with an authoritative fetch.

        Returns False when the result belongs to a stale mount. Loader errors
        propagate and leave the items untouched.
        """
        mount = mount or self.mount(self._key)
        result = await loader()
        return self.reset(result, mount=mount)

    def reset(self, items, *, mount: Optional[Mount] = None) -> bool:
        """Replace the items wholesale with records already fetched from the gateway"""
        if not self.is_current(mount):
            logger.debug(f"[RECONCILE] Dropping stale {self.name} result for {mount.key}")
            return False
        self.items = list(items)
        self._changed()
        return True

    def append(self, record: T, *, mount: Optional[Mount] = None) -> bool:
        """Optimistic append of a record the gateway has already accepted"""
        if not self.is_current(mount):
            logger.debug(f"[RECONCILE] Not appending {self.name} record to stale mount")
            return False
        self.items.append(record)
        self._changed()
        return True

    def remove(self, record_id: str) -> Optional[T]:
        for i, item in enumerate(self.items):
            if getattr(item, "id", None) == record_id:
                removed = self.items.pop(i)
                self._changed()
                return removed
        return None

    def replace(self, record_id: str, record: T) -> bool:
        for i, item in enumerate(self.items):
            if getattr(item, "id", None) == record_id:
                self.items[i] = record
                self._changed()
                return True
        return False
