"""EntityList: wholesale refresh, optimistic append and stale-mount handling"""

import asyncio
from dataclasses import dataclass

import pytest

from voxen.reconcile import EntityList


@dataclass
class Item:
    id: str
    text: str = ""


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_replaces_items(self):
        items = EntityList("items")
        items.append(Item("local"))

        async def load():
            return [Item("a"), Item("b")]

        assert await items.refresh(load)
        assert [i.id for i in items] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_loader_error_leaves_items(self):
        items = EntityList("items")
        items.reset([Item("a")])

        async def boom():
            raise RuntimeError("offline")

        with pytest.raises(RuntimeError):
            await items.refresh(boom)
        assert [i.id for i in items] == ["a"]

    @pytest.mark.asyncio
    async def test_stale_result_is_dropped(self):
        items = EntityList("messages")
        release = asyncio.Event()

        async def slow():
            await release.wait()
            return [Item("from-channel-a")]

        async def fast():
            return [Item("from-channel-b")]

        first = asyncio.ensure_future(items.refresh(slow, mount=items.mount("a")))
        await asyncio.sleep(0)
        assert await items.refresh(fast, mount=items.mount("b"))
        release.set()

        assert await first is False
        assert [i.id for i in items] == ["from-channel-b"]
        assert items.key == "b"


class TestMutations:
    def test_append_to_current_mount(self):
        items = EntityList("items")
        mount = items.mount("c1")
        assert items.append(Item("m1"), mount=mount)
        assert len(items) == 1

    def test_append_to_stale_mount_is_ignored(self):
        items = EntityList("items")
        old = items.mount("c1")
        items.mount("c2")
        assert not items.append(Item("m1"), mount=old)
        assert len(items) == 0

    def test_clear_invalidates_mounts(self):
        items = EntityList("items")
        mount = items.mount("c1")
        items.reset([Item("a")], mount=mount)
        items.clear()
        assert not items.is_current(mount)
        assert items.items == []

    def test_remove_and_replace(self):
        items = EntityList("items")
        items.reset([Item("a"), Item("b")])

        assert items.remove("a").id == "a"
        assert items.remove("zzz") is None
        assert items.replace("b", Item("b", "edited"))
        assert not items.replace("a", Item("a"))
        assert [(i.id, i.text) for i in items] == [("b", "edited")]

    def test_current_mount_goes_stale_on_remount(self):
        items = EntityList("channels")
        items.mount("srv_a")
        live = items.current_mount()
        assert live.key == "srv_a"
        assert items.is_current(live)

        items.mount("srv_b")

        assert not items.append(Item("late"), mount=live)
        assert len(items) == 0

    def test_subscribers_hear_changes_until_unsubscribed(self):
        items = EntityList("items")
        calls = []
        unsubscribe = items.subscribe(lambda lst: calls.append(len(lst)))

        items.append(Item("a"))
        items.append(Item("b"))
        unsubscribe()
        items.append(Item("c"))

        assert calls == [1, 2]
