"""
Gateway contract tests: predicates, ordering, typed collections and the
in-memory store that backs the rest of the suite.
"""

import pytest

from voxen.gateway import GatewayError, all_of, any_of, eq, is_in, matches, order_by, sort_records
from voxen.models import Channel, ChannelType, Friend, FriendStatus, Server, ThemeColors, User


class TestPredicates:
    """where-filters evaluated against wire records"""

    record = {"id": "m1", "channelId": "c1", "userId": "u1", "status": "pending"}

    def test_equality(self):
        assert matches(self.record, eq("channelId", "c1"))
        assert not matches(self.record, eq("channelId", "c2"))

    def test_empty_filter_matches_everything(self):
        assert matches(self.record, None)
        assert matches(self.record, {})

    def test_multiple_keys_are_anded(self):
        assert matches(self.record, {"channelId": "c1", "userId": "u1"})
        assert not matches(self.record, {"channelId": "c1", "userId": "u2"})

    def test_and_or_nesting(self):
        where = any_of(
            all_of(eq("userId", "u1"), eq("channelId", "c9")),
            all_of(eq("userId", "u1"), eq("channelId", "c1")),
        )
        assert matches(self.record, where)
        assert not matches(self.record, all_of(eq("userId", "u1"), eq("channelId", "c9")))

    def test_in(self):
        assert matches(self.record, is_in("userId", ["u0", "u1"]))
        assert not matches(self.record, is_in("userId", []))

    def test_enum_values_compare_by_value(self):
        assert matches(self.record, eq("status", FriendStatus.PENDING))

    def test_order_by_rejects_bad_direction(self):
        with pytest.raises(ValueError):
            order_by("createdAt", "sideways")


class TestSorting:
    def test_ascending_and_descending(self):
        rows = [{"position": 2}, {"position": 0}, {"position": 1}]
        assert [r["position"] for r in sort_records(rows, order_by("position"))] == [0, 1, 2]
        assert [r["position"] for r in sort_records(rows, order_by("position", "desc"))] == [2, 1, 0]

    def test_missing_values_sort_first(self):
        rows = [{"position": 1}, {}, {"position": 0}]
        assert sort_records(rows, order_by("position"))[0] == {}

    def test_no_order_keeps_input(self):
        rows = [{"id": "b"}, {"id": "a"}]
        assert sort_records(rows, None) == rows


class TestMemoryStore:
    @pytest.mark.asyncio
    async def test_list_filters_orders_and_limits(self, store):
        store.seed("channels",
                   {"id": "c3", "serverId": "s1", "name": "c", "position": 2},
                   {"id": "c1", "serverId": "s1", "name": "a", "position": 0},
                   {"id": "c2", "serverId": "s1", "name": "b", "position": 1},
                   {"id": "x1", "serverId": "s2", "name": "x", "position": 0})

        rows = await store.list("channels", where=eq("serverId", "s1"), order_by=order_by("position"), limit=2)

        assert [r["id"] for r in rows] == ["c1", "c2"]

    @pytest.mark.asyncio
    async def test_create_stamps_id_and_timestamp(self, store):
        created = await store.create("messages", {"channelId": "c1", "userId": "u1", "content": "hi"})
        dm = await store.create("direct_messages", {"sender_id": "a", "recipient_id": "b", "content": "yo"})

        assert created["id"]
        assert "createdAt" in created
        assert "created_at" in dm

    @pytest.mark.asyncio
    async def test_timestamps_strictly_increase(self, store):
        first = await store.create("messages", {"content": "1"})
        second = await store.create("messages", {"content": "2"})
        assert first["createdAt"] < second["createdAt"]

    @pytest.mark.asyncio
    async def test_update_and_delete_unknown_ids_fail(self, store):
        with pytest.raises(GatewayError) as exc:
            await store.update("friends", "missing", {"status": "accepted"})
        assert exc.value.status_code == 404
        with pytest.raises(GatewayError):
            await store.delete("friends", "missing")

    @pytest.mark.asyncio
    async def test_fail_next_counts_down(self, store):
        store.fail_next(1, "boom")
        with pytest.raises(GatewayError, match="boom"):
            await store.list("servers")
        assert await store.list("servers") == []

    @pytest.mark.asyncio
    async def test_returned_rows_are_copies(self, store):
        store.seed("servers", {"id": "s1", "name": "One", "ownerId": "u1"})
        rows = await store.list("servers")
        rows[0]["name"] = "Changed"
        assert (await store.list("servers"))[0]["name"] == "One"


class TestCollections:
    """Typed collections translate between models and wire dicts"""

    @pytest.mark.asyncio
    async def test_create_writes_camel_case(self, gateway, store):
        await gateway.channels.create(Channel(id="c1", server_id="s1", name="general", type=ChannelType.TEXT))

        raw = store.data["channels"]["c1"]
        assert raw["serverId"] == "s1"
        assert raw["type"] == "text"
        assert "server_id" not in raw

    @pytest.mark.asyncio
    async def test_friends_stay_snake_case(self, gateway, store):
        await gateway.friends.create(Friend(id="f1", user_id="a", friend_user_id="b", friend_name="Bee"))

        raw = store.data["friends"]["f1"]
        assert raw["friend_user_id"] == "b"
        assert raw["status"] == "pending"
        assert "friend_name" not in raw

    @pytest.mark.asyncio
    async def test_theme_colors_serialized_as_json_string(self, gateway, store):
        theme = ThemeColors(primary="#0ea5e9", accent="#06B6D4", background="#0C1426")
        await gateway.servers.create(Server(id="s1", name="Ocean", owner_id="u1", theme_colors=theme))

        raw = store.data["servers"]["s1"]
        assert isinstance(raw["themeColors"], str)
        server = (await gateway.servers.list())[0]
        assert server.theme_colors.primary == "#0EA5E9"

    @pytest.mark.asyncio
    async def test_update_maps_field_names_to_aliases(self, gateway, store):
        store.seed("servers", {"id": "s1", "name": "Old", "ownerId": "u1"})

        updated = await gateway.servers.update("s1", {"name": "New", "icon_url": "memory://icon.png"})

        assert store.data["servers"]["s1"]["iconUrl"] == "memory://icon.png"
        assert updated.icon_url == "memory://icon.png"

    @pytest.mark.asyncio
    async def test_invalid_record_becomes_gateway_error(self, gateway, store):
        store.seed("servers", {"id": "s1", "ownerId": "u1"})
        with pytest.raises(GatewayError, match="Invalid servers record"):
            await gateway.servers.list()


class TestAuthProvider:
    def test_subscriber_receives_current_state_immediately(self, gateway):
        seen = []
        gateway.auth.on_auth_state_changed(seen.append)
        assert len(seen) == 1
        assert seen[0].is_loading

    @pytest.mark.asyncio
    async def test_login_and_unsubscribe(self, gateway, user):
        seen = []
        unsubscribe = gateway.auth.on_auth_state_changed(seen.append)

        logged_in = await gateway.auth.login("ALICE@example.com", "secret")
        unsubscribe()
        await gateway.auth.logout()

        assert logged_in.id == user.id
        assert seen[-1].user.id == user.id
        assert not seen[-1].is_loading

    @pytest.mark.asyncio
    async def test_bad_password_is_401(self, gateway):
        with pytest.raises(GatewayError) as exc:
            await gateway.auth.login("alice@example.com", "wrong")
        assert exc.value.status_code == 401

    def test_user_handle(self):
        assert User(id="u", email="carol@example.com").handle == "carol"
        assert User(id="u").handle == "User"
