"""Servers: first-login bootstrap, create, settings, channels and members"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from voxen.models import ChannelType, MemberRole
from voxen.servers import DEFAULT_SERVER_NAME, ServerDirectory, channel_slug

MB = 1024 * 1024


@pytest.fixture
def directory(gateway, boundary, user, settings):
    return ServerDirectory(gateway, boundary, user, settings)


def progress_run(values):
    """Drop the reset-to-zero notifications around one operation"""
    return [v for v in values if v != 0]


class TestBootstrap:
    @pytest.mark.asyncio
    async def test_zero_servers_creates_default_server(self, directory, store, user):
        assert await directory.load_servers()

        assert len(directory.servers) == 1
        server = directory.servers[0]
        assert server.name == DEFAULT_SERVER_NAME
        assert server.owner_id == user.id

        channels = sorted(store.data["channels"].values(), key=lambda c: c["position"])
        assert [(c["name"], c["type"], c["position"]) for c in channels] == [
            ("general", "text", 0),
            ("General Voice", "voice", 1),
        ]
        members = list(store.data["serverMembers"].values())
        assert len(members) == 1
        assert members[0]["role"] == "owner"
        assert members[0]["userId"] == user.id

    @pytest.mark.asyncio
    async def test_second_load_does_not_bootstrap_again(self, directory, store):
        await directory.load_servers()
        await directory.load_servers()

        assert len(store.data["servers"]) == 1
        assert len(directory.servers) == 1

    @pytest.mark.asyncio
    async def test_only_member_servers_are_listed(self, directory, store, user):
        store.seed("servers",
                   {"id": "s_mine", "name": "Mine", "ownerId": "someone"},
                   {"id": "s_other", "name": "Other", "ownerId": "someone"})
        store.seed("serverMembers", {"serverId": "s_mine", "userId": user.id, "role": "member"})

        await directory.load_servers()

        assert [s.id for s in directory.servers] == ["s_mine"]

    @pytest.mark.asyncio
    async def test_failed_lookup_does_not_bootstrap(self, directory, store):
        store.fail_next()
        assert not await directory.load_servers()
        assert "servers" not in store.data or not store.data["servers"]


class TestCreateServer:
    @pytest.mark.asyncio
    async def test_create_with_icon(self, directory, store, blobs, make_file, snacks):
        seen = []
        directory.progress.subscribe(seen.append)

        created = await directory.create_server("  Gamers  ", "we game", make_file("icon.png", size=MB))

        assert created.name == "Gamers"
        assert created.icon_url.startswith("memory://server-icons/")
        assert created.icon_url.endswith("_icon.png")
        assert len([c for c in store.data["channels"].values() if c["serverId"] == created.id]) == 2
        assert "Gamers has been created successfully" in snacks()
        assert [s.id for s in directory.servers] == [created.id]

        run = progress_run(seen)
        assert run == sorted(run)
        assert run[0] == 25
        assert 75 in run
        assert run[-1] == 100
        assert not directory.busy

    @pytest.mark.asyncio
    async def test_blank_name_is_rejected(self, directory, store, snacks):
        assert await directory.create_server("   ") is None
        assert store.total_calls() == 0
        assert any(s.startswith("Server name required") for s in snacks())

    @pytest.mark.asyncio
    async def test_oversized_icon_is_rejected_before_any_call(self, directory, store, blobs, make_file):
        assert await directory.create_server("Big", icon=make_file(size=10 * MB + 1)) is None
        assert blobs.calls == 0
        assert store.total_calls() == 0

    @pytest.mark.asyncio
    async def test_non_image_icon_is_rejected(self, directory, store, blobs, make_file):
        assert await directory.create_server("Docs", icon=make_file("a.pdf", mime_type="application/pdf")) is None
        assert blobs.calls == 0

    @pytest.mark.asyncio
    async def test_failure_shows_notice(self, directory, store, snacks):
        store.fail_next()
        assert await directory.create_server("Broken") is None
        assert "Failed to create server: Please try again" in snacks()
        assert not directory.busy


class TestServerSettings:
    @pytest.mark.asyncio
    async def test_owner_updates_with_uploads(self, directory, store, make_file, snacks):
        await directory.load_servers()
        server = directory.servers[0]
        seen = []
        directory.progress.subscribe(seen.append)

        updated = await directory.update_settings(
            server, "Renamed", "",
            icon=make_file("new.png"),
            background=make_file("bg.mp4", size=80 * MB, mime_type="video/mp4"),
        )

        assert updated.name == "Renamed"
        assert updated.description is None
        assert updated.icon_url == f"memory://server-icons/{server.id}_new.png"
        assert updated.background_url == f"memory://server-backgrounds/{server.id}_bg.mp4"
        assert store.data["servers"][server.id]["backgroundUrl"] == updated.background_url
        assert [s.name for s in directory.servers] == ["Renamed"]
        assert "Server settings have been updated" in snacks()

        run = progress_run(seen)
        assert run == sorted(run)
        assert run[0] == 20
        assert 50 in run and 90 in run
        assert run[-1] == 100

    @pytest.mark.asyncio
    async def test_list_shows_update_before_reload(self, directory, monkeypatch):
        await directory.load_servers()
        server = directory.servers[0]
        monkeypatch.setattr(directory, "load_servers", AsyncMock(return_value=False))

        await directory.update_settings(server, "Renamed")

        assert [s.name for s in directory.servers] == ["Renamed"]
        directory.load_servers.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_only_owner_can_update(self, gateway, boundary, other_user, directory, store, settings):
        await directory.load_servers()
        server = directory.servers[0]
        stranger = ServerDirectory(gateway, boundary, other_user, settings)
        before = store.total_calls()

        assert await stranger.update_settings(server, "Hijacked") is None

        assert store.total_calls() == before
        assert store.data["servers"][server.id]["name"] == DEFAULT_SERVER_NAME

    @pytest.mark.asyncio
    async def test_background_wrong_type(self, directory, blobs, make_file):
        await directory.load_servers()
        bad = make_file("notes.txt", mime_type="text/plain")
        assert await directory.update_settings(directory.servers[0], "Name", background=bad) is None
        assert blobs.calls == 0

    @pytest.mark.asyncio
    async def test_background_too_large(self, directory, blobs, make_file):
        await directory.load_servers()
        huge = make_file("bg.png", size=100 * MB + 1)
        assert await directory.update_settings(directory.servers[0], "Name", background=huge) is None
        assert blobs.calls == 0


class TestChannels:
    @pytest.mark.asyncio
    async def test_channels_ordered_by_position(self, directory, store):
        await directory.load_servers()
        server = directory.servers[0]

        await directory.load_channels(server.id)

        assert [c.name for c in directory.channels] == ["general", "General Voice"]
        assert [c.name for c in directory.channels_of(ChannelType.VOICE)] == ["General Voice"]

    @pytest.mark.asyncio
    async def test_create_channel_appends_at_next_position(self, directory, store):
        await directory.load_servers()
        server = directory.servers[0]

        created = await directory.create_channel(server, "  Off Topic ", ChannelType.TEXT)

        assert created.name == "off-topic"
        assert created.position == 2
        assert directory.channels[-1].id == created.id
        assert store.data["channels"][created.id]["serverId"] == server.id

    @pytest.mark.asyncio
    async def test_blank_channel_name(self, directory, store, snacks):
        await directory.load_servers()
        before = store.total_calls()
        assert await directory.create_channel(directory.servers[0], "   ") is None
        assert store.total_calls() == before
        assert any(s.startswith("Channel name required") for s in snacks())

    @pytest.mark.asyncio
    async def test_channel_created_after_switching_servers_stays_out(self, directory, store, monkeypatch):
        await directory.load_servers()
        server_a = directory.servers[0]
        await directory.load_channels(server_a.id)
        store.seed("channels", {"id": "b_general", "serverId": "srv_b", "name": "general", "type": "text"})

        started, release = asyncio.Event(), asyncio.Event()
        create = store.create

        async def held_create(collection, record):
            started.set()
            await release.wait()
            return await create(collection, record)

        monkeypatch.setattr(store, "create", held_create)
        pending = asyncio.ensure_future(directory.create_channel(server_a, "new room"))
        await started.wait()
        await directory.load_channels("srv_b")
        release.set()

        created = await pending

        assert created.server_id == server_a.id
        assert store.data["channels"][created.id]["name"] == "new-room"
        assert [c.id for c in directory.channels] == ["b_general"]

    def test_slugs(self):
        assert channel_slug("Game  Night", ChannelType.TEXT) == "game-night"
        assert channel_slug("Game  Night", ChannelType.VOICE) == "Game Night"


class TestMembers:
    @pytest.mark.asyncio
    async def test_grouped_by_role_order(self, directory, store):
        store.seed("serverMembers",
                   {"serverId": "s1", "userId": "u_member", "role": "member"},
                   {"serverId": "s1", "userId": "u_mod", "role": "moderator"},
                   {"serverId": "s1", "userId": "u_owner", "role": "owner"},
                   {"serverId": "s1", "userId": "u_norole", "role": None},
                   {"serverId": "s2", "userId": "u_else", "role": "admin"})

        await directory.load_members("s1")

        groups = directory.grouped_members()
        assert [role for role, _ in groups] == [MemberRole.OWNER, MemberRole.MODERATOR, MemberRole.MEMBER]
        assert sorted(m.user_id for m in groups[-1][1]) == ["u_member", "u_norole"]
