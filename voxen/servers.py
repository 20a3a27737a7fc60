"""
Servers, their channels and members.

Creating a server always creates the owner membership and two default
channels: one text ("general") and one voice ("General Voice").
"""

import logging
import time
from typing import Dict, List, Optional, Tuple

from .config import Settings, get_settings
from .error_handler import ErrorBoundary, Notice, ValidationError
from .gateway import Gateway, eq, is_in, order_by
from .models import Channel, ChannelType, MemberRole, Server, ServerMember, ThemeColors, User, new_id
from .reconcile import EntityList
from .uploads import LocalFile, ProgressPlan, background_slot, server_icon_slot, validate_upload

logger = logging.getLogger("voxen.servers")

ROLE_ORDER: Tuple[MemberRole, ...] = (MemberRole.OWNER, MemberRole.ADMIN, MemberRole.MODERATOR, MemberRole.MEMBER)

DEFAULT_SERVER_NAME = "My First Server"
DEFAULT_SERVER_DESCRIPTION = "Welcome to Voxen!"


def channel_slug(name: str, kind: ChannelType) -> str:
    name = " ".join(name.split())
    if kind == ChannelType.TEXT:
        return name.lower().replace(" ", "-")
    return name


class ServerDirectory:
    def __init__(self, gateway: Gateway, boundary: ErrorBoundary, user: User,
                 settings: Optional[Settings] = None):
        self.gateway = gateway
        self.boundary = boundary
        self.user = user
        self.settings = settings or get_settings()

        self.servers: EntityList[Server] = EntityList("servers")
        self.channels: EntityList[Channel] = EntityList("channels")
        self.members: EntityList[ServerMember] = EntityList("members")
        self.progress = ProgressPlan()
        self.busy = False

    # Servers

    async def _list_my_servers(self) -> List[Server]:
        memberships = await self.gateway.server_members.list(where=eq("userId", self.user.id))
        if not memberships:
            return []
        server_ids = [m.server_id for m in memberships]
        return await self.gateway.servers.list(where=is_in("id", server_ids))

    async def load_servers(self) -> bool:
        """Load the user's servers, bootstrapping a default one on first login"""
        ok, servers = await self.boundary.run(self._list_my_servers, context="Load servers", notify=False)
        if not ok:
            return False
        if not servers:
            logger.info(f"[SERVERS] No servers for {self.user.id}, creating default server")
            created = await self.bootstrap_default_server()
            return created is not None
        self.servers.reset(servers)
        return True

    async def _create_with_defaults(self, server: Server) -> Server:
        created = await self.gateway.servers.create(server)
        await self.gateway.server_members.create(ServerMember(
            id=new_id("member"), server_id=created.id, user_id=self.user.id, role=MemberRole.OWNER,
        ))
        await self.gateway.channels.create(Channel(
            id=new_id("channel"), server_id=created.id, name="general", type=ChannelType.TEXT, position=0,
        ))
        await self.gateway.channels.create(Channel(
            id=new_id("channel"), server_id=created.id, name="General Voice", type=ChannelType.VOICE, position=1,
        ))
        return created

    async def bootstrap_default_server(self) -> Optional[Server]:
        server = Server(
            id=new_id("server"),
            name=DEFAULT_SERVER_NAME,
            description=DEFAULT_SERVER_DESCRIPTION,
            owner_id=self.user.id,
            theme_colors=ThemeColors(),
        )
        ok, created = await self.boundary.run(
            lambda: self._create_with_defaults(server), context="Create default server", notify=False
        )
        if not ok:
            return None
        self.servers.reset([created])
        return created

    async def create_server(self, name: str, description: str = "", icon: Optional[LocalFile] = None) -> Optional[Server]:
        async def create() -> Server:
            if not name.strip():
                raise ValidationError("Server name required", "Please enter a name for your server")
            if icon is not None:
                validate_upload(server_icon_slot(self.settings), icon)

            icon_url = None
            if icon is not None:
                uploaded = await self.gateway.storage.upload(
                    icon, f"server-icons/{int(time.time() * 1000)}_{icon.name}",
                    upsert=True, on_progress=self.progress.step(25, 75),
                )
                icon_url = uploaded.public_url
            self.progress.mark(75)

            created = await self._create_with_defaults(Server(
                id=new_id("server"),
                name=name.strip(),
                description=description.strip() or None,
                icon_url=icon_url,
                owner_id=self.user.id,
                theme_colors=ThemeColors(),
            ))
            self.progress.mark(100)
            return created

        created = await self._run_busy(create, f"Create server {name!r}", "Failed to create server")
        if created is None:
            return None
        self.boundary.success(f"{created.name} has been created successfully")
        await self.load_servers()
        return created

    def is_owner(self, server: Server) -> bool:
        return server.owner_id == self.user.id

    async def update_settings(self, server: Server, name: str, description: str = "",
                              icon: Optional[LocalFile] = None,
                              background: Optional[LocalFile] = None) -> Optional[Server]:
        async def save() -> Server:
            if not self.is_owner(server):
                raise ValidationError("Permission denied", "Only the server owner can change settings")
            if not name.strip():
                raise ValidationError("Server name required", "Please enter a name for your server")
            if icon is not None:
                validate_upload(server_icon_slot(self.settings), icon)
            if background is not None:
                validate_upload(background_slot(self.settings), background)

            self.progress.mark(20)
            icon_url, background_url = server.icon_url, server.background_url
            if icon is not None:
                uploaded = await self.gateway.storage.upload(
                    icon, f"server-icons/{server.id}_{icon.name}", upsert=True, on_progress=self.progress.step(20, 50),
                )
                icon_url = uploaded.public_url
            if background is not None:
                uploaded = await self.gateway.storage.upload(
                    background, f"server-backgrounds/{server.id}_{background.name}",
                    upsert=True, on_progress=self.progress.step(50, 90),
                )
                background_url = uploaded.public_url
            self.progress.mark(90)

            patch = {
                "name": name.strip(),
                "description": description.strip() or None,
                "icon_url": icon_url,
                "background_url": background_url,
            }
            updated = await self.gateway.servers.update(server.id, patch)
            self.progress.mark(100)
            return updated or server.model_copy(update=patch)

        updated = await self._run_busy(save, f"Update server {server.id}", "Failed to save settings")
        if updated is None:
            return None
        self.servers.replace(server.id, updated)
        self.boundary.success("Server settings have been updated")
        await self.load_servers()
        return updated

    async def _run_busy(self, action, context: str, failure: str):
        self.busy = True
        self.progress.reset()
        try:
            ok, result = await self.boundary.run(action, context=context, failure=Notice(failure))
        finally:
            self.busy = False
            self.progress.reset()
        return result if ok else None

    # Channels

    async def load_channels(self, server_id: str) -> bool:
        mount = self.channels.mount(server_id)
        ok, _ = await self.boundary.run(
            lambda: self.channels.refresh(
                lambda: self.gateway.channels.list(where=eq("serverId", server_id), order_by=order_by("position", "asc")),
                mount=mount,
            ),
            context=f"Load channels for {server_id}",
            notify=False,
        )
        return ok

    def channels_of(self, kind: ChannelType) -> List[Channel]:
        return [c for c in self.channels if c.type == kind]

    async def create_channel(self, server: Server, name: str, kind: ChannelType = ChannelType.TEXT) -> Optional[Channel]:
        slug = channel_slug(name, kind)
        if not slug:
            self.boundary.handler.show_validation_error(
                ValidationError("Channel name required", "Please enter a name for your channel")
            )
            return None

        if self.channels.key != server.id:
            await self.load_channels(server.id)
        mount = self.channels.current_mount()

        record = Channel(
            id=new_id("channel"), server_id=server.id, name=slug, type=kind, position=len(self.channels),
        )
        ok, created = await self.boundary.run(
            lambda: self.gateway.channels.create(record),
            context=f"Create channel {slug} in {server.id}",
            failure=Notice("Failed to create channel"),
        )
        if not ok:
            return None
        if not self.channels.append(created, mount=mount):
            logger.info(f"[SERVERS] Channel {created.id} created after leaving {server.id}")
        return created

    # Members

    async def load_members(self, server_id: str) -> bool:
        mount = self.members.mount(server_id)
        ok, _ = await self.boundary.run(
            lambda: self.members.refresh(
                lambda: self.gateway.server_members.list(where=eq("serverId", server_id)), mount=mount,
            ),
            context=f"Load members for {server_id}",
            notify=False,
        )
        return ok

    def grouped_members(self) -> List[Tuple[MemberRole, List[ServerMember]]]:
        groups: Dict[MemberRole, List[ServerMember]] = {}
        for member in self.members:
            groups.setdefault(member.role or MemberRole.MEMBER, []).append(member)
        return [(role, groups[role]) for role in ROLE_ORDER if groups.get(role)]

