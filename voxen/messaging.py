"""
Channel and direct-message threads.

Both follow the same pattern: fetch the thread when it is opened, append the
gateway's returned record after a successful send, and re-fetch on the next open.
"""

import logging
from typing import Callable, Optional

from .config import Settings, get_settings
from .error_handler import ErrorBoundary, Notice
from .gateway import Gateway, all_of, any_of, eq, order_by
from .models import Channel, DirectMessage, Message, User, UserProfile, new_id
from .reconcile import EntityList, Mount
from .uploads import LocalFile, ProgressPlan, attachment_slot, classify_attachment, validate_upload

logger = logging.getLogger("voxen.messaging")


class ChannelMessages:
    """Message pane state for the selected text channel"""

    def __init__(self, gateway: Gateway, boundary: ErrorBoundary, user: User,
                 settings: Optional[Settings] = None):
        self.gateway = gateway
        self.boundary = boundary
        self.user = user
        self.settings = settings or get_settings()

        self.messages: EntityList[Message] = EntityList("messages")
        self.channel: Optional[Channel] = None
        self.draft = ""
        self.uploading = False
        self.progress = ProgressPlan()
        self._mount: Optional[Mount] = None

    async def open(self, channel: Optional[Channel]) -> bool:
        """Show a channel, replacing whatever was loaded before"""
        self.channel = channel
        self.messages.clear()
        if channel is None:
            self._mount = None
            return True

        mount = self._mount = self.messages.mount(channel.id)
        limit = self.settings.MESSAGE_FETCH_LIMIT

        ok, _ = await self.boundary.run(
            lambda: self.messages.refresh(
                lambda: self.gateway.messages.list(
                    where=eq("channelId", channel.id),
                    order_by=order_by("createdAt", "asc"),
                    limit=limit,
                ),
                mount=mount,
            ),
            context=f"Load messages for channel {channel.id}",
            notify=False,
        )
        return ok

    async def send(self, text: Optional[str] = None) -> bool:
        content = (self.draft if text is None else text).strip()
        channel, mount = self.channel, self._mount
        if not content or channel is None or self.uploading:
            return False

        record = Message(id=new_id("msg"), channel_id=channel.id, user_id=self.user.id, content=content)
        ok, created = await self.boundary.run(
            lambda: self.gateway.messages.create(record),
            context=f"Send message to {channel.id}",
            failure=Notice("Failed to send message"),
        )
        if not ok:
            return False

        self.messages.append(created, mount=mount)
        self.draft = ""
        return True

    async def send_attachment(self, file: LocalFile) -> bool:
        channel, mount = self.channel, self._mount
        if channel is None:
            return False

        async def upload_and_post() -> Message:
            validate_upload(attachment_slot(self.settings), file)
            self.uploading = True
            uploaded = await self.gateway.storage.upload(
                file, f"uploads/{channel.id}/{file.name}", upsert=True, on_progress=self.progress.step(0, 100)
            )
            try:
                return await self.gateway.messages.create(Message(
                    id=new_id("msg"),
                    channel_id=channel.id,
                    user_id=self.user.id,
                    content=f"Uploaded {file.name}",
                    file_url=uploaded.public_url,
                    file_type=classify_attachment(file.mime_type),
                    file_size=file.size,
                ))
            except Exception:
                logger.warning(f"[UPLOAD] {uploaded.public_url} is orphaned: message create failed")
                raise

        try:
            ok, created = await self.boundary.run(
                upload_and_post, context=f"Upload {file.name} to {channel.id}", failure=Notice("Upload failed")
            )
        finally:
            self.uploading = False
            self.progress.reset()

        if not ok:
            return False
        self.messages.append(created, mount=mount)
        self.boundary.success(f"File uploaded: {file.name} has been uploaded successfully")
        return True


class DirectMessages:
    """One-to-one thread between the current user and a friend"""

    def __init__(self, gateway: Gateway, boundary: ErrorBoundary, user: User,
                 profile: Optional[Callable[[], Optional[UserProfile]]] = None,
                 settings: Optional[Settings] = None):
        self.gateway = gateway
        self.boundary = boundary
        self.user = user
        self.settings = settings or get_settings()
        self._profile = profile or (lambda: None)

        self.messages: EntityList[DirectMessage] = EntityList("direct_messages")
        self.friend_id: Optional[str] = None
        self.friend_name = ""
        self.draft = ""
        self.loading = False
        self._mount: Optional[Mount] = None

    @property
    def sender_name(self) -> str:
        profile = self._profile()
        if profile and profile.display_name:
            return profile.display_name
        return self.user.display_name or self.user.email or "User"

    @property
    def sender_avatar(self) -> Optional[str]:
        profile = self._profile()
        return (profile.avatar_url if profile else None) or self.user.avatar

    def _decorate(self, message: DirectMessage) -> DirectMessage:
        return message.model_copy(update={"sender_name": self.sender_name, "sender_avatar": self.sender_avatar})

    async def open(self, friend_id: str, friend_name: str) -> bool:
        me = self.user.id
        self.friend_id = friend_id
        self.friend_name = friend_name or "Unknown User"
        self.loading = True
        self.messages.clear()
        mount = self._mount = self.messages.mount(friend_id)

        ok, _ = await self.boundary.run(
            lambda: self.messages.refresh(
                lambda: self.gateway.direct_messages.list(
                    where=any_of(
                        all_of(eq("sender_id", me), eq("recipient_id", friend_id)),
                        all_of(eq("sender_id", friend_id), eq("recipient_id", me)),
                    ),
                    order_by=order_by("created_at", "asc"),
                ),
                mount=mount,
            ),
            context=f"Load direct messages with {friend_id}",
            notify=False,
        )
        if self.messages.is_current(mount):
            self.loading = False
        return ok

    async def send(self, text: Optional[str] = None) -> bool:
        content = (self.draft if text is None else text).strip()
        friend_id, mount = self.friend_id, self._mount
        if not content or friend_id is None:
            return False

        record = DirectMessage(id=new_id("dm"), sender_id=self.user.id, recipient_id=friend_id, content=content)
        ok, created = await self.boundary.run(
            lambda: self.gateway.direct_messages.create(record),
            context=f"Send direct message to {friend_id}",
            failure=Notice("Failed to send message"),
        )
        if not ok:
            return False

        self.messages.append(self._decorate(created), mount=mount)
        self.draft = ""
        return True

    async def share_file(self, file: LocalFile) -> bool:
        friend_id, mount = self.friend_id, self._mount
        if friend_id is None:
            return False

        async def upload_and_post() -> DirectMessage:
            validate_upload(attachment_slot(self.settings), file)
            uploaded = await self.gateway.storage.upload(file, f"dm-files/{file.name}", upsert=True)
            try:
                return await self.gateway.direct_messages.create(DirectMessage(
                    id=new_id("dm"),
                    sender_id=self.user.id,
                    recipient_id=friend_id,
                    content=f"Shared a file: {file.name}",
                    file_url=uploaded.public_url,
                    file_name=file.name,
                    file_size=file.size,
                ))
            except Exception:
                logger.warning(f"[UPLOAD] {uploaded.public_url} is orphaned: direct message create failed")
                raise

        ok, created = await self.boundary.run(
            upload_and_post, context=f"Share {file.name} with {friend_id}", failure=Notice("Upload failed")
        )
        if not ok:
            return False
        self.messages.append(self._decorate(created), mount=mount)
        return True

    def show_avatar(self, index: int) -> bool:
        """A message starts a new visual group when its sender differs from the previous one"""
        if index <= 0:
            return True
        return self.messages[index - 1].sender_id != self.messages[index].sender_id

    def is_mine(self, message: DirectMessage) -> bool:
        return message.sender_id == self.user.id
