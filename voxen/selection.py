"""
Which server, channel or DM thread is on screen.

Three modes: NONE, SERVER and DM. Invalid transitions are ignored and
return False rather than raising, since they come straight from clicks.
"""

import logging
from enum import Enum
from typing import Callable, List, Optional, Sequence, Set

from .models import Channel, ChannelType, Server

logger = logging.getLogger("voxen.selection")


class SelectionMode(str, Enum):
    NONE = "none"
    SERVER = "server"
    DM = "dm"


class SelectionState:
    def __init__(self):
        self.mode = SelectionMode.NONE
        self.server: Optional[Server] = None
        self.channel: Optional[Channel] = None
        self.dm_friend_id: Optional[str] = None
        self.dm_friend_name: Optional[str] = None

        # UI-local flags
        self.text_channels_open = True
        self.voice_channels_open = True
        self.dialogs: Set[str] = set()

        self._listeners: List[Callable[["SelectionState"], None]] = []

    def subscribe(self, callback: Callable[["SelectionState"], None]) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _changed(self):
        logger.debug(f"[SELECTION] mode={self.mode.value} server={self.server_id} channel={self.channel_id} "
                     f"dm={self.dm_friend_id}")
        for listener in list(self._listeners):
            listener(self)

    @property
    def server_id(self) -> Optional[str]:
        return self.server.id if self.server else None

    @property
    def channel_id(self) -> Optional[str]:
        return self.channel.id if self.channel else None

    def select_server(self, server: Server):
        self.mode = SelectionMode.SERVER
        self.dm_friend_id = None
        self.dm_friend_name = None
        if self.channel is not None and self.channel.server_id != server.id:
            self.channel = None
        self.server = server
        self._changed()

    def channels_loaded(self, channels: Sequence[Channel]) -> Optional[Channel]:
        """Pick the first channel when nothing valid is selected yet"""
        if self.mode != SelectionMode.SERVER or self.server is None:
            return None
        own = [c for c in channels if c.server_id == self.server.id]
        if self.channel is not None and any(c.id == self.channel.id for c in own):
            return self.channel
        if not own:
            return None
        self.channel = own[0]
        self._changed()
        return self.channel

    def select_channel(self, channel: Channel) -> bool:
        if self.mode != SelectionMode.SERVER or self.server is None or channel.server_id != self.server.id:
            logger.debug(f"[SELECTION] Ignoring channel {channel.id} outside the selected server")
            return False
        self.channel = channel
        self._changed()
        return True

    def select_dms(self):
        self.mode = SelectionMode.DM
        self.server = None
        self.channel = None
        self.dm_friend_id = None
        self.dm_friend_name = None
        self._changed()

    def select_dm(self, friend_id: str, friend_name: str) -> bool:
        if self.mode != SelectionMode.DM:
            return False
        self.dm_friend_id = friend_id
        self.dm_friend_name = friend_name
        self._changed()
        return True

    def clear(self):
        self.mode = SelectionMode.NONE
        self.server = None
        self.channel = None
        self.dm_friend_id = None
        self.dm_friend_name = None
        self.dialogs.clear()
        self._changed()

    @property
    def is_text_channel(self) -> bool:
        return self.channel is not None and self.channel.type == ChannelType.TEXT

    def toggle_section(self, kind: ChannelType):
        if kind == ChannelType.TEXT:
            self.text_channels_open = not self.text_channels_open
        else:
            self.voice_channels_open = not self.voice_channels_open
        self._changed()

    def open_dialog(self, name: str):
        self.dialogs.add(name)

    def close_dialog(self, name: str):
        self.dialogs.discard(name)


class VoiceState:
    """Local voice controls; nothing is transmitted"""

    def __init__(self):
        self.muted = False
        self.deafened = False
        self.volume = 100
        self._muted_before_deafen = False

    def toggle_mute(self):
        if self.deafened:
            # Unmuting while deafened also undeafens
            self.deafened = False
            self.muted = False
            return
        self.muted = not self.muted

    def toggle_deafen(self):
        if self.deafened:
            self.deafened = False
            self.muted = self._muted_before_deafen
        else:
            self._muted_before_deafen = self.muted
            self.deafened = True
            self.muted = True

    def set_volume(self, value: float):
        self.volume = int(max(0, min(100, round(value))))
