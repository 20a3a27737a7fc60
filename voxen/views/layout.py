"""
Signed-in shell: server column, context sidebar, main pane and member list.

The layout turns clicks into selection transitions and kicks off the matching
fetches. Every fetch is a fresh mount, so leaving a screen simply makes the
late results stale.
"""

import logging
from typing import Callable, Optional

import flet as ft

from ..friends import FriendsController
from ..messaging import ChannelMessages, DirectMessages
from ..models import Channel, ChannelType, Server
from ..profile import ProfileController
from ..selection import SelectionMode, SelectionState, VoiceState
from ..servers import ServerDirectory
from ..theme import FONT_SIZES, ThemeContext
from .channel_sidebar import ChannelSidebar
from .chat_area import ChatArea
from .dialogs import CreateServerDialog, FormDialog, ServerSettingsDialog, ThemeCustomizerDialog, UserProfileDialog
from .dm_chat_area import DMChatArea
from .dm_sidebar import DMSidebar
from .member_list import MemberList
from .server_sidebar import ServerSidebar
from .user_panel import UserPanel
from .voice_controls import VoiceControls

logger = logging.getLogger("voxen.views.layout")


class VoxenLayout(ft.Row):
    def __init__(self, page: ft.Page, *, servers: ServerDirectory, chat: ChannelMessages, dms: DirectMessages,
                 friends: FriendsController, profile: ProfileController, theme: ThemeContext,
                 selection: Optional[SelectionState] = None, voice: Optional[VoiceState] = None,
                 on_logout: Callable[[], None] = lambda: None):
        super().__init__(spacing=0, expand=True, vertical_alignment=ft.CrossAxisAlignment.STRETCH)
        self.app_page = page
        self.servers = servers
        self.chat = chat
        self.dms = dms
        self.friends = friends
        self.profile = profile
        self.theme = theme
        self.selection = selection or SelectionState()
        self.voice = voice or VoiceState()
        self.on_logout = on_logout

        self.user_panel = UserPanel(page, servers.user, theme,
                                    on_profile=self.open_profile_dialog,
                                    on_theme=self.open_theme_dialog,
                                    on_logout=self.on_logout)
        self.server_sidebar = ServerSidebar(page, servers, theme,
                                            on_select_server=self.select_server,
                                            on_select_dms=self.select_dms,
                                            on_create_server=self.open_create_server_dialog)
        self.channel_sidebar = ChannelSidebar(page, servers, self.selection, theme,
                                              on_select_channel=self.select_channel,
                                              on_open_settings=self.open_server_settings,
                                              footer=self.user_panel)
        self.dm_sidebar = DMSidebar(page, friends, self.selection, theme,
                                    on_open_dm=self.select_dm, footer=self.user_panel)
        self.chat_area = ChatArea(page, chat, theme)
        self.dm_chat_area = DMChatArea(page, dms, theme)
        self.member_list = MemberList(page, servers, theme)

        self._subscriptions = [
            self.selection.subscribe(lambda _: self.refresh()),
            servers.servers.subscribe(lambda _: self.refresh()),
            servers.channels.subscribe(lambda _: self.refresh()),
            servers.members.subscribe(lambda _: self.refresh()),
            theme.subscribe(lambda _: self.refresh()),
        ]
        self.render()

    def dispose(self):
        for unsubscribe in self._subscriptions:
            unsubscribe()
        self._subscriptions = []
        for picker in (self.chat_area.file_picker, self.dm_chat_area.file_picker):
            if picker in self.app_page.overlay:
                self.app_page.overlay.remove(picker)
        self.selection.clear()

    # Selection intents

    def select_server(self, server: Server):
        self.selection.select_server(server)
        self.app_page.run_task(self.load_server, server)

    async def load_server(self, server: Server):
        await self.servers.load_channels(server.id)
        if self.selection.server_id != server.id:
            return
        channel = self.selection.channels_loaded(list(self.servers.channels))
        if channel is not None and self.selection.is_text_channel:
            await self.chat.open(channel)
        await self.servers.load_members(server.id)

    def select_channel(self, channel: Channel):
        if self.selection.select_channel(channel) and channel.type == ChannelType.TEXT:
            self.app_page.run_task(self.chat.open, channel)

    def select_dms(self):
        self.selection.select_dms()
        self.app_page.run_task(self.friends.load)

    def select_dm(self, friend_id: str, friend_name: str):
        if self.selection.mode != SelectionMode.DM:
            self.selection.select_dms()
        if self.selection.select_dm(friend_id, friend_name):
            self.app_page.run_task(self.dms.open, friend_id, friend_name)

    # Dialogs

    def _show_dialog(self, name: str, build: Callable[[], FormDialog]) -> bool:
        """Open one dialog per name; a second click while it is up does nothing"""
        if name in self.selection.dialogs:
            return False
        dialog = build()
        dialog.on_closed = lambda: self.selection.close_dialog(name)
        self.selection.open_dialog(name)
        dialog.show()
        return True

    def open_create_server_dialog(self):
        self._show_dialog("create_server",
                          lambda: CreateServerDialog(self.app_page, self.servers, on_created=self.select_server))

    def open_server_settings(self, server: Server):
        def saved(updated: Server):
            self.selection.select_server(updated)

        self._show_dialog("server_settings",
                          lambda: ServerSettingsDialog(self.app_page, self.servers, server, on_saved=saved))

    def open_profile_dialog(self):
        self._show_dialog("profile", lambda: UserProfileDialog(self.app_page, self.profile, on_saved=self.refresh))

    def open_theme_dialog(self):
        self._show_dialog("theme", lambda: ThemeCustomizerDialog(self.app_page, self.theme, self.profile))

    # Rendering

    def _placeholder(self, text: str) -> ft.Control:
        colors = self.theme.colors
        return ft.Container(
            content=ft.Text(text, size=FONT_SIZES["lg"], color=colors["text_secondary"]),
            alignment=ft.alignment.center,
            bgcolor=colors["bg_tertiary"],
            expand=True,
        )

    def _voice_pane(self, channel: Channel) -> ft.Control:
        return ft.Column(
            [self._placeholder(f"Connected to {channel.name}"),
             VoiceControls(self.app_page, self.voice, self.theme, channel.name)],
            spacing=0,
            expand=True,
        )

    def render(self):
        selection = self.selection
        self.user_panel.render(self.profile.profile)
        self.server_sidebar.render(selection.server_id, selection.mode == SelectionMode.DM)

        if selection.mode == SelectionMode.SERVER:
            self.channel_sidebar.render()
            self.member_list.render()
            if selection.channel is None:
                main = self._placeholder("Select a channel")
            elif selection.channel.type == ChannelType.VOICE:
                main = self._voice_pane(selection.channel)
            else:
                self.chat_area.render()
                main = self.chat_area
            self.controls = [self.server_sidebar, self.channel_sidebar, main, self.member_list]
        elif selection.mode == SelectionMode.DM:
            self.dm_sidebar.render()
            if selection.dm_friend_id is None:
                main = self._placeholder("Select a friend to start chatting")
            else:
                self.dm_chat_area.render()
                main = self.dm_chat_area
            self.controls = [self.server_sidebar, self.dm_sidebar, main]
        else:
            self.controls = [self.server_sidebar, self._placeholder("Welcome to Voxen")]

    def refresh(self):
        self.render()
        self.app_page.update()
