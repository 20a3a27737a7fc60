from typing import Callable, Optional

import flet as ft

from ..models import Channel, ChannelType, Server
from ..selection import SelectionState
from ..servers import ServerDirectory
from ..theme import FONT_SIZES, SPACING, ThemeContext


class ChannelSidebar(ft.Container):
    """Server header plus collapsible text and voice channel sections"""

    def __init__(self, page: ft.Page, servers: ServerDirectory, selection: SelectionState, theme: ThemeContext,
                 on_select_channel: Callable[[Channel], None], on_open_settings: Callable[[Server], None],
                 footer: Optional[ft.Control] = None):
        super().__init__()
        self.page = page
        self.servers = servers
        self.selection = selection
        self.theme = theme
        self.on_select_channel = on_select_channel
        self.on_open_settings = on_open_settings
        self.footer = footer
        self.width = 240
        self.render()

    def _channel_row(self, channel: Channel) -> ft.Control:
        colors = self.theme.colors
        selected = channel.id == self.selection.channel_id
        icon = ft.Icons.TAG if channel.type == ChannelType.TEXT else ft.Icons.VOLUME_UP
        return ft.Container(
            content=ft.Row([
                ft.Icon(icon, size=18, color=colors["text_secondary"]),
                ft.Text(channel.name, size=FONT_SIZES["base"],
                        color=colors["text_primary"] if selected else colors["text_secondary"]),
            ], spacing=SPACING["md"]),
            padding=ft.padding.symmetric(horizontal=SPACING["md"], vertical=SPACING["sm"]),
            border_radius=4,
            bgcolor=colors["bg_tertiary"] if selected else None,
            on_click=lambda e, c=channel: self.on_select_channel(c),
        )

    def _section(self, title: str, kind: ChannelType, expanded: bool) -> ft.Control:
        colors = self.theme.colors
        return ft.ExpansionTile(
            title=ft.Text(title, size=FONT_SIZES["xs"], weight=ft.FontWeight.BOLD, color=colors["text_secondary"]),
            initially_expanded=expanded,
            maintain_state=True,
            trailing=ft.IconButton(ft.Icons.ADD, icon_size=16, tooltip="Create Channel",
                                   on_click=lambda e, k=kind: self.prompt_create_channel(k)),
            on_change=lambda e, k=kind: self.selection.toggle_section(k),
            controls=[self._channel_row(c) for c in self.servers.channels_of(kind)],
            tile_padding=ft.padding.symmetric(horizontal=SPACING["sm"]),
        )

    def prompt_create_channel(self, kind: ChannelType):
        server = self.selection.server
        if server is None:
            return
        name_field = ft.TextField(label="Channel name", autofocus=True)

        async def create():
            created = await self.servers.create_channel(server, name_field.value or "", kind)
            if created is not None:
                self.page.close(dialog)
                self.render()
                self.page.update()

        dialog = ft.AlertDialog(
            modal=True,
            title=ft.Text("Create Text Channel" if kind == ChannelType.TEXT else "Create Voice Channel"),
            content=name_field,
            actions=[
                ft.TextButton("Cancel", on_click=lambda e: self.page.close(dialog)),
                ft.ElevatedButton("Create", on_click=lambda e: self.page.run_task(create)),
            ],
        )
        self.page.open(dialog)

    def render(self):
        colors = self.theme.colors
        server = self.selection.server
        self.bgcolor = colors["bg_secondary"]
        if server is None:
            self.content = ft.Column([], expand=True)
            return

        header = ft.Row([
            ft.Text(server.name, size=FONT_SIZES["lg"], weight=ft.FontWeight.BOLD, color=colors["text_primary"],
                    expand=True, max_lines=1, overflow=ft.TextOverflow.ELLIPSIS),
        ])
        if self.servers.is_owner(server):
            header.controls.append(ft.IconButton(ft.Icons.SETTINGS, icon_size=18, tooltip="Server Settings",
                                                 on_click=lambda e: self.on_open_settings(server)))

        body = ft.Column(
            [
                self._section("TEXT CHANNELS", ChannelType.TEXT, self.selection.text_channels_open),
                self._section("VOICE CHANNELS", ChannelType.VOICE, self.selection.voice_channels_open),
            ],
            expand=True,
            scroll=ft.ScrollMode.AUTO,
        )
        controls = [ft.Container(content=header, padding=SPACING["lg"]), ft.Divider(height=1), body]
        if self.footer is not None:
            controls.append(self.footer)
        self.content = ft.Column(controls, spacing=0, expand=True)
