from typing import Callable, Optional

import flet as ft

from ..models import Server
from ..servers import ServerDirectory
from ..theme import FONT_SIZES, SPACING, ThemeContext


class ServerSidebar(ft.Container):
    """Leftmost column: DMs button, one icon per server, create-server button"""

    def __init__(self, page: ft.Page, servers: ServerDirectory, theme: ThemeContext,
                 on_select_server: Callable[[Server], None], on_select_dms: Callable[[], None],
                 on_create_server: Callable[[], None]):
        super().__init__()
        self.page = page
        self.servers = servers
        self.theme = theme
        self.on_select_server = on_select_server
        self.on_select_dms = on_select_dms
        self.on_create_server = on_create_server
        self.width = 72
        self.padding = ft.padding.symmetric(vertical=SPACING["lg"])
        self.render(None, False)

    def _server_icon(self, server: Server, selected: bool) -> ft.Control:
        colors = self.theme.colors
        if server.icon_url:
            inner = ft.Image(src=server.icon_url, width=48, height=48, fit=ft.ImageFit.COVER)
        else:
            inner = ft.Text(server.name[:2].upper(), size=FONT_SIZES["lg"], weight=ft.FontWeight.BOLD,
                            color=ft.Colors.WHITE)
        return ft.Container(
            content=inner,
            width=48,
            height=48,
            alignment=ft.alignment.center,
            border_radius=16 if selected else 24,
            bgcolor=colors["accent"] if selected else colors["bg_tertiary"],
            clip_behavior=ft.ClipBehavior.ANTI_ALIAS,
            tooltip=server.name,
            on_click=lambda e, s=server: self.on_select_server(s),
        )

    def render(self, selected_server_id: Optional[str], dms_selected: bool):
        colors = self.theme.colors
        self.bgcolor = colors["bg_primary"]
        items = [
            ft.Container(
                content=ft.Icon(ft.Icons.CHAT_BUBBLE, color=ft.Colors.WHITE),
                width=48,
                height=48,
                alignment=ft.alignment.center,
                border_radius=16 if dms_selected else 24,
                bgcolor=colors["accent"] if dms_selected else colors["bg_tertiary"],
                tooltip="Direct Messages",
                on_click=lambda e: self.on_select_dms(),
            ),
            ft.Divider(height=SPACING["lg"], color=colors["divider"]),
        ]
        items.extend(self._server_icon(s, s.id == selected_server_id) for s in self.servers.servers)
        items.append(ft.Container(
            content=ft.Icon(ft.Icons.ADD, color=colors["success"]),
            width=48,
            height=48,
            alignment=ft.alignment.center,
            border_radius=24,
            bgcolor=colors["bg_tertiary"],
            tooltip="Add a Server",
            on_click=lambda e: self.on_create_server(),
        ))
        self.content = ft.Column(
            items,
            spacing=SPACING["md"],
            horizontal_alignment=ft.CrossAxisAlignment.CENTER,
            scroll=ft.ScrollMode.AUTO,
        )
