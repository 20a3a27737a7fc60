from typing import Callable, Optional

import flet as ft

from ..models import PresenceStatus, User, UserProfile
from ..theme import FONT_SIZES, SPACING, ThemeContext, status_style


def avatar(name: str, url: Optional[str] = None, size: int = 32, color: Optional[str] = None) -> ft.CircleAvatar:
    initial = (name or "?")[:1].upper()
    return ft.CircleAvatar(
        foreground_image_src=url,
        content=ft.Text(initial, size=size * 0.45, weight=ft.FontWeight.BOLD),
        bgcolor=color,
        color=ft.Colors.WHITE,
        radius=size / 2,
    )


def status_dot(status, size: int = 10) -> ft.Container:
    style = status_style(status)
    return ft.Container(width=size, height=size, border_radius=size / 2, bgcolor=style.color, tooltip=style.label)


class UserPanel(ft.Container):
    def __init__(self, page: ft.Page, user: User, theme: ThemeContext,
                 on_profile: Callable[[], None], on_theme: Callable[[], None], on_logout: Callable[[], None]):
        super().__init__()
        self.page = page
        self.user = user
        self.theme = theme
        self.on_profile = on_profile
        self.on_theme = on_theme
        self.on_logout = on_logout
        self.padding = SPACING["md"]
        self.render(None)

    def render(self, profile: Optional[UserProfile]):
        colors = self.theme.colors
        name = (profile.display_name if profile else None) or self.user.display_name or self.user.handle
        status = profile.status if profile else PresenceStatus.ONLINE

        self.bgcolor = colors["bg_tertiary"]
        self.content = ft.Row(
            [
                ft.Stack([
                    avatar(name, profile.avatar_url if profile else self.user.avatar, 32, colors["accent"]),
                    ft.Container(content=status_dot(status), right=0, bottom=0),
                ], width=34, height=34),
                ft.Column(
                    [
                        ft.Text(name, size=FONT_SIZES["sm"], weight=ft.FontWeight.W_600,
                                color=colors["text_primary"], max_lines=1, overflow=ft.TextOverflow.ELLIPSIS),
                        ft.Text(status_style(status).label, size=FONT_SIZES["xs"], color=colors["text_secondary"]),
                    ],
                    spacing=0,
                    expand=True,
                ),
                ft.IconButton(ft.Icons.PALETTE_OUTLINED, icon_size=18, tooltip="Theme",
                              on_click=lambda e: self.on_theme()),
                ft.IconButton(ft.Icons.SETTINGS, icon_size=18, tooltip="Profile",
                              on_click=lambda e: self.on_profile()),
                ft.IconButton(ft.Icons.LOGOUT, icon_size=18, tooltip="Log out",
                              on_click=lambda e: self.on_logout()),
            ],
            spacing=SPACING["sm"],
        )
