from typing import Callable

import flet as ft

from ..friends import FriendsController
from ..models import Friend
from ..selection import SelectionState
from ..theme import FONT_SIZES, SPACING, ThemeContext
from .user_panel import avatar


class DMSidebar(ft.Container):
    """Friends list with search, plus add-friend and pending-request tabs"""

    def __init__(self, page: ft.Page, friends: FriendsController, selection: SelectionState, theme: ThemeContext,
                 on_open_dm: Callable[[str, str], None], footer: ft.Control = None):
        super().__init__()
        self.page = page
        self.friends = friends
        self.selection = selection
        self.theme = theme
        self.on_open_dm = on_open_dm
        self.footer = footer
        self.width = 240
        self.query = ""

        self.search_field = ft.TextField(hint_text="Find a conversation", dense=True, on_change=self._on_search)
        self.email_field = ft.TextField(hint_text="Enter an email address", dense=True,
                                        on_change=self._on_email,
                                        on_submit=lambda e: self.page.run_task(self.send_request))
        self.friend_list = ft.Column(spacing=SPACING["xs"], scroll=ft.ScrollMode.AUTO, expand=True)
        self.pending_list = ft.Column(spacing=SPACING["xs"], scroll=ft.ScrollMode.AUTO, expand=True)

        self._unsubscribe = [
            friends.friends.subscribe(lambda _: self._refresh()),
            friends.pending.subscribe(lambda _: self._refresh()),
        ]
        self.render()

    def will_unmount(self):
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []

    def _on_search(self, e):
        self.query = e.control.value or ""
        self._refresh()

    def _on_email(self, e):
        self.friends.request_email = e.control.value or ""

    def _friend_row(self, friend: Friend) -> ft.Control:
        colors = self.theme.colors
        target = self.friends.display_target(friend)
        name = friend.friend_name or "Unknown User"
        selected = target == self.selection.dm_friend_id
        return ft.Container(
            content=ft.Row([
                avatar(name, friend.friend_avatar, 32, colors["accent"]),
                ft.Text(name, size=FONT_SIZES["base"], color=colors["text_primary"],
                        max_lines=1, overflow=ft.TextOverflow.ELLIPSIS, expand=True),
            ], spacing=SPACING["md"]),
            padding=SPACING["sm"],
            border_radius=4,
            bgcolor=colors["bg_tertiary"] if selected else None,
            on_click=lambda e, t=target, n=name: self.on_open_dm(t, n),
        )

    def _pending_row(self, request: Friend) -> ft.Control:
        colors = self.theme.colors
        name = request.friend_name or "Unknown User"
        return ft.Row([
            avatar(name, request.friend_avatar, 32, colors["accent"]),
            ft.Text(name, size=FONT_SIZES["sm"], color=colors["text_primary"], expand=True),
            ft.IconButton(ft.Icons.CHECK, icon_color=colors["success"], tooltip="Accept",
                          on_click=lambda e, r=request.id: self.page.run_task(self.friends.accept, r)),
            ft.IconButton(ft.Icons.CLOSE, icon_color=colors["error"], tooltip="Reject",
                          on_click=lambda e, r=request.id: self.page.run_task(self.friends.reject, r)),
        ], spacing=SPACING["xs"])

    async def send_request(self):
        self.friends.request_email = self.email_field.value or ""
        if await self.friends.send_request():
            self.email_field.value = ""
            self._refresh()

    def render(self):
        colors = self.theme.colors
        self.bgcolor = colors["bg_secondary"]
        self.friend_list.controls = [self._friend_row(f) for f in self.friends.filtered(self.query)]
        if not self.friend_list.controls:
            self.friend_list.controls = [ft.Text("No friends yet", size=FONT_SIZES["sm"],
                                                 color=colors["text_tertiary"])]
        self.pending_list.controls = [self._pending_row(r) for r in self.friends.pending]
        if not self.pending_list.controls:
            self.pending_list.controls = [ft.Text("No pending requests", size=FONT_SIZES["sm"],
                                                  color=colors["text_tertiary"])]

        pending_count = len(self.friends.pending)
        tabs = ft.Tabs(
            expand=True,
            tabs=[
                ft.Tab(text="Friends", content=ft.Column([self.search_field, self.friend_list], expand=True)),
                ft.Tab(text="Add", content=ft.Column([
                    ft.Text("ADD FRIEND", size=FONT_SIZES["xs"], weight=ft.FontWeight.BOLD,
                            color=colors["text_secondary"]),
                    self.email_field,
                    ft.ElevatedButton("Send Friend Request", disabled=self.friends.sending,
                                      on_click=lambda e: self.page.run_task(self.send_request)),
                ], spacing=SPACING["md"])),
                ft.Tab(text=f"Pending ({pending_count})" if pending_count else "Pending", content=self.pending_list),
            ],
        )
        controls = [
            ft.Container(content=ft.Text("Direct Messages", size=FONT_SIZES["lg"], weight=ft.FontWeight.BOLD,
                                         color=colors["text_primary"]), padding=SPACING["lg"]),
            ft.Container(content=tabs, padding=SPACING["sm"], expand=True),
        ]
        if self.footer is not None:
            controls.append(self.footer)
        self.content = ft.Column(controls, spacing=0, expand=True)

    def _refresh(self):
        self.render()
        if self.page:
            self.page.update()
