import logging
from datetime import datetime
from typing import Optional

import flet as ft

from ..messaging import ChannelMessages
from ..models import AttachmentKind, Message
from ..theme import FONT_SIZES, SPACING, ThemeContext
from ..uploads import format_file_size
from .dialogs import picked_file
from .user_panel import avatar

logger = logging.getLogger("voxen.views.chat")


def format_time(value: Optional[datetime]) -> str:
    return value.strftime("%H:%M") if value else ""


class ChatArea(ft.Container):
    """Messages of the selected text channel with composer and attachment picker"""

    def __init__(self, page: ft.Page, chat: ChannelMessages, theme: ThemeContext):
        super().__init__()
        self.page = page
        self.chat = chat
        self.theme = theme
        self.expand = True

        self.message_list = ft.ListView(expand=True, spacing=SPACING["md"], auto_scroll=True,
                                        padding=SPACING["lg"])
        self.input_field = ft.TextField(
            hint_text="Message",
            expand=True,
            border_radius=8,
            shift_enter=True,
            on_change=self._on_draft,
            on_submit=lambda e: self.page.run_task(self.send),
        )
        self.file_picker = ft.FilePicker(on_result=lambda e: self.page.run_task(self.on_file_picked, e))
        self.page.overlay.append(self.file_picker)
        self.attach_button = ft.IconButton(
            ft.Icons.ADD_CIRCLE,
            tooltip="Upload a file",
            on_click=lambda e: self.file_picker.pick_files(allow_multiple=False),
        )
        self.progress_bar = ft.ProgressBar(value=0, visible=False)
        self.header = ft.Text("", size=FONT_SIZES["lg"], weight=ft.FontWeight.BOLD)

        self._unsubscribe = [
            chat.messages.subscribe(lambda _: self._refresh()),
            chat.progress.subscribe(self._on_progress),
        ]
        self.render()

    def will_unmount(self):
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []

    def _on_draft(self, e):
        self.chat.draft = e.control.value or ""

    def _on_progress(self, value: float):
        self.progress_bar.value = value / 100.0
        self.progress_bar.visible = self.chat.uploading
        if self.progress_bar.page:
            self.progress_bar.update()

    def _attachment(self, message: Message) -> Optional[ft.Control]:
        if not message.file_url:
            return None
        if message.file_type == AttachmentKind.IMAGE:
            return ft.Image(src=message.file_url, width=320, fit=ft.ImageFit.CONTAIN, border_radius=8)
        label = format_file_size(message.file_size or 0)
        return ft.TextButton(
            f"{message.content or 'Attachment'} ({label})",
            icon=ft.Icons.MOVIE if message.file_type == AttachmentKind.VIDEO else ft.Icons.INSERT_DRIVE_FILE,
            url=message.file_url,
        )

    def _message_row(self, message: Message) -> ft.Control:
        colors = self.theme.colors
        mine = message.user_id == self.chat.user.id
        author = "You" if mine else message.user_id[:12]
        body = [
            ft.Row([
                ft.Text(author, weight=ft.FontWeight.W_600, size=FONT_SIZES["base"], color=colors["text_primary"]),
                ft.Text(format_time(message.created_at), size=FONT_SIZES["xs"], color=colors["text_tertiary"]),
            ], spacing=SPACING["md"]),
        ]
        attachment = self._attachment(message)
        if attachment is not None:
            body.append(attachment)
        elif message.content:
            body.append(ft.Text(message.content, selectable=True, color=colors["text_primary"]))
        return ft.Row(
            [avatar(author, None, 36, colors["accent"]), ft.Column(body, spacing=SPACING["xs"], expand=True)],
            vertical_alignment=ft.CrossAxisAlignment.START,
        )

    def render(self):
        colors = self.theme.colors
        channel = self.chat.channel
        self.bgcolor = colors["bg_tertiary"]
        self.header.value = f"# {channel.name}" if channel else ""
        self.header.color = colors["text_primary"]
        self.input_field.hint_text = f"Message #{channel.name}" if channel else "Message"
        self.input_field.value = self.chat.draft
        self.input_field.disabled = channel is None or self.chat.uploading
        self.attach_button.disabled = channel is None or self.chat.uploading
        self.message_list.controls = [self._message_row(m) for m in self.chat.messages]
        if channel is not None and not self.chat.messages.items:
            self.message_list.controls = [ft.Text(f"Welcome to #{channel.name}!", color=colors["text_secondary"])]

        self.content = ft.Column(
            [
                ft.Container(content=self.header, padding=SPACING["lg"]),
                ft.Divider(height=1),
                self.message_list,
                self.progress_bar,
                ft.Container(content=ft.Row([self.attach_button, self.input_field]), padding=SPACING["lg"]),
            ],
            spacing=0,
            expand=True,
        )

    def _refresh(self):
        self.render()
        if self.page:
            self.page.update()

    async def send(self):
        self.chat.draft = self.input_field.value or ""
        if await self.chat.send():
            self.input_field.value = ""
        self._refresh()

    async def on_file_picked(self, e: ft.FilePickerResultEvent):
        file = picked_file(e)
        if file is None:
            return
        self.progress_bar.visible = True
        self._refresh()
        await self.chat.send_attachment(file)
        self._refresh()
