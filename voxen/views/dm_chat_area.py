import flet as ft

from ..messaging import DirectMessages
from ..models import DirectMessage
from ..theme import FONT_SIZES, SPACING, ThemeContext
from ..uploads import format_file_size
from .chat_area import format_time
from .dialogs import picked_file
from .user_panel import avatar


class DMChatArea(ft.Container):
    def __init__(self, page: ft.Page, dms: DirectMessages, theme: ThemeContext):
        super().__init__()
        self.page = page
        self.dms = dms
        self.theme = theme
        self.expand = True

        self.message_list = ft.ListView(expand=True, spacing=SPACING["xs"], auto_scroll=True,
                                        padding=SPACING["lg"])
        self.input_field = ft.TextField(
            hint_text="Message",
            expand=True,
            border_radius=8,
            on_submit=lambda e: self.page.run_task(self.send),
        )
        self.file_picker = ft.FilePicker(on_result=lambda e: self.page.run_task(self.on_file_picked, e))
        self.page.overlay.append(self.file_picker)

        self._unsubscribe = dms.messages.subscribe(lambda _: self._refresh())
        self.render()

    def will_unmount(self):
        self._unsubscribe()

    def _message_row(self, index: int, message: DirectMessage) -> ft.Control:
        colors = self.theme.colors
        if message.file_url:
            text = ft.TextButton(
                f"{message.file_name or 'File'} ({format_file_size(message.file_size or 0)})",
                icon=ft.Icons.INSERT_DRIVE_FILE,
                url=message.file_url,
            )
        else:
            text = ft.Text(message.content, selectable=True, color=colors["text_primary"])

        if not self.dms.show_avatar(index):
            return ft.Container(content=text, padding=ft.padding.only(left=48))

        if self.dms.is_mine(message):
            name, avatar_url = message.sender_name or self.dms.sender_name, message.sender_avatar
        else:
            name, avatar_url = self.dms.friend_name, None
        return ft.Row(
            [
                avatar(name, avatar_url, 36, colors["accent"]),
                ft.Column([
                    ft.Row([
                        ft.Text(name, weight=ft.FontWeight.W_600, color=colors["text_primary"]),
                        ft.Text(format_time(message.created_at), size=FONT_SIZES["xs"],
                                color=colors["text_tertiary"]),
                    ], spacing=SPACING["md"]),
                    text,
                ], spacing=SPACING["xs"], expand=True),
            ],
            vertical_alignment=ft.CrossAxisAlignment.START,
        )

    def render(self):
        colors = self.theme.colors
        self.bgcolor = colors["bg_tertiary"]
        if self.dms.loading:
            self.message_list.controls = [ft.ProgressRing()]
        else:
            self.message_list.controls = [self._message_row(i, m) for i, m in enumerate(self.dms.messages)]
        self.input_field.hint_text = f"Message @{self.dms.friend_name}"

        self.content = ft.Column(
            [
                ft.Container(content=ft.Text(f"@ {self.dms.friend_name}", size=FONT_SIZES["lg"],
                                             weight=ft.FontWeight.BOLD, color=colors["text_primary"]),
                             padding=SPACING["lg"]),
                ft.Divider(height=1),
                self.message_list,
                ft.Container(
                    content=ft.Row([
                        ft.IconButton(ft.Icons.ATTACH_FILE, tooltip="Share a file",
                                      on_click=lambda e: self.file_picker.pick_files(allow_multiple=False)),
                        self.input_field,
                    ]),
                    padding=SPACING["lg"],
                ),
            ],
            spacing=0,
            expand=True,
        )

    def _refresh(self):
        self.render()
        if self.page:
            self.page.update()

    async def send(self):
        if await self.dms.send(self.input_field.value or ""):
            self.input_field.value = ""
            self._refresh()

    async def on_file_picked(self, e: ft.FilePickerResultEvent):
        file = picked_file(e)
        if file is not None:
            await self.dms.share_file(file)
