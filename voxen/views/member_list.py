import flet as ft

from ..servers import ServerDirectory
from ..theme import FONT_SIZES, SPACING, ThemeContext, role_style
from .user_panel import avatar


class MemberList(ft.Container):
    """Members of the selected server, grouped by role"""

    def __init__(self, page: ft.Page, servers: ServerDirectory, theme: ThemeContext):
        super().__init__()
        self.page = page
        self.servers = servers
        self.theme = theme
        self.width = 220
        self.padding = SPACING["lg"]
        self.render()

    def _member_label(self, member) -> str:
        if member.user_id == self.servers.user.id:
            return "You"
        return member.user_id[:12]

    def render(self):
        colors = self.theme.colors
        rows = []
        for role, members in self.servers.grouped_members():
            style = role_style(role)
            header = [ft.Text(f"{style.label} - {len(members)}", size=FONT_SIZES["xs"],
                              weight=ft.FontWeight.BOLD, color=colors["text_secondary"])]
            if style.icon:
                header.insert(0, ft.Icon(style.icon, size=12, color=style.color))
            rows.append(ft.Row(header, spacing=SPACING["sm"]))
            for member in members:
                label = self._member_label(member)
                rows.append(ft.Row(
                    [avatar(label, None, 28, style.color),
                     ft.Text(label, size=FONT_SIZES["sm"], color=style.color)],
                    spacing=SPACING["md"],
                ))
            rows.append(ft.Container(height=SPACING["md"]))

        self.bgcolor = colors["bg_secondary"]
        self.content = ft.Column(rows, spacing=SPACING["sm"], scroll=ft.ScrollMode.AUTO)
