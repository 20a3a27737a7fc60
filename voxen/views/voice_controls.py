import flet as ft

from ..selection import VoiceState
from ..theme import FONT_SIZES, SPACING, ThemeContext


class VoiceControls(ft.Container):
    """Mute, deafen and volume for the selected voice channel (local only)"""

    def __init__(self, page: ft.Page, voice: VoiceState, theme: ThemeContext, channel_name: str = ""):
        super().__init__()
        self.page = page
        self.voice = voice
        self.theme = theme
        self.channel_name = channel_name
        self.padding = SPACING["md"]
        self.render()

    def _toggle_mute(self, e):
        self.voice.toggle_mute()
        self.render()
        self.page.update()

    def _toggle_deafen(self, e):
        self.voice.toggle_deafen()
        self.render()
        self.page.update()

    def _set_volume(self, e):
        self.voice.set_volume(e.control.value)

    def render(self):
        colors = self.theme.colors
        self.bgcolor = colors["bg_secondary"]
        self.content = ft.Column(
            [
                ft.Text("Voice Connected", size=FONT_SIZES["sm"], color=colors["success"], weight=ft.FontWeight.W_600),
                ft.Text(self.channel_name, size=FONT_SIZES["xs"], color=colors["text_secondary"]),
                ft.Row([
                    ft.IconButton(
                        ft.Icons.MIC_OFF if self.voice.muted else ft.Icons.MIC,
                        icon_color=colors["error"] if self.voice.muted else colors["text_primary"],
                        tooltip="Unmute" if self.voice.muted else "Mute",
                        on_click=self._toggle_mute,
                    ),
                    ft.IconButton(
                        ft.Icons.HEADSET_OFF if self.voice.deafened else ft.Icons.HEADSET,
                        icon_color=colors["error"] if self.voice.deafened else colors["text_primary"],
                        tooltip="Undeafen" if self.voice.deafened else "Deafen",
                        on_click=self._toggle_deafen,
                    ),
                    ft.Icon(ft.Icons.VOLUME_UP, size=16, color=colors["text_secondary"]),
                    ft.Slider(min=0, max=100, value=self.voice.volume, expand=True, on_change_end=self._set_volume),
                ], spacing=SPACING["xs"]),
            ],
            spacing=SPACING["xs"],
        )
