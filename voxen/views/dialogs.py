"""
Modal dialogs. Each one owns its form fields and file pickers and hands the
collected values to a controller; results come back through callbacks.
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

import flet as ft

from ..error_handler import get_error_handler
from ..models import PresenceStatus, Server, ThemeColors
from ..profile import ProfileController
from ..servers import ServerDirectory
from ..theme import FONT_SIZES, PRESET_THEMES, SPACING, ThemeContext, status_style
from ..uploads import LocalFile, ProgressPlan

logger = logging.getLogger("voxen.views.dialogs")


def picked_file(e: ft.FilePickerResultEvent) -> Optional[LocalFile]:
    """First picked file as a LocalFile, or None when nothing usable was chosen"""
    if not e.files:
        return None
    picked = e.files[0]
    if not picked.path:
        handler = get_error_handler()
        if handler:
            handler.show_info_snackbar("This platform does not expose a local file path")
        return None
    return LocalFile.from_path(picked.path, picked.name)


class FileField(ft.Row):
    """A pick button plus the chosen file name"""

    def __init__(self, page: ft.Page, label: str, image_only: bool = True):
        super().__init__(spacing=SPACING["md"])
        self.file: Optional[LocalFile] = None
        self.picker = ft.FilePicker(on_result=self._on_result)
        page.overlay.append(self.picker)
        self.name_text = ft.Text("No file selected", size=FONT_SIZES["sm"], opacity=0.7)
        self.controls = [
            ft.OutlinedButton(
                label,
                icon=ft.Icons.UPLOAD_FILE,
                on_click=lambda e: self.picker.pick_files(
                    allow_multiple=False,
                    file_type=ft.FilePickerFileType.IMAGE if image_only else ft.FilePickerFileType.ANY,
                ),
            ),
            self.name_text,
        ]

    def _on_result(self, e: ft.FilePickerResultEvent):
        self.file = picked_file(e)
        self.name_text.value = self.file.name if self.file else "No file selected"
        self.name_text.update()


def progress_bar(plan: ProgressPlan) -> Tuple[ft.ProgressBar, Callable[[], None]]:
    bar = ft.ProgressBar(value=0, visible=False)

    def on_progress(value: float):
        bar.value = value / 100.0
        bar.visible = 0 < value < 100
        if bar.page:
            bar.update()

    return bar, plan.subscribe(on_progress)


class FormDialog(ft.AlertDialog):
    def __init__(self, page: ft.Page, title: str, fields: List[ft.Control], submit_label: str,
                 progress: Optional[ProgressPlan] = None):
        self.app_page = page
        self.on_closed: Optional[Callable[[], None]] = None
        self._unsubscribe = None
        self._pickers = [f.picker for f in fields if isinstance(f, FileField)]
        if progress is not None:
            bar, self._unsubscribe = progress_bar(progress)
            fields = fields + [bar]
        self.submit_button = ft.ElevatedButton(submit_label, on_click=lambda e: page.run_task(self.submit))
        super().__init__(
            modal=True,
            title=ft.Text(title),
            content=ft.Column(fields, tight=True, spacing=SPACING["lg"], width=420, scroll=ft.ScrollMode.AUTO),
            actions=[ft.TextButton("Cancel", on_click=lambda e: self.close()), self.submit_button],
        )

    def show(self):
        self.app_page.open(self)

    def close(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for picker in self._pickers:
            if picker in self.app_page.overlay:
                self.app_page.overlay.remove(picker)
        self._pickers = []
        self.app_page.close(self)
        if self.on_closed is not None:
            self.on_closed()

    def set_busy(self, busy: bool):
        self.submit_button.disabled = busy
        self.app_page.update()

    async def submit(self):
        """Hand the field values to the controller and close on success.

        Every concrete dialog overrides this; the base form has nothing to submit.
        """


class CreateServerDialog(FormDialog):
    def __init__(self, page: ft.Page, servers: ServerDirectory, on_created: Callable[[Server], None]):
        self.servers = servers
        self.on_created = on_created
        self.name_field = ft.TextField(label="Server name", autofocus=True)
        self.description_field = ft.TextField(label="Description", multiline=True, max_lines=3)
        self.icon_field = FileField(page, "Server icon")
        super().__init__(page, "Create a server",
                         [self.name_field, self.description_field, self.icon_field], "Create",
                         progress=servers.progress)

    async def submit(self):
        self.set_busy(True)
        created = await self.servers.create_server(
            self.name_field.value or "", self.description_field.value or "", self.icon_field.file,
        )
        self.set_busy(False)
        if created is not None:
            self.close()
            self.on_created(created)


class ServerSettingsDialog(FormDialog):
    def __init__(self, page: ft.Page, servers: ServerDirectory, server: Server,
                 on_saved: Callable[[Server], None]):
        self.servers = servers
        self.server = server
        self.on_saved = on_saved
        self.name_field = ft.TextField(label="Server name", value=server.name)
        self.description_field = ft.TextField(label="Description", value=server.description or "",
                                              multiline=True, max_lines=3)
        self.icon_field = FileField(page, "Change icon")
        self.background_field = FileField(page, "Change background", image_only=False)
        super().__init__(page, "Server settings",
                         [self.name_field, self.description_field, self.icon_field, self.background_field],
                         "Save", progress=servers.progress)

    async def submit(self):
        self.set_busy(True)
        saved = await self.servers.update_settings(
            self.server, self.name_field.value or "", self.description_field.value or "",
            icon=self.icon_field.file, background=self.background_field.file,
        )
        self.set_busy(False)
        if saved is not None:
            self.close()
            self.on_saved(saved)


class UserProfileDialog(FormDialog):
    def __init__(self, page: ft.Page, profile: ProfileController, on_saved: Callable[[], None]):
        self.controller = profile
        self.on_saved = on_saved
        current = profile.profile
        self.name_field = ft.TextField(label="Display name",
                                       value=current.display_name if current else profile.user.handle)
        self.bio_field = ft.TextField(label="About me", value=(current.bio if current else "") or "",
                                      multiline=True, max_lines=4)
        self.status_field = ft.Dropdown(
            label="Status",
            value=(current.status if current else PresenceStatus.ONLINE).value,
            options=[ft.dropdown.Option(s.value, status_style(s).label) for s in PresenceStatus],
        )
        self.avatar_field = FileField(page, "Change avatar")
        self.background_field = FileField(page, "Change background", image_only=False)
        super().__init__(page, "Edit profile",
                         [self.name_field, self.bio_field, self.status_field,
                          self.avatar_field, self.background_field], "Save", progress=profile.progress)

    async def submit(self):
        self.set_busy(True)
        saved = await self.controller.save(
            self.name_field.value or "",
            self.bio_field.value or "",
            PresenceStatus(self.status_field.value or PresenceStatus.ONLINE.value),
            avatar=self.avatar_field.file,
            background=self.background_field.file,
        )
        self.set_busy(False)
        if saved is not None:
            self.close()
            self.on_saved()


class ThemeCustomizerDialog(FormDialog):
    """Preset swatches plus custom hex fields; applies live, persists on save"""

    def __init__(self, page: ft.Page, theme: ThemeContext, profile: ProfileController):
        self.theme = theme
        self.profile = profile
        self.original = theme.current
        self.fields: Dict[str, ft.TextField] = {
            key: ft.TextField(label=key.capitalize(), value=getattr(theme.current, key), width=130,
                              on_blur=lambda e: self.preview())
            for key in ("primary", "accent", "background")
        }
        self.error_text = ft.Text("", color=ft.Colors.RED_400, size=FONT_SIZES["sm"], visible=False)
        swatches = ft.Row(
            [self._swatch(name, preset) for name, preset in PRESET_THEMES.items()],
            wrap=True,
            spacing=SPACING["md"],
        )
        super().__init__(page, "Customize theme",
                         [swatches, ft.Row(list(self.fields.values()), spacing=SPACING["md"]), self.error_text],
                         "Save theme")
        self.actions[0].on_click = lambda e: self.cancel()

    def _swatch(self, name: str, preset: ThemeColors) -> ft.Control:
        return ft.Container(
            content=ft.Row([
                ft.Container(width=14, height=14, border_radius=7, bgcolor=preset.primary),
                ft.Container(width=14, height=14, border_radius=7, bgcolor=preset.accent),
                ft.Text(name, size=FONT_SIZES["xs"]),
            ], spacing=SPACING["xs"]),
            padding=SPACING["sm"],
            border_radius=6,
            bgcolor=preset.background,
            on_click=lambda e, p=preset: self.pick(p),
        )

    def _collect(self) -> Optional[ThemeColors]:
        try:
            return ThemeColors(**{key: (field.value or "").strip() for key, field in self.fields.items()})
        except ValueError as e:
            logger.info(f"[THEME] Invalid custom colour: {e}")
            self.error_text.value = "Colours must look like #RRGGBB"
            self.error_text.visible = True
            self.app_page.update()
            return None

    def pick(self, preset: ThemeColors):
        for key, field in self.fields.items():
            field.value = getattr(preset, key)
        self.theme.apply(preset)
        self.app_page.update()

    def preview(self):
        theme = self._collect()
        if theme is not None:
            self.error_text.visible = False
            self.theme.apply(theme)

    def cancel(self):
        self.theme.apply(self.original)
        self.close()

    async def submit(self):
        theme = self._collect()
        if theme is None:
            return
        self.set_busy(True)
        saved = await self.theme.save(theme, self.profile)
        self.set_busy(False)
        if saved:
            self.close()
