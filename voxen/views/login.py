import logging

import flet as ft

from ..gateway import GatewayError
from ..session_manager import SessionManager
from ..theme import DEFAULT_THEME, FONT_SIZES, RADIUS, SPACING, palette_for

logger = logging.getLogger("voxen.views.login")


class LoginView(ft.Container):
    """Auth guard: a spinner while the session resolves, then the sign-in form"""

    def __init__(self, page: ft.Page, session: SessionManager):
        super().__init__()
        self.page = page
        self.session = session
        colors = palette_for(DEFAULT_THEME)

        self.email_field = ft.TextField(
            label="Email",
            border_radius=RADIUS["md"],
            keyboard_type=ft.KeyboardType.EMAIL,
            autofocus=True,
            text_size=FONT_SIZES["base"],
            border_color=colors["border"],
            focused_border_color=colors["accent"],
            on_submit=lambda e: self.page.run_task(self.handle_submit),
        )

        self.password_field = ft.TextField(
            label="Password",
            password=True,
            can_reveal_password=True,
            border_radius=RADIUS["md"],
            text_size=FONT_SIZES["base"],
            border_color=colors["border"],
            focused_border_color=colors["accent"],
            on_submit=lambda e: self.page.run_task(self.handle_submit),
        )

        self.error_text = ft.Text("", color=colors["error"], size=FONT_SIZES["sm"], visible=False)

        self.submit_button = ft.ElevatedButton(
            "Log In",
            on_click=lambda e: self.page.run_task(self.handle_submit),
            width=300,
            height=48,
            style=ft.ButtonStyle(
                bgcolor=colors["accent"],
                color=ft.Colors.WHITE,
                shape=ft.RoundedRectangleBorder(radius=RADIUS["md"]),
            ),
        )

        self.spinner = ft.ProgressRing(visible=session.is_loading)
        self.form = ft.Column(
            [
                ft.Text("Voxen", size=FONT_SIZES["3xl"] + 8, weight=ft.FontWeight.W_700, color=colors["accent"]),
                ft.Text("Welcome back!", size=FONT_SIZES["base"], color=colors["text_secondary"]),
                ft.Container(height=SPACING["3xl"]),
                self.email_field,
                self.password_field,
                self.error_text,
                self.submit_button,
            ],
            width=320,
            spacing=SPACING["lg"],
            horizontal_alignment=ft.CrossAxisAlignment.CENTER,
            visible=not session.is_loading,
        )

        self.content = ft.Column(
            [self.spinner, self.form],
            alignment=ft.MainAxisAlignment.CENTER,
            horizontal_alignment=ft.CrossAxisAlignment.CENTER,
        )
        self.alignment = ft.alignment.center
        self.bgcolor = colors["background"]
        self.expand = True

    def set_loading(self, loading: bool):
        self.spinner.visible = loading
        self.form.visible = not loading
        self.page.update()

    def show_error(self, message: str):
        self.error_text.value = message
        self.error_text.visible = True
        self.page.update()

    async def handle_submit(self):
        email = (self.email_field.value or "").strip()
        password = self.password_field.value or ""
        if not email or not password:
            self.show_error("Email and password required")
            return

        self.submit_button.disabled = True
        self.submit_button.text = "Logging in..."
        self.error_text.visible = False
        self.page.update()
        try:
            await self.session.login(email, password)
        except GatewayError as e:
            logger.info(f"[LOGIN] Sign-in failed for {email}: {e.message}")
            if e.status_code == 401:
                self.show_error("Invalid email or password")
            else:
                self.show_error("Unable to reach the server. Please try again")
        finally:
            self.submit_button.disabled = False
            self.submit_button.text = "Log In"
            self.page.update()
