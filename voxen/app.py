"""
Voxen - Discord-style chat client
Built with Python Flet on a backend-as-a-service gateway
"""

import logging
from typing import Optional

import flet as ft

from .api_client import build_http_gateway
from .config import Settings, configure_logging, get_settings
from .error_handler import ErrorBoundary, init_error_handler
from .friends import FriendsController
from .gateway import Gateway
from .messaging import ChannelMessages, DirectMessages
from .mock_gateway import build_memory_gateway
from .models import AuthState, User
from .profile import ProfileController
from .selection import SelectionState, VoiceState
from .servers import ServerDirectory
from .session_manager import SessionManager
from .theme import ThemeContext
from .views.layout import VoxenLayout
from .views.login import LoginView

logger = logging.getLogger("voxen.app")

DEMO_EMAIL = "demo@voxen.local"
DEMO_PASSWORD = "voxen"


def build_gateway(settings: Settings) -> Gateway:
    if settings.GATEWAY_MODE == "memory":
        gateway = build_memory_gateway()
        gateway.auth.register(DEMO_EMAIL, DEMO_PASSWORD)
        logger.info(f"[APP] Offline mode, sign in with {DEMO_EMAIL} / {DEMO_PASSWORD}")
        return gateway
    return build_http_gateway(settings)


class VoxenApp:
    def __init__(self, page: ft.Page, settings: Optional[Settings] = None, gateway: Optional[Gateway] = None):
        self.page = page
        self.settings = settings or get_settings()
        configure_logging(self.settings)

        self.page.title = "Voxen"
        self.page.theme_mode = ft.ThemeMode.DARK
        self.page.padding = 0

        self.error_handler = init_error_handler(page)
        self.boundary = ErrorBoundary(self.error_handler)
        self.gateway = gateway or build_gateway(self.settings)
        self.session = SessionManager(self.gateway.auth)
        self.theme = ThemeContext()

        self.login_view: Optional[LoginView] = None
        self.layout: Optional[VoxenLayout] = None
        self._signed_in_as: Optional[str] = None
        self.page.on_disconnect = lambda e: self.page.run_task(self.shutdown)

        logger.info(f"[APP] App initialized. Gateway: {self.settings.GATEWAY_MODE} {self.settings.API_BASE_URL}")

    async def initialize(self):
        self.session.on_change(self._on_auth_state)
        self.show_login()
        await self.session.start()

    def _on_auth_state(self, state: AuthState):
        if state.is_loading:
            return
        if state.user is None:
            if self._signed_in_as is not None or self.layout is not None:
                self._signed_in_as = None
                self.show_login()
            elif self.login_view is not None:
                self.login_view.set_loading(False)
            return
        if state.user.id != self._signed_in_as:
            self._signed_in_as = state.user.id
            self.page.run_task(self.show_workspace, state.user)

    def show_login(self):
        if self.layout is not None:
            self.layout.dispose()
            self.layout = None
        self.page.clean()
        self.login_view = LoginView(self.page, self.session)
        self.page.add(self.login_view)

    async def show_workspace(self, user: User):
        """Build the controllers for the signed-in user and mount the layout"""
        servers = ServerDirectory(self.gateway, self.boundary, user, self.settings)
        profile = ProfileController(self.gateway, self.boundary, user, self.settings)
        chat = ChannelMessages(self.gateway, self.boundary, user, self.settings)
        dms = DirectMessages(self.gateway, self.boundary, user, profile=lambda: profile.profile,
                             settings=self.settings)
        friends = FriendsController(self.gateway, self.boundary, user)

        self.theme.load_from(await profile.load())
        await servers.load_servers()
        if self._signed_in_as != user.id:
            return

        self.page.bgcolor = self.theme.current.background
        self.layout = VoxenLayout(
            self.page,
            servers=servers,
            chat=chat,
            dms=dms,
            friends=friends,
            profile=profile,
            theme=self.theme,
            selection=SelectionState(),
            voice=VoiceState(),
            on_logout=lambda: self.page.run_task(self.logout),
        )
        self.login_view = None
        self.page.clean()
        self.page.add(self.layout)
        if servers.servers.items:
            self.layout.select_server(servers.servers[0])

    async def logout(self):
        logger.info("[APP] Logging out")
        await self.session.logout()

    async def shutdown(self):
        self.session.stop()
        await self.gateway.close()


async def main(page: ft.Page):
    app = VoxenApp(page)
    await app.initialize()


def run():
    ft.app(target=main)


if __name__ == "__main__":
    run()
