"""App wiring: offline gateway and auth-state routing on a mocked page"""

import pytest

from voxen.app import DEMO_EMAIL, DEMO_PASSWORD, VoxenApp, build_gateway
from voxen.config import Settings
from voxen.mock_gateway import MemoryRecordStore
from voxen.views.chat_area import format_time
from voxen.views.login import LoginView


class TestBuildGateway:
    @pytest.mark.asyncio
    async def test_memory_mode_has_demo_account(self, monkeypatch):
        monkeypatch.setenv("GATEWAY_MODE", "memory")
        gateway = build_gateway(Settings())

        assert isinstance(gateway.records, MemoryRecordStore)
        user = await gateway.auth.login(DEMO_EMAIL, DEMO_PASSWORD)
        assert user.email == DEMO_EMAIL

    def test_unknown_mode_is_rejected(self, monkeypatch):
        monkeypatch.setenv("GATEWAY_MODE", "carrier-pigeon")
        with pytest.raises(ValueError):
            Settings()


class TestAuthRouting:
    @pytest.mark.asyncio
    async def test_signed_out_start_shows_login(self, page, settings, monkeypatch):
        monkeypatch.setenv("GATEWAY_MODE", "memory")
        app = VoxenApp(page, settings, gateway=build_gateway(settings))

        await app.initialize()

        assert isinstance(app.login_view, LoginView)
        assert not app.session.is_loading
        page.run_task.assert_not_called()

    @pytest.mark.asyncio
    async def test_restored_session_schedules_workspace(self, page, settings, gateway, user):
        app = VoxenApp(page, settings, gateway=gateway)

        await app.initialize()

        page.run_task.assert_called_once_with(app.show_workspace, gateway.auth.state.user)
        assert app._signed_in_as == user.id

    @pytest.mark.asyncio
    async def test_same_user_is_not_mounted_twice(self, page, settings, gateway):
        app = VoxenApp(page, settings, gateway=gateway)
        await app.initialize()

        app._on_auth_state(gateway.auth.state)

        assert page.run_task.call_count == 1


class TestLoginView:
    @pytest.fixture
    def view(self, page, gateway):
        from voxen.session_manager import SessionManager

        return LoginView(page, SessionManager(gateway.auth))

    @pytest.mark.asyncio
    async def test_missing_fields(self, view):
        await view.handle_submit()
        assert view.error_text.visible
        assert view.error_text.value == "Email and password required"

    @pytest.mark.asyncio
    async def test_wrong_password(self, view):
        view.email_field.value = "alice@example.com"
        view.password_field.value = "wrong"

        await view.handle_submit()

        assert view.error_text.value == "Invalid email or password"
        assert not view.submit_button.disabled

    @pytest.mark.asyncio
    async def test_successful_login(self, view):
        await view.session.start()
        view.email_field.value = "Alice@Example.com"
        view.password_field.value = "secret"

        await view.handle_submit()

        assert not view.error_text.visible
        assert view.session.user.id == "user_alice"


def test_format_time():
    from datetime import datetime

    assert format_time(datetime(2024, 5, 1, 9, 7)) == "09:07"
    assert format_time(None) == ""
