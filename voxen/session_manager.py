"""
Session Manager - observes the gateway's auth state for the UI.
Nothing is written to disk; the gateway owns the session.
"""

import logging
from typing import Callable, List, Optional

from .gateway import AuthProvider
from .models import AuthState, User

logger = logging.getLogger("voxen.session")


class SessionManager:
    """Tracks the current AuthState and fans it out to the views"""

    def __init__(self, auth: AuthProvider):
        self.auth = auth
        self.state = AuthState(user=None, is_loading=True)
        self._listeners: List[Callable[[AuthState], None]] = []
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def user(self) -> Optional[User]:
        return self.state.user

    @property
    def is_loading(self) -> bool:
        return self.state.is_loading

    def _on_auth_state(self, state: AuthState):
        previous = self.state.user
        self.state = state
        if state.user and (previous is None or previous.id != state.user.id):
            logger.info(f"[SESSION] Signed in as {state.user.email or state.user.id}")
        elif state.user is None and previous is not None:
            logger.info("[SESSION] Signed out")
        for listener in list(self._listeners):
            listener(state)

    async def start(self) -> AuthState:
        """Subscribe to the provider and resolve the initial session"""
        if self._unsubscribe is None:
            self._unsubscribe = self.auth.on_auth_state_changed(self._on_auth_state)
        await self.auth.restore()
        return self.state

    def stop(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def on_change(self, callback: Callable[[AuthState], None]) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    async def login(self, email: str, password: str) -> User:
        return await self.auth.login(email.strip().lower(), password)

    async def logout(self):
        await self.auth.logout()
