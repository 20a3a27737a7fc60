"""
User profile: load-or-create on first use, then multi-step saves with uploads.
"""

import logging
from typing import Optional

from .config import Settings, get_settings
from .error_handler import ErrorBoundary, Notice, ValidationError
from .gateway import Gateway, eq
from .models import PresenceStatus, ThemeColors, User, UserProfile, new_id
from .uploads import LocalFile, ProgressPlan, avatar_slot, background_slot, validate_upload

logger = logging.getLogger("voxen.profile")


class ProfileController:
    def __init__(self, gateway: Gateway, boundary: ErrorBoundary, user: User,
                 settings: Optional[Settings] = None):
        self.gateway = gateway
        self.boundary = boundary
        self.user = user
        self.settings = settings or get_settings()

        self.profile: Optional[UserProfile] = None
        self.progress = ProgressPlan()
        self.saving = False

    async def _fetch(self) -> Optional[UserProfile]:
        rows = await self.gateway.user_profiles.list(where=eq("userId", self.user.id), limit=1)
        return rows[0] if rows else None

    async def _create_default(self) -> UserProfile:
        logger.info(f"[PROFILE] Creating profile for {self.user.id}")
        return await self.gateway.user_profiles.create(UserProfile(
            id=new_id("profile"),
            user_id=self.user.id,
            display_name=self.user.display_name or self.user.handle,
            email=self.user.email.lower() if self.user.email else None,
            status=PresenceStatus.ONLINE,
        ))

    async def _load_or_create(self) -> UserProfile:
        return await self._fetch() or await self._create_default()

    async def load(self) -> Optional[UserProfile]:
        ok, profile = await self.boundary.run(self._load_or_create, context="Load profile", notify=False)
        if ok:
            self.profile = profile
        return self.profile

    async def _persist(self, patch: dict) -> UserProfile:
        """Update the existing profile row, or create it if it has never been stored"""
        current = self.profile or await self._fetch()
        if current is None:
            fields = {
                "display_name": self.user.display_name or self.user.handle,
                "email": self.user.email.lower() if self.user.email else None,
                "status": PresenceStatus.ONLINE,
            }
            fields.update(patch)
            return await self.gateway.user_profiles.create(
                UserProfile(id=new_id("profile"), user_id=self.user.id, **fields)
            )
        updated = await self.gateway.user_profiles.update(current.id, patch)
        return updated or current.model_copy(update=patch)

    async def save(self, display_name: str, bio: str = "", status: PresenceStatus = PresenceStatus.ONLINE,
                   avatar: Optional[LocalFile] = None,
                   background: Optional[LocalFile] = None) -> Optional[UserProfile]:
        uid = self.user.id

        async def save_profile() -> UserProfile:
            if not display_name.strip():
                raise ValidationError("Display name required", "Please enter a display name")
            if avatar is not None:
                validate_upload(avatar_slot(self.settings), avatar)
            if background is not None:
                validate_upload(background_slot(self.settings), background)

            self.progress.mark(20)
            avatar_url = self.profile.avatar_url if self.profile else None
            background_url = self.profile.background_url if self.profile else None
            if avatar is not None:
                uploaded = await self.gateway.storage.upload(
                    avatar, f"avatars/{uid}_{avatar.name}", upsert=True, on_progress=self.progress.step(20, 50),
                )
                avatar_url = uploaded.public_url
            if background is not None:
                uploaded = await self.gateway.storage.upload(
                    background, f"profile-backgrounds/{uid}_{background.name}",
                    upsert=True, on_progress=self.progress.step(50, 90),
                )
                background_url = uploaded.public_url
            self.progress.mark(90)

            saved = await self._persist({
                "display_name": display_name.strip(),
                "bio": bio.strip() or None,
                "status": PresenceStatus(status),
                "avatar_url": avatar_url,
                "background_url": background_url,
            })
            self.progress.mark(100)
            return saved

        self.saving = True
        self.progress.reset()
        try:
            ok, saved = await self.boundary.run(
                save_profile, context=f"Save profile {uid}", failure=Notice("Failed to update profile"),
            )
        finally:
            self.saving = False
            self.progress.reset()

        if not ok:
            return None
        self.profile = saved
        self.boundary.success("Your profile has been updated successfully")
        return saved

    async def save_theme(self, theme: ThemeColors) -> UserProfile:
        """Persist theme colors; errors propagate to the caller"""
        saved = await self._persist({"theme_colors": theme})
        self.profile = saved
        return saved
