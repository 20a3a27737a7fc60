"""
Voxen Theme - preset colour triples, role/status styles and the live theme context
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import flet as ft

from .error_handler import Notice
from .models import MemberRole, PresenceStatus, ThemeColors, UserProfile

logger = logging.getLogger("voxen.theme")

DEFAULT_THEME = ThemeColors(primary="#6366F1", accent="#8B5CF6", background="#0F0F23")

PRESET_THEMES: Dict[str, ThemeColors] = {
    "Voxen Default": DEFAULT_THEME,
    "Ocean Blue": ThemeColors(primary="#0EA5E9", accent="#06B6D4", background="#0C1426"),
    "Forest Green": ThemeColors(primary="#10B981", accent="#34D399", background="#0A1F1A"),
    "Sunset Orange": ThemeColors(primary="#F97316", accent="#FB923C", background="#1F1611"),
    "Royal Purple": ThemeColors(primary="#9333EA", accent="#A855F7", background="#1A0F2E"),
    "Rose Pink": ThemeColors(primary="#E11D48", accent="#F43F5E", background="#2D0A14"),
    "Midnight Dark": ThemeColors(primary="#6B7280", accent="#9CA3AF", background="#000000"),
    "Arctic White": ThemeColors(primary="#1F2937", accent="#374151", background="#F9FAFB"),
}


@dataclass(frozen=True)
class RoleStyle:
    label: str
    color: str
    icon: Optional[str] = None


@dataclass(frozen=True)
class StatusStyle:
    label: str
    color: str


ROLE_STYLES: Dict[MemberRole, RoleStyle] = {
    MemberRole.OWNER: RoleStyle("SERVER OWNER", "#faa61a", ft.Icons.WORKSPACE_PREMIUM),
    MemberRole.ADMIN: RoleStyle("ADMINISTRATORS", "#f04747", ft.Icons.SHIELD),
    MemberRole.MODERATOR: RoleStyle("MODERATORS", "#43b581", ft.Icons.VERIFIED_USER),
    MemberRole.MEMBER: RoleStyle("MEMBERS", "#b9bbbe"),
}

STATUS_STYLES: Dict[PresenceStatus, StatusStyle] = {
    PresenceStatus.ONLINE: StatusStyle("Online", "#22C55E"),
    PresenceStatus.AWAY: StatusStyle("Away", "#EAB308"),
    PresenceStatus.BUSY: StatusStyle("Do Not Disturb", "#EF4444"),
    PresenceStatus.INVISIBLE: StatusStyle("Invisible", "#6B7280"),
}


def role_style(role) -> RoleStyle:
    try:
        return ROLE_STYLES[MemberRole(role)]
    except ValueError:
        return ROLE_STYLES[MemberRole.MEMBER]


def status_style(status) -> StatusStyle:
    try:
        return STATUS_STYLES[PresenceStatus(status)]
    except ValueError:
        return STATUS_STYLES[PresenceStatus.INVISIBLE]


# Chrome colours around the themed surfaces
LIGHT_COLORS = {
    "text_primary": "#111827",
    "text_secondary": "#4B5563",
    "text_tertiary": "#9CA3AF",
    "bg_primary": "#FFFFFF",
    "bg_secondary": "#F3F4F6",
    "bg_tertiary": "#E5E7EB",
    "divider": "#E5E7EB",
    "success": "#22C55E",
    "error": "#EF4444",
    "border": "#D1D5DB"
}

DARK_COLORS = {
    "text_primary": "#F9FAFB",
    "text_secondary": "#B9BBBE",
    "text_tertiary": "#72767D",
    "bg_primary": "#1E1F22",
    "bg_secondary": "#2B2D31",
    "bg_tertiary": "#313338",
    "divider": "#3F4147",
    "success": "#22C55E",
    "error": "#EF4444",
    "border": "#3F4147"
}

FONT_SIZES = {
    "xs": 10,
    "sm": 12,
    "base": 14,
    "lg": 16,
    "xl": 18,
    "2xl": 20,
    "3xl": 24
}

SPACING = {
    "xs": 2,
    "sm": 4,
    "md": 8,
    "lg": 12,
    "xl": 16,
    "2xl": 20,
    "3xl": 24
}

RADIUS = {
    "sm": 4,
    "md": 8,
    "lg": 12,
    "xl": 16,
    "2xl": 20,
    "full": 24
}


def is_light(hex_color: str) -> bool:
    """Perceived luminance check, used to pick the light or dark chrome"""
    value = hex_color.lstrip("#")
    r, g, b = int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)
    return (0.299 * r + 0.587 * g + 0.114 * b) > 186


def palette_for(theme: ThemeColors) -> Dict[str, str]:
    colors = dict(LIGHT_COLORS if is_light(theme.background) else DARK_COLORS)
    colors.update({
        "accent": theme.primary,
        "accent_secondary": theme.accent,
        "background": theme.background,
    })
    return colors


class ThemeContext:
    """The one current theme for the running app"""

    def __init__(self, theme: Optional[ThemeColors] = None):
        self._current = theme or DEFAULT_THEME
        self._listeners: List[Callable[[ThemeColors], None]] = []

    @property
    def current(self) -> ThemeColors:
        return self._current

    @property
    def colors(self) -> Dict[str, str]:
        return palette_for(self._current)

    def subscribe(self, callback: Callable[[ThemeColors], None]) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def apply(self, theme: ThemeColors):
        """Switch the live theme without persisting it"""
        self._current = theme
        for listener in list(self._listeners):
            listener(theme)

    def load_from(self, profile: Optional[UserProfile]):
        self.apply(profile.theme_colors if profile and profile.theme_colors else DEFAULT_THEME)

    async def save(self, theme: ThemeColors, profile_controller) -> bool:
        """Persist to the user's profile; listeners only hear about it once stored"""
        ok, _ = await profile_controller.boundary.run(
            lambda: profile_controller.save_theme(theme),
            context="Save theme",
            failure=Notice("Failed to save theme"),
        )
        if not ok:
            return False
        logger.info(f"[THEME] Saved theme {theme.primary}/{theme.accent}/{theme.background}")
        self.apply(theme)
        profile_controller.boundary.success("Your theme has been saved")
        return True
