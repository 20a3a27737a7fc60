from .channel_sidebar import ChannelSidebar
from .chat_area import ChatArea
from .dialogs import CreateServerDialog, ServerSettingsDialog, ThemeCustomizerDialog, UserProfileDialog
from .dm_chat_area import DMChatArea
from .dm_sidebar import DMSidebar
from .layout import VoxenLayout
from .login import LoginView
from .member_list import MemberList
from .server_sidebar import ServerSidebar
from .user_panel import UserPanel
from .voice_controls import VoiceControls

__all__ = [
    "ChannelSidebar",
    "ChatArea",
    "CreateServerDialog",
    "DMChatArea",
    "DMSidebar",
    "LoginView",
    "MemberList",
    "ServerSettingsDialog",
    "ServerSidebar",
    "ThemeCustomizerDialog",
    "UserPanel",
    "UserProfileDialog",
    "VoiceControls",
    "VoxenLayout",
]
