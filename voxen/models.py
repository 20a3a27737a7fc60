import json
import re
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


def new_id(prefix: str) -> str:
    """Client-side record id, e.g. ``msg_3f2a...``"""
    return f"{prefix}_{uuid.uuid4().hex}"


# Enums and Constants
class ChannelType(str, Enum):
    TEXT = "text"
    VOICE = "voice"


class FriendStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"


class MemberRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MODERATOR = "moderator"
    MEMBER = "member"


class PresenceStatus(str, Enum):
    ONLINE = "online"
    AWAY = "away"
    BUSY = "busy"
    INVISIBLE = "invisible"


class AttachmentKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    FILE = "file"


class Record(BaseModel):
    """Base for every gateway record: accepts wire aliases and python names"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore", use_enum_values=False)

    id: str

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ThemeColors(BaseModel):
    primary: str = "#6366F1"
    accent: str = "#8B5CF6"
    background: str = "#0F0F23"

    @field_validator("primary", "accent", "background")
    @classmethod
    def validate_hex(cls, v):
        if not isinstance(v, str) or not HEX_COLOR.match(v):
            raise ValueError(f"Invalid color {v!r}, expected #RRGGBB")
        return v.upper()

    @classmethod
    def from_json(cls, raw: Any) -> "ThemeColors":
        """Parse the serialized theme triple; missing keys fall back to defaults"""
        if raw is None or raw == "":
            return cls()
        if isinstance(raw, ThemeColors):
            return raw
        if isinstance(raw, str):
            raw = json.loads(raw)
        if not isinstance(raw, dict):
            raise ValueError("Theme colors must be an object")
        return cls(**{k: v for k, v in raw.items() if k in ("primary", "accent", "background") and v})

    def to_json(self) -> str:
        return json.dumps({"primary": self.primary, "accent": self.accent, "background": self.background})


def _parse_theme(v):
    if v is None or v == "":
        return None
    return ThemeColors.from_json(v)


class User(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    email: Optional[str] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")
    avatar: Optional[str] = None

    @property
    def handle(self) -> str:
        if self.email and "@" in self.email:
            return self.email.split("@")[0] or "User"
        return self.email or "User"


class AuthState(BaseModel):
    user: Optional[User] = None
    is_loading: bool = True


class Server(Record):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    icon_url: Optional[str] = Field(default=None, alias="iconUrl")
    background_url: Optional[str] = Field(default=None, alias="backgroundUrl")
    owner_id: str = Field(..., alias="ownerId")
    theme_colors: Optional[ThemeColors] = Field(default=None, alias="themeColors")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    @field_validator("theme_colors", mode="before")
    @classmethod
    def parse_theme(cls, v):
        return _parse_theme(v)

    @field_serializer("theme_colors")
    def serialize_theme(self, v: Optional[ThemeColors]):
        return v.to_json() if v else None


class Channel(Record):
    server_id: str = Field(..., alias="serverId")
    name: str = Field(..., min_length=1, max_length=100)
    type: ChannelType = ChannelType.TEXT
    position: int = 0
    description: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class Message(Record):
    channel_id: str = Field(..., alias="channelId")
    user_id: str = Field(..., alias="userId")
    content: Optional[str] = None
    file_url: Optional[str] = Field(default=None, alias="fileUrl")
    file_type: Optional[AttachmentKind] = Field(default=None, alias="fileType")
    file_size: Optional[int] = Field(default=None, alias="fileSize")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class DirectMessage(Record):
    sender_id: str
    recipient_id: str
    content: str = ""
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    created_at: Optional[datetime] = None

    # Local display fields, never written to the gateway
    sender_name: Optional[str] = Field(default=None, exclude=True)
    sender_avatar: Optional[str] = Field(default=None, exclude=True)


class Friend(Record):
    user_id: str
    friend_user_id: str
    status: FriendStatus = FriendStatus.PENDING

    friend_name: Optional[str] = Field(default=None, exclude=True)
    friend_avatar: Optional[str] = Field(default=None, exclude=True)

    def other_party(self, me: str) -> str:
        return self.friend_user_id if self.user_id == me else self.user_id


class ServerMember(Record):
    server_id: str = Field(..., alias="serverId")
    user_id: str = Field(..., alias="userId")
    role: MemberRole = MemberRole.MEMBER
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    @field_validator("role", mode="before")
    @classmethod
    def default_role(cls, v):
        return v or MemberRole.MEMBER


class UserProfile(Record):
    user_id: str = Field(..., alias="userId")
    display_name: str = Field(..., alias="displayName", min_length=1, max_length=100)
    email: Optional[str] = None
    bio: Optional[str] = None
    status: PresenceStatus = PresenceStatus.ONLINE
    avatar_url: Optional[str] = Field(default=None, alias="avatarUrl")
    background_url: Optional[str] = Field(default=None, alias="backgroundUrl")
    theme_colors: Optional[ThemeColors] = Field(default=None, alias="themeColors")

    @field_validator("theme_colors", mode="before")
    @classmethod
    def parse_theme(cls, v):
        return _parse_theme(v)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        if v is None or v == "":
            return PresenceStatus.ONLINE
        if v == "offline":
            return PresenceStatus.INVISIBLE
        return v

    @field_serializer("theme_colors")
    def serialize_theme(self, v: Optional[ThemeColors]):
        return v.to_json() if v else None
