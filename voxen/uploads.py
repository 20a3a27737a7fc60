"""
Client-side upload validation and composite progress reporting.
"""

import logging
import math
import mimetypes
import os
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Tuple

from .config import Settings, get_settings
from .error_handler import ValidationError
from .models import AttachmentKind

logger = logging.getLogger("voxen.uploads")


@dataclass(frozen=True)
class LocalFile:
    """A file picked by the user, described before anything is sent"""
    path: str
    name: str
    size: int
    mime_type: str = "application/octet-stream"

    @classmethod
    def from_path(cls, path: str, name: Optional[str] = None) -> "LocalFile":
        file_name = name or os.path.basename(path)
        mime_type, _ = mimetypes.guess_type(file_name)
        return cls(
            path=path,
            name=file_name,
            size=os.path.getsize(path),
            mime_type=mime_type or "application/octet-stream",
        )

    def open_chunks(self, chunk_size: int) -> Iterator[bytes]:
        with open(self.path, "rb") as f:
            while True:
                chunk = f.read(chunk_size)
                if not chunk:
                    break
                yield chunk


@dataclass(frozen=True)
class UploadSlot:
    name: str
    max_bytes: int
    accepted_prefixes: Tuple[str, ...]
    too_large: str
    wrong_type: str

    def accepts(self, mime_type: str) -> bool:
        if not self.accepted_prefixes:
            return True
        return any((mime_type or "").startswith(prefix) for prefix in self.accepted_prefixes)


def avatar_slot(settings: Optional[Settings] = None) -> UploadSlot:
    settings = settings or get_settings()
    return UploadSlot(
        "avatar", settings.MAX_AVATAR_BYTES, ("image/",),
        f"Profile pictures must be under {format_file_size(settings.MAX_AVATAR_BYTES)}",
        "Please select an image file",
    )


def server_icon_slot(settings: Optional[Settings] = None) -> UploadSlot:
    settings = settings or get_settings()
    return UploadSlot(
        "server_icon", settings.MAX_AVATAR_BYTES, ("image/",),
        f"Server icons must be under {format_file_size(settings.MAX_AVATAR_BYTES)}",
        "Please select an image file",
    )


def background_slot(settings: Optional[Settings] = None) -> UploadSlot:
    settings = settings or get_settings()
    return UploadSlot(
        "background", settings.MAX_BACKGROUND_BYTES, ("image/", "video/"),
        f"Background images must be under {format_file_size(settings.MAX_BACKGROUND_BYTES)}",
        "Please select an image or video file",
    )


def attachment_slot(settings: Optional[Settings] = None) -> UploadSlot:
    settings = settings or get_settings()
    return UploadSlot(
        "attachment", settings.MAX_ATTACHMENT_BYTES, (),
        f"Files must be under {format_file_size(settings.MAX_ATTACHMENT_BYTES)}",
        "Unsupported file type",
    )


def validate_upload(slot: UploadSlot, file: LocalFile) -> LocalFile:
    """Reject oversized or wrongly typed files before any network call"""
    if file.size > slot.max_bytes:
        logger.info(f"[UPLOAD] {file.name} rejected for {slot.name}: {file.size} bytes > {slot.max_bytes}")
        raise ValidationError("File too large", slot.too_large)
    if not slot.accepts(file.mime_type):
        logger.info(f"[UPLOAD] {file.name} rejected for {slot.name}: type {file.mime_type}")
        raise ValidationError("Invalid file type", slot.wrong_type)
    return file


def classify_attachment(mime_type: Optional[str]) -> AttachmentKind:
    if mime_type and mime_type.startswith("image/"):
        return AttachmentKind.IMAGE
    if mime_type and mime_type.startswith("video/"):
        return AttachmentKind.VIDEO
    return AttachmentKind.FILE


def format_file_size(size: int) -> str:
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    i = 0
    while size >= math.pow(1024, i + 1) and i < len(units) - 1:
        i += 1
    text = f"{size / math.pow(1024, i):.2f}".rstrip("0").rstrip(".")
    return f"{text} {units[i]}"


class ProgressPlan:
    """Composite progress over sequential steps.

    Each step owns a disjoint sub-range of 0..100; the value never goes backwards.
    """

    def __init__(self, on_change: Optional[Callable[[float], None]] = None):
        self.value = 0.0
        self._listeners: List[Callable[[float], None]] = []
        if on_change:
            self._listeners.append(on_change)

    def subscribe(self, callback: Callable[[float], None]):
        self._listeners.append(callback)
        return lambda: self._listeners.remove(callback) if callback in self._listeners else None

    def mark(self, value: float) -> float:
        value = max(0.0, min(100.0, float(value)))
        if value > self.value:
            self.value = value
            for listener in list(self._listeners):
                listener(self.value)
        return self.value

    def step(self, start: float, end: float) -> Callable[[float], None]:
        if not 0 <= start <= end <= 100:
            raise ValueError(f"Invalid progress range {start}..{end}")
        self.mark(start)

        def report(percent: float):
            percent = max(0.0, min(100.0, float(percent)))
            self.mark(start + percent * (end - start) / 100.0)

        return report

    def reset(self):
        self.value = 0.0
        for listener in list(self._listeners):
            listener(self.value)
