"""
Attachment and classified-asset data models.

An ``Attachment`` is what the source task hands us (immutable). An
``AssetCandidate`` is the downloaded, optionally probed form of one
attachment; it lives only for the duration of a single publish job.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

IMAGE_EXTENSIONS = frozenset({"png", "jpg", "jpeg", "gif", "webp"})
DISPLAY_EXTENSIONS = frozenset({"png", "gif"})
VIDEO_EXTENSIONS = frozenset({"mp4", "mov", "m4v", "webm", "avi"})

# High-resolution canonical square sides
CANONICAL_SQUARE_SIDES = frozenset({1080, 1200})

_SQUARE_HINT_RE = re.compile(r"(?<!\d)1\s*[:x×]\s*1(?!\d)|1200\s*[x×]\s*1200|1080\s*[x×]\s*1080|square", re.I)
_DISPLAY_HINT_RE = re.compile(r"300\s*[x×]\s*600|600\s*[x×]\s*300", re.I)


def file_extension(name: str) -> str:
    """Lower-case extension without the dot ('' when there is none)."""
    base = name.rsplit("/", 1)[-1]
    if "." not in base:
        return ""
    return base.rsplit(".", 1)[-1].lower()


def hints_square(name: str) -> bool:
    return bool(_SQUARE_HINT_RE.search(name or ""))


def hints_display(name: str) -> bool:
    """True when the filename names a 300×600 (or 600×300) layout."""
    return bool(_DISPLAY_HINT_RE.search(name or ""))


class Attachment(BaseModel):
    """One file referenced by the source task."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str = ""
    mime_type: str = Field(default="", alias="mimeType")
    url: str = ""
    is_upload: bool = Field(default=True, alias="isUpload")

    @property
    def extension(self) -> str:
        return file_extension(self.name) or file_extension(self.url)

    @property
    def is_image(self) -> bool:
        if self.mime_type.lower().startswith("image/"):
            return True
        return self.extension in IMAGE_EXTENSIONS

    @property
    def is_display_format(self) -> bool:
        """PNG or GIF — the formats accepted for display creatives."""
        mime = self.mime_type.lower()
        return mime in ("image/png", "image/gif") or self.extension in DISPLAY_EXTENSIONS

    @property
    def is_video(self) -> bool:
        return self.extension in VIDEO_EXTENSIONS


@dataclass
class AssetCandidate:
    """A downloaded attachment ready to be uploaded."""

    buffer: bytes = field(repr=False)
    filename: str
    width: int = 0
    height: int = 0
    rank: int = 0
    mime_type: str = ""

    @property
    def pixel_area(self) -> int:
        return self.width * self.height

    @property
    def has_dimensions(self) -> bool:
        return self.width > 0 and self.height > 0

    @property
    def is_square(self) -> bool:
        return self.has_dimensions and self.width == self.height

    @property
    def is_gif(self) -> bool:
        return self.mime_type == "image/gif" or file_extension(self.filename) == "gif"

    @property
    def dimensions(self) -> str:
        """Human-readable ``WxH`` (``?`` when unknown)."""
        if not self.has_dimensions:
            return "?"
        return f"{self.width}x{self.height}"


@dataclass
class ClassifiedAssets:
    """The views produced by one classification pass."""

    square_assets: list[AssetCandidate] = field(default_factory=list)
    display_asset: Optional[AssetCandidate] = None
    non_display_images: list[AssetCandidate] = field(default_factory=list)
    image_attachments: list[AssetCandidate] = field(default_factory=list)
    first_video: Optional[AssetCandidate] = None
    first_attachment: Optional[AssetCandidate] = None
    skipped: list[str] = field(default_factory=list)

    @property
    def square_count(self) -> int:
        return len(self.square_assets)

    @property
    def non_display_image_count(self) -> int:
        return len(self.non_display_images)
