"""Video-related data models."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

MAX_UPLOAD_BYTES = 100 * 1024 * 1024  # 100 MiB
MP4_CONTENT_TYPE = "video/mp4"


class VideoStatus(str, Enum):
    """Processing states reported by the backend transcoder."""

    UPLOADED = "uploaded"
    PROCESSING = "processing"
    PROCESSED = "processed"


@dataclass
class AuthorInfo:
    """Public profile of a video owner, as returned by the user endpoints."""

    user_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    name: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None

    @property
    def display_name(self) -> Optional[str]:
        """First+last name, else name, else username, else email."""
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.name or self.username or self.email or None


@dataclass
class Video:
    """A video as seen by the client.

    ``vote_count`` and ``voted_by_current_user`` are adjusted locally by the
    vote reconciler; they only match server truth again after a re-fetch.
    """

    id: str
    title: str
    status: str
    owner_id: Optional[str] = None
    original_url: Optional[str] = None
    processed_url: Optional[str] = None
    vote_count: int = 0
    voted_by_current_user: bool = False
    uploaded_at: Optional[str] = None
    processed_at: Optional[str] = None
    author: Optional[AuthorInfo] = None
    # Untouched backend payload, used for embedded author fallbacks
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def is_deletable(self) -> bool:
        return self.status == VideoStatus.UPLOADED


@dataclass(frozen=True)
class RankingEntry:
    """One row of the public ranking, in server order."""

    position: int
    title: str
    author_name: str
    vote_count: int
    video_id: Optional[str] = None


@dataclass(frozen=True)
class UploadReceipt:
    """Acknowledgement returned by the upload endpoint."""

    message: str
    task_id: Optional[str] = None


@dataclass
class VideoFile:
    """A local file about to be uploaded.

    ``size`` is the declared size in bytes and is what upload validation
    checks, so large files are rejected without being read.
    """

    filename: str
    size: int
    content_type: Optional[str] = None
    data: Optional[bytes] = None
    path: Optional[Path] = None

    @classmethod
    def from_path(cls, path: str | Path, content_type: Optional[str] = None) -> "VideoFile":
        """Describe a file on disk without loading it."""
        file_path = Path(path)
        return cls(
            filename=file_path.name,
            size=file_path.stat().st_size,
            content_type=content_type,
            path=file_path,
        )

    @property
    def is_mp4(self) -> bool:
        if self.content_type == MP4_CONTENT_TYPE:
            return True
        return self.filename.lower().endswith(".mp4")

    def read(self) -> bytes:
        if self.data is not None:
            return self.data
        if self.path is not None:
            return self.path.read_bytes()
        return b""
