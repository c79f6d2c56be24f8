# Data models for videovote
from .session import Identity, Session, SignupRequest
from .video import (
    MAX_UPLOAD_BYTES,
    AuthorInfo,
    RankingEntry,
    UploadReceipt,
    Video,
    VideoFile,
    VideoStatus,
)

__all__ = [
    "Identity",
    "Session",
    "SignupRequest",
    "MAX_UPLOAD_BYTES",
    "AuthorInfo",
    "RankingEntry",
    "UploadReceipt",
    "Video",
    "VideoFile",
    "VideoStatus",
]
