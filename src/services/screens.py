"""Screen controllers - per-screen working sets over the core services.

Each screen owns its own list, a busy flag and the last user-facing error.
Service errors are caught here and only here: the message is stored, the
busy flag cleared, and the previous working set kept unless the failed
operation was the one loading it.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from models.video import RankingEntry, UploadReceipt, Video, VideoFile
from services.author_enrichment import AuthorEnrichment
from services.errors import (
    AuthenticationError,
    NotDeletableError,
    ScreenBusyError,
    VideoVoteError,
)
from services.session_store import SessionStore
from services.video_gateway import VideoGateway
from services.vote_reconciler import VoteReconciler

logger = logging.getLogger(__name__)


class Screen:
    """Busy flag plus error slot shared by all screens."""

    def __init__(self):
        self.busy = False
        self.error: Optional[str] = None
        self.last_exception: Optional[VideoVoteError] = None

    @asynccontextmanager
    async def _operation(self):
        """Guard one user action.

        Raises ScreenBusyError while another action runs. Any VideoVoteError
        raised inside is recorded on the screen and swallowed.
        """
        if self.busy:
            raise ScreenBusyError()
        self.busy = True
        self.error = None
        self.last_exception = None
        try:
            yield
        except VideoVoteError as e:
            self.error = e.message
            self.last_exception = e
            logger.info(f"{type(self).__name__}: {e.message}")
        finally:
            self.busy = False

    @property
    def ok(self) -> bool:
        return self.error is None


class MyVideosScreen(Screen):
    """The signed-in user's own uploads."""

    def __init__(self, gateway: VideoGateway):
        super().__init__()
        self.gateway = gateway
        self.videos: list[Video] = []

    async def load(self) -> list[Video]:
        async with self._operation():
            self.videos = await self.gateway.list_my_videos()
        return self.videos

    async def delete(self, video: Video) -> bool:
        """Delete ``video`` and refresh the list.

        Videos that are no longer ``uploaded`` are refused locally and stay
        in the list. Once the backend accepts the delete the video leaves
        the list even if the refresh that follows fails.
        """
        deleted = False
        async with self._operation():
            if not video.is_deletable:
                raise NotDeletableError()
            await self.gateway.delete_video(video.id)
            deleted = True
            self.videos = [v for v in self.videos if v.id != video.id]
            try:
                self.videos = await self.gateway.list_my_videos()
            except VideoVoteError as e:
                logger.warning(f"Video {video.id} deleted but refresh failed: {e.message}")
        return deleted


class VideoDetailScreen(Screen):
    def __init__(self, gateway: VideoGateway):
        super().__init__()
        self.gateway = gateway
        self.video: Optional[Video] = None

    async def load(self, video_id: str) -> Optional[Video]:
        async with self._operation():
            self.video = await self.gateway.get_video(video_id)
        return self.video


class PublicVideosScreen(Screen):
    """Public submissions with author details and voting."""

    def __init__(
        self,
        gateway: VideoGateway,
        session_store: SessionStore,
        enrichment: AuthorEnrichment,
        reconciler: VoteReconciler,
    ):
        super().__init__()
        self.gateway = gateway
        self.session_store = session_store
        self.enrichment = enrichment
        self.reconciler = reconciler
        self.videos: list[Video] = []

    async def load(self) -> list[Video]:
        async with self._operation():
            self.videos = await self.gateway.list_public_videos()
            self.reconciler.track(self.videos)
            await self.enrichment.enrich(self.videos)
        return self.videos

    def find(self, video_id: str) -> Optional[Video]:
        return next((video for video in self.videos if video.id == video_id), None)

    async def vote(self, video: Video) -> None:
        async with self._operation():
            if not self.session_store.is_authenticated():
                raise AuthenticationError("Debes iniciar sesión para votar.")
            await self.reconciler.vote(video)

    async def unvote(self, video: Video) -> None:
        async with self._operation():
            if not self.session_store.is_authenticated():
                raise AuthenticationError("Debes iniciar sesión para retirar el voto.")
            await self.reconciler.unvote(video)

    @property
    def error_title(self) -> str:
        if isinstance(self.last_exception, AuthenticationError):
            return "Necesitas iniciar sesión"
        return "Error al cargar videos"


class RankingScreen(Screen):
    def __init__(self, gateway: VideoGateway):
        super().__init__()
        self.gateway = gateway
        self.rankings: list[RankingEntry] = []

    async def load(self, params: Optional[dict] = None) -> list[RankingEntry]:
        async with self._operation():
            self.rankings = await self.gateway.list_rankings(params)
        return self.rankings


class UploadScreen(Screen):
    def __init__(self, gateway: VideoGateway):
        super().__init__()
        self.gateway = gateway
        self.receipt: Optional[UploadReceipt] = None

    async def submit(self, title: str, video_file: Optional[VideoFile]) -> Optional[UploadReceipt]:
        async with self._operation():
            self.receipt = None
            self.receipt = await self.gateway.upload_video(title, video_file)
        return self.receipt
