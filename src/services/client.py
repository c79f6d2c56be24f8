"""Wire the core services together from configuration."""

from dataclasses import dataclass
from typing import Optional

import httpx

from services.api_client import ApiClient
from services.author_enrichment import AuthorEnrichment
from services.screens import (
    MyVideosScreen,
    PublicVideosScreen,
    RankingScreen,
    UploadScreen,
    VideoDetailScreen,
)
from services.session_store import SessionStore
from services.video_gateway import VideoGateway
from services.vote_reconciler import VoteReconciler
from utils.config import load_config
from utils.session_storage import FileSessionStorage, SessionStorage


@dataclass
class VideoVoteClient:
    """One running client: a single session store shared by every service."""

    api: ApiClient
    session_store: SessionStore
    gateway: VideoGateway
    enrichment: AuthorEnrichment
    reconciler: VoteReconciler

    def my_videos_screen(self) -> MyVideosScreen:
        return MyVideosScreen(self.gateway)

    def video_detail_screen(self) -> VideoDetailScreen:
        return VideoDetailScreen(self.gateway)

    def public_videos_screen(self) -> PublicVideosScreen:
        return PublicVideosScreen(self.gateway, self.session_store, self.enrichment, self.reconciler)

    def ranking_screen(self) -> RankingScreen:
        return RankingScreen(self.gateway)

    def upload_screen(self) -> UploadScreen:
        return UploadScreen(self.gateway)

    async def close(self) -> None:
        await self.api.close()


def build_client(
    config: Optional[dict] = None,
    storage: Optional[SessionStorage] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> VideoVoteClient:
    """Build a client and restore any persisted session.

    Args:
        config: Configuration dict (defaults to ``load_config()``)
        storage: Session storage (defaults to the configured session file)
        transport: Optional httpx transport, used by tests
    """
    cfg = config or load_config()
    api = ApiClient(cfg["api_url"], timeout=cfg.get("request_timeout", 30.0), transport=transport)
    session_store = SessionStore(api, storage or FileSessionStorage(cfg["session_file"]))
    gateway = VideoGateway(
        api,
        session_store,
        max_upload_bytes=cfg.get("max_upload_mb", 100) * 1024 * 1024,
    )
    enrichment = AuthorEnrichment(gateway, max_concurrent=cfg.get("author_lookup_concurrency", 5))
    reconciler = VoteReconciler(gateway)

    session_store.restore_from_storage()
    return VideoVoteClient(
        api=api,
        session_store=session_store,
        gateway=gateway,
        enrichment=enrichment,
        reconciler=reconciler,
    )
