"""Author Enrichment - attach owner profiles to a batch of videos."""

import asyncio
import logging
from typing import Optional

from models.video import AuthorInfo, Video
from services.errors import VideoVoteError
from services.response_normalizer import first_present
from services.video_gateway import VideoGateway

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT = 5

# Author fields some backends embed directly in the video payload
EMBEDDED_NAME_FIELDS = (
    "user_name",
    "author_name",
    "author.name",
    "author.username",
    "user.name",
    "user.username",
    "username",
)
EMBEDDED_CITY_FIELDS = ("user_city", "author_city", "author.city", "user.city", "city")
EMBEDDED_COUNTRY_FIELDS = (
    "user_country",
    "author_country",
    "author.country",
    "user.country",
    "country",
)


def first_filled(record: dict, keys: tuple[str, ...]) -> Optional[str]:
    """First alias whose value is a non-blank string once stripped."""
    for key in keys:
        value = first_present(record, (key,))
        if value is None or isinstance(value, (dict, list)):
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def author_display_name(video: Video) -> str:
    """Name to show for a video's owner.

    Looked-up profile first (first+last, name, username, email), then any
    author fields embedded in the video payload, then ``Usuario <owner_id>``.
    """
    if video.author is not None and video.author.display_name:
        return video.author.display_name
    embedded = first_filled(video.raw, EMBEDDED_NAME_FIELDS)
    if embedded:
        return embedded
    return f"Usuario {video.owner_id or 'Anónimo'}"


def author_city(video: Video) -> Optional[str]:
    if video.author is not None and video.author.city:
        return video.author.city
    return first_filled(video.raw, EMBEDDED_CITY_FIELDS)


def author_country(video: Video) -> Optional[str]:
    if video.author is not None and video.author.country:
        return video.author.country
    return first_filled(video.raw, EMBEDDED_COUNTRY_FIELDS)


class AuthorEnrichment:
    """Fan out one lookup per distinct owner, tolerating individual failures."""

    def __init__(self, gateway: VideoGateway, max_concurrent: int = DEFAULT_MAX_CONCURRENT):
        """Initialize author enrichment.

        Args:
            gateway: Gateway used for the user lookups
            max_concurrent: Maximum lookups in flight at once
        """
        self.gateway = gateway
        self.max_concurrent = max(1, max_concurrent)

    async def lookup(self, owner_id: str) -> Optional[AuthorInfo]:
        """Try the primary user endpoint, then the public one.

        Returns:
            The profile, or None when both lookups fail
        """
        try:
            return await self.gateway.get_user(owner_id)
        except VideoVoteError as e:
            logger.debug(f"Primary lookup for user {owner_id} failed: {e.message}")

        try:
            return await self.gateway.get_public_user(owner_id)
        except VideoVoteError as e:
            logger.info(f"No author info for user {owner_id}: {e.message}")
            return None

    async def fetch_authors(self, owner_ids: list[str]) -> dict[str, Optional[AuthorInfo]]:
        """Look up each id once with bounded concurrency.

        Returns:
            Mapping with exactly the requested ids as keys; None where unknown
        """
        unique_ids = list(dict.fromkeys(owner_id for owner_id in owner_ids if owner_id))
        if not unique_ids:
            return {}

        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def bounded_lookup(owner_id: str) -> Optional[AuthorInfo]:
            async with semaphore:
                return await self.lookup(owner_id)

        results = await asyncio.gather(*(bounded_lookup(owner_id) for owner_id in unique_ids))
        authors = dict(zip(unique_ids, results))

        found = sum(1 for author in results if author is not None)
        logger.debug(f"Resolved {found}/{len(unique_ids)} authors")
        return authors

    async def enrich(self, videos: list[Video]) -> dict[str, Optional[AuthorInfo]]:
        """Attach ``author`` to every video whose owner could be resolved.

        Videos whose owner lookup failed keep ``author=None`` and fall back to
        ``author_display_name``'s placeholder.
        """
        authors = await self.fetch_authors([video.owner_id for video in videos if video.owner_id])
        for video in videos:
            author = authors.get(video.owner_id) if video.owner_id else None
            if author is not None:
                video.author = author
        return authors
