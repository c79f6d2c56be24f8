"""Vote Reconciler - optimistic local vote state for public videos."""

import logging
from enum import Enum
from typing import Iterable

from models.video import Video
from services.errors import IllegalVoteTransition
from services.video_gateway import VideoGateway

logger = logging.getLogger(__name__)


class VoteState(str, Enum):
    NOT_VOTED = "not-voted"
    VOTED = "voted"


class VoteReconciler:
    """Two-state machine per video: ``not-voted`` <-> ``voted``.

    The backend does not say whether the current user voted, so the flag is
    tracked here independently of the vote count and only reset by
    ``track()`` after a full re-fetch. Legality is checked against the local
    state when a request is issued; the effect is applied against the state
    found when the response arrives (last response wins). The count moves
    only when the flag actually flips, so it never drifts from the flag.
    """

    def __init__(self, gateway: VideoGateway):
        self.gateway = gateway
        self._states: dict[str, VoteState] = {}

    def track(self, videos: Iterable[Video]) -> None:
        """Reset local state from a freshly fetched list."""
        self._states = {}
        for video in videos:
            self._states[video.id] = VoteState.NOT_VOTED
            video.voted_by_current_user = False

    def state_of(self, video: Video) -> VoteState:
        return self._states.get(video.id, VoteState.NOT_VOTED)

    def _apply(self, video: Video, target: VoteState) -> None:
        if self.state_of(video) == target:
            return
        if target == VoteState.VOTED:
            video.vote_count += 1
        else:
            video.vote_count = max(0, video.vote_count - 1)
        self._states[video.id] = target
        video.voted_by_current_user = target == VoteState.VOTED

    async def vote(self, video: Video) -> None:
        """Vote for ``video``; count +1 and flag set once the backend accepts.

        Raises:
            IllegalVoteTransition: The video is already voted locally
            VideoVoteError: Whatever the gateway raised; local state untouched
        """
        if self.state_of(video) != VoteState.NOT_VOTED:
            raise IllegalVoteTransition("Ya has votado por este video.")
        await self.gateway.vote(video.id)
        self._apply(video, VoteState.VOTED)
        logger.info(f"Voted for video {video.id} ({video.vote_count} votes)")

    async def unvote(self, video: Video) -> None:
        """Withdraw the vote on ``video``; count -1 (floored at 0) on success.

        Raises:
            IllegalVoteTransition: The video is not voted locally
            VideoVoteError: Whatever the gateway raised; local state untouched
        """
        if self.state_of(video) != VoteState.VOTED:
            raise IllegalVoteTransition("No existe tu voto para este video.")
        await self.gateway.unvote(video.id)
        self._apply(video, VoteState.NOT_VOTED)
        logger.info(f"Removed vote for video {video.id} ({video.vote_count} votes)")
