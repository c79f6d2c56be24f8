"""Unit tests for the optimistic vote state machine."""

import asyncio

import pytest

from models.video import Video
from services.errors import (
    AlreadyVotedError,
    IllegalVoteTransition,
    NoExistingVoteError,
    TransportError,
)
from services.response_normalizer import normalize_videos
from services.vote_reconciler import VoteState


@pytest.fixture
def videos(reconciler, sample_videos_payload) -> list[Video]:
    loaded = normalize_videos(sample_videos_payload)
    reconciler.track(loaded)
    return loaded


class TestVoteCycle:
    @pytest.mark.asyncio
    async def test_vote_then_unvote_restores_count(self, backend, reconciler, videos):
        backend.add("POST", "/public/videos/1/vote", body={"message": "ok"})
        backend.add("DELETE", "/public/videos/1/vote", body={"message": "ok"})
        video = videos[0]

        await reconciler.vote(video)
        assert video.vote_count == 4
        assert video.voted_by_current_user is True
        assert reconciler.state_of(video) == VoteState.VOTED

        await reconciler.unvote(video)
        assert video.vote_count == 3
        assert video.voted_by_current_user is False
        assert reconciler.state_of(video) == VoteState.NOT_VOTED

    @pytest.mark.asyncio
    async def test_unvote_floors_count_at_zero(self, backend, reconciler, videos):
        backend.add("POST", "/public/videos/2/vote", body=None)
        backend.add("DELETE", "/public/videos/2/vote", body=None)
        video = videos[1]

        await reconciler.vote(video)
        video.vote_count = 0  # e.g. concurrent votes withdrawn elsewhere
        await reconciler.unvote(video)

        assert video.vote_count == 0

    @pytest.mark.asyncio
    async def test_other_videos_untouched(self, backend, reconciler, videos):
        backend.add("POST", "/public/videos/3/vote", body={"message": "ok"})
        await reconciler.vote(videos[2])
        assert [v.vote_count for v in videos] == [3, 0, 6]


class TestFailures:
    @pytest.mark.asyncio
    async def test_rejected_vote_leaves_state_unchanged(self, backend, reconciler, videos):
        backend.add("POST", "/public/videos/1/vote", status=400, body={"error": "already voted"})
        video = videos[0]

        with pytest.raises(AlreadyVotedError):
            await reconciler.vote(video)

        assert video.vote_count == 3
        assert video.voted_by_current_user is False
        assert reconciler.state_of(video) == VoteState.NOT_VOTED

    @pytest.mark.asyncio
    async def test_rejected_unvote_leaves_state_unchanged(self, backend, reconciler, videos):
        backend.add("POST", "/public/videos/1/vote", body={"message": "ok"})
        backend.add("DELETE", "/public/videos/1/vote", status=404)
        video = videos[0]
        await reconciler.vote(video)

        with pytest.raises(NoExistingVoteError):
            await reconciler.unvote(video)

        assert video.vote_count == 4
        assert reconciler.state_of(video) == VoteState.VOTED

    @pytest.mark.asyncio
    async def test_undecodable_success_leaves_state_unchanged(self, backend, reconciler, videos):
        backend.add("POST", "/public/videos/1/vote", body="not json")
        with pytest.raises(TransportError):
            await reconciler.vote(videos[0])
        assert videos[0].vote_count == 3


class TestTransitions:
    @pytest.mark.asyncio
    async def test_double_vote_is_refused_locally(self, backend, reconciler, videos):
        backend.add("POST", "/public/videos/1/vote", body={"message": "ok"})
        await reconciler.vote(videos[0])

        with pytest.raises(IllegalVoteTransition):
            await reconciler.vote(videos[0])

        assert len(backend.calls("POST", "/public/videos/1/vote")) == 1
        assert videos[0].vote_count == 4

    @pytest.mark.asyncio
    async def test_unvote_without_vote_is_refused_locally(self, backend, reconciler, videos):
        with pytest.raises(IllegalVoteTransition):
            await reconciler.unvote(videos[0])
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_overlapping_votes_apply_once(self, reconciler, videos):
        release = asyncio.Event()

        class SlowGateway:
            async def vote(self, video_id):
                await release.wait()

        reconciler.gateway = SlowGateway()
        video = videos[0]

        first = asyncio.ensure_future(reconciler.vote(video))
        second = asyncio.ensure_future(reconciler.vote(video))
        await asyncio.sleep(0)
        release.set()
        await asyncio.gather(first, second)

        # Both were legal when issued; the count only moves on the flip
        assert video.vote_count == 4
        assert video.voted_by_current_user is True

    @pytest.mark.asyncio
    async def test_track_resets_state(self, backend, reconciler, videos, sample_videos_payload):
        backend.add("POST", "/public/videos/1/vote", body={"message": "ok"})
        await reconciler.vote(videos[0])

        refetched = normalize_videos(sample_videos_payload)
        reconciler.track(refetched)

        assert reconciler.state_of(refetched[0]) == VoteState.NOT_VOTED
        assert refetched[0].voted_by_current_user is False

    def test_untracked_video_defaults_to_not_voted(self, reconciler):
        assert reconciler.state_of(Video(id="99", title="x", status="processed")) == VoteState.NOT_VOTED
