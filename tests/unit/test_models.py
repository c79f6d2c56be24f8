"""Unit tests for data models."""

import pytest

from models.session import Identity, Session, SignupRequest
from models.video import (
    MAX_UPLOAD_BYTES,
    AuthorInfo,
    RankingEntry,
    Video,
    VideoFile,
    VideoStatus,
)


class TestVideo:
    """Tests for the Video model."""

    def test_only_uploaded_videos_are_deletable(self):
        """Test that deletion is allowed only before processing starts."""
        assert Video(id="1", title="t", status="uploaded").is_deletable
        assert not Video(id="1", title="t", status="processing").is_deletable
        assert not Video(id="1", title="t", status="processed").is_deletable

    def test_unknown_status_is_not_deletable(self):
        """Test that unrecognised states are kept but never deletable."""
        video = Video(id="1", title="t", status="archived")
        assert video.status == "archived"
        assert not video.is_deletable

    def test_status_enum_compares_to_strings(self):
        """Test that VideoStatus members equal their wire values."""
        assert VideoStatus.PROCESSED == "processed"
        assert VideoStatus("uploaded") is VideoStatus.UPLOADED

    def test_defaults(self):
        """Test that a new Video has no votes and no author."""
        video = Video(id="1", title="t", status="uploaded")
        assert video.vote_count == 0
        assert video.voted_by_current_user is False
        assert video.author is None
        assert video.raw == {}


class TestAuthorInfo:
    """Tests for author display names."""

    @pytest.mark.parametrize(
        "fields,expected",
        [
            ({"first_name": "Ana", "last_name": "Ruiz", "name": "x"}, "Ana Ruiz"),
            ({"first_name": "Ana", "name": "Ana R."}, "Ana R."),
            ({"username": "ana", "email": "ana@example.com"}, "ana"),
            ({"email": "ana@example.com"}, "ana@example.com"),
            ({}, None),
        ],
    )
    def test_display_name_precedence(self, fields, expected):
        """Test the first+last, name, username, email chain."""
        assert AuthorInfo(user_id="7", **fields).display_name == expected


class TestVideoFile:
    """Tests for VideoFile."""

    def test_from_path(self, tmp_path):
        """Test describing a file on disk without reading it."""
        path = tmp_path / "Clip.MP4"
        path.write_bytes(b"0123456789")

        video_file = VideoFile.from_path(path)

        assert video_file.filename == "Clip.MP4"
        assert video_file.size == 10
        assert video_file.is_mp4
        assert video_file.data is None
        assert video_file.read() == b"0123456789"

    def test_mov_is_not_mp4(self):
        assert not VideoFile("clip.mov", 1).is_mp4

    def test_read_without_source(self):
        assert VideoFile("clip.mp4", 0).read() == b""

    def test_upload_limit(self):
        assert MAX_UPLOAD_BYTES == 100 * 1024 * 1024


class TestRankingEntry:
    def test_is_immutable(self):
        entry = RankingEntry(1, "t", "a", 3)
        with pytest.raises(AttributeError):
            entry.vote_count = 4


class TestSession:
    """Tests for Session and Identity."""

    def test_empty_session(self):
        """Test that the empty session carries neither token nor identity."""
        session = Session.empty()
        assert session.token is None
        assert session.identity is None
        assert not session.is_authenticated

    def test_token_and_identity_go_together(self):
        """Test that half a session cannot be constructed."""
        with pytest.raises(ValueError):
            Session(token="tok")
        with pytest.raises(ValueError):
            Session(identity=Identity(email="ana@example.com"))

    def test_identity_round_trip(self):
        identity = Identity(email="ana@example.com", display_name="Ana")
        assert Identity.from_dict(identity.to_dict()) == identity

    @pytest.mark.parametrize("record", [None, [], "ana", {}, {"email": 5}])
    def test_identity_from_bad_record(self, record):
        with pytest.raises(ValueError):
            Identity.from_dict(record)

    def test_signup_payload(self):
        request = SignupRequest("Ana", "Ruiz", "ana@example.com", "pw", "pw", "Cali", "CO")
        assert request.to_payload() == {
            "first_name": "Ana",
            "last_name": "Ruiz",
            "email": "ana@example.com",
            "password": "pw",
            "password2": "pw",
            "city": "Cali",
            "country": "CO",
        }
