"""Coerce the backend's loosely shaped payloads into canonical records.

The backend is not consistent about envelope or field names: list endpoints
answer with a bare array, ``{"data": [...]}`` or ``{"<resource>": [...]}``,
and the same field may arrive as ``vote_count``, ``VoteCount`` or ``votes``.
Everything here is pure and total: unknown shapes degrade to defaults
instead of raising.
"""

from typing import Any, Iterable, Optional

from models.video import AuthorInfo, RankingEntry, UploadReceipt, Video

_MISSING = object()

TOKEN_FIELDS = ("access_token", "AccessToken", "accessToken", "token")


def first_present(record: Any, keys: Iterable[str], default: Any = None) -> Any:
    """Return the first value in ``record`` that is neither missing nor None.

    Keys may be dotted (``"author.name"``) to reach into nested objects.
    """
    if not isinstance(record, dict):
        return default
    for key in keys:
        value = _lookup(record, key)
        if value is not _MISSING and value is not None:
            return value
    return default


def _lookup(record: dict, dotted_key: str) -> Any:
    current: Any = record
    for part in dotted_key.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _as_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def extract_list(payload: Any, resource: str) -> list:
    """Pull the item list out of a list-endpoint response.

    Preference order: bare array, ``data`` array, ``<resource>`` array,
    otherwise an empty list.
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        data = payload.get("data")
        if isinstance(data, list):
            return data
        named = payload.get(resource)
        if isinstance(named, list):
            return named
    return []


def extract_token(payload: Any) -> Optional[str]:
    """Find the access token in a login response, checking every known alias."""
    token = first_present(payload, TOKEN_FIELDS)
    if token is None:
        token = first_present(payload, ("data.token",))
    return _as_str(token)


def extract_error_message(payload: Any) -> Optional[str]:
    """Literal error text from an error body (``error`` wins over ``message``)."""
    if isinstance(payload, str):
        return _as_str(payload)
    return _as_str(first_present(payload, ("error", "message")))


def normalize_video(record: Any) -> Video:
    """Map one video payload onto a Video."""
    if not isinstance(record, dict):
        record = {}
    status = _as_str(first_present(record, ("status", "Status"))) or ""
    owner_id = first_present(record, ("user_id", "userId", "UserID", "owner_id"))
    return Video(
        id=_as_str(first_present(record, ("video_id", "id", "ID", "VideoID"))) or "",
        title=_as_str(first_present(record, ("title", "Title"))) or "",
        status=status.lower(),
        owner_id=_as_str(owner_id),
        original_url=_as_str(first_present(record, ("original_url", "originalUrl", "OriginalURL"))),
        processed_url=_as_str(
            first_present(record, ("processed_url", "processedUrl", "ProcessedURL"))
        ),
        vote_count=max(0, _as_int(first_present(record, ("votes", "vote_count", "voteCount", "VoteCount")))),
        uploaded_at=_as_str(first_present(record, ("uploaded_at", "UploadedAt"))),
        processed_at=_as_str(first_present(record, ("processed_at", "ProcessedAt"))),
        raw=dict(record),
    )


def normalize_videos(payload: Any) -> list[Video]:
    return [normalize_video(item) for item in extract_list(payload, "videos")]


def normalize_ranking_row(row: Any) -> RankingEntry:
    """Map one ranking row, whatever its field spelling, onto a RankingEntry."""
    video_id = first_present(row, ("video_id", "VideoID", "VideoId"))
    return RankingEntry(
        position=_as_int(first_present(row, ("position", "Position"), 0)),
        title=_as_str(first_present(row, ("title", "Title", "video_title", "name"), "")) or "",
        author_name=_as_str(
            first_present(row, ("author_name", "AuthorName", "username", "user", "city"), "")
        )
        or "",
        vote_count=_as_int(first_present(row, ("votes", "VoteCount", "vote_count"), 0)),
        video_id=_as_str(video_id),
    )


def normalize_rankings(payload: Any) -> list[RankingEntry]:
    # Server order is the ranking; never re-sort here.
    return [normalize_ranking_row(row) for row in extract_list(payload, "rankings")]


def normalize_user(record: Any, user_id: Optional[str] = None) -> AuthorInfo:
    """Map a user payload (possibly wrapped in ``data``/``user``) onto AuthorInfo."""
    if isinstance(record, dict):
        for envelope in ("data", "user"):
            inner = record.get(envelope)
            if isinstance(inner, dict):
                record = inner
                break
    else:
        record = {}
    resolved_id = _as_str(first_present(record, ("id", "user_id", "ID"))) or user_id or ""
    return AuthorInfo(
        user_id=resolved_id,
        first_name=_as_str(first_present(record, ("first_name", "firstName", "FirstName"))),
        last_name=_as_str(first_present(record, ("last_name", "lastName", "LastName"))),
        name=_as_str(first_present(record, ("name", "Name"))),
        username=_as_str(first_present(record, ("username", "Username"))),
        email=_as_str(first_present(record, ("email", "Email"))),
        city=_as_str(first_present(record, ("city", "City"))),
        country=_as_str(first_present(record, ("country", "Country"))),
    )


def normalize_upload_receipt(payload: Any) -> UploadReceipt:
    message = _as_str(first_present(payload, ("message",))) or "Video subido correctamente."
    return UploadReceipt(
        message=message,
        task_id=_as_str(first_present(payload, ("task_id", "taskId", "TaskID"))),
    )


def resolve_media_url(url: Optional[str], base_url: str) -> Optional[str]:
    """Turn a stored media path into something playable.

    Absolute URLs pass through; any other path is joined to ``base_url``.
    """
    text = _as_str(url)
    if text is None:
        return None
    if text.startswith(("http://", "https://")):
        return text
    base = base_url.rstrip("/")
    if not base:
        return text
    return f"{base}{'' if text.startswith('/') else '/'}{text}"
