"""Video Gateway - video, vote, ranking and author requests."""

import logging
from typing import Any, Optional

from models.video import (
    MAX_UPLOAD_BYTES,
    MP4_CONTENT_TYPE,
    AuthorInfo,
    RankingEntry,
    UploadReceipt,
    Video,
    VideoFile,
)
from services.api_client import ApiClient
from services.errors import (
    AlreadyVotedError,
    ApiError,
    AuthenticationError,
    AuthorizationError,
    GatewayError,
    NoExistingVoteError,
    NotDeletableError,
    NotFoundError,
    ValidationError,
    VideoNotFoundError,
    VideoVoteError,
    VoteNotWithdrawableError,
)
from services.response_normalizer import (
    extract_error_message,
    normalize_rankings,
    normalize_upload_receipt,
    normalize_user,
    normalize_video,
    normalize_videos,
)
from services.session_store import SessionStore

logger = logging.getLogger(__name__)


def classify_error(
    error: ApiError,
    fallback: str,
    overrides: Optional[dict[int, type[VideoVoteError]]] = None,
) -> VideoVoteError:
    """Turn a raw non-2xx response into the matching client error.

    ``overrides`` maps status codes to operation-specific error classes; those
    use their own user-facing message. Everything else carries the backend's
    literal message when there is one, else ``fallback``.
    """
    backend_message = extract_error_message(error.payload)
    error_class = (overrides or {}).get(error.status)
    if error_class is not None:
        return error_class(
            error_class.default_message, status=error.status, backend_message=backend_message
        )
    if error.status == 401:
        return AuthenticationError(status=401, backend_message=backend_message)
    if error.status == 403:
        return AuthorizationError(status=403, backend_message=backend_message)
    if error.status == 404:
        return NotFoundError(backend_message or fallback, status=404, backend_message=backend_message)
    return GatewayError(backend_message or fallback, status=error.status, backend_message=backend_message)


class VideoGateway:
    """One method per backend operation.

    Holds no video or ranking state. Credentialed calls read the token from
    the session store at call time and refuse to send without one.
    """

    def __init__(
        self,
        api: ApiClient,
        session_store: SessionStore,
        max_upload_bytes: int = MAX_UPLOAD_BYTES,
    ):
        self.api = api
        self.session_store = session_store
        self.max_upload_bytes = max_upload_bytes

    def _require_token(self) -> str:
        token = self.session_store.current_token()
        if not token:
            raise AuthenticationError("Debes iniciar sesión para realizar esta acción.")
        return token

    async def _call(
        self,
        method: str,
        path: str,
        *,
        fallback: str,
        credentialed: bool = True,
        token_if_available: bool = False,
        overrides: Optional[dict[int, type[VideoVoteError]]] = None,
        **kwargs: Any,
    ) -> Any:
        if credentialed:
            token = self._require_token()
        elif token_if_available:
            token = self.session_store.current_token()
        else:
            token = None
        try:
            return await self.api.request(method, path, token=token, **kwargs)
        except ApiError as e:
            raise classify_error(e, fallback, overrides) from e

    def validate_upload(self, title: str, video_file: Optional[VideoFile]) -> None:
        """Check an upload locally.

        Raises:
            ValidationError: If the title is empty, or the file is missing,
                not an MP4, or larger than the size limit
        """
        if video_file is None:
            raise ValidationError("Seleccione un archivo MP4.")
        if not title or not title.strip():
            raise ValidationError("Ingrese un título.")
        if not video_file.is_mp4:
            raise ValidationError("Solo se permiten archivos MP4.")
        if video_file.size > self.max_upload_bytes:
            limit_mb = self.max_upload_bytes // (1024 * 1024)
            raise ValidationError(f"El archivo supera el tamaño máximo de {limit_mb}MB.")

    async def upload_video(self, title: str, video_file: VideoFile) -> UploadReceipt:
        """Upload an MP4 as multipart form data (``title`` + ``video``)."""
        self.validate_upload(title, video_file)
        token = self._require_token()
        files = {
            "video": (
                video_file.filename,
                video_file.read(),
                video_file.content_type or MP4_CONTENT_TYPE,
            )
        }
        logger.info(f"Uploading '{title.strip()}' ({video_file.size} bytes)")
        try:
            payload = await self.api.request(
                "POST",
                "/videos/upload",
                token=token,
                data={"title": title.strip()},
                files=files,
            )
        except ApiError as e:
            raise classify_error(e, "Error al subir el video.") from e
        receipt = normalize_upload_receipt(payload)
        logger.info(f"Upload accepted (task: {receipt.task_id})")
        return receipt

    async def list_my_videos(self) -> list[Video]:
        payload = await self._call("GET", "/videos", fallback="Error cargando videos.")
        return normalize_videos(payload)

    async def list_public_videos(self) -> list[Video]:
        payload = await self._call(
            "GET",
            "/public/videos",
            fallback="Error cargando videos públicos.",
            credentialed=False,
        )
        return normalize_videos(payload)

    async def get_video(self, video_id: str) -> Video:
        payload = await self._call(
            "GET",
            f"/videos/{video_id}",
            fallback="Error cargando el video.",
            overrides={404: VideoNotFoundError},
        )
        if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
            payload = payload["data"]
        return normalize_video(payload)

    async def delete_video(self, video_id: str) -> None:
        """Delete one of the caller's videos.

        The backend only allows this while the video is still ``uploaded``
        and answers 400 otherwise.

        Raises:
            NotDeletableError: Video is processing or processed (400)
            AuthorizationError: Video belongs to someone else (403)
            VideoNotFoundError: No such video (404)
        """
        await self._call(
            "DELETE",
            f"/videos/{video_id}",
            fallback="Error eliminando el video.",
            overrides={400: NotDeletableError, 404: VideoNotFoundError},
        )
        logger.info(f"Deleted video {video_id}")

    async def vote(self, video_id: str) -> None:
        """Vote for a public video.

        Raises:
            AlreadyVotedError: 400
            AuthenticationError: 401 or no token
            VideoNotFoundError: 404
        """
        await self._call(
            "POST",
            f"/public/videos/{video_id}/vote",
            fallback="Error registrando el voto.",
            overrides={400: AlreadyVotedError, 401: AuthenticationError, 404: VideoNotFoundError},
            json={},
        )

    async def unvote(self, video_id: str) -> None:
        """Withdraw a vote.

        Raises:
            VoteNotWithdrawableError: 400
            AuthenticationError: 401 or no token
            NoExistingVoteError: 404
        """
        await self._call(
            "DELETE",
            f"/public/videos/{video_id}/vote",
            fallback="Error retirando el voto.",
            overrides={
                400: VoteNotWithdrawableError,
                401: AuthenticationError,
                404: NoExistingVoteError,
            },
        )

    async def list_rankings(self, params: Optional[dict] = None) -> list[RankingEntry]:
        """Fetch the public ranking; ``params`` carries pagination/filters (e.g. city)."""
        clean_params = {key: value for key, value in (params or {}).items() if value is not None}
        payload = await self._call(
            "GET",
            "/public/rankings",
            fallback="Error cargando rankings.",
            credentialed=False,
            params=clean_params or None,
        )
        return normalize_rankings(payload)

    async def get_user(self, user_id: str) -> AuthorInfo:
        """Primary author lookup (``/users/:id``); sends the token when there is one."""
        payload = await self._call(
            "GET",
            f"/users/{user_id}",
            fallback="Error obteniendo el usuario.",
            credentialed=False,
            token_if_available=True,
        )
        return normalize_user(payload, user_id)

    async def get_public_user(self, user_id: str) -> AuthorInfo:
        """Secondary author lookup (``/public/users/:id``)."""
        payload = await self._call(
            "GET",
            f"/public/users/{user_id}",
            fallback="Error obteniendo el usuario.",
            credentialed=False,
        )
        return normalize_user(payload, user_id)
