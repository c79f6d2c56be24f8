"""Error taxonomy shared by the session store, gateway and screens.

Every error carries a user-facing ``message``. ``status`` is the HTTP status
when a response was received and ``backend_message`` is the literal text the
backend sent in its ``error``/``message`` field, if any.
"""

from typing import Optional


class VideoVoteError(Exception):
    """Base class for all client errors."""

    default_message = "Ha ocurrido un error inesperado."

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        status: Optional[int] = None,
        backend_message: Optional[str] = None,
    ):
        self.message = message or backend_message or self.default_message
        self.status = status
        self.backend_message = backend_message
        super().__init__(self.message)


class ValidationError(VideoVoteError):
    """Rejected locally before any request was issued."""

    default_message = "Datos inválidos."


class AuthenticationError(VideoVoteError):
    """401 from the backend, or no token available for a credentialed call."""

    default_message = "No autenticado."


class AuthorizationError(VideoVoteError):
    """403 from the backend."""

    default_message = "No tienes permisos para realizar esta acción."


class NotFoundError(VideoVoteError):
    """404 from the backend."""

    default_message = "Recurso no encontrado."


class VideoNotFoundError(NotFoundError):
    default_message = "Video no encontrado."


class NoExistingVoteError(NotFoundError):
    default_message = "No existe tu voto para este video."


class StateConflictError(VideoVoteError):
    """A legal request the backend refused because of the resource's state."""

    default_message = "La operación no está permitida en el estado actual."


class NotDeletableError(StateConflictError):
    default_message = "El video no puede eliminarse por su estado (procesado/publicado)."


class AlreadyVotedError(StateConflictError):
    default_message = "Ya has votado por este video."


class VoteNotWithdrawableError(StateConflictError):
    """400 on unvote."""

    default_message = "No se puede retirar el voto de este video."


class IllegalVoteTransition(StateConflictError):
    """Vote/unvote requested from a local state that does not allow it."""


class TransportError(VideoVoteError):
    """Network failure or a response body that could not be decoded."""

    default_message = "No se pudo contactar con el servidor."


class GatewayError(VideoVoteError):
    """Any other non-2xx response."""


class ScreenBusyError(VideoVoteError):
    """A screen rejected a submission because another one is in flight."""

    default_message = "Hay una operación en curso."


class ApiError(Exception):
    """Raw non-2xx response, classified by the caller into a VideoVoteError."""

    def __init__(self, status: int, payload=None):
        self.status = status
        self.payload = payload
        super().__init__(f"HTTP {status}")
