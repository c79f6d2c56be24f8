"""Session Store - owns the authentication token and current identity."""

import json
import logging
from typing import Callable, Optional

from models.session import Identity, Session, SignupRequest
from models.video import AuthorInfo
from services.api_client import ApiClient
from services.errors import (
    ApiError,
    AuthenticationError,
    GatewayError,
    ValidationError,
)
from services.response_normalizer import (
    extract_error_message,
    extract_token,
    normalize_user,
)
from utils.logging import clear_user_context, set_user_context
from utils.session_storage import IDENTITY_SLOT, TOKEN_SLOT, SessionStorage

logger = logging.getLogger(__name__)

LOGIN_FAILED = "login failed"
SIGNUP_FAILED = "registration failed"
MIN_PASSWORD_LENGTH = 8

SessionListener = Callable[[Session], None]


class SessionStore:
    """Single source of truth for "may this request carry credentials".

    The store is passed explicitly to its consumers. ``current_token()`` and
    ``current_identity()`` read durable storage on every call, so a session
    written by login/logout (here or in another process) is seen by the very
    next request, and the two always agree. Subscribers are notified synchronously from
    inside ``login``, ``logout`` and ``restore_from_storage``.
    """

    def __init__(self, api: ApiClient, storage: SessionStorage):
        self.api = api
        self.storage = storage
        self._session = Session.empty()
        self._listeners: list[SessionListener] = []

    @property
    def session(self) -> Session:
        return self._session

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener for session changes.

        Returns:
            A callable that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, session: Session) -> None:
        self._session = session
        if session.identity is not None:
            set_user_context(session.identity.email)
        else:
            clear_user_context()
        for listener in list(self._listeners):
            listener(session)

    async def login(self, email: str, password: str) -> Session:
        """Exchange credentials for a token and persist the new session.

        Raises:
            ValidationError: If email or password is empty
            AuthenticationError: If the backend rejects the login or sends no token
            TransportError: If the backend could not be reached
        """
        email = (email or "").strip()
        if not email or not password:
            raise ValidationError("El email y la contraseña son obligatorios.")

        try:
            payload = await self.api.request(
                "POST", "/auth/login", json={"email": email, "password": password}
            )
        except ApiError as e:
            backend_message = extract_error_message(e.payload)
            logger.warning(f"Login rejected for {email} with status {e.status}")
            raise AuthenticationError(
                backend_message or LOGIN_FAILED,
                status=e.status,
                backend_message=backend_message,
            ) from e

        token = extract_token(payload)
        if not token:
            logger.warning(f"Login for {email} returned no token")
            raise AuthenticationError(LOGIN_FAILED)

        identity = Identity(email=email)
        self.storage.set(TOKEN_SLOT, token)
        self.storage.set(IDENTITY_SLOT, json.dumps(identity.to_dict()))

        session = Session(token=token, identity=identity)
        self._publish(session)
        logger.info(f"Logged in as {email}")
        return session

    def logout(self) -> None:
        """Clear durable storage and publish the signed-out session."""
        self.storage.remove(TOKEN_SLOT)
        self.storage.remove(IDENTITY_SLOT)
        self._publish(Session.empty())
        logger.info("Logged out")

    def restore_from_storage(self) -> Session:
        """Load the persisted session at startup.

        A token with a parseable identity is published as-is. A corrupt
        identity, or one slot without the other, clears storage through
        ``logout()`` instead of surfacing an error.
        """
        token = self.storage.get(TOKEN_SLOT)
        raw_identity = self.storage.get(IDENTITY_SLOT)

        if token is None and raw_identity is None:
            return self._session

        if not token or raw_identity is None:
            logger.warning("Persisted session is incomplete, clearing it")
            self.logout()
            return self._session

        try:
            identity = Identity.from_dict(json.loads(raw_identity))
        except ValueError as e:
            logger.warning(f"Persisted identity is corrupt, clearing session: {e}")
            self.logout()
            return self._session

        session = Session(token=token, identity=identity)
        self._publish(session)
        logger.debug(f"Restored session for {identity.email}")
        return session

    def _read_session(self) -> Session:
        """Current session as durable storage holds it right now.

        Another process may have rewritten or cleared the slots since the
        last publish; a half-written or unparseable pair reads as signed out.
        """
        token = self.storage.get(TOKEN_SLOT)
        raw_identity = self.storage.get(IDENTITY_SLOT)
        if not token or raw_identity is None:
            return Session.empty()
        try:
            identity = Identity.from_dict(json.loads(raw_identity))
        except ValueError:
            return Session.empty()
        return Session(token=token, identity=identity)

    def current_token(self) -> Optional[str]:
        return self._read_session().token

    def current_identity(self) -> Optional[Identity]:
        return self._read_session().identity

    def is_authenticated(self) -> bool:
        return self.current_token() is not None

    async def register(self, request: SignupRequest) -> AuthorInfo:
        """Create an account. Does not sign in.

        Raises:
            ValidationError: If a field is missing or the passwords do not match
            GatewayError: If the backend rejects the signup
        """
        missing = [name for name, value in request.to_payload().items() if not str(value).strip()]
        if missing:
            raise ValidationError(f"Campos obligatorios: {', '.join(missing)}.")
        if request.password != request.password2:
            raise ValidationError("Las contraseñas no coinciden.")
        if len(request.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"La contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres."
            )

        try:
            payload = await self.api.request("POST", "/auth/signup", json=request.to_payload())
        except ApiError as e:
            backend_message = extract_error_message(e.payload)
            raise GatewayError(
                backend_message or SIGNUP_FAILED,
                status=e.status,
                backend_message=backend_message,
            ) from e

        logger.info(f"Registered account {request.email}")
        return normalize_user(payload)
