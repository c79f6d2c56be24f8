"""Session and account data models."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Identity:
    """Minimal identity persisted alongside the token."""

    email: str
    display_name: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"email": self.email}
        if self.display_name:
            data["display_name"] = self.display_name
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Identity":
        """Build an Identity from a persisted record.

        Raises:
            ValueError: If the record is not an object with a non-empty email
        """
        if not isinstance(data, dict):
            raise ValueError("identity record must be an object")
        email = data.get("email")
        if not isinstance(email, str) or not email:
            raise ValueError("identity record has no email")
        display_name = data.get("display_name") or data.get("username") or data.get("name")
        return cls(email=email, display_name=display_name)


@dataclass(frozen=True)
class Session:
    """The signed-in state of the client.

    ``identity`` is present iff ``token`` is present; use ``Session.empty()``
    for the signed-out state.
    """

    token: Optional[str] = None
    identity: Optional[Identity] = None

    def __post_init__(self):
        if (self.token is None) != (self.identity is None):
            raise ValueError("token and identity must be both set or both absent")

    @classmethod
    def empty(cls) -> "Session":
        return cls()

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None


@dataclass(frozen=True)
class SignupRequest:
    """Account creation form sent to /auth/signup."""

    first_name: str
    last_name: str
    email: str
    password: str
    password2: str
    city: str
    country: str

    def to_payload(self) -> dict:
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "password": self.password,
            "password2": self.password2,
            "city": self.city,
            "country": self.country,
        }
