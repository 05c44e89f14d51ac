"""Domain value objects for the task board.

Value objects are immutable and defined by their values, not identity.
They encapsulate validation rules for emails, tokens and roles.
"""

import re
from datetime import datetime
from enum import Enum

from pydantic import field_validator

from taskboard.domain.value.common import RootValueObject, ValueObject
from taskboard.domain.value.identifiers import ProfileId

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class Role(str, Enum):
    """Role assigned to an account; drives dashboard routing."""

    USER = "user"
    ADMIN = "admin"


class InvitationStatus(str, Enum):
    """Status of an invitation.

    pending -> accepted | expired | revoked. Expired and revoked rows can be
    renewed back to pending by a fresh send.
    """

    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"
    REVOKED = "revoked"


class ProfileStatus(str, Enum):
    """Activation status of an account profile."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class Email(RootValueObject[str]):
    """Email address, normalised to lower case."""

    @field_validator("root")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Validate basic shape and normalise."""
        v = v.strip().lower()
        if len(v) > 320 or not EMAIL_PATTERN.match(v):
            raise ValueError("Valid email is required")
        return v


class InvitationToken(RootValueObject[str]):
    """Opaque, URL-safe, single-use invitation token."""

    @field_validator("root")
    @classmethod
    def validate_token_format(cls, v: str) -> str:
        """Validate token is not empty."""
        if len(v) < 1 or len(v) > 255:
            raise ValueError("Token must be 1-255 characters")
        return v

    def redacted(self) -> str:
        """Prefix safe to put in logs."""
        return self.root[:8] + "..."


class IdentityRecord(ValueObject):
    """A principal as known by the external identity provider."""

    id: ProfileId
    email: str | None = None
    confirmed_at: datetime | None = None
    last_sign_in_at: datetime | None = None

    @property
    def is_confirmed(self) -> bool:
        return self.confirmed_at is not None


class ProviderSession(ValueObject):
    """Session returned by the identity provider after a code exchange."""

    access_token: str
    refresh_token: str | None = None
    user: IdentityRecord


class Session(ValueObject):
    """Authenticated caller, resolved per request from the session cookie."""

    profile_id: ProfileId
    email: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class InvitationStats(ValueObject):
    """Send counters reported back to the inviting admin."""

    send_count: int
    daily_send_count: int
    remaining_today: int


class AuthorizationRequest(ValueObject):
    """Start of an OAuth sign-in.

    The code verifier must be kept by the caller until the callback and
    handed back for the code exchange.
    """

    url: str
    code_verifier: str
