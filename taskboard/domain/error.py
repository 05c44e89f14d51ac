"""Domain layer errors.

Every error carries a machine-readable ``code``; the interface layer turns it
into the JSON error body and an HTTP status.
"""

from typing import Any, ClassVar


class DomainError(Exception):
    """Base domain error."""

    code: ClassVar[str] = "DOMAIN_ERROR"

    def extra(self) -> dict[str, Any]:
        """Additional fields to expose alongside code and detail."""
        return {}


class ValidationError(DomainError):
    """Malformed input (email, role, token)."""

    code = "VALIDATION_ERROR"


class NotFoundError(DomainError):
    """Raised when a requested resource is not found."""

    code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class ConflictError(DomainError):
    """The requested transition conflicts with the current state."""

    code = "CONFLICT"


class ConcurrentUpdateError(ConflictError):
    """A conditional write lost against a concurrent writer."""

    code = "CONFLICT"


class AlreadyActiveError(ConflictError):
    """An active account already exists for the email."""

    code = "ALREADY_ACTIVE"

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"User with email {email} already exists")


class _CompletedInvitationError(ConflictError):
    """Terminal 'already done' outcomes; clients treat these as soft success."""

    def __init__(self, message: str, email: str, role: str):
        self.email = email
        self.role = role
        super().__init__(message)

    def extra(self) -> dict[str, Any]:
        return {"email": self.email, "role": self.role}


class AlreadyAcceptedError(_CompletedInvitationError):
    """Invitation accepted but the account is not active yet."""

    code = "ALREADY_ACCEPTED"


class AlreadyRegisteredError(_CompletedInvitationError):
    """Invitation accepted and the account is active."""

    code = "ALREADY_REGISTERED"


class AlreadyRevokedError(ConflictError):
    """Invitation is already revoked."""

    code = "ALREADY_REVOKED"


class CannotResendError(ConflictError):
    """Accepted invitations cannot be sent again."""

    code = "CANNOT_RESEND"


class InvitationExpiredError(DomainError):
    """Invitation is past its expiry."""

    code = "EXPIRED"


class InvitationRevokedError(DomainError):
    """Invitation was revoked by an administrator."""

    code = "REVOKED"


class RateLimitedError(DomainError):
    """Daily send cap reached for an email."""

    code = "RATE_LIMITED"

    def __init__(self, email: str, daily_send_count: int, limit: int):
        self.email = email
        self.daily_send_count = daily_send_count
        self.limit = limit
        super().__init__(
            f"Daily invitation limit reached for {email} "
            f"({daily_send_count}/{limit}). Try again tomorrow."
        )

    def extra(self) -> dict[str, Any]:
        return {"dailyCount": self.daily_send_count, "limit": self.limit}


class AccessDeniedError(DomainError):
    """Identity confirmed but not allowed to use the board."""

    code = "ACCESS_DENIED"
    reason: ClassVar[str] = "denied"


class NotInvitedError(AccessDeniedError):
    """No usable invitation exists for the confirmed email."""

    code = "NOT_INVITED"
    reason = "not-invited"

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"No invitation found for {email}")


class InactiveNoInviteError(AccessDeniedError):
    """Profile is inactive and there is no accepted invitation to revive it."""

    code = "INACTIVE_NO_INVITE"
    reason = "inactive"

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Account for {email} is inactive")


class UpstreamFailureError(DomainError):
    """An external collaborator did not complete a required step."""

    code = "UPSTREAM_FAILURE"
