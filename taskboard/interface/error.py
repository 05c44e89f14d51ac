"""Interface layer errors."""

from typing import ClassVar


class InterfaceError(Exception):
    """Base interface error."""

    code: ClassVar[str] = "INTERFACE_ERROR"
    status_code: ClassVar[int] = 400


class UnauthorizedError(InterfaceError):
    """No valid session cookie."""

    code = "UNAUTHORIZED"
    status_code = 401


class ForbiddenError(InterfaceError):
    """Session is valid but lacks the required role."""

    code = "FORBIDDEN"
    status_code = 403
