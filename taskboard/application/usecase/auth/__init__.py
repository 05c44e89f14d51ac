"""Authentication use cases."""

from .begin_login import BeginLoginRequest, BeginLoginResponse, BeginLoginUseCase
from .complete_login import (
    CompleteLoginRequest,
    CompleteLoginResponse,
    CompleteLoginUseCase,
)
from .get_current_session import (
    GetCurrentSessionRequest,
    GetCurrentSessionResponse,
    GetCurrentSessionUseCase,
    SessionView,
)

__all__ = [
    "BeginLoginRequest",
    "BeginLoginResponse",
    "BeginLoginUseCase",
    "CompleteLoginRequest",
    "CompleteLoginResponse",
    "CompleteLoginUseCase",
    "GetCurrentSessionRequest",
    "GetCurrentSessionResponse",
    "GetCurrentSessionUseCase",
    "SessionView",
]
