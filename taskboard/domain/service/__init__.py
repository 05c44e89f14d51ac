"""Domain services."""

from .base import Service
from .identity_service import IdentityProvider, IdentityService
from .invitation_service import InvitationService
from .jwt_service import JWTService
from .profile_service import ProfileService

__all__ = [
    "IdentityProvider",
    "IdentityService",
    "InvitationService",
    "JWTService",
    "ProfileService",
    "Service",
]
