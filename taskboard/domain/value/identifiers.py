"""Strongly typed identifiers for task board entities."""

from typing import NewType
from uuid import UUID

InvitationId = NewType("InvitationId", UUID)

# Profiles share the identifier of the identity record they are linked to
ProfileId = NewType("ProfileId", UUID)
