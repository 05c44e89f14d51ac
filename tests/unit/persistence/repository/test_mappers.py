"""Unit tests for row/model mappers."""

from taskboard.domain.value import InvitationStatus, ProfileStatus, Role
from taskboard.persistence.mappers import (
    invitation_to_dict,
    profile_to_dict,
    row_to_invitation,
    row_to_profile,
)
from tests.factories import make_invitation, make_profile


class TestInvitationMapping:
    def test_dict_holds_plain_values(self):
        invitation = make_invitation(
            "ada@example.com", status=InvitationStatus.REVOKED, role=Role.ADMIN
        )

        data = invitation_to_dict(invitation)

        assert data["email"] == "ada@example.com"
        assert data["token"] == invitation.token.root
        assert data["status"] == "revoked"
        assert data["role"] == "admin"
        assert "version" not in data

    def test_row_round_trip(self):
        invitation = make_invitation("ada@example.com")
        row = {**invitation_to_dict(invitation), "version": 4, "id": str(invitation.id)}

        restored = row_to_invitation(row)

        assert restored == invitation.model_copy(update={"version": 4})


class TestProfileMapping:
    def test_row_round_trip(self):
        profile = make_profile(
            "ada@example.com", status=ProfileStatus.INACTIVE, confirmed=False
        )

        restored = row_to_profile(profile_to_dict(profile))

        assert restored == profile
