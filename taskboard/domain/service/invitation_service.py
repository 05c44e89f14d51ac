"""Invitation lifecycle domain service.

Owns every transition of an invitation and keeps it consistent with the
profile it eventually produces:

    pending -> accepted              (invitee submits the token)
    pending -> expired               (lazily, when a reader sees expires_at pass)
    pending -> revoked               (administrator)
    expired | revoked -> pending     (renewed by a fresh send)

Writes are conditional on the version that was read. A write that loses a race
re-reads the row and re-applies the rules, so create, renew and resend are safe
to retry.
"""

import secrets
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone
from typing import TypeVar
from uuid import UUID, uuid4

import logfire
from pydantic import ValidationError as PydanticValidationError

from taskboard.config import InvitationSettings
from taskboard.domain.error import (
    AlreadyAcceptedError,
    AlreadyActiveError,
    AlreadyRegisteredError,
    AlreadyRevokedError,
    CannotResendError,
    ConcurrentUpdateError,
    ConflictError,
    InactiveNoInviteError,
    InvitationExpiredError,
    InvitationRevokedError,
    NotFoundError,
    NotInvitedError,
    RateLimitedError,
    ValidationError,
)
from taskboard.domain.model import Invitation, Profile
from taskboard.domain.repository import InvitationRepository, ProfileRepository
from taskboard.domain.value import (
    Email,
    InvitationId,
    InvitationStats,
    InvitationStatus,
    InvitationToken,
    ProfileId,
    ProfileStatus,
    Role,
)

from .base import Service
from .identity_service import IdentityService

T = TypeVar("T")

RENEWABLE_STATUSES = (
    InvitationStatus.PENDING,
    InvitationStatus.EXPIRED,
    InvitationStatus.REVOKED,
)
SIGN_IN_STATUSES = (InvitationStatus.PENDING, InvitationStatus.ACCEPTED)


class InvitationService(Service):
    """Invitation lifecycle manager."""

    def __init__(
        self,
        invitation_repository: InvitationRepository,
        profile_repository: ProfileRepository,
        identity_service: IdentityService,
        invitation_settings: InvitationSettings,
        base_url: str = "http://localhost:3000",
    ) -> None:
        """Initialize invitation service.

        Args:
            invitation_repository: Invitation repository
            profile_repository: Profile repository
            identity_service: Identity provider service
            invitation_settings: Expiry, rate limit and retry configuration
            base_url: Public base URL invite links point at
        """
        self.invitation_repository = invitation_repository
        self.profile_repository = profile_repository
        self.identity_service = identity_service
        self.settings = invitation_settings
        self.base_url = base_url.rstrip("/")

    # ------------------------------------------------------------------
    # Create / renew
    # ------------------------------------------------------------------

    async def create_or_renew(
        self,
        email: str,
        role: Role | str = Role.USER,
        message: str | None = None,
        invited_by: ProfileId | None = None,
    ) -> Invitation:
        """Invite an email, renewing its existing invitation if there is one.

        The daily cap is checked before anything is touched. An abandoned
        signup for the email is then wiped, so the invitation that follows
        starts over with a fresh token and ``send_count = 1`` while keeping
        today's sends. Finally the identity provider emails the invite link.

        Args:
            email: Invitee email
            role: Role granted on sign-in
            message: Optional note from the inviting admin
            invited_by: Profile of the inviting admin

        Returns:
            The pending invitation

        Raises:
            ValidationError: If email or role are malformed
            AlreadyActiveError: If an active account exists for the email
            RateLimitedError: If the daily send cap is reached
            UpstreamFailureError: If an abandoned signup could not be removed
            IdentityProviderError: If the provider refuses to send the invitation
        """
        address = self._parse_email(email)
        invited_role = self._parse_role(role)

        with logfire.span(
            "invitation_service.create_or_renew",
            email=address.root,
            role=invited_role.value,
        ):
            previous = await self.invitation_repository.find_latest_by_email(
                address, RENEWABLE_STATUSES
            )
            sent_today = previous.sends_today(self._now().date()) if previous else 0
            if previous:
                self._check_daily_limit(previous, sent_today)

            cleared = await self._clear_abandoned_signup(address)
            carried = sent_today if cleared else 0

            async def attempt() -> Invitation:
                now = self._now()
                existing = await self.invitation_repository.find_latest_by_email(
                    address, RENEWABLE_STATUSES
                )
                if existing:
                    return await self._send_again(
                        existing, now, role=invited_role, message=message
                    )
                return await self._create(
                    address, invited_role, message, invited_by, now, carried
                )

            invitation = await self._retrying("create_or_renew", attempt)
            await self._deliver(invitation, invited_by)
            return invitation

    async def _create(
        self,
        email: Email,
        role: Role,
        message: str | None,
        invited_by: ProfileId | None,
        now: datetime,
        sent_today: int = 0,
    ) -> Invitation:
        invitation = Invitation(
            id=InvitationId(uuid4()),
            email=email,
            role=role,
            message=message,
            invited_by=invited_by,
            status=InvitationStatus.PENDING,
            token=InvitationToken(root=secrets.token_urlsafe(32)),
            created_at=now,
            invited_at=now,
            expires_at=now + timedelta(days=self.settings.expiry_days),
            updated_at=now,
            send_count=1,
            daily_send_count=sent_today + 1,
            daily_send_reset_at=now.date(),
            last_sent_at=now,
        )
        saved = await self.invitation_repository.create(invitation)
        logfire.info(
            "Invitation created",
            invitation_id=str(saved.id),
            email=email.root,
            role=role.value,
        )
        return saved

    def _check_daily_limit(self, invitation: Invitation, sent_today: int) -> None:
        if sent_today + 1 > self.settings.daily_send_limit:
            logfire.warn(
                "Invitation rate limited",
                invitation_id=str(invitation.id),
                email=invitation.email.root,
                daily_send_count=sent_today,
            )
            raise RateLimitedError(
                invitation.email.root, sent_today, self.settings.daily_send_limit
            )

    async def _send_again(
        self,
        invitation: Invitation,
        now: datetime,
        role: Role,
        message: str | None,
    ) -> Invitation:
        """Renew an invitation in place for another send.

        The rate limit is checked against the pre-increment count before
        anything is written.
        """
        today = now.date()
        sent_today = invitation.sends_today(today)
        self._check_daily_limit(invitation, sent_today)

        if (
            invitation.status != InvitationStatus.PENDING
            and await self.invitation_repository.exists_pending_for_email(
                invitation.email, exclude_id=invitation.id
            )
        ):
            raise ConflictError(
                f"Another pending invitation exists for {invitation.email}"
            )

        renewed = invitation.model_copy(
            update={
                "role": role,
                "message": message,
                "status": InvitationStatus.PENDING,
                "invited_at": now,
                "expires_at": now + timedelta(days=self.settings.expiry_days),
                "updated_at": now,
                "last_sent_at": now,
                "send_count": invitation.send_count + 1,
                "daily_send_count": sent_today + 1,
                "daily_send_reset_at": today,
            }
        )
        saved = await self.invitation_repository.update(renewed, invitation.version)
        logfire.info(
            "Invitation renewed",
            invitation_id=str(saved.id),
            previous_status=invitation.status.value,
            send_count=saved.send_count,
            daily_send_count=saved.daily_send_count,
        )
        return saved

    async def _clear_abandoned_signup(self, email: Email) -> bool:
        """Reject active accounts and wipe signups that never completed.

        An inactive, never-confirmed profile blocks a clean re-invite. Its
        identity record is deleted first (waiting for the provider to confirm),
        then the profile, then every invitation row for the email, so the next
        invitation starts with a fresh token and counters.

        Returns:
            True when an abandoned signup was wiped
        """
        profile = await self.profile_repository.find_by_email(email)
        if profile is None:
            return False
        if profile.is_active:
            logfire.warn("Invite rejected - account active", email=email.root)
            raise AlreadyActiveError(email.root)
        if not profile.is_abandoned_signup:
            return False

        identity = await self.identity_service.provider.get_user(profile.id)
        if identity is not None and identity.is_confirmed:
            return False

        with logfire.span(
            "invitation_service.clear_abandoned_signup",
            email=email.root,
            profile_id=str(profile.id),
        ):
            if identity is not None:
                await self.identity_service.delete_identity(identity.id)
            await self.profile_repository.delete(profile.id)
            removed = await self.invitation_repository.delete_for_email(
                email, RENEWABLE_STATUSES
            )
            logfire.info(
                "Abandoned signup cleared",
                email=email.root,
                profile_id=str(profile.id),
                invitations_removed=removed,
            )
            return True

    async def _deliver(
        self, invitation: Invitation, invited_by: ProfileId | None
    ) -> None:
        """Have the identity provider email the invite link.

        The first send creates an unconfirmed identity record at the provider.
        An inactive profile keyed by that record is stored with it, which is
        what a later re-invite recognises as an abandoned signup. Emails that
        already belong to an account, or to a confirmed identity, only get
        the link returned to the admin.
        """
        email = invitation.email
        profile = await self.profile_repository.find_by_email(email)
        if profile is not None and not profile.is_abandoned_signup:
            return

        identity = await self.identity_service.find_identity_by_email(email.root)
        if identity is not None and identity.is_confirmed:
            logfire.info(
                "Provider invitation skipped - identity confirmed",
                invitation_id=str(invitation.id),
                identity_id=str(identity.id),
            )
            return

        data = {"role": invitation.role.value}
        if invited_by:
            data["invited_by"] = str(invited_by)
        try:
            identity = await self.identity_service.invite_identity(
                email.root, self.invite_link(invitation), data
            )
        except Exception as e:
            logfire.error(
                "Invitation saved but provider invitation not sent",
                invitation_id=str(invitation.id),
                error=str(e),
            )
            raise

        if profile is None:
            now = self._now()
            await self.profile_repository.save(
                Profile(
                    id=identity.id,
                    email=email,
                    role=invitation.role,
                    status=ProfileStatus.INACTIVE,
                    created_at=now,
                    updated_at=now,
                )
            )
            logfire.info(
                "Inactive profile stored for invitee",
                profile_id=str(identity.id),
                invitation_id=str(invitation.id),
            )

    # ------------------------------------------------------------------
    # Accept
    # ------------------------------------------------------------------

    async def accept(self, token: str) -> Invitation:
        """Accept an invitation by token.

        Never creates the profile; that happens once the identity provider
        confirms the sign-in.

        Args:
            token: Token from the invite link

        Returns:
            The accepted invitation

        Raises:
            NotFoundError: If no invitation carries the token
            AlreadyRegisteredError: If the account is already active
            AlreadyAcceptedError: If accepted but sign-in not completed
            InvitationExpiredError: If expired (possibly just now)
            InvitationRevokedError: If revoked
        """
        invitation_token = self._parse_token(token)

        with logfire.span(
            "invitation_service.accept", token=invitation_token.redacted()
        ):

            async def attempt() -> Invitation:
                invitation = await self.invitation_repository.find_by_token(
                    invitation_token
                )
                if not invitation:
                    logfire.warn(
                        "Invitation token not found", token=invitation_token.redacted()
                    )
                    raise NotFoundError("Invitation", invitation_token.redacted())

                if invitation.status == InvitationStatus.ACCEPTED:
                    raise await self._completed_error(invitation)
                if invitation.status == InvitationStatus.EXPIRED:
                    raise InvitationExpiredError(
                        "This invitation has expired. "
                        "Please contact an administrator for a new invitation."
                    )
                if invitation.status == InvitationStatus.REVOKED:
                    raise InvitationRevokedError(
                        "This invitation has been revoked. "
                        "Please contact an administrator."
                    )

                now = self._now()
                if invitation.is_past_due(now):
                    await self._expire(invitation, now)
                    raise InvitationExpiredError(
                        "This invitation has expired. "
                        "Please contact an administrator for a new invitation."
                    )

                profile = await self.profile_repository.find_by_email(invitation.email)
                if profile and profile.is_active:
                    raise AlreadyRegisteredError(
                        "This email is already registered. Please sign in.",
                        invitation.email.root,
                        invitation.role.value,
                    )

                accepted = invitation.model_copy(
                    update={
                        "status": InvitationStatus.ACCEPTED,
                        "accepted_at": now,
                        "updated_at": now,
                    }
                )
                saved = await self.invitation_repository.update(
                    accepted, invitation.version
                )
                logfire.info(
                    "Invitation accepted",
                    invitation_id=str(saved.id),
                    email=saved.email.root,
                )
                return saved

            return await self._retrying("accept", attempt)

    async def _completed_error(
        self, invitation: Invitation
    ) -> AlreadyAcceptedError | AlreadyRegisteredError:
        profile = await self.profile_repository.find_by_email(invitation.email)
        if profile and profile.is_active:
            return AlreadyRegisteredError(
                "You have already accepted this invitation and completed your "
                "account setup. Please sign in.",
                invitation.email.root,
                invitation.role.value,
            )
        return AlreadyAcceptedError(
            "You already accepted this invitation. "
            "Please complete sign in to activate your account.",
            invitation.email.root,
            invitation.role.value,
        )

    async def _expire(self, invitation: Invitation, now: datetime) -> Invitation:
        expired = invitation.model_copy(
            update={"status": InvitationStatus.EXPIRED, "updated_at": now}
        )
        saved = await self.invitation_repository.update(expired, invitation.version)
        logfire.info(
            "Invitation expired",
            invitation_id=str(saved.id),
            expires_at=invitation.expires_at.isoformat(),
        )
        return saved

    # ------------------------------------------------------------------
    # Revoke / resend
    # ------------------------------------------------------------------

    async def revoke(self, invitation_id: InvitationId) -> Invitation:
        """Revoke an invitation.

        An unconfirmed identity record for the email is deleted before the
        status changes. If that deletion fails the invitation is left as it
        was, so the call can simply be repeated.

        Raises:
            NotFoundError: If the invitation does not exist
            AlreadyRevokedError: If already revoked
            AlreadyAcceptedError: If already accepted
            UpstreamFailureError: If the identity record could not be removed
        """
        with logfire.span(
            "invitation_service.revoke", invitation_id=str(invitation_id)
        ):
            invitation = await self._get_revocable(invitation_id)
            identity_removed = await self._remove_unconfirmed_identity(
                invitation.email
            )

            async def attempt() -> Invitation:
                current = await self._get_revocable(invitation_id)
                now = self._now()
                revoked = current.model_copy(
                    update={"status": InvitationStatus.REVOKED, "updated_at": now}
                )
                return await self.invitation_repository.update(
                    revoked, current.version
                )

            try:
                saved = await self._retrying("revoke", attempt)
            except AlreadyRevokedError:
                raise
            except Exception as e:
                if identity_removed:
                    logfire.error(
                        "Identity cleanup done but invitation not revoked",
                        invitation_id=str(invitation_id),
                        error=str(e),
                    )
                raise

            logfire.info("Invitation revoked", invitation_id=str(invitation_id))
            return saved

    async def _get_revocable(self, invitation_id: InvitationId) -> Invitation:
        invitation = await self.get_invitation(invitation_id)
        if invitation.status == InvitationStatus.REVOKED:
            raise AlreadyRevokedError("Invitation is already revoked")
        if invitation.status == InvitationStatus.ACCEPTED:
            raise AlreadyAcceptedError(
                "Cannot revoke an accepted invitation",
                invitation.email.root,
                invitation.role.value,
            )
        return invitation

    async def _remove_unconfirmed_identity(self, email: Email) -> bool:
        identity = await self.identity_service.find_identity_by_email(email.root)
        if identity is None or identity.is_confirmed:
            return False

        await self.identity_service.delete_identity(identity.id)
        profile = await self.profile_repository.find_by_id(identity.id)
        if profile and profile.is_abandoned_signup:
            await self.profile_repository.delete(profile.id)
        logfire.info(
            "Unconfirmed identity removed",
            email=email.root,
            identity_id=str(identity.id),
        )
        return True

    async def resend(self, invitation_id: InvitationId) -> Invitation:
        """Send an invitation again.

        Shares counters and the daily cap with ``create_or_renew``. The
        identity provider emails the link again.

        Raises:
            NotFoundError: If the invitation does not exist
            CannotResendError: If already accepted
            RateLimitedError: If the daily send cap is reached
        """
        with logfire.span(
            "invitation_service.resend", invitation_id=str(invitation_id)
        ):

            async def attempt() -> Invitation:
                invitation = await self.get_invitation(invitation_id)
                if invitation.status == InvitationStatus.ACCEPTED:
                    raise CannotResendError("Cannot resend an accepted invitation")
                return await self._send_again(
                    invitation,
                    self._now(),
                    role=invitation.role,
                    message=invitation.message,
                )

            invitation = await self._retrying("resend", attempt)
            await self._deliver(invitation, invitation.invited_by)
            return invitation

    # ------------------------------------------------------------------
    # Identity confirmation
    # ------------------------------------------------------------------

    async def reconcile_on_identity_confirmation(
        self, identifier: UUID | str, email: str
    ) -> Profile:
        """Bring the profile in line with a confirmed identity-provider sign-in.

        A profile that never completed a sign-in (the inactive record stored
        when the invitation was sent, or none at all) is activated from the
        newest pending or accepted invitation. A deactivated account is only
        revived by an accepted invitation.

        Args:
            identifier: Identity record id confirmed by the provider
            email: Confirmed email of that identity

        Returns:
            The active profile

        Raises:
            NotInvitedError: If there is no profile and no usable invitation
            InactiveNoInviteError: If the profile is inactive and no invitation
                exists to activate it
            ConflictError: If the email belongs to an account of another
                identity
        """
        profile_id = ProfileId(UUID(str(identifier)))
        address = self._parse_email(email)

        with logfire.span(
            "invitation_service.reconcile_on_identity_confirmation",
            profile_id=str(profile_id),
            email=address.root,
        ):
            now = self._now()
            profile = await self.profile_repository.find_by_id(profile_id)
            if profile is None:
                profile = await self._abandoned_profile_for_email(
                    profile_id, address
                )

            if profile is not None and profile.is_active:
                return await self.profile_repository.save(
                    profile.model_copy(
                        update={"last_sign_in_at": now, "updated_at": now}
                    )
                )

            if profile is None or profile.is_abandoned_signup:
                invitation = await self._find_sign_in_invitation(address)
                if invitation is None:
                    if profile is None:
                        logfire.warn(
                            "Sign-in rejected - not invited", email=address.root
                        )
                        raise NotInvitedError(address.root)
                    logfire.warn(
                        "Sign-in rejected - invitation no longer usable",
                        profile_id=str(profile_id),
                    )
                    raise InactiveNoInviteError(address.root)

                if invitation.status == InvitationStatus.PENDING:
                    await self._mark_accepted(invitation.id)

                if profile is not None and profile.id != profile_id:
                    await self.profile_repository.delete(profile.id)
                    logfire.info(
                        "Abandoned profile re-keyed",
                        previous_id=str(profile.id),
                        profile_id=str(profile_id),
                    )
                base = profile or Profile(
                    id=profile_id, email=address, created_at=now, updated_at=now
                )
                created = await self.profile_repository.save(
                    base.model_copy(
                        update={
                            "id": profile_id,
                            "role": invitation.role,
                            "status": ProfileStatus.ACTIVE,
                            "confirmed_at": now,
                            "last_sign_in_at": now,
                            "updated_at": now,
                        }
                    )
                )
                logfire.info(
                    "Profile activated from invitation",
                    profile_id=str(profile_id),
                    role=created.role.value,
                    invitation_id=str(invitation.id),
                )
                return created

            accepted = await self.invitation_repository.find_latest_by_email(
                address, (InvitationStatus.ACCEPTED,)
            )
            if accepted is None:
                logfire.warn(
                    "Sign-in rejected - inactive without invitation",
                    profile_id=str(profile_id),
                )
                raise InactiveNoInviteError(address.root)

            activated = await self.profile_repository.save(
                profile.model_copy(
                    update={
                        "status": ProfileStatus.ACTIVE,
                        "role": accepted.role,
                        "confirmed_at": profile.confirmed_at or now,
                        "last_sign_in_at": now,
                        "updated_at": now,
                    }
                )
            )
            logfire.info(
                "Profile activated",
                profile_id=str(profile_id),
                role=activated.role.value,
            )
            return activated

    async def _abandoned_profile_for_email(
        self, profile_id: ProfileId, email: Email
    ) -> Profile | None:
        """Abandoned signup for the email, to be moved onto the signing-in identity.

        The provider may have replaced the invited identity record, e.g. after
        it was deleted and the invitee signed in through OAuth, so the stored
        profile can carry an id the sign-in no longer matches.
        """
        existing = await self.profile_repository.find_by_email(email)
        if existing is None:
            return None
        if not existing.is_abandoned_signup:
            logfire.warn(
                "Sign-in rejected - email held by another account",
                profile_id=str(profile_id),
                existing_profile_id=str(existing.id),
            )
            raise ConflictError(f"{email} belongs to another account")
        return existing

    async def _find_sign_in_invitation(self, email: Email) -> Invitation | None:
        """Newest pending or accepted invitation, expiring overdue ones on the way."""
        for _ in range(self.settings.max_update_attempts + 1):
            invitation = await self.invitation_repository.find_latest_by_email(
                email, SIGN_IN_STATUSES
            )
            if invitation is None:
                return None
            now = self._now()
            if invitation.status == InvitationStatus.PENDING and invitation.is_past_due(
                now
            ):
                try:
                    await self._expire(invitation, now)
                except ConcurrentUpdateError:
                    pass  # re-read below
                continue
            return invitation
        return None

    async def _mark_accepted(self, invitation_id: InvitationId) -> Invitation:
        async def attempt() -> Invitation:
            invitation = await self.get_invitation(invitation_id)
            if invitation.status == InvitationStatus.ACCEPTED:
                return invitation
            now = self._now()
            return await self.invitation_repository.update(
                invitation.model_copy(
                    update={
                        "status": InvitationStatus.ACCEPTED,
                        "accepted_at": now,
                        "updated_at": now,
                    }
                ),
                invitation.version,
            )

        return await self._retrying("mark_accepted", attempt)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_invitation(self, invitation_id: InvitationId) -> Invitation:
        """Get an invitation by ID.

        Raises:
            NotFoundError: If the invitation does not exist
        """
        invitation = await self.invitation_repository.find_by_id(invitation_id)
        if not invitation:
            raise NotFoundError("Invitation", str(invitation_id))
        return invitation

    async def list_invitations(
        self,
        status: InvitationStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[Invitation], int]:
        """List invitations newest first, with the total for the filter.

        Overdue pending invitations are expired before reading so the page and
        the total agree.

        Returns:
            Tuple of (page of invitations, total matching)
        """
        with logfire.span(
            "invitation_service.list_invitations",
            status=status.value if status else None,
            limit=limit,
            offset=offset,
        ):
            expired = await self.invitation_repository.expire_overdue(self._now())
            if expired:
                logfire.info("Overdue invitations expired", count=expired)

            invitations = await self.invitation_repository.find_all(
                status, limit, offset
            )
            total = await self.invitation_repository.count(status)
            return invitations, total

    def invite_link(self, invitation: Invitation) -> str:
        """Public link the invitee opens to accept."""
        return f"{self.base_url}/auth/accept-invite?token={invitation.token.root}"

    def stats(self, invitation: Invitation) -> InvitationStats:
        """Send counters for an invitation as of today."""
        daily = invitation.sends_today(self._now().date())
        return InvitationStats(
            send_count=invitation.send_count,
            daily_send_count=daily,
            remaining_today=max(0, self.settings.daily_send_limit - daily),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _retrying(self, operation: str, attempt: Callable[[], Awaitable[T]]) -> T:
        for number in range(1, self.settings.max_update_attempts + 1):
            try:
                return await attempt()
            except ConcurrentUpdateError as e:
                logfire.warn(
                    "Conditional write lost, retrying",
                    operation=operation,
                    attempt=number,
                    error=str(e),
                )
        raise ConcurrentUpdateError(
            f"{operation} kept conflicting with concurrent updates"
        )

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def _parse_email(email: str) -> Email:
        try:
            return Email(root=email or "")
        except PydanticValidationError:
            raise ValidationError("Valid email is required")

    @staticmethod
    def _parse_role(role: Role | str) -> Role:
        try:
            return Role(role)
        except ValueError:
            raise ValidationError('Invalid role. Must be "user" or "admin"')

    @staticmethod
    def _parse_token(token: str) -> InvitationToken:
        try:
            return InvitationToken(root=token or "")
        except PydanticValidationError:
            raise ValidationError("Token is required")
