"""Invitation code issuer.

Supervisors issue short, human-typeable, single-use codes to the email of
a future subject. Redeeming a code binds the new subject to the
supervisor who issued it.
"""

from __future__ import annotations

import logging
import secrets
import uuid
from collections.abc import Callable
from datetime import timedelta
from typing import TYPE_CHECKING

from moodlog.clock import Clock, SystemClock
from moodlog.config import GlobalConfig
from moodlog.errors import (
    CodeSpaceExhausted,
    DuplicateActiveInvitation,
    Expired,
    InvalidOrUsedCode,
    ValidationError,
)
from moodlog.invitations.models import InvitationCode
from moodlog.notifications import Notifier, NullNotifier, emit

if TYPE_CHECKING:
    from moodlog.storage.base import Store

logger = logging.getLogger(__name__)


def normalise_email(email: str) -> str:
    cleaned = (email or "").strip().lower()
    if not cleaned or "@" not in cleaned:
        raise ValidationError(f"Not an email address: {email!r}", field="email")
    return cleaned


def normalise_code(code: str) -> str:
    """Uppercase a code and drop any whitespace the user typed into it."""
    return "".join((code or "").split()).upper()


class InvitationIssuer:
    """Issues and redeems invitation codes."""

    def __init__(
        self,
        store: Store,
        clock: Clock | None = None,
        notifier: Notifier | None = None,
        config: GlobalConfig | None = None,
        code_factory: Callable[[], str] | None = None,
    ) -> None:
        """Initialize the issuer.

        Args:
            store: Persistence collaborator.
            clock: Time source for expiry and redemption.
            notifier: Receives ``invitation-issued`` events.
            config: Code length, alphabet, expiry and retry settings.
            code_factory: Replaces the random code generator (tests).
        """
        self.store = store
        self.clock = clock or SystemClock()
        self.notifier = notifier or NullNotifier()
        self.config = config or GlobalConfig()
        self._code_factory = code_factory or self._random_code

    def _random_code(self) -> str:
        alphabet = self.config.invitation_alphabet
        length = self.config.invitation_code_length
        return "".join(secrets.choice(alphabet) for _ in range(length))

    def _unique_code(self) -> str:
        attempts = self.config.invitation_max_attempts
        for _ in range(attempts):
            candidate = normalise_code(self._code_factory())
            if not self.store.find_invitations(code=candidate, unused_only=True):
                return candidate

        logger.error(
            "Could not generate a unique invitation code after %d attempts", attempts
        )
        raise CodeSpaceExhausted(
            f"No unused invitation code found after {attempts} attempts"
        )

    def issue(self, supervisor_id: str, email: str) -> InvitationCode:
        """Issue a new code for ``email``.

        Raises:
            ValidationError: If the email is blank or malformed.
            DuplicateActiveInvitation: If the supervisor already has an
                unused, unexpired code for this email.
            CodeSpaceExhausted: If every generated code collided.
        """
        email = normalise_email(email)

        with self.store.transaction():
            now = self.clock.now()
            pending = [
                invitation
                for invitation in self.store.find_invitations(
                    supervisor_id=supervisor_id, email=email, unused_only=True
                )
                if invitation.is_open(now)
            ]
            if pending:
                raise DuplicateActiveInvitation(
                    f"An active invitation for {email} already exists "
                    f"(expires {pending[0].expires_at.isoformat()})",
                    field="email",
                )

            invitation = InvitationCode(
                id=str(uuid.uuid4()),
                supervisor_id=supervisor_id,
                code=self._unique_code(),
                email=email,
                expires_at=now + timedelta(days=self.config.invitation_expiry_days),
                created_at=now,
            )
            self.store.add_invitation(invitation)

        logger.info("Issued invitation %s for %s", invitation.id, email)
        emit(
            self.notifier,
            "invitation-issued",
            invitation_id=invitation.id,
            supervisor_id=supervisor_id,
            email=email,
            code=invitation.code,
            expires_at=invitation.expires_at.isoformat(),
        )
        return invitation

    def redeem(
        self,
        code: str,
        email: str,
        on_redeem: Callable[[InvitationCode], None] | None = None,
    ) -> InvitationCode:
        """Redeem a code for the account being created for ``email``.

        ``on_redeem`` runs in the same transaction that marks the code used,
        with the redeemed invitation; it is where the caller creates the
        subject record. If it raises, the code stays unused.

        Raises:
            InvalidOrUsedCode: No unused code matches this code and email.
            Expired: The code matched but is past its expiry.
        """
        code = normalise_code(code)
        email = (email or "").strip().lower()

        with self.store.transaction():
            matches = [
                invitation
                for invitation in self.store.find_invitations(code=code, unused_only=True)
                if invitation.email == email
            ]
            if not matches:
                raise InvalidOrUsedCode("Invitation code is invalid or already used")

            invitation = matches[0]
            now = self.clock.now()
            if invitation.is_expired(now):
                raise Expired(
                    f"Invitation code expired at {invitation.expires_at.isoformat()}"
                )

            invitation.used_at = now
            if on_redeem is not None:
                on_redeem(invitation)
            self.store.update_invitation(invitation)

        logger.info("Redeemed invitation %s", invitation.id)
        return invitation

    def list_for_supervisor(
        self,
        supervisor_id: str,
        pending_only: bool = False,
    ) -> list[InvitationCode]:
        """A supervisor's invitations, oldest first."""
        invitations = self.store.find_invitations(supervisor_id=supervisor_id)
        if not pending_only:
            return invitations
        now = self.clock.now()
        return [i for i in invitations if i.is_open(now)]
