"""Invitation code models and issuer."""

from moodlog.invitations.models import InvitationCode

__all__ = ["InvitationCode"]
