"""Pydantic models for invitation codes."""

from datetime import datetime

from pydantic import BaseModel


class InvitationCode(BaseModel):
    """Single-use onboarding token linking a supervisor to a future subject."""

    id: str
    supervisor_id: str
    code: str
    email: str
    expires_at: datetime
    used_at: datetime | None = None
    created_at: datetime

    @property
    def used(self) -> bool:
        return self.used_at is not None

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def is_open(self, now: datetime) -> bool:
        """Unused and not yet expired."""
        return not self.used and not self.is_expired(now)
