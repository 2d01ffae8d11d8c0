"""
Session service holding the customer's credentials and post-login continuation.
"""

from datetime import datetime, timezone
from typing import Optional

from ...core.enums import PendingAction
from ...core.models.user import UserProfile


class SessionService:
    """Identity/session state for the booking flow."""

    def __init__(
        self,
        access_token: Optional[str] = None,
        profile: Optional[UserProfile] = None,
        expires_at: Optional[datetime] = None,
    ):
        self.access_token = access_token
        self.refresh_token: Optional[str] = None
        self.expires_at = expires_at
        self.profile = profile
        self._pending_action: Optional[PendingAction] = None

    def is_authenticated(self) -> bool:
        """True when the session holds an unexpired access token."""
        if not self.access_token:
            return False
        if self.expires_at is not None and self.expires_at <= datetime.now(timezone.utc):
            return False
        return True

    def get_access_token(self) -> Optional[str]:
        return self.access_token if self.is_authenticated() else None

    def set_tokens(
        self,
        access_token: str,
        refresh_token: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> None:
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.expires_at = expires_at

    def set_profile(self, profile: UserProfile) -> None:
        self.profile = profile

    def clear(self) -> None:
        """Log out: drop credentials, profile and any pending action."""
        self.access_token = None
        self.refresh_token = None
        self.expires_at = None
        self.profile = None
        self._pending_action = None

    @property
    def pending_action(self) -> Optional[PendingAction]:
        return self._pending_action

    def remember(self, action: PendingAction) -> bool:
        """
        Store an action to resume after login.

        Returns False when the same action is already waiting.
        """
        if self._pending_action == action:
            return False
        self._pending_action = action
        return True

    def take_pending_action(self) -> Optional[PendingAction]:
        """Consume the pending action; later calls return None until remembered again."""
        action, self._pending_action = self._pending_action, None
        return action
