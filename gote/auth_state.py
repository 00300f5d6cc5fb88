from typing import Callable, Optional
from uuid import UUID

from .events import Event
from .service import SupabaseService


class AuthStateProvider:
    """Who the UI should treat as signed in."""

    def __init__(self):
        self.user_id: Optional[UUID] = None
        self.authentication_state_changed = Event("authentication_state_changed")

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def mark_user_as_authenticated(self, user_id: UUID) -> None:
        self.user_id = user_id
        self.authentication_state_changed.emit()

    def mark_user_as_logged_out(self) -> None:
        self.user_id = None
        self.authentication_state_changed.emit()

    def bind(self, service: SupabaseService) -> Callable[[], None]:
        """Follow ``service`` sign-ins and sign-outs. Returns the unsubscriber."""

        def _sync() -> None:
            service.get_user_id().match(
                self.mark_user_as_authenticated,
                lambda _error: self.mark_user_as_logged_out(),
            )

        return service.auth_state_changed.subscribe(_sync)
