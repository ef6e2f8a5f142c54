"""
The signed-in user's token and profile, shared by the API client, route guard
and flows. Nothing else stores auth state.
"""
from typing import Any, Callable, Dict, List, Optional

Listener = Callable[["AuthSession"], None]


class AuthSession:
    def __init__(self):
        self.token: Optional[str] = None
        self.user: Optional[Dict[str, Any]] = None
        self._listeners: List[Listener] = []

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None and self.user is not None

    @property
    def role(self) -> Optional[str]:
        return self.user.get("role") if self.user else None

    @property
    def is_approved(self) -> bool:
        return bool(self.user and self.user.get("is_approved"))

    def login(self, token: str, user: Dict[str, Any]) -> None:
        self.token = token
        self.user = dict(user)
        self._notify()

    def update_user(self, user: Dict[str, Any]) -> None:
        """Replace the cached profile, e.g. after an approval lands."""
        if self.token is None:
            return
        self.user = dict(user)
        self._notify()

    def logout(self) -> None:
        if self.token is None and self.user is None:
            return
        self.token = None
        self.user = None
        self._notify()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def auth_headers(self) -> Dict[str, str]:
        if self.token is None:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)
