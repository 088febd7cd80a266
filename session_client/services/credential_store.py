"""In-memory holder for the current access token."""

from __future__ import annotations

from typing import Callable, List, Optional

CredentialListener = Callable[[Optional[str]], None]


class CredentialStore:
    """Keeps the access token for the lifetime of this object only.

    Nothing here touches disk. Listeners are told about every change, in the
    order ``set`` is called, so the renewal scheduler always tracks the
    latest token.
    """

    def __init__(self) -> None:
        self._token: Optional[str] = None
        self._listeners: List[CredentialListener] = []

    def add_listener(self, listener: CredentialListener) -> None:
        self._listeners.append(listener)

    def set(self, token: Optional[str]) -> None:
        self._token = token or None
        for listener in list(self._listeners):
            listener(self._token)

    def clear(self) -> None:
        self.set(None)

    def get(self) -> Optional[str]:
        return self._token

    def exists(self) -> bool:
        return self._token is not None


__all__ = ["CredentialListener", "CredentialStore"]
