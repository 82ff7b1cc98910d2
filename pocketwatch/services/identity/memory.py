"""
In-Process Identity Provider

Holds the current identity in memory and notifies subscribers on every
transition. Used for single-process sessions (scripts, the local CLI
flow) and in tests, where each provider name maps to a known identity.
"""

import asyncio
from typing import Optional

from pocketwatch.models.session import Identity, IdentityEvent
from pocketwatch.services.identity.interface import (
    IdentityError,
    IdentityProviderInterface,
    StateChangeCallback,
    Unsubscribe,
)


class InMemoryIdentityProvider(IdentityProviderInterface):
    """
    Identity provider backed by a fixed table of provider -> identity.

    Notifications are scheduled as tasks rather than awaited, the same
    way an external provider fires its callbacks independently of the
    caller that triggered them.
    """

    def __init__(
        self,
        identities: Optional[dict[str, Identity]] = None,
        current: Optional[Identity] = None,
    ):
        self._identities = dict(identities or {})
        self._current = current
        self._callbacks: list[StateChangeCallback] = []
        self._tasks: set[asyncio.Task] = set()

    @property
    def current(self) -> Optional[Identity]:
        return self._current

    async def get_current_identity(self) -> Optional[Identity]:
        return self._current

    def on_state_change(self, callback: StateChangeCallback) -> Unsubscribe:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def _emit(self, event: IdentityEvent, identity: Optional[Identity]) -> None:
        for callback in list(self._callbacks):
            task = asyncio.ensure_future(callback(event, identity))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def sign_in(self, provider: str) -> Optional[Identity]:
        identity = self._identities.get(provider)
        if identity is None:
            raise IdentityError(f"Unknown identity provider: {provider}")
        self._current = identity.model_copy(update={"provider": provider})
        self._emit(IdentityEvent.SIGNED_IN, self._current)
        return self._current

    async def sign_out(self) -> None:
        self._current = None
        self._emit(IdentityEvent.SIGNED_OUT, None)

    async def wait_for_notifications(self) -> None:
        """Wait until every scheduled callback has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
