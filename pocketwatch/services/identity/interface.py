"""
Identity Provider Interface

The authentication provider is an external capability. We only need four
things from it: who is signed in right now, a stream of sign-in/sign-out
events, and a way to trigger either transition. How it talks to its own
backend (OAuth redirects, cookies, tokens) stays behind this interface.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

from pocketwatch.models.session import Identity, IdentityEvent


StateChangeCallback = Callable[[IdentityEvent, Optional[Identity]], Awaitable[None]]
Unsubscribe = Callable[[], None]


class IdentityProviderInterface(ABC):
    """Abstract interface every identity provider implements."""

    @abstractmethod
    async def get_current_identity(self) -> Optional[Identity]:
        """
        Return the signed-in identity, or None in anonymous mode.

        May be slow or hang; callers bound the wait themselves.
        """
        pass

    @abstractmethod
    def on_state_change(self, callback: StateChangeCallback) -> Unsubscribe:
        """
        Register a coroutine called on every sign-in and sign-out.

        Returns:
            A function that removes the registration
        """
        pass

    @abstractmethod
    async def sign_in(self, provider: str) -> Optional[Identity]:
        """Start a sign-in with the named provider (e.g. 'google')."""
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        pass


class IdentityError(Exception):
    """Raised by providers when a sign-in cannot be completed."""
    pass
