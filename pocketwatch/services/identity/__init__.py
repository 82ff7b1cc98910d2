"""
Identity Services Package

The identity provider is treated as an opaque capability; only its
interface and an in-process implementation live here.
"""

from pocketwatch.services.identity.interface import (
    IdentityError,
    IdentityProviderInterface,
    StateChangeCallback,
    Unsubscribe,
)
from pocketwatch.services.identity.memory import InMemoryIdentityProvider

__all__ = [
    "IdentityError",
    "IdentityProviderInterface",
    "InMemoryIdentityProvider",
    "StateChangeCallback",
    "Unsubscribe",
]
