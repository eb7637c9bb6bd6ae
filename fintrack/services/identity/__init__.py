"""Identity provider package."""

from fintrack.services.identity.interface import (
    IdentityProvider,
    SessionCallback,
    SessionIdentityProvider,
)

__all__ = [
    "IdentityProvider",
    "SessionCallback",
    "SessionIdentityProvider",
]
