"""Authentication for Referly - local users plus one configured admin."""

from referly.auth.local import AdminAuthenticator, PasswordHasher, TokenService

__all__ = [
    "AdminAuthenticator",
    "PasswordHasher",
    "TokenService",
]
