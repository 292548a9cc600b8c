"""Admin credential hashing and the process key ring."""

import hashlib
from dataclasses import dataclass
from functools import lru_cache
from secrets import token_urlsafe

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from avdesk.crypto.keys import KeyRing

ADMIN_TOKEN_PREFIX = "adm"

password_hasher = PasswordHasher()


@dataclass(frozen=True, slots=True)
class IssuedToken:
    """A freshly generated admin token and its stored forms.

    Attributes
    ----------
    plaintext : str
        Bearer value shown to the caller once.
    token_hash : str
        Argon2 hash kept for verification.
    token_lookup : str
        SHA-256 digest used to find the row.
    """

    plaintext: str
    token_hash: str
    token_lookup: str


@lru_cache(maxsize=1)
def key_ring() -> KeyRing:
    """Return the key ring for PIN digests and merge tokens.

    Returns
    -------
    KeyRing
        Key ring bound to the current settings.
    """
    from avdesk.config import get_settings

    return KeyRing(get_settings().secret_key_path)


def issue_admin_token() -> IssuedToken:
    """Generate an admin bearer token with its hash and lookup digest."""
    plaintext = f"{ADMIN_TOKEN_PREFIX}_{token_urlsafe(24)}"
    return IssuedToken(
        plaintext=plaintext,
        token_hash=password_hasher.hash(plaintext),
        token_lookup=lookup_hash(plaintext),
    )


def lookup_hash(token: str) -> str:
    """Compute the non-secret digest used to find a token row.

    Parameters
    ----------
    token : str
        Raw bearer token.

    Returns
    -------
    str
        Hex-encoded SHA-256 digest.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def verify_token(token: str, token_hash: str) -> bool:
    """Check a bearer token against its stored argon2 hash.

    A malformed stored hash counts as a mismatch.
    """
    try:
        return password_hasher.verify(token_hash, token)
    except (VerificationError, InvalidHashError):
        return False
