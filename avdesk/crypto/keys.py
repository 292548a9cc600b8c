"""Keyed PIN digests and merge confirmation tokens."""

from __future__ import annotations

import base64
import uuid
from pathlib import Path

from cryptography.exceptions import InvalidSignature
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes, hmac


class KeyRing:
    """Local secret used to digest PINs and seal merge tokens.

    Parameters
    ----------
    key_path : Path
        File containing the Fernet key. Created on first use.
    """

    def __init__(self, key_path: Path) -> None:
        self.key_path = key_path
        self.key = self._load_or_create_key(key_path)
        self.fernet = Fernet(self.key)
        self._mac_key = base64.urlsafe_b64decode(self.key)

    def pin_digest(self, pin: str) -> str:
        """Return the keyed digest stored in place of a PIN.

        Parameters
        ----------
        pin : str
            Four-digit PIN.

        Returns
        -------
        str
            Hex-encoded HMAC-SHA256.
        """
        mac = hmac.HMAC(self._mac_key, hashes.SHA256())
        mac.update(pin.encode("utf-8"))
        return mac.finalize().hex()

    def verify_pin(self, pin: str, digest: str) -> bool:
        """Compare a PIN with a stored digest in constant time.

        Parameters
        ----------
        pin : str
            Candidate PIN.
        digest : str
            Stored hex digest.

        Returns
        -------
        bool
            Whether the PIN produced the digest.
        """
        try:
            expected = bytes.fromhex(digest)
        except ValueError:
            return False
        mac = hmac.HMAC(self._mac_key, hashes.SHA256())
        mac.update(pin.encode("utf-8"))
        try:
            mac.verify(expected)
        except InvalidSignature:
            return False
        return True

    def issue_merge_token(self, record_id: uuid.UUID) -> str:
        """Seal a checkout record id into an opaque confirmation token.

        Parameters
        ----------
        record_id : uuid.UUID
            Checkout record offered for merging.

        Returns
        -------
        str
            URL-safe token.
        """
        return self.fernet.encrypt(record_id.bytes).decode("ascii")

    def read_merge_token(self, token: str, ttl_seconds: int) -> uuid.UUID | None:
        """Open a merge token.

        Parameters
        ----------
        token : str
            Token issued by :meth:`issue_merge_token`.
        ttl_seconds : int
            Maximum token age.

        Returns
        -------
        uuid.UUID | None
            Record id, or None when the token is forged or expired.
        """
        try:
            payload = self.fernet.decrypt(token.encode("ascii"), ttl=ttl_seconds)
        except (InvalidToken, UnicodeEncodeError):
            return None
        if len(payload) != 16:
            return None
        return uuid.UUID(bytes=payload)

    @staticmethod
    def _load_or_create_key(key_path: Path) -> bytes:
        """Load the local key.

        Parameters
        ----------
        key_path : Path
            File path for the key.

        Returns
        -------
        bytes
            Fernet key.
        """
        if key_path.exists():
            return key_path.read_bytes().strip()
        key = Fernet.generate_key()
        key_path.write_bytes(key)
        return key
