"""Password verification with a constant-cost path for unknown users."""

from __future__ import annotations

import logging
import secrets

from werkzeug.security import check_password_hash, generate_password_hash

from taskflow.services._shared.errors import InternalFailure

log = logging.getLogger(__name__)


class CredentialVerifier:
    """
    Compare plaintext passwords against stored hashes.

    The dummy hash is produced with the same default method and cost as real
    hashes (``generate_password_hash``), so verifying against it takes as
    long as a real mismatch.
    """

    def __init__(self) -> None:
        self._dummy_hash = generate_password_hash(secrets.token_hex(16))

    def verify(self, plain_password: str, stored_hash: str) -> bool:
        """
        :returns: ``True`` on match, ``False`` on mismatch.
        :raises InternalFailure: When the hashing library rejects the input
            (malformed or unsupported hash).
        """
        try:
            return check_password_hash(stored_hash, plain_password)
        except (ValueError, TypeError) as exc:
            log.error("Password hash verification failed", exc_info=True)
            raise InternalFailure("Password verification failed") from exc

    def verify_dummy(self, plain_password: str) -> None:
        """Burn one verification against the dummy hash; the result is ignored."""
        self.verify(plain_password, self._dummy_hash)
