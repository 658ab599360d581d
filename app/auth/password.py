"""
Password hashing with Argon2id.

Argon2id is memory-hard and side-channel resistant. Every hash carries its
own random salt and cost parameters in the encoded string, so stored hashes
stay verifiable after the configured costs change.
"""

import secrets
import string
from functools import lru_cache

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from app.core.config import Settings


@lru_cache
def _dummy_hash(time_cost: int, memory_cost: int, parallelism: int) -> str:
    # One throwaway hash per cost profile
    hasher = PasswordHasher(
        time_cost=time_cost,
        memory_cost=memory_cost,
        parallelism=parallelism,
        hash_len=32,
        salt_len=16,
    )
    return hasher.hash(secrets.token_urlsafe(16))


class PasswordService:
    """
    Hashes and verifies passwords.

    Cost factors come from `Settings`. Verification never raises: a wrong
    password and a corrupted stored hash both return False, so callers
    cannot tell the two apart.
    """

    def __init__(self, settings: Settings):
        self._ph = PasswordHasher(
            time_cost=settings.password_time_cost,
            memory_cost=settings.password_memory_cost,
            parallelism=settings.password_parallelism,
            hash_len=32,
            salt_len=16,
        )

    def hash(self, password: str) -> str:
        """
        Hash a password using Argon2id.

        Returns:
            The encoded hash (algorithm, params, salt, and digest)
        """
        return self._ph.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        """Return True only if `password` matches `password_hash`."""
        try:
            return self._ph.verify(password_hash, password)
        except VerificationError:
            # Covers VerifyMismatchError
            return False
        except (InvalidHashError, ValueError, TypeError):
            return False

    def dummy_verify(self, password: str) -> bool:
        """
        Spend the same Argon2 work as a real verification and return False.

        Used when no account matches, so response time does not reveal
        whether an email is registered.
        """
        ph = self._ph
        self.verify(password, _dummy_hash(ph.time_cost, ph.memory_cost, ph.parallelism))
        return False

    def needs_rehash(self, password_hash: str) -> bool:
        """
        Check if a stored hash was made with outdated parameters.
        After a successful login, rehash if this returns True.
        """
        try:
            return self._ph.check_needs_rehash(password_hash)
        except (InvalidHashError, ValueError):
            return True


def generate_temp_password(length: int = 16) -> str:
    """
    Generate a secure temporary password.

    Used for the bootstrap admin account.

    Args:
        length: Length of the password (minimum 12)

    Returns:
        A random password meeting complexity requirements
    """
    if length < 12:
        length = 12

    # Ensure at least one of each required character type
    password = [
        secrets.choice(string.ascii_uppercase),
        secrets.choice(string.ascii_lowercase),
        secrets.choice(string.digits),
        secrets.choice("!@#$%^&*"),
    ]

    alphabet = string.ascii_letters + string.digits + "!@#$%^&*"
    password.extend(secrets.choice(alphabet) for _ in range(length - 4))

    # Shuffle to avoid predictable positions
    secrets.SystemRandom().shuffle(password)

    return "".join(password)
