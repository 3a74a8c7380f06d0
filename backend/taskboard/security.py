"""
Taskboard Backend — Password Hashing
======================================

What:  One-way bcrypt hashing of plaintext credentials before persistence.
How:   passlib `CryptContext` with the bcrypt scheme; the cost factor
       (`Settings.hash_rounds`) selects a cached context per value.
Who:   UserService, on create and on any update carrying a new password.

Each call generates a fresh salt, so hashing the same plaintext twice gives
two different strings; `verify_password` accepts both.
"""

from functools import lru_cache

from passlib.context import CryptContext


@lru_cache(maxsize=8)
def _crypt_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def hash_password(plaintext: str, rounds: int) -> str:
    """Return a salted bcrypt hash of `plaintext` using `rounds` as cost factor."""
    return _crypt_context(rounds).hash(plaintext)


def verify_password(plaintext: str, hashed: str) -> bool:
    """Verify a plaintext password against a stored hash."""
    # The cost factor is encoded in the hash itself, so any context verifies it
    return _crypt_context(4).verify(plaintext, hashed)


class PasswordHasher:
    """Binds the configured cost factor so callers only pass the plaintext."""

    def __init__(self, rounds: int):
        self.rounds = rounds

    def hash(self, plaintext: str) -> str:
        return hash_password(plaintext, self.rounds)

    def verify(self, plaintext: str, hashed: str) -> bool:
        return verify_password(plaintext, hashed)
