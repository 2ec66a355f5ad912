"""bcrypt password hashing with cost-factor upgrade detection."""

from __future__ import annotations

from typing import cast

import bcrypt

# bcrypt only looks at the first 72 bytes of input.
_BCRYPT_MAX_BYTES = 72


class PasswordHasher:
    """Password and backup-code hasher backed by bcrypt.

    Example:
        ```python
        hasher = PasswordHasher()
        hashed = hasher.hash("s3cret")
        if hasher.verify(hashed, "s3cret") and hasher.needs_rehash(hashed):
            await accounts.update_password_hash(username, hasher.hash("s3cret"))
        ```
    """

    def __init__(self, *, rounds: int = 12) -> None:
        """Initialize the hasher.

        Args:
            rounds: bcrypt cost factor (default 12).
        """
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """Hash a password.

        Raises:
            ValueError: If the password is empty.
        """
        if not password:
            raise ValueError("Password must not be empty")
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(self._encode(password), salt).decode()

    def verify(self, hashed_password: str, password: str) -> bool:
        """Check a password against a stored hash.

        Malformed hashes never match.
        """
        if not hashed_password or not password:
            return False
        try:
            return cast(
                "bool",
                bcrypt.checkpw(self._encode(password), hashed_password.encode()),
            )
        except ValueError:
            return False

    def needs_rehash(self, hashed_password: str) -> bool:
        """True when the stored hash uses fewer rounds than configured."""
        # bcrypt format: $2b$12$...
        parts = hashed_password.split("$")
        if len(parts) >= 3:
            try:
                return int(parts[2]) < self.rounds
            except ValueError:
                return False
        return False

    @staticmethod
    def _encode(password: str) -> bytes:
        return password.encode()[:_BCRYPT_MAX_BYTES]


__all__: list[str] = ["PasswordHasher"]
