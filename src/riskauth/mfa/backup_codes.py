"""Backup codes for two-factor recovery.

Codes are numeric, shown to the user once and stored only as bcrypt
hashes. Each code is single-use.
"""

from __future__ import annotations

import secrets
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ..ports import IPasswordHasher


class BackupCodeGenerator:
    """Generates, hashes and matches backup codes.

    Example:
        ```python
        generator = BackupCodeGenerator(hasher=PasswordHasher())
        codes = generator.generate()          # ["04718263", ...]
        hashes = generator.hash_all(codes)    # store these
        generator.find_match(codes[0], hashes)
        ```
    """

    def __init__(
        self,
        *,
        hasher: IPasswordHasher,
        count: int = 10,
        code_length: int = 8,
    ) -> None:
        """Initialize the generator.

        Args:
            hasher: Hasher for stored codes.
            count: Codes per batch (default 10).
            code_length: Digits per code (default 8).
        """
        self.hasher = hasher
        self.count = count
        self.code_length = code_length

    def _generate_code(self) -> str:
        code = secrets.randbelow(10**self.code_length)
        return str(code).zfill(self.code_length)

    def generate(self) -> list[str]:
        """A fresh batch of distinct plaintext codes."""
        codes: list[str] = []
        while len(codes) < self.count:
            code = self._generate_code()
            if code not in codes:
                codes.append(code)
        return codes

    def hash_all(self, codes: Iterable[str]) -> list[str]:
        return [self.hasher.hash(code) for code in codes]

    def normalize(self, code: str) -> str:
        """Strip whitespace and the separators users tend to type."""
        return "".join(ch for ch in code if ch not in " -\t")

    def looks_like_backup_code(self, code: str) -> bool:
        return len(self.normalize(code)) == self.code_length

    def find_match(self, code: str, hashes: Iterable[str]) -> str | None:
        """Return the first stored hash the code matches, if any."""
        normalized = self.normalize(code)
        if not normalized:
            return None
        for code_hash in hashes:
            if self.hasher.verify(code_hash, normalized):
                return code_hash
        return None


__all__: list[str] = ["BackupCodeGenerator"]
