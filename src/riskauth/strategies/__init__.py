"""Credential-check strategies and their registry."""

from __future__ import annotations

from .base import (
    BasicPasswordStrategy,
    IAuthenticationStrategy,
    JwtPasswordStrategy,
    PasswordStrategy,
)
from .directory import DirectoryStrategy
from .registry import StrategyRegistry

__all__: list[str] = [
    "BasicPasswordStrategy",
    "DirectoryStrategy",
    "IAuthenticationStrategy",
    "JwtPasswordStrategy",
    "PasswordStrategy",
    "StrategyRegistry",
]
