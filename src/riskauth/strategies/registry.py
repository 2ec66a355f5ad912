"""Resolution of method names to authentication strategies."""

from __future__ import annotations

from collections.abc import Iterable

from ..exceptions import UnsupportedMethodError
from .base import IAuthenticationStrategy


class StrategyRegistry:
    """Ordered collection of strategies with a default method.

    Example:
        ```python
        registry = StrategyRegistry(
            [JwtPasswordStrategy(accounts=repo, password_hasher=hasher)],
            default_method="JWT",
        )
        strategy = registry.resolve(None)  # -> the JWT strategy
        ```
    """

    def __init__(
        self,
        strategies: Iterable[IAuthenticationStrategy] = (),
        *,
        default_method: str = "JWT",
    ) -> None:
        self._strategies: list[IAuthenticationStrategy] = list(strategies)
        self.default_method = default_method.strip().upper()

    def register(self, strategy: IAuthenticationStrategy) -> None:
        """Append a strategy; earlier registrations win on overlap."""
        self._strategies.append(strategy)

    def resolve(self, method: str | None = None) -> IAuthenticationStrategy:
        """Return the first strategy supporting ``method``.

        Args:
            method: Requested method name; None or blank means the default.

        Raises:
            UnsupportedMethodError: If no strategy supports the method.
        """
        requested = (method or "").strip() or self.default_method
        for strategy in self._strategies:
            if strategy.supports(requested):
                return strategy
        raise UnsupportedMethodError(method if method else requested)

    def available_methods(self) -> list[str]:
        """Method names currently accepted, in registration order."""
        return [s.method_name for s in self._strategies if s.supports(s.method_name)]


__all__: list[str] = ["StrategyRegistry"]
