"""Version-extraction strategies and the registry that selects among them.

The built-in strategies form a fixed priority list. Extension strategies
are registered at startup into the slot just before ``PageMatch``; once the
registry is frozen it is a read-only lookup table shared by every check.
"""
from __future__ import annotations

import importlib
import logging
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional

from versioning.models import ConfigurationError
from .base import Strategy
from .git import Git
from .github_latest import GithubLatest
from .gnu import Gnu
from .launchpad import Launchpad
from .npm import Npm
from .page_match import PageMatch
from .pypi import Pypi
from .sourceforge import Sourceforge

logger = logging.getLogger(__name__)


class StrategyRegistrationError(RuntimeError):
    """Raised when registering into a frozen registry or reusing a name."""


class StrategyRegistry:
    """Ordered set of strategies plus a frozen name lookup table."""

    def __init__(self, strategies: Iterable[Strategy] = (), fallback: Optional[Strategy] = None):
        self._strategies: List[Strategy] = []
        self._fallback = fallback
        self._names: Optional[Mapping[str, Strategy]] = None
        for strategy in strategies:
            self.register(strategy)

    @property
    def frozen(self) -> bool:
        return self._names is not None

    @property
    def strategies(self) -> tuple:
        """All strategies in priority order, fallback last."""
        ordered = list(self._strategies)
        if self._fallback is not None:
            ordered.append(self._fallback)
        return tuple(ordered)

    def register(self, strategy: Strategy) -> None:
        """Append ``strategy`` ahead of the fallback strategy."""
        if self.frozen:
            raise StrategyRegistrationError("Strategy registry is frozen")
        if not isinstance(strategy, Strategy):
            raise StrategyRegistrationError(f"{strategy!r} is not a Strategy instance")
        if not strategy.NAME or not strategy.SYMBOL:
            raise StrategyRegistrationError(f"{type(strategy).__name__} must define NAME and SYMBOL")
        taken = {s.NAME.lower() for s in self.strategies} | {s.SYMBOL.lower() for s in self.strategies}
        if strategy.NAME.lower() in taken or strategy.SYMBOL.lower() in taken:
            raise StrategyRegistrationError(f"Strategy name {strategy.NAME!r} is already registered")
        self._strategies.append(strategy)

    def load_extension(self, spec: str) -> Strategy:
        """Import ``module:attribute`` and register it.

        The attribute may be a Strategy subclass or an instance.
        """
        module_name, _, attr = spec.partition(":")
        if not module_name or not attr:
            raise StrategyRegistrationError(f"Extension {spec!r} must look like 'module:Attribute'")
        try:
            module = importlib.import_module(module_name)
            target = getattr(module, attr)
        except (ImportError, AttributeError) as exc:
            raise StrategyRegistrationError(f"Cannot load extension strategy {spec!r}: {exc}") from exc
        strategy = target() if isinstance(target, type) else target
        self.register(strategy)
        logger.debug("Registered extension strategy %s from %s", strategy.NAME, spec)
        return strategy

    def freeze(self) -> "StrategyRegistry":
        """Build the name table; no registrations are accepted afterwards."""
        if not self.frozen:
            table = {}
            for strategy in self.strategies:
                table[strategy.NAME.lower()] = strategy
                table[strategy.SYMBOL.lower()] = strategy
            self._names = MappingProxyType(table)
        return self

    def from_url(self, url: str, regex_provided: bool = False) -> List[Strategy]:
        """Return every strategy applying to ``url``, in priority order.

        Strategies that need a regex are left out when none is provided.
        """
        return [
            s for s in self.strategies
            if (regex_provided or not s.REQUIRES_REGEX) and s.applies_to(url)
        ]

    def from_name(self, name: Optional[str]) -> Optional[Strategy]:
        """Look up a strategy by display name or symbol (case-insensitive).

        Raises:
            ConfigurationError: if the name is set but unknown.
        """
        if not name:
            return None
        key = name.strip().lower()
        if self._names is not None:
            strategy = self._names.get(key)
        else:
            strategy = next(
                (s for s in self.strategies if key in (s.NAME.lower(), s.SYMBOL.lower())),
                None,
            )
        if strategy is None:
            raise ConfigurationError(f"Unknown strategy {name!r}")
        return strategy

    def names(self) -> List[str]:
        return [s.NAME for s in self.strategies]


def build_default_registry(extensions: Iterable[str] = ()) -> StrategyRegistry:
    """Create and freeze the registry of built-in plus extension strategies."""
    registry = StrategyRegistry(
        [Git(), GithubLatest(), Gnu(), Launchpad(), Npm(), Pypi(), Sourceforge()],
        fallback=PageMatch(),
    )
    for spec in extensions:
        registry.load_extension(spec)
    return registry.freeze()


__all__ = [
    "Strategy",
    "StrategyRegistry",
    "StrategyRegistrationError",
    "build_default_registry",
    "Git",
    "GithubLatest",
    "Gnu",
    "Launchpad",
    "Npm",
    "PageMatch",
    "Pypi",
    "Sourceforge",
]
