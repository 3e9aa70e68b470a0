"""Rule registry: stable identifiers mapped to rule factories.

Rules are looked up by identifier (``"style.code_style"``) or by class name
alias (``"CodeStyleRule"``). A factory is any callable taking the rule's
option mapping and returning a rule instance; a rule class qualifies.
"""

from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Any

from ..exceptions import ConfigurationError, UnknownRuleError
from ..review_logging import get_logger
from .base import BaseRule
from .filters import RuleFilter

logger = get_logger("engine.registry")

RuleFactory = Callable[[Mapping[str, Any]], BaseRule]


class RuleRegistry:
    """Table of known rules in registration order."""

    def __init__(self) -> None:
        self._factories: dict[str, RuleFactory] = {}
        self._aliases: dict[str, str] = {}

    def register(
        self,
        identifier: str,
        factory: RuleFactory,
        aliases: Iterable[str] = (),
    ) -> None:
        """Register a rule factory.

        Args:
            identifier: Stable rule identifier
            factory: Callable building the rule from an options mapping
            aliases: Additional names resolving to the same rule

        Raises:
            ValueError: If the identifier or an alias is already taken.
        """
        if identifier in self._factories or identifier in self._aliases:
            raise ValueError(f"Rule {identifier} is already registered")
        for alias in aliases:
            if alias in self._factories or alias in self._aliases:
                raise ValueError(f"Rule alias {alias} is already registered")

        self._factories[identifier] = factory
        for alias in aliases:
            self._aliases[alias] = identifier

    def resolve(self, name: str) -> str:
        """Return the canonical identifier for an identifier or alias.

        Raises:
            UnknownRuleError: If the name is not registered.
        """
        if name in self._factories:
            return name
        if name in self._aliases:
            return self._aliases[name]
        raise UnknownRuleError(name)

    def create(self, name: str, options: Mapping[str, Any] | None = None) -> BaseRule:
        """Instantiate a registered rule.

        Raises:
            UnknownRuleError: If the name is not registered.
            ConfigurationError: If the factory fails or returns a non-rule.
        """
        identifier = self.resolve(name)
        factory = self._factories[identifier]
        try:
            rule = factory(dict(options or {}))
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(
                f"Rule '{identifier}' failed to initialise: {e}"
            ) from e
        if not isinstance(rule, BaseRule):
            raise ConfigurationError(
                f"Rule '{identifier}' factory returned {type(rule).__name__}, "
                "not a rule"
            )
        return rule

    def identifiers(self) -> list[str]:
        return list(self._factories)

    def __contains__(self, name: object) -> bool:
        return name in self._factories or name in self._aliases

    def __len__(self) -> int:
        return len(self._factories)

    def default_identifiers(self) -> list[str]:
        """Identifiers of rules enabled by default, in registration order."""
        return [
            identifier
            for identifier, rule in self._default_rules()
            if rule.enabled_by_default
        ]

    def filter(self, rule_filter: RuleFilter) -> list[str]:
        """Identifiers of registered rules matching ``rule_filter``.

        Rules are built with their default options.
        """
        return [
            identifier
            for identifier, rule in self._default_rules()
            if rule_filter.matches(rule)
        ]

    def _default_rules(self) -> Iterator[tuple[str, BaseRule]]:
        """Every registered rule built with defaults; failures are skipped."""
        for identifier in self._factories:
            try:
                rule = self.create(identifier)
            except ConfigurationError as e:
                logger.warning(f"Skipping rule {identifier}: {e}")
                continue
            yield identifier, rule

    @classmethod
    def with_builtin_rules(cls) -> "RuleRegistry":
        """Registry populated with the bundled rules."""
        from ..rules import BUILTIN_RULES

        registry = cls()
        for identifier, rule_class in BUILTIN_RULES.items():
            registry.register(identifier, rule_class, aliases=(rule_class.__name__,))
        return registry


__all__ = ["RuleFactory", "RuleRegistry"]
