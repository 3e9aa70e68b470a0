"""Select and group rules by their metadata.

A ``RuleFilter`` is an immutable set of criteria. Each ``by_*`` method
returns a new filter, so filters chain::

    rule_filter = RuleFilter().by_category("security").by_priority(1, 3)
    selected = rule_filter.apply(rules)

Empty criteria match every rule. Category priorities come from
``RuleCategory``; rules with a category outside the standard set rank with
``general``.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Any

from ..config import RuleFilterConfig
from ..exceptions import ConfigurationError
from .base import BaseRule
from .category import RuleCategory
from .violation import Severity

MIN_PRIORITY = 1
MAX_PRIORITY = 10

HIGH_PRIORITY = (1, 3)
MEDIUM_PRIORITY = (4, 6)
LOW_PRIORITY = (7, 10)


@dataclass(frozen=True)
class RuleFilter:
    """Criteria a rule must meet to be selected.

    Attributes:
        categories: Accepted category values
        severities: Accepted rule severities
        tags: Accepted tags; a rule matches when it carries any of them
        enabled: Required ``enabled_by_default`` value, None for either
        authors: Accepted rule authors
        class_pattern: Regular expression searched in the rule's class path
        min_priority: Lowest accepted category priority number
        max_priority: Highest accepted category priority number
    """

    categories: tuple[str, ...] = ()
    severities: tuple[Severity, ...] = ()
    tags: tuple[str, ...] = ()
    enabled: bool | None = None
    authors: tuple[str, ...] = ()
    class_pattern: str | None = None
    min_priority: int = MIN_PRIORITY
    max_priority: int = MAX_PRIORITY

    def __post_init__(self) -> None:
        categories = tuple(
            str(c.value if isinstance(c, RuleCategory) else c)
            for c in _as_tuple(self.categories)
        )
        unknown = [c for c in categories if not RuleCategory.is_valid(c)]
        if unknown:
            raise ConfigurationError(
                f"Unknown rule categories: {', '.join(unknown)}"
            )
        try:
            severities = tuple(Severity.coerce(s) for s in _as_tuple(self.severities))
        except ValueError as e:
            raise ConfigurationError(f"Unknown rule severity: {e}") from e
        if self.class_pattern is not None:
            try:
                re.compile(self.class_pattern)
            except re.error as e:
                raise ConfigurationError(
                    f"Invalid class pattern '{self.class_pattern}': {e}"
                ) from e
        if not (
            MIN_PRIORITY <= self.min_priority <= self.max_priority <= MAX_PRIORITY
        ):
            raise ConfigurationError(
                f"Priority range must lie within {MIN_PRIORITY}-{MAX_PRIORITY}, "
                f"got {self.min_priority}-{self.max_priority}"
            )

        object.__setattr__(self, "categories", categories)
        object.__setattr__(self, "severities", severities)
        for name in ("tags", "authors"):
            values = tuple(str(v) for v in _as_tuple(getattr(self, name)))
            object.__setattr__(self, name, values)

    @classmethod
    def from_config(cls, config: RuleFilterConfig) -> "RuleFilter":
        """Build a filter from its validated configuration model."""
        return cls(
            categories=tuple(config.categories),
            severities=tuple(config.severities),
            tags=tuple(config.tags),
            enabled=config.enabled,
            authors=tuple(config.authors),
            class_pattern=config.class_pattern,
            min_priority=config.min_priority,
            max_priority=config.max_priority,
        )

    # ------------------------------------------------------------------
    # Chaining

    def by_category(self, *categories: str | RuleCategory) -> "RuleFilter":
        return replace(self, categories=categories)

    def by_severity(self, *severities: Severity | str) -> "RuleFilter":
        return replace(self, severities=severities)

    def by_tags(self, *tags: str) -> "RuleFilter":
        return replace(self, tags=tags)

    def by_enabled(self, enabled: bool = True) -> "RuleFilter":
        return replace(self, enabled=enabled)

    def by_author(self, *authors: str) -> "RuleFilter":
        return replace(self, authors=authors)

    def by_class_name(self, pattern: str) -> "RuleFilter":
        return replace(self, class_pattern=pattern)

    def by_priority(
        self, min_priority: int = MIN_PRIORITY, max_priority: int = MAX_PRIORITY
    ) -> "RuleFilter":
        return replace(self, min_priority=min_priority, max_priority=max_priority)

    def high_priority(self) -> "RuleFilter":
        return self.by_priority(*HIGH_PRIORITY)

    def medium_priority(self) -> "RuleFilter":
        return self.by_priority(*MEDIUM_PRIORITY)

    def low_priority(self) -> "RuleFilter":
        return self.by_priority(*LOW_PRIORITY)

    def clear(self) -> "RuleFilter":
        return RuleFilter()

    # ------------------------------------------------------------------
    # Matching

    @property
    def is_empty(self) -> bool:
        return self == RuleFilter()

    def matches(self, rule: BaseRule) -> bool:
        """Whether ``rule`` meets every criterion of this filter."""
        metadata = rule.metadata
        if self.categories and metadata.category not in self.categories:
            return False
        if self.severities and metadata.severity not in self.severities:
            return False
        if self.tags and not set(self.tags) & set(metadata.tags):
            return False
        if self.enabled is not None and metadata.enabled_by_default != self.enabled:
            return False
        if self.authors and metadata.author not in self.authors:
            return False
        if self.class_pattern is not None and not re.search(
            self.class_pattern, rule_class_path(rule)
        ):
            return False
        return self.min_priority <= rule_priority(rule) <= self.max_priority

    def apply(self, rules: Iterable[BaseRule]) -> list[BaseRule]:
        """Matching rules in their original order."""
        return [rule for rule in rules if self.matches(rule)]


def rule_category(rule: BaseRule) -> RuleCategory:
    """The rule's standard category, ``GENERAL`` for custom ones."""
    category = rule.category
    if RuleCategory.is_valid(category):
        return RuleCategory(category)
    return RuleCategory.GENERAL


def rule_priority(rule: BaseRule) -> int:
    return rule_category(rule).priority


def rule_class_path(rule: BaseRule) -> str:
    return f"{type(rule).__module__}.{type(rule).__qualname__}"


def group_by_category(rules: Iterable[BaseRule]) -> dict[str, list[BaseRule]]:
    """Rules keyed by category value, highest priority category first.

    Custom categories follow the standard ones in first-seen order.
    """
    groups: dict[str, list[BaseRule]] = {}
    for rule in rules:
        groups.setdefault(rule.category, []).append(rule)
    order = {
        category.value: index
        for index, category in enumerate(RuleCategory.by_priority())
    }
    return dict(
        sorted(groups.items(), key=lambda item: order.get(item[0], len(order)))
    )


def group_by_severity(rules: Iterable[BaseRule]) -> dict[Severity, list[BaseRule]]:
    """Rules keyed by severity, most severe first."""
    groups: dict[Severity, list[BaseRule]] = {}
    for rule in rules:
        groups.setdefault(Severity.coerce(rule.severity), []).append(rule)
    return {
        severity: groups[severity]
        for severity in reversed(Severity)
        if severity in groups
    }


def group_by_priority(rules: Iterable[BaseRule]) -> dict[int, list[BaseRule]]:
    """Rules keyed by category priority number, ascending."""
    groups: dict[int, list[BaseRule]] = {}
    for rule in rules:
        groups.setdefault(rule_priority(rule), []).append(rule)
    return dict(sorted(groups.items()))


def rule_statistics(rules: Iterable[BaseRule]) -> dict[str, Any]:
    """Counts of rules per category, severity, tag and author."""
    rules = list(rules)
    stats: dict[str, Any] = {
        "total_rules": len(rules),
        "by_category": {},
        "by_severity": {},
        "by_tag": {},
        "by_author": {},
    }
    for rule in rules:
        metadata = rule.metadata
        _count(stats["by_category"], metadata.category)
        _count(stats["by_severity"], metadata.severity.value)
        for tag in metadata.tags:
            _count(stats["by_tag"], tag)
        _count(stats["by_author"], metadata.author)
    return stats


def rules_with_metadata(rules: Iterable[BaseRule]) -> list[dict[str, Any]]:
    """Rule metadata plus the display details of each rule's category."""
    described = []
    for rule in rules:
        category = rule_category(rule)
        data = rule.get_metadata()
        data["priority"] = category.priority
        data["category_display_name"] = category.display_name
        data["category_description"] = category.description
        data["category_default_severity"] = category.default_severity.value
        described.append(data)
    return described


def _as_tuple(value: Any) -> tuple:
    if isinstance(value, (str, Severity, RuleCategory)):
        return (value,)
    return tuple(value)


def _count(counts: dict[str, int], key: str) -> None:
    counts[key] = counts.get(key, 0) + 1


__all__ = [
    "HIGH_PRIORITY",
    "LOW_PRIORITY",
    "MEDIUM_PRIORITY",
    "RuleFilter",
    "group_by_category",
    "group_by_priority",
    "group_by_severity",
    "rule_category",
    "rule_class_path",
    "rule_priority",
    "rules_with_metadata",
    "rule_statistics",
]
