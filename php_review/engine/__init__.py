"""Rule execution engine for PHP review.

This package parses PHP files into immutable syntax trees, caches them by
content fingerprint, and runs an ordered set of rules over each tree.

Classes:
    PhpParser: tree-sitter backed parser adapter
    AstCache: TTL/LRU cache of parsed trees
    PerformanceMetrics: Per-rule timing samples
    ErrorHandler: Error classification and the run's error logs
    EngineContext: Cache, metrics and error logs shared by a run
    BaseRule: Abstract rule contract
    AstRule: Base class for tree-inspecting rules
    RuleRegistry: Identifier to rule factory table
    RuleFilter: Metadata criteria selecting and grouping rules
    RuleRunner: Drives rules over files
"""

from .base import AstRule, BaseRule, ConfigOption, RuleMetadata
from .cache import AstCache, CacheEntry
from .category import RuleCategory
from .context import EngineContext
from .errors import ErrorCategory, ErrorHandler, ErrorRecord
from .filters import (
    RuleFilter,
    group_by_category,
    group_by_priority,
    group_by_severity,
    rule_statistics,
    rules_with_metadata,
)
from .metrics import CHECK_TIME, PARSE_TIME, TOTAL_TIME, PerformanceMetrics
from .nodes import (
    Node,
    NodeKind,
    ParsedTree,
    find_all,
    find_first,
    find_kind,
    visit,
    walk,
)
from .parser import PhpParser
from .registry import RuleRegistry
from .runner import RuleRunner, RunnerState, create_rule_runner
from .violation import Severity, Violation

__all__ = [
    "AstCache",
    "AstRule",
    "BaseRule",
    "CHECK_TIME",
    "CacheEntry",
    "ConfigOption",
    "EngineContext",
    "ErrorCategory",
    "ErrorHandler",
    "ErrorRecord",
    "Node",
    "NodeKind",
    "PARSE_TIME",
    "ParsedTree",
    "PerformanceMetrics",
    "PhpParser",
    "RuleCategory",
    "RuleFilter",
    "RuleMetadata",
    "RuleRegistry",
    "RuleRunner",
    "RunnerState",
    "Severity",
    "TOTAL_TIME",
    "Violation",
    "create_rule_runner",
    "find_all",
    "find_first",
    "find_kind",
    "group_by_category",
    "group_by_priority",
    "group_by_severity",
    "rule_statistics",
    "rules_with_metadata",
    "visit",
    "walk",
]
