"""PHP Review - rule-based static analysis for PHP source.

Parses PHP files with tree-sitter, caches the syntax trees, and runs
pluggable rules over them to report violations with suggested fixes.
"""

__version__ = "1.0.0"
__author__ = "Review System"
__description__ = "Rule execution engine for PHP static analysis"

from .config import EngineConfig, RunConfig, load_run_config
from .engine import (
    AstRule,
    BaseRule,
    EngineContext,
    RuleFilter,
    RuleRegistry,
    RuleRunner,
    Severity,
    Violation,
    create_rule_runner,
)
from .exceptions import ConfigurationError, ParseError, ReviewError

__all__ = [
    "AstRule",
    "BaseRule",
    "ConfigurationError",
    "EngineConfig",
    "EngineContext",
    "ParseError",
    "ReviewError",
    "RuleFilter",
    "RuleRegistry",
    "RuleRunner",
    "RunConfig",
    "Severity",
    "Violation",
    "create_rule_runner",
    "load_run_config",
]
