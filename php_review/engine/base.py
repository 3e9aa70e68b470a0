"""Rule contract and the AST-backed base rule.

Every rule exposes pure metadata plus a single side-effecting entry point,
``check(file_path, context)``. ``AstRule`` implements ``check`` once for all
tree-based rules: it reads the file, borrows the parsed tree from the shared
cache, runs the rule's ``perform_checks`` step, times each phase, and
routes any failure through the error handler so a broken rule or a broken
file never stops a run.
"""

import inspect
import os
import re
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import TypeAdapter, ValidationError

from ..exceptions import ConfigurationError, ParseError, ViolationValidationError
from ..review_logging import get_logger
from .category import RuleCategory
from .context import EngineContext
from .metrics import CHECK_TIME, PARSE_TIME, TOTAL_TIME
from .nodes import ParsedTree
from .violation import Severity, Violation

logger = get_logger("engine.base")

DEFAULT_CATEGORY = RuleCategory.GENERAL.value
DEFAULT_SEVERITY = Severity.WARNING

# Python types for the declared ConfigOption.type names
OPTION_TYPES: dict[str, Any] = {
    "integer": int,
    "number": float,
    "string": str,
    "boolean": bool,
    "array": list,
    "object": dict,
}


@dataclass(frozen=True)
class ConfigOption:
    """A configurable rule option and its default."""

    type: str
    default: Any
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "default": self.default,
            "description": self.description,
        }


@dataclass(frozen=True)
class RuleMetadata:
    """Static description of a rule type."""

    name: str
    description: str
    category: str
    severity: Severity
    tags: tuple[str, ...] = ()
    enabled_by_default: bool = True
    configuration_options: dict[str, ConfigOption] = field(default_factory=dict)
    version: str = "1.0.0"
    author: str = "Review System"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "severity": self.severity.value,
            "tags": list(self.tags),
            "enabled_by_default": self.enabled_by_default,
            "configuration_options": {
                key: option.to_dict()
                for key, option in self.configuration_options.items()
            },
            "version": self.version,
            "author": self.author,
        }


class BaseRule(ABC):
    """Abstract base class for review rules.

    Subclasses override the metadata properties they care about and
    implement ``check``. Metadata accessors must stay free of side effects:
    the registry and reporting query them freely.
    """

    def __init__(self, options: Mapping[str, Any] | None = None):
        self._user_options = self._validate_options(dict(options or {}))

    @property
    def name(self) -> str:
        """Human-readable name derived from the class name."""
        base = re.sub(r"Rule$", "", type(self).__name__)
        return re.sub(r"(?<!^)(?=[A-Z])", " ", base).strip()

    @property
    def description(self) -> str:
        return "No description provided for this rule."

    @property
    def category(self) -> str:
        return DEFAULT_CATEGORY

    @property
    def severity(self) -> Severity:
        return DEFAULT_SEVERITY

    @property
    def tags(self) -> tuple[str, ...]:
        return ()

    @property
    def enabled_by_default(self) -> bool:
        return True

    @property
    def configuration_options(self) -> dict[str, ConfigOption]:
        return {}

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def author(self) -> str:
        return "Review System"

    @property
    def rule_type(self) -> str:
        """Key used for metrics and for the ``rule`` field of violations."""
        return type(self).__name__

    @property
    def metadata(self) -> RuleMetadata:
        return RuleMetadata(
            name=self.name,
            description=self.description,
            category=self.category,
            severity=Severity.coerce(self.severity),
            tags=tuple(dict.fromkeys(self.tags)),
            enabled_by_default=self.enabled_by_default,
            configuration_options=dict(self.configuration_options),
            version=self.version,
            author=self.author,
        )

    def get_metadata(self) -> dict[str, Any]:
        """Complete metadata about the rule as a plain mapping."""
        data = self.metadata.to_dict()
        data["class"] = f"{type(self).__module__}.{type(self).__qualname__}"
        return data

    @property
    def options(self) -> dict[str, Any]:
        """Option defaults overlaid with the options the rule was built with."""
        resolved = {
            key: option.default for key, option in self.configuration_options.items()
        }
        resolved.update(self._user_options)
        return resolved

    def _validate_options(self, options: dict[str, Any]) -> dict[str, Any]:
        """Check user options against the declared ``configuration_options``.

        Declared keys are validated (and coerced) with Pydantic using the
        option's declared type; undeclared keys pass through untouched.

        Raises:
            ConfigurationError: If a declared option has the wrong type.
        """
        validated = dict(options)
        for key, option in self.configuration_options.items():
            if key not in options:
                continue
            adapter = TypeAdapter(OPTION_TYPES.get(option.type, Any))
            try:
                validated[key] = adapter.validate_python(options[key])
            except ValidationError as e:
                raise ConfigurationError(
                    f"Invalid option '{key}' for {self.rule_type}: {e}"
                ) from e
        return validated

    def applies_to(self, file_path: str) -> bool:
        """Whether this rule wants to look at ``file_path`` at all."""
        return True

    @abstractmethod
    def check(
        self, file_path: str, context: EngineContext | None = None
    ) -> list[Violation]:
        """Check a file and return its violations.

        Implementations must not raise; failures belong in the context's
        error handler.
        """

    def _create_violation(
        self,
        file_path: str,
        line: int | None,
        message: str,
        bad_code: str = "N/A",
        suggested_fix: str = "N/A",
        severity: Severity | str | None = None,
        category: str | None = None,
        tags: tuple[str, ...] | None = None,
        **metadata: Any,
    ) -> Violation:
        """Helper to create a Violation with this rule's defaults.

        Args:
            file_path: File the violation was found in
            line: 1-based line number, None when unknown
            message: Description of the problem
            bad_code: The offending code
            suggested_fix: What to write instead
            severity: Override of the rule severity
            category: Override of the rule category
            tags: Override of the rule tags
            **metadata: Extra key-value data carried on the violation

        Returns:
            Populated Violation
        """
        return Violation(
            file=file_path,
            line=line,
            message=message,
            bad_code=bad_code,
            suggested_fix=suggested_fix,
            severity=severity if severity is not None else self.severity,
            category=category if category is not None else self.category,
            rule=self.rule_type,
            tags=tuple(tags) if tags is not None else self.metadata.tags,
            metadata=metadata,
        )

    def normalize_violations(
        self, found: Any, file_path: str, context: EngineContext
    ) -> list[Violation]:
        """Turn whatever a rule returned into a list of violations.

        Mappings are converted with this rule's defaults filled in. Anything
        else is logged as a validation warning and dropped.
        """
        if found is None:
            return []
        if isinstance(found, (str, bytes, Mapping)) or not hasattr(
            found, "__iter__"
        ):
            context.errors.handle_validation_error(
                file_path,
                ViolationValidationError(
                    f"Expected a list of violations, got {type(found).__name__}"
                ),
                rule=self.rule_type,
            )
            return []

        violations: list[Violation] = []
        for item in found:
            if isinstance(item, Violation):
                violations.append(item)
                continue
            if isinstance(item, Mapping):
                data = {
                    "category": self.category,
                    "severity": self.severity,
                    "rule": self.rule_type,
                    "tags": self.metadata.tags,
                    **item,
                }
                try:
                    violations.append(Violation.from_dict(data, file_path))
                    continue
                except Exception as e:
                    error = ViolationValidationError(f"Invalid violation mapping: {e}")
            else:
                error = ViolationValidationError(
                    f"Expected a Violation, got {type(item).__name__}"
                )
            context.errors.handle_validation_error(
                file_path, error, rule=self.rule_type
            )
        return violations

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.category}>"


class AstRule(BaseRule):
    """Base class for rules that inspect the parsed syntax tree.

    Subclasses implement ``perform_checks``; everything around it (reading,
    caching, timing, error handling) happens in ``check``.
    """

    def __init__(
        self,
        options: Mapping[str, Any] | None = None,
        context: EngineContext | None = None,
    ):
        super().__init__(options)
        self._context = context

    @property
    def context(self) -> EngineContext:
        """Context used when ``check`` is called without one."""
        if self._context is None:
            self._context = EngineContext.create()
        return self._context

    @abstractmethod
    def perform_checks(self, tree: ParsedTree, file_path: str) -> list[Violation]:
        """Inspect ``tree`` and return violations in discovery order."""

    def check(
        self, file_path: str, context: EngineContext | None = None
    ) -> list[Violation]:
        ctx = context or self.context
        path = str(file_path)
        if not self.applies_to(path):
            return []
        if not os.path.isfile(path) or not os.access(path, os.R_OK):
            return []

        rule = self.rule_type
        start_time = time.perf_counter()
        try:
            violations = self._check_file(path, ctx)
        finally:
            ctx.metrics.record(rule, TOTAL_TIME, time.perf_counter() - start_time)
        logger.debug(f"{rule} found {len(violations)} violation(s) in {path}")
        return violations

    def _check_file(self, path: str, ctx: EngineContext) -> list[Violation]:
        """Read, parse and inspect one file; every failure is logged."""
        rule = self.rule_type
        try:
            with open(path, "rb") as f:
                content = f.read()
            mtime = os.stat(path).st_mtime_ns
        except OSError as e:
            ctx.errors.handle_file_access_error(path, e, rule=rule)
            return []

        parse_start = time.perf_counter()
        try:
            tree = ctx.cache.get_or_parse(path, content, mtime)
        except ParseError as e:
            ctx.errors.handle_parsing_error(path, e, rule=rule)
            return []
        finally:
            ctx.metrics.record(rule, PARSE_TIME, time.perf_counter() - parse_start)

        check_start = time.perf_counter()
        try:
            found = self.perform_checks(tree, path)
            if inspect.isgenerator(found):
                found = list(found)
            violations = self.normalize_violations(found, path, ctx)
        except Exception as e:
            ctx.errors.handle(e, path, rule=rule)
            return []
        finally:
            check_time = time.perf_counter() - check_start
            ctx.metrics.record(rule, CHECK_TIME, check_time)

        threshold = ctx.config.performance.slow_check_seconds
        if check_time > threshold:
            ctx.errors.handle_performance_warning(
                path,
                f"{rule} took {check_time:.3f}s to check {os.path.basename(path)}",
                threshold=threshold,
                rule=rule,
            )
        return violations


__all__ = [
    "AstRule",
    "BaseRule",
    "ConfigOption",
    "RuleMetadata",
]
