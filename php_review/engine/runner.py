"""Rule runner: loads rules and drives them over a list of files.

Output order is fixed: files in input order (duplicates dropped), then
rules in load order, then each rule's own discovery order. With
``max_workers > 1`` files are checked on a thread pool and the per-file
results are still assembled in input order.
"""

import os
import time
from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from threading import Lock
from typing import Any

from ..config import EngineConfig, RunConfig, load_run_config
from ..exceptions import (
    ConfigurationError,
    ResourceLimitExceeded,
    TimeLimitExceeded,
)
from ..review_logging import get_logger
from .base import BaseRule
from .context import EngineContext
from .filters import RuleFilter
from .metrics import TOTAL_TIME
from .registry import RuleRegistry
from .violation import Violation

logger = get_logger("engine.runner")

ProgressCallback = Callable[[int, int, str], None]


class RunnerState(Enum):
    """Lifecycle of a runner."""

    IDLE = "idle"
    LOADING = "loading"
    SCANNING = "scanning"
    DONE = "done"


class RuleRunner:
    """Runs a configured set of rules over files.

    Rules are given as registry identifiers, class-name aliases, or ready
    rule instances. Unknown identifiers are logged as configuration errors
    and skipped; they never abort a run.
    """

    def __init__(
        self,
        rules: Iterable[str | BaseRule] | None = None,
        rule_options: Mapping[str, Mapping[str, Any]] | None = None,
        registry: RuleRegistry | None = None,
        context: EngineContext | None = None,
        scan_paths: Iterable[str] | None = None,
        rule_filter: RuleFilter | None = None,
    ):
        """Initialize the runner.

        Args:
            rules: Rule identifiers or instances, in execution order
            rule_options: Per-rule option mappings keyed by identifier
            registry: Registry used to resolve identifiers
            context: Shared engine context (cache, metrics, error logs)
            scan_paths: Files used by ``run()`` when none are passed
            rule_filter: Metadata criteria applied to the loaded rules
        """
        self.rule_specs: list[str | BaseRule] = list(rules or [])
        self.rule_options = {
            key: dict(value) for key, value in (rule_options or {}).items()
        }
        self.registry = registry or RuleRegistry.with_builtin_rules()
        self.context = context or EngineContext.create()
        self.scan_paths = list(scan_paths or [])
        self.rule_filter = rule_filter
        self.state = RunnerState.IDLE

        self._rules: list[BaseRule] | None = None
        self._rules_failed = 0
        self._rules_filtered = 0
        self._progress_callback: ProgressCallback | None = None
        self._progress_lock = Lock()
        self._completed = 0
        self._total = 0
        self._statistics: dict[str, Any] = {}
        self._performance: dict[str, Any] = {}

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, Any] | RunConfig,
        registry: RuleRegistry | None = None,
    ) -> "RuleRunner":
        """Build a runner from a run configuration mapping.

        Raises:
            ConfigurationError: If the configuration is structurally invalid.
        """
        run_config = load_run_config(config)
        rule_filter = None
        if run_config.filter is not None:
            rule_filter = RuleFilter.from_config(run_config.filter)
        return cls(
            rules=run_config.rules,
            rule_options=run_config.rule_options,
            registry=registry,
            context=EngineContext.create(run_config.engine),
            scan_paths=run_config.scan_paths,
            rule_filter=rule_filter,
        )

    @property
    def max_workers(self) -> int:
        return self.context.config.max_workers

    def set_progress_callback(self, callback: ProgressCallback | None) -> None:
        """Register ``callback(completed, total, message)``.

        Called after every (file, rule) unit.
        """
        self._progress_callback = callback

    # ------------------------------------------------------------------
    # Loading

    def load_rules(self) -> list[BaseRule]:
        """Resolve the configured rules.

        With no rules configured, every registered rule that is enabled by
        default is loaded. A configured ``rule_filter`` then drops the
        rules whose metadata does not match it.

        Returns:
            Loaded rules in execution order
        """
        self.state = RunnerState.LOADING
        specs = self.rule_specs or self.registry.default_identifiers()

        rules: list[BaseRule] = []
        failed = 0
        for spec in specs:
            if isinstance(spec, BaseRule):
                rules.append(spec)
                continue
            try:
                if not isinstance(spec, str):
                    raise ConfigurationError(
                        f"Rule entries must be identifiers or rules, "
                        f"got {type(spec).__name__}"
                    )
                rules.append(self.registry.create(spec, self._options_for(spec)))
            except ConfigurationError as e:
                failed += 1
                self.context.errors.handle_configuration_error(str(spec), e)

        filtered = 0
        if self.rule_filter is not None:
            selected = self.rule_filter.apply(rules)
            filtered = len(rules) - len(selected)
            rules = selected

        self._rules = rules
        self._rules_failed = failed
        self._rules_filtered = filtered
        logger.info(
            f"Loaded {len(rules)} rule(s), {failed} failed, {filtered} filtered out"
        )
        return list(rules)

    def _options_for(self, name: str) -> dict[str, Any]:
        if name in self.rule_options:
            return self.rule_options[name]
        identifier = self.registry.resolve(name)
        return self.rule_options.get(identifier, {})

    @property
    def rules(self) -> list[BaseRule]:
        if self._rules is None:
            self.load_rules()
        return list(self._rules or [])

    # ------------------------------------------------------------------
    # Running

    def run(self, files: list[str] | tuple[str, ...] | None = None) -> list[Violation]:
        """Check every file with every loaded rule.

        Args:
            files: File paths; defaults to the configured scan paths

        Returns:
            All violations in file, rule, discovery order

        Raises:
            ConfigurationError: If ``files`` is not a list or tuple.
        """
        if files is None:
            files = self.scan_paths
        if not isinstance(files, (list, tuple)):
            raise ConfigurationError(
                f"Files must be a list of paths, got {type(files).__name__}"
            )

        rules = self.rules
        paths = list(dict.fromkeys(str(path) for path in files))

        self.state = RunnerState.SCANNING
        self._completed = 0
        self._total = len(paths) * len(rules)
        start_time = time.perf_counter()

        if self.max_workers > 1 and len(paths) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                per_file = list(
                    executor.map(lambda path: self._process_file(path, rules), paths)
                )
        else:
            per_file = [self._process_file(path, rules) for path in paths]

        violations: list[Violation] = []
        files_skipped = 0
        for found, skipped in per_file:
            violations.extend(found)
            files_skipped += int(skipped)

        total_time = time.perf_counter() - start_time
        self._record_run(paths, rules, violations, files_skipped, total_time)
        self.state = RunnerState.DONE
        logger.info(
            f"Checked {len(paths)} file(s) with {len(rules)} rule(s): "
            f"{len(violations)} violation(s) in {total_time:.3f}s"
        )
        return violations

    def _process_file(
        self, path: str, rules: list[BaseRule]
    ) -> tuple[list[Violation], bool]:
        """Run every rule on one file.

        Returns:
            Violations for the file and whether the file was skipped
        """
        limits = self.context.config.performance
        errors = self.context.errors

        if limits.max_file_bytes is not None:
            try:
                size = os.path.getsize(path)
            except OSError:
                # Missing files are left to the rules, which ignore them
                size = 0
            if size > limits.max_file_bytes:
                errors.handle(
                    ResourceLimitExceeded(
                        f"{size} bytes exceeds limit of {limits.max_file_bytes}"
                    ),
                    path,
                )
                for rule in rules:
                    self._advance(f"Skipped {rule.rule_type} on {path}")
                return [], True

        violations: list[Violation] = []
        file_start = time.perf_counter()
        for index, rule in enumerate(rules):
            elapsed = time.perf_counter() - file_start
            if (
                index > 0
                and limits.max_file_seconds is not None
                and elapsed > limits.max_file_seconds
            ):
                remaining = rules[index:]
                errors.handle(
                    TimeLimitExceeded(
                        f"{path} took {elapsed:.3f}s, skipping "
                        f"{len(remaining)} remaining rule(s)"
                    ),
                    path,
                )
                for skipped in remaining:
                    self._advance(f"Skipped {skipped.rule_type} on {path}")
                break

            violations.extend(self._run_rule(rule, path))
            self._advance(f"Checked {path} with {rule.rule_type}")
        return violations, False

    def _run_rule(self, rule: BaseRule, path: str) -> list[Violation]:
        try:
            found = rule.check(path, self.context)
            return rule.normalize_violations(found, path, self.context)
        except Exception as e:
            self.context.errors.handle_rule_error(path, e, rule=rule.rule_type)
            return []

    def _advance(self, message: str) -> None:
        with self._progress_lock:
            self._completed += 1
            completed, total = self._completed, self._total
            callback = self._progress_callback
            if callback is None:
                return
            try:
                callback(completed, total, message)
            except Exception as e:
                logger.warning(f"Progress callback failed: {e}")

    # ------------------------------------------------------------------
    # Diagnostics

    def _record_run(
        self,
        paths: list[str],
        rules: list[BaseRule],
        violations: list[Violation],
        files_skipped: int,
        total_time: float,
    ) -> None:
        self._statistics = {
            "files_scanned": len(paths),
            "files_skipped": files_skipped,
            "rules_loaded": len(rules),
            "rules_failed": self._rules_failed,
            "rules_filtered": self._rules_filtered,
            "units_processed": self._completed,
            "total_violations": len(violations),
            "scan_paths": list(self.scan_paths),
        }
        metrics = self.context.metrics.metrics()
        self._performance = {
            "total_time": total_time,
            "rules": {
                rule.rule_type: sum(
                    metrics.get(rule.rule_type, {}).get(TOTAL_TIME, [])
                )
                for rule in rules
            },
        }

    @property
    def statistics(self) -> dict[str, Any]:
        return dict(self._statistics)

    @property
    def performance(self) -> dict[str, Any]:
        return {
            "total_time": self._performance.get("total_time", 0.0),
            "rules": dict(self._performance.get("rules", {})),
        }

    def run_report(self) -> dict[str, Any]:
        """Statistics, timings, cache stats and the error report of the last run."""
        return {
            "state": self.state.value,
            "statistics": self.statistics,
            "performance": self.performance,
            "cache": self.context.cache.stats(),
            "errors": self.context.errors.detailed_report(),
        }


def create_rule_runner(
    rules: Iterable[str | BaseRule] | None = None,
    engine_config: EngineConfig | None = None,
    load: bool = True,
) -> RuleRunner:
    """Create a runner over the bundled rules.

    Args:
        rules: Rule identifiers or instances; all default rules when omitted
        engine_config: Engine settings for a fresh context
        load: Whether to resolve the rules immediately

    Returns:
        Configured RuleRunner instance.
    """
    runner = RuleRunner(rules=rules, context=EngineContext.create(engine_config))

    if load:
        runner.load_rules()

    return runner


__all__ = ["ProgressCallback", "RuleRunner", "RunnerState", "create_rule_runner"]
