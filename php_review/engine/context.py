"""Shared state handed to every rule in a run.

The cache, the metrics store and the error handler are bundled here and
passed into ``check`` explicitly. Separate runs (and tests) never see each
other's state.
"""

from dataclasses import dataclass, field

from ..config import EngineConfig
from .cache import AstCache
from .errors import ErrorHandler
from .metrics import PerformanceMetrics
from .parser import PhpParser


@dataclass
class EngineContext:
    """Cache, metrics and error logs shared by the rules of one run."""

    cache: AstCache
    metrics: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    errors: ErrorHandler = field(default_factory=ErrorHandler)
    config: EngineConfig = field(default_factory=EngineConfig)

    @classmethod
    def create(
        cls,
        config: EngineConfig | None = None,
        parser: PhpParser | None = None,
    ) -> "EngineContext":
        """Build a fresh context sized from ``config``."""
        config = config or EngineConfig()
        cache = AstCache(
            parser=parser,
            max_size=config.cache.max_size,
            ttl_seconds=config.cache.ttl_seconds,
        )
        return cls(cache=cache, config=config)

    def reset(self) -> None:
        """Drop cached trees, timing samples, and logged errors."""
        self.cache.clear()
        self.metrics.clear()
        self.errors.clear()


__all__ = ["EngineContext"]
