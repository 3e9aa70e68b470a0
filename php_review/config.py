"""Configuration models for the review engine.

Loading configuration files is left to the embedding application; these
Pydantic models validate the mappings it hands over.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import ConfigurationError


class CacheConfig(BaseModel):
    """AST cache sizing."""

    model_config = ConfigDict(extra="forbid")

    max_size: int = Field(default=100, ge=1, description="Maximum cached trees")
    ttl_seconds: float = Field(
        default=300.0, gt=0, description="Seconds before a cached tree expires"
    )


class PerformanceConfig(BaseModel):
    """Time and size ceilings applied while checking files."""

    model_config = ConfigDict(extra="forbid")

    slow_check_seconds: float = Field(
        default=1.0,
        gt=0,
        description="A rule check slower than this logs a performance warning",
    )
    max_file_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Skip the remaining rules of a file after this many seconds",
    )
    max_file_bytes: int | None = Field(
        default=5 * 1024 * 1024,
        ge=1,
        description="Files larger than this are skipped with a memory error",
    )


class EngineConfig(BaseModel):
    """Engine-wide settings shared by every rule in a run."""

    model_config = ConfigDict(extra="forbid")

    cache: CacheConfig = Field(default_factory=CacheConfig)
    performance: PerformanceConfig = Field(default_factory=PerformanceConfig)
    max_workers: int = Field(
        default=1, ge=1, description="Files processed concurrently"
    )


class RuleFilterConfig(BaseModel):
    """Metadata criteria narrowing the loaded rules.

    Empty lists accept everything. Priorities are category priorities,
    1 being the highest.
    """

    model_config = ConfigDict(extra="forbid")

    categories: list[str] = Field(default_factory=list)
    severities: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    enabled: bool | None = None
    authors: list[str] = Field(default_factory=list)
    class_pattern: str | None = Field(
        default=None, description="Regular expression searched in the class path"
    )
    min_priority: int = Field(default=1, ge=1, le=10)
    max_priority: int = Field(default=10, ge=1, le=10)


class RunConfig(BaseModel):
    """Top-level input of a review run."""

    model_config = ConfigDict(extra="allow")

    scan_paths: list[str] = Field(default_factory=list)
    rules: list[str] = Field(default_factory=list)
    rule_options: dict[str, dict[str, Any]] = Field(default_factory=dict)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    filter: RuleFilterConfig | None = None


def load_run_config(data: dict[str, Any] | RunConfig) -> RunConfig:
    """Validate a run configuration mapping.

    Raises:
        ConfigurationError: If the mapping is structurally invalid.
    """
    if isinstance(data, RunConfig):
        return data
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Run configuration must be a mapping, got {type(data).__name__}"
        )
    try:
        return RunConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid run configuration: {e}") from e


__all__ = [
    "CacheConfig",
    "EngineConfig",
    "PerformanceConfig",
    "RuleFilterConfig",
    "RunConfig",
    "load_run_config",
]
