"""Exceptions raised by the review engine."""


class ReviewError(Exception):
    """Base class for engine errors."""


class ParseError(ReviewError):
    """Source text could not be parsed."""

    def __init__(self, message: str, line: int | None = 1):
        super().__init__(message)
        self.message = message
        self.line = line if line and line >= 1 else 1


class ConfigurationError(ReviewError):
    """Invalid rule identifier or malformed configuration."""


class UnknownRuleError(ConfigurationError):
    """A rule identifier is not present in the registry."""

    def __init__(self, identifier: str):
        super().__init__(
            f"Rule '{identifier}' not found. Check the identifier against "
            "the registered rules."
        )
        self.identifier = identifier


class ResourceLimitExceeded(ReviewError):
    """A file exceeded the configured memory/size ceiling."""


class TimeLimitExceeded(ReviewError):
    """Processing a file exceeded the configured time ceiling."""


class ViolationValidationError(ReviewError):
    """A rule returned something that is not a usable violation."""


__all__ = [
    "ConfigurationError",
    "ParseError",
    "ResourceLimitExceeded",
    "ReviewError",
    "TimeLimitExceeded",
    "UnknownRuleError",
    "ViolationValidationError",
]
