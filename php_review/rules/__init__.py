"""Bundled PHP review rules.

Rules are registered under stable identifiers of the form
``<group>.<rule>``; the class names are accepted as aliases.

Rules:
    NoMongoInControllerRule: Raw MongoDB access inside controllers
    LaravelBestPracticesRule: Validation, security and N+1 checks
    CodeStyleRule: Naming, structure and readability standards
"""

from .architecture import NoMongoInControllerRule
from .best_practices import LaravelBestPracticesRule
from .style import CodeStyleRule

BUILTIN_RULES = {
    "architecture.no_mongo_in_controller": NoMongoInControllerRule,
    "best_practice.laravel": LaravelBestPracticesRule,
    "style.code_style": CodeStyleRule,
}

__all__ = [
    "BUILTIN_RULES",
    "CodeStyleRule",
    "LaravelBestPracticesRule",
    "NoMongoInControllerRule",
]
