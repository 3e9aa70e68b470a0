"""Code style rules."""

from .code_style import CodeStyleRule

__all__ = ["CodeStyleRule"]
