"""Framework best-practice rules."""

from .laravel import LaravelBestPracticesRule

__all__ = ["LaravelBestPracticesRule"]
