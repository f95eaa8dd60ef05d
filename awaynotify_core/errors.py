"""
Exception types shared by the away-notifier runtime.
"""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised when configuration or the override flag is missing or malformed."""


class NotifierError(RuntimeError):
    """Raised when a notifier fails to deliver a message."""
