"""
Value types passed between the signal readers, the decision engine and the dispatcher.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OverrideState(Enum):
    NONE = 0
    FORCE_IDLE = 1
    FORCE_NOT_IDLE = 2


@dataclass(frozen=True, slots=True)
class IdleReading:
    """
    Self-reported idle time from the laptop and how long ago it was refreshed.

    Both fields are present or both are ``None``.
    """

    idle_seconds: Optional[float] = None
    staleness_seconds: Optional[float] = None

    def __post_init__(self) -> None:
        if (self.idle_seconds is None) != (self.staleness_seconds is None):
            raise ValueError("idle_seconds and staleness_seconds must be set together.")

    @classmethod
    def absent(cls) -> "IdleReading":
        return cls()

    @property
    def is_absent(self) -> bool:
        return self.idle_seconds is None


@dataclass(frozen=True, slots=True)
class IdleVerdict:
    is_idle: bool
    reason: str


@dataclass(slots=True)
class ActivityLogState:
    """Last modification time of the activity log that was acted upon."""

    last_seen: Optional[float] = None
