"""
Decide whether the user is away from their laptop.
"""

from __future__ import annotations

from awaynotify_core.models import IdleReading, IdleVerdict, OverrideState

FORCED_REASON = "Forced"
MISSING_REASON = "idle-time file doesn't exist or is empty"


def decide(override: OverrideState, reading: IdleReading, threshold: int) -> IdleVerdict:
    """
    Combine the manual override and the idle-time report into a verdict.

    Rules are evaluated in order and the first match wins: a forced override,
    then a missing report (treated as idle), then a stale report, then the
    reported idle time. Both threshold comparisons are strict.
    """
    if override is OverrideState.FORCE_IDLE:
        return IdleVerdict(is_idle=True, reason=FORCED_REASON)
    if override is OverrideState.FORCE_NOT_IDLE:
        return IdleVerdict(is_idle=False, reason=FORCED_REASON)

    if reading.is_absent:
        return IdleVerdict(is_idle=True, reason=MISSING_REASON)

    if reading.staleness_seconds > threshold:
        return IdleVerdict(
            is_idle=True,
            reason=f"stale ({reading.staleness_seconds:.2f} > {threshold})",
        )
    if reading.idle_seconds > threshold:
        return IdleVerdict(
            is_idle=True,
            reason=f"threshold exceeded ({reading.idle_seconds:.2f} > {threshold})",
        )
    return IdleVerdict(
        is_idle=False,
        reason=f"below threshold ({reading.idle_seconds:.2f} <= {threshold})",
    )
