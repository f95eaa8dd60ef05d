"""
Readers for the idle-time report and the manual force-idle override.
"""

from __future__ import annotations

import time
from typing import Optional

from awaynotify import logger as app_logger
from awaynotify_core.errors import ConfigurationError
from awaynotify_core.models import IdleReading, OverrideState
from awaynotify_core.state_store import FORCE_IDLE_KEY, IDLE_TIME_KEY, StateStore

_LOGGER = app_logger.get_logger()


def read_idle_reading(store: StateStore, *, now: Optional[float] = None) -> IdleReading:
    """
    Return the laptop's last idle-time report and its age.

    A missing or unparsable file yields an absent reading rather than an error.
    """
    try:
        raw = store.read_text(IDLE_TIME_KEY)
    except UnicodeDecodeError:
        _LOGGER.debug("Ignoring idle-time contents that are not valid text.")
        return IdleReading.absent()
    modified = store.modified_at(IDLE_TIME_KEY)
    if raw is None or modified is None:
        return IdleReading.absent()

    try:
        idle_seconds = float(raw.strip())
    except ValueError:
        _LOGGER.debug("Ignoring unparsable idle-time contents {!r}.", raw[:64])
        return IdleReading.absent()

    current_time = time.time() if now is None else now
    return IdleReading(idle_seconds=idle_seconds, staleness_seconds=current_time - modified)


def read_override(store: StateStore) -> OverrideState:
    """
    Return the manual override, consuming the flag when it holds ``0``.

    Raises ConfigurationError when the flag holds anything but 0, 1 or 2.
    """
    try:
        raw = store.read_text(FORCE_IDLE_KEY)
    except UnicodeDecodeError as exc:
        raise ConfigurationError(f"{FORCE_IDLE_KEY} must contain 0, 1 or 2, found undecodable bytes.") from exc
    if raw is None:
        return OverrideState.NONE

    try:
        state = OverrideState(int(raw.strip()))
    except ValueError as exc:
        raise ConfigurationError(
            f"{FORCE_IDLE_KEY} must contain 0, 1 or 2, found {raw.strip()!r}."
        ) from exc

    if state is OverrideState.NONE:
        store.delete(FORCE_IDLE_KEY)
    return state


def write_override(store: StateStore, state: OverrideState) -> None:
    store.write_text(FORCE_IDLE_KEY, f"{state.value}\n")
