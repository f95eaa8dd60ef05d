"""
INI-file configuration for the away-notifier server.
"""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from awaynotify import logger as app_logger
from awaynotify_core.errors import ConfigurationError
from awaynotify_core.notifiers import NotifierKind

_LOGGER = app_logger.get_logger()

DEFAULT_STATE_DIR = Path.home() / ".irssi"
CONFIG_ENV_VAR = "AWAYNOTIFY_CONFIG"
DEFAULT_TITLE = "[IRC]"
DEFAULT_POLL_INTERVAL = 1.0
_SMTP_SECURITY_MODES = {"starttls", "ssl", "none"}


@dataclass(frozen=True)
class EmailSettings:
    smtp_host: str
    from_addr: str
    to_addr: str
    smtp_port: int = 587
    security: str = "starttls"
    username: Optional[str] = None
    password: Optional[str] = None


@dataclass(frozen=True)
class PushoverSettings:
    token: str
    user: str
    device: Optional[str] = None
    priority: int = 0
    timeout: float = 30.0


@dataclass(frozen=True)
class ServerSettings:
    notifier: NotifierKind
    idle_threshold: int
    title: str = DEFAULT_TITLE
    poll_interval: float = DEFAULT_POLL_INTERVAL
    state_dir: Path = DEFAULT_STATE_DIR
    email: Optional[EmailSettings] = None
    pushover: Optional[PushoverSettings] = None


def default_config_path() -> Path:
    return Path(os.environ.get(CONFIG_ENV_VAR, str(DEFAULT_STATE_DIR / "awaynotify.cfg"))).expanduser()


class SettingsManager:
    """Loads settings from an INI file and rejects missing required options."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = Path(path) if path is not None else default_config_path()

    def read_settings(self) -> ServerSettings:
        if not self.path.is_file():
            raise ConfigurationError(f"Config file {self.path} does not exist.")

        parser = configparser.ConfigParser(interpolation=None)
        try:
            with self.path.open(encoding="utf-8") as handle:
                parser.read_file(handle)
        except (OSError, configparser.Error) as exc:
            raise ConfigurationError(f"Unable to read config file {self.path}: {exc}") from exc
        return self.parse(parser)

    def parse(self, parser: configparser.ConfigParser) -> ServerSettings:
        notifier_name = _require(parser, "general", "notifier")
        try:
            notifier = NotifierKind(notifier_name.lower())
        except ValueError as exc:
            choices = ", ".join(kind.value for kind in NotifierKind)
            raise ConfigurationError(
                f"general.notifier must be one of {choices}, found {notifier_name!r}."
            ) from exc

        idle_threshold = _get_int(parser, "general", "idle")
        if idle_threshold is None:
            raise ConfigurationError("Missing required option general.idle.")
        if idle_threshold <= 0:
            raise ConfigurationError("general.idle must be a positive number of seconds.")

        state_dir = parser.get("general", "state_dir", fallback=None)

        settings = ServerSettings(
            notifier=notifier,
            idle_threshold=idle_threshold,
            title=parser.get("general", "title", fallback=DEFAULT_TITLE),
            poll_interval=self._read_poll_interval(parser),
            state_dir=Path(state_dir).expanduser() if state_dir else DEFAULT_STATE_DIR,
            email=_read_email(parser) if notifier is NotifierKind.EMAIL else None,
            pushover=_read_pushover(parser) if notifier is NotifierKind.PUSHOVER else None,
        )
        return settings

    def _read_poll_interval(self, parser: configparser.ConfigParser) -> float:
        raw = _get_float(parser, "general", "poll_interval")
        if raw is None:
            return DEFAULT_POLL_INTERVAL
        if raw <= 0:
            _LOGGER.warning(
                "Invalid poll interval {} in config. Falling back to {} seconds.",
                raw,
                DEFAULT_POLL_INTERVAL,
            )
            return DEFAULT_POLL_INTERVAL
        return raw


def _read_email(parser: configparser.ConfigParser) -> EmailSettings:
    security = parser.get("email", "security", fallback="starttls").lower()
    if security not in _SMTP_SECURITY_MODES:
        raise ConfigurationError(
            f"email.security must be one of {', '.join(sorted(_SMTP_SECURITY_MODES))}."
        )
    port = _get_int(parser, "email", "smtp_port")
    return EmailSettings(
        smtp_host=_require(parser, "email", "smtp_host"),
        from_addr=_require(parser, "email", "from_addr"),
        to_addr=_require(parser, "email", "to_addr"),
        smtp_port=587 if port is None else port,
        security=security,
        username=parser.get("email", "username", fallback=None) or None,
        password=parser.get("email", "password", fallback=None),
    )


def _read_pushover(parser: configparser.ConfigParser) -> PushoverSettings:
    priority = _get_int(parser, "pushover", "priority")
    timeout = _get_float(parser, "pushover", "timeout")
    return PushoverSettings(
        token=_require(parser, "pushover", "token"),
        user=_require(parser, "pushover", "user"),
        device=parser.get("pushover", "device", fallback=None) or None,
        priority=0 if priority is None else priority,
        timeout=30.0 if timeout is None else timeout,
    )


def _require(parser: configparser.ConfigParser, section: str, option: str) -> str:
    value = parser.get(section, option, fallback="").strip()
    if not value:
        raise ConfigurationError(f"Missing required option {section}.{option}.")
    return value


def _get_int(parser: configparser.ConfigParser, section: str, option: str) -> Optional[int]:
    try:
        return parser.getint(section, option, fallback=None)
    except ValueError as exc:
        raise ConfigurationError(f"{section}.{option} must be an integer.") from exc


def _get_float(parser: configparser.ConfigParser, section: str, option: str) -> Optional[float]:
    try:
        return parser.getfloat(section, option, fallback=None)
    except ValueError as exc:
        raise ConfigurationError(f"{section}.{option} must be a number.") from exc
