"""
Entry point for the awaynotify command.
"""

from __future__ import annotations

import argparse
import random
import sys
from pathlib import Path
from typing import Optional, Sequence

from awaynotify import logger as app_logger
from awaynotify_core.dispatcher import NotificationDispatcher
from awaynotify_core.errors import ConfigurationError, NotifierError
from awaynotify_core.idle_reporter import DEFAULT_REPORT_INTERVAL_SECONDS, IdleTimeReporter
from awaynotify_core.models import OverrideState
from awaynotify_core.notifiers import build_notifier
from awaynotify_core.settings import DEFAULT_STATE_DIR, ServerSettings, SettingsManager
from awaynotify_core.signals import write_override
from awaynotify_core.state_store import FileStateStore

_LOGGER = app_logger.get_logger()

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2

SAMPLE_MESSAGES = (
    "#python <alice> are you around? the deploy is stuck",
    "query <bob> ping, got a minute?",
    "#ops <carol> pager went off for the db host",
    "#home <dave> dinner at 7?",
    "query <erin> can you review my patch when you're back",
)

_FORCE_CHOICES = {
    "idle": OverrideState.FORCE_IDLE,
    "present": OverrideState.FORCE_NOT_IDLE,
    "auto": OverrideState.NONE,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="awaynotify",
        description="Forward IRC highlights by email or push when you are away from your laptop.",
    )
    parser.add_argument("--config", type=Path, help="Path to the INI config file.")
    parser.add_argument("--log-file", type=Path, help="Path to the debug log file.")
    subparsers = parser.add_subparsers(dest="command", metavar="command")

    subparsers.add_parser("start", help="Run the notification loop until terminated.")
    subparsers.add_parser("test", help="Send one sample notification and exit.")
    subparsers.add_parser("status", help="Print the current idle verdict.")

    force = subparsers.add_parser("force", help="Override idle detection.")
    force.add_argument("mode", choices=sorted(_FORCE_CHOICES), help="idle, present or auto.")

    relay = subparsers.add_parser("relay", help="Report this machine's idle time once per second.")
    relay.add_argument("--state-dir", type=Path, default=DEFAULT_STATE_DIR)
    relay.add_argument("--interval", type=float, default=DEFAULT_REPORT_INTERVAL_SECONDS)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_usage(sys.stderr)
        return EXIT_USAGE

    app_logger.configure(args.log_file)

    if args.command == "relay":
        return _run_relay(args.state_dir, args.interval)

    try:
        settings = SettingsManager(args.config).read_settings()
        if args.command == "start":
            return _run_start(settings)
        if args.command == "test":
            return _run_test(settings)
        if args.command == "status":
            return _run_status(settings)
        write_override(FileStateStore(settings.state_dir), _FORCE_CHOICES[args.mode])
        print(f"Override set to {args.mode}.")
        return EXIT_OK
    except ConfigurationError as exc:
        print(f"awaynotify: configuration error: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except NotifierError:
        _LOGGER.exception("Notification delivery failed; exiting.")
        return EXIT_FAILURE


def _build_dispatcher(settings: ServerSettings) -> NotificationDispatcher:
    return NotificationDispatcher(
        FileStateStore(settings.state_dir),
        build_notifier(settings),
        settings.idle_threshold,
        poll_interval=settings.poll_interval,
    )


def _run_start(settings: ServerSettings) -> int:
    dispatcher = _build_dispatcher(settings)
    try:
        dispatcher.run_forever()
    except KeyboardInterrupt:
        _LOGGER.info("Interrupted; shutting down.")
    return EXIT_OK


def _run_test(settings: ServerSettings) -> int:
    message = random.choice(SAMPLE_MESSAGES)
    _LOGGER.info("Sending test notification via {}.", settings.notifier.value)
    build_notifier(settings).notify(message)
    print(f"Sent: {message}")
    return EXIT_OK


def _run_status(settings: ServerSettings) -> int:
    dispatcher = _build_dispatcher(settings)
    verdict, idle_seconds, staleness = dispatcher.evaluate()
    state = "idle" if verdict.is_idle else "present"
    print(f"{state}: {verdict.reason}")
    if idle_seconds is not None:
        print(f"idle {idle_seconds:.2f}s, reported {staleness:.2f}s ago")
    return EXIT_OK


def _run_relay(state_dir: Path, interval: float) -> int:
    reporter = IdleTimeReporter(FileStateStore(state_dir), interval_seconds=interval)
    _LOGGER.info("Reporting idle time to {} every {}s.", state_dir, interval)
    reporter.start()
    try:
        reporter.wait()
    except KeyboardInterrupt:
        _LOGGER.info("Interrupted; stopping idle reporter.")
    finally:
        reporter.stop()
    return EXIT_OK if not reporter.failed else EXIT_FAILURE


if __name__ == "__main__":
    raise SystemExit(main())
