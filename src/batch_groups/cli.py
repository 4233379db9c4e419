from __future__ import annotations

import argparse
import asyncio
import json
import logging
import random
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

from batch_groups.io import DEFAULT_EXPORT_FILENAME, format_group_text, read_names_file
from batch_groups.models import (
    DISTRIBUTION_MODES,
    Partition,
    Settings,
)
from batch_groups.participants import resolve
from batch_groups.partition import estimate_groups
from batch_groups.reveal import AsyncioTimer
from batch_groups.session import SEVERITY_ERROR, GroupingSession, Notification
from batch_groups.state import DEFAULT_SETTINGS_PATH, SettingsStore

logger = logging.getLogger(__name__)


def _non_negative_float(raw_value: str) -> float:
    try:
        value = float(raw_value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("--interval must be a number of seconds.") from exc
    if value < 0:
        raise argparse.ArgumentTypeError("--interval cannot be negative.")
    return value


def _add_config_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--settings", type=Path, default=DEFAULT_SETTINGS_PATH)
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--count", type=int, help="Number of synthesized participants.")
    source.add_argument("--names-file", type=Path, help="Participant names (.txt, .csv or .xlsx).")
    source.add_argument(
        "--names",
        nargs="+",
        metavar="NAME",
        help="Participant names given inline.",
    )
    parser.add_argument("--sheet", default=None, help="Sheet to read from an .xlsx names file.")
    parser.add_argument(
        "--exclude",
        action="append",
        default=None,
        metavar="NAME",
        help="Participant to leave out. Repeatable. In counted mode a number excludes by position.",
    )
    parser.add_argument("--group-size", type=int)
    parser.add_argument("--mode", choices=list(DISTRIBUTION_MODES))
    parser.add_argument("--prefix", help="Group name prefix (default: Team).")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="batch-groups")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_generate = sub.add_parser(
        "generate",
        help="Shuffle participants into groups and save the settings used.",
    )
    _add_config_arguments(p_generate)
    p_generate.add_argument(
        "--suspense",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Reveal groups one at a time (--no-suspense prints them all at once).",
    )
    p_generate.add_argument("--interval", type=_non_negative_float, help="Seconds between reveals.")
    p_generate.add_argument(
        "--out",
        type=Path,
        help=f"Write the groups to a .txt or .xlsx file (e.g. {DEFAULT_EXPORT_FILENAME}).",
    )
    p_generate.add_argument("--seed", type=int, help="Seed the shuffle.")
    p_generate.add_argument("--json", action="store_true", help="Print groups as JSON.")

    p_estimate = sub.add_parser(
        "estimate",
        help="Show how many groups the current configuration would produce.",
    )
    _add_config_arguments(p_estimate)

    p_settings = sub.add_parser("settings", help="Print the stored settings.")
    p_settings.add_argument("--settings", type=Path, default=DEFAULT_SETTINGS_PATH)

    return parser


def _settings_from_args(args: argparse.Namespace, stored: Settings) -> Settings:
    settings = replace(stored, exclusions=list(stored.exclusions))
    if args.count is not None:
        settings = replace(settings, participant_count=args.count, use_custom_names=False)
    if args.names_file is not None:
        names = read_names_file(args.names_file, sheet_name=args.sheet)
        settings = replace(settings, use_custom_names=True, custom_names="\n".join(names))
    if args.names:
        settings = replace(settings, use_custom_names=True, custom_names="\n".join(args.names))
    if args.exclude is not None:
        settings = replace(settings, exclusions=[name.strip() for name in args.exclude if name.strip()])
    if args.group_size is not None:
        settings = replace(settings, group_size=args.group_size)
    if args.mode is not None:
        settings = replace(settings, distribution_mode=args.mode)
    if args.prefix:
        settings = replace(settings, group_prefix=args.prefix.strip())
    if getattr(args, "suspense", None) is not None:
        settings = replace(settings, suspense_mode=args.suspense)
    if getattr(args, "interval", None) is not None:
        settings = replace(settings, reveal_interval=args.interval)
    return settings


def _partition_payload(partition: Partition, settings: Settings) -> dict[str, Any]:
    return {
        "group_size": partition.group_size,
        "distribution_mode": partition.distribution_mode,
        "groups": [
            {
                "id": group.id,
                "name": group.label(settings.group_prefix),
                "members": list(group.members),
            }
            for group in partition.groups
        ],
    }


async def _generate(args: argparse.Namespace, settings: Settings, store: SettingsStore) -> int:
    loop = asyncio.get_running_loop()
    finished: asyncio.Future[Partition] = loop.create_future()
    errors: list[Notification] = []
    printed = 0

    def notify(notification: Notification) -> None:
        if notification.severity == SEVERITY_ERROR:
            errors.append(notification)
        logger.info("%s: %s", notification.name, notification.message)

    def on_reveal(count: int) -> None:
        nonlocal printed
        if args.json or session.partition is None:
            return
        while printed < count:
            if printed:
                print()
            print(format_group_text(session.partition.groups[printed], settings.group_prefix), flush=True)
            printed += 1

    def on_finished(partition: Partition) -> None:
        if not finished.done():
            finished.set_result(partition)

    rng = random.Random(args.seed) if args.seed is not None else None
    session = GroupingSession(
        store,
        AsyncioTimer(loop),
        notify=notify,
        on_reveal=on_reveal,
        on_finished=on_finished,
        rng=rng,
    )
    if session.generate(settings) is None:
        for notification in errors:
            print(f"error: {notification.message}", file=sys.stderr)
        return 2

    partition = await finished
    if args.json:
        print(json.dumps(_partition_payload(partition, settings), indent=2))
    if args.out is not None:
        session.export(args.out)
        print(f"Saved {len(partition.groups)} groups to {args.out}", file=sys.stderr)
    return 0


def run_generate(args: argparse.Namespace) -> int:
    store = SettingsStore(args.settings)
    settings = _settings_from_args(args, store.load_or_default())
    return asyncio.run(_generate(args, settings, store))


def run_estimate(args: argparse.Namespace) -> int:
    store = SettingsStore(args.settings)
    settings = _settings_from_args(args, store.load_or_default())
    participants = resolve(
        settings.participant_mode(),
        count=settings.participant_count,
        raw_names=settings.custom_names,
        exclusions=settings.exclusions,
    )
    estimated, remainder = estimate_groups(len(participants), settings.group_size)
    info = {
        "participants": len(participants),
        "group_size": settings.group_size,
        "distribution_mode": settings.distribution_mode,
        "estimated_groups": estimated,
        "remaining_participants": remainder,
    }
    print(json.dumps(info, indent=2))
    return 0


def run_settings(args: argparse.Namespace) -> int:
    store = SettingsStore(args.settings)
    print(json.dumps(store.load_or_default().to_mapping(), indent=2, sort_keys=True))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.cmd == "generate":
            return run_generate(args)
        if args.cmd == "estimate":
            return run_estimate(args)
        if args.cmd == "settings":
            return run_settings(args)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    parser.error(f"Unknown command: {args.cmd}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
