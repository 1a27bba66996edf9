from __future__ import annotations

import argparse
import logging
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from . import config
from .errors import DeadlineVaultError
from .logger import setup_logger
from .models import DeadlineRecord, FilterOption, SortOption
from .session import RowView, Session
from .vault import Vault

SORT_CHOICES = [o.value for o in SortOption]


def _parse_when(text: str) -> datetime:
    """ISO date or date-time; values without an offset are local time."""
    try:
        dt = datetime.fromisoformat(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(
            f"Invalid date '{text}'. Use YYYY-MM-DD or YYYY-MM-DDTHH:MM."
        ) from e
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt.astimezone(timezone.utc)


def _open_session(ns: argparse.Namespace, seed: bool = True) -> Session:
    path = Path(ns.vault).expanduser().resolve() if ns.vault else config.default_vault_path()
    return Session(Vault(path), seed=seed)


def _short_id(r: DeadlineRecord) -> str:
    return str(r.id)[:8]


def _resolve(session: Session, text: str) -> Optional[DeadlineRecord]:
    """Find a record by full id or unique id prefix."""
    text = text.strip().lower()
    matches = [r for r in session.records if str(r.id).startswith(text)] if text else []
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        print(f"Id '{text}' is ambiguous ({len(matches)} deadlines match).", file=sys.stderr)
    else:
        print(f"Deadline '{text}' not found.", file=sys.stderr)
    return None


def _print_rows(rows: list[RowView]) -> None:
    if not rows:
        print("No deadlines found.")
        return
    print(f"{'ID':<8}  {'URGENCY':<7}  {'LEFT':<22}  {'DUE':<16}  TITLE")
    print("-" * 78)
    for row in rows:
        r = row.record
        due = r.target_date.astimezone().strftime("%Y-%m-%d %H:%M")
        print(f"{_short_id(r):<8}  {row.urgency.value:<7}  {row.countdown:<22}  {due:<16}  {r.title}")


def _apply_view_options(session: Session, ns: argparse.Namespace) -> None:
    session.set_filter_option(FilterOption.COMPLETED if ns.completed else FilterOption.ACTIVE)
    session.set_sort_option(SortOption(ns.sort))


def cmd_init(ns: argparse.Namespace) -> int:
    session = _open_session(ns, seed=not ns.empty)
    if not session.vault.exists():
        session.flush()
    print(f"Opened vault at: {session.vault.path} ({len(session.records)} deadlines)")
    return 0


def cmd_add(ns: argparse.Namespace) -> int:
    session = _open_session(ns)
    before = {r.id for r in session.records}
    session.add(ns.title, ns.due)
    new = [r for r in session.records if r.id not in before]
    print(f"Added deadline {_short_id(new[0])}: {ns.title}")
    return 0


def cmd_list(ns: argparse.Namespace) -> int:
    session = _open_session(ns)
    _apply_view_options(session, ns)
    _print_rows(session.view())
    return 0


def cmd_edit(ns: argparse.Namespace) -> int:
    session = _open_session(ns)
    record = _resolve(session, ns.record_id)
    if record is None:
        return 1
    title = ns.title if ns.title is not None else record.title
    due = ns.due if ns.due is not None else record.target_date
    session.edit(record.id, title, due)
    print(f"Updated deadline {_short_id(record)}: {title}")
    return 0


def cmd_toggle(ns: argparse.Namespace) -> int:
    session = _open_session(ns)
    record = _resolve(session, ns.record_id)
    if record is None:
        return 1
    session.toggle_completion(record.id)
    state = "complete" if record.is_completed else "incomplete"
    print(f"Marked deadline {_short_id(record)} as {state}.")
    return 0


def cmd_cleanup(ns: argparse.Namespace) -> int:
    session = _open_session(ns)
    removed = session.cleanup()
    print(f"Removed {removed} completed deadlines.")
    return 0


def cmd_watch(ns: argparse.Namespace) -> int:
    session = _open_session(ns)
    _apply_view_options(session, ns)
    shown = 0
    try:
        while True:
            rows = session.tick()
            print(f"Deadline Monitor [{session.filter_option.label}, {session.sort_option.label}]")
            _print_rows(rows)
            shown += 1
            if ns.count and shown >= ns.count:
                break
            print()
            time.sleep(ns.interval)
    except KeyboardInterrupt:
        pass
    return 0


def _add_view_options(s: argparse.ArgumentParser) -> None:
    s.add_argument("--completed", action="store_true", help="Show completed deadlines instead of active ones.")
    s.add_argument("--sort", choices=SORT_CHOICES, default=SortOption.ADDED_ORDER.value, help="Sort order.")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="deadlinevault",
        description="Deadline Vault: track deadlines kept in a single JSON vault file.",
    )
    p.add_argument(
        "--vault",
        help="Path to the vault JSON file (default: ~/.deadlinevault/vault.json or DEADLINEVAULT_PATH env var)",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr.")
    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("init", help="Open the vault, creating it with example deadlines if missing.")
    s.add_argument("--empty", action="store_true", help="Do not seed example deadlines.")
    s.set_defaults(func=cmd_init)

    s = sub.add_parser("add", help="Add a new deadline.")
    s.add_argument("title", help="Deadline title.")
    s.add_argument("--due", type=_parse_when, required=True, help="Target date, YYYY-MM-DD[THH:MM].")
    s.set_defaults(func=cmd_add)

    s = sub.add_parser("list", help="List deadlines.")
    _add_view_options(s)
    s.set_defaults(func=cmd_list)

    s = sub.add_parser("edit", help="Change a deadline's title or target date.")
    s.add_argument("record_id", help="Deadline id or unique id prefix.")
    s.add_argument("--title", help="New title.")
    s.add_argument("--due", type=_parse_when, help="New target date, YYYY-MM-DD[THH:MM].")
    s.set_defaults(func=cmd_edit)

    s = sub.add_parser("toggle", help="Mark a deadline complete, or incomplete again.")
    s.add_argument("record_id", help="Deadline id or unique id prefix.")
    s.set_defaults(func=cmd_toggle)

    s = sub.add_parser("cleanup", help="Remove deadlines completed more than 30 days ago.")
    s.set_defaults(func=cmd_cleanup)

    s = sub.add_parser("watch", help="Redraw the countdowns every interval.")
    _add_view_options(s)
    s.add_argument("--interval", type=float, default=1.0, help="Seconds between refreshes.")
    s.add_argument("--count", type=int, default=0, help="Stop after N refreshes (0 = until Ctrl-C).")
    s.set_defaults(func=cmd_watch)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)
    setup_logger(
        level=logging.DEBUG if ns.verbose else config.log_level(),
        log_file=config.log_file(),
    )
    try:
        return int(ns.func(ns))
    except DeadlineVaultError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
