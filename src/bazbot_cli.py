from __future__ import annotations

import argparse
import random
import sqlite3
import sys
from pathlib import Path
from typing import Sequence

from bazbot import BazEngine, BazError
from bazbot.completion import tokenize
from bazbot.pipeline import PLACEHOLDER
from bazbot.responder import Responder
from bazbot.settings import BazSettings, load_settings

from helpers.resource_monitor import ResourceMonitor
from log_helpers import configure_logging, log, log_verbose


def build_parser(default_db_path: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bazbot",
        description="BenzoBaz WordBot: learn trigram word chains and babble them back.",
        epilog=(
            "Reads configuration from the environment or a .env file:\n"
            "  BAZBOT_WORDS=db/words.db    Location of the sqlite words db\n"
            "  BAZBOT_TRIGGER=baz          Word the reply command reacts to\n"
            "  BAZBOT_LOG_LEVEL=1          0=errors, 1=warnings, 2=info, 3=debug"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--db",
        default=default_db_path,
        help="Path to the SQLite words database (default: %(default)s).",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Optional .env file consulted after the real environment (default: %(default)s).",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed the completion RNG for reproducible output.",
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.add_parser("summary", help="Summarize database")
    sub.add_parser("migrate", help="Create or sync database against current code")
    complete = sub.add_parser(
        "complete",
        help=f"Run a markov chain around the '{PLACEHOLDER}' placeholder in the args",
    )
    complete.add_argument("prefix", nargs="*")
    add = sub.add_parser("add", help="Add a single phrase")
    add.add_argument("phrase", nargs="+")
    read = sub.add_parser("read", help="Read phrases from files, one per line")
    read.add_argument("files", nargs="+")
    read.add_argument(
        "--encoding",
        default="utf-8",
        help="ASCII-compatible file encoding used while reading (default: %(default)s).",
    )
    read.add_argument(
        "--profile",
        action="store_true",
        help="Report CPU/RSS usage for every file ingested.",
    )
    reply = sub.add_parser("reply", help="Reply to a chat message the way the bot would")
    reply.add_argument("message", nargs="+")
    reply.add_argument("--trigger", help="Override BAZBOT_TRIGGER for this message.")
    return parser


def resolve_db_path(raw: str) -> str:
    if raw == ":memory:":
        return raw
    path = Path(raw).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return str(path)


def cmd_summary(engine: BazEngine, args: argparse.Namespace) -> int:
    summary = engine.summary()
    for line in summary.lines():
        log(line, prefix=False)
    return 1 if summary.error else 0


def cmd_migrate(engine: BazEngine, args: argparse.Namespace) -> int:
    applied = engine.migrate()
    if applied:
        log(f"[migrate] Applied {len(applied)} migration(s): {', '.join(applied)}")
    else:
        log("[migrate] Schema already up to date.")
    return 0


def cmd_complete(engine: BazEngine, args: argparse.Namespace) -> int:
    log_verbose(3, f"[complete:v3] The prefix args: {args.prefix}")
    text = engine.complete_placeholder(args.prefix)
    if text is None:
        log(f"Couldn't find {PLACEHOLDER} to complete against", prefix=False)
        return 1
    log(text, prefix=False)
    return 0


def cmd_add(engine: BazEngine, args: argparse.Namespace) -> int:
    tokens = tokenize(" ".join(args.phrase))
    engine.add_phrase(tokens)
    log_verbose(2, f"[add] Added phrase of {len(tokens)} word(s).")
    return 0


def cmd_read(engine: BazEngine, args: argparse.Namespace) -> int:
    monitor = ResourceMonitor() if args.profile else None
    total = 0
    for raw in args.files:
        before = monitor.snapshot() if monitor else None
        lines = engine.read_file(raw, encoding=args.encoding)
        total += lines
        log(f"[read] Added {lines} line(s) from {raw}")
        if monitor and before:
            delta = monitor.delta(before, monitor.snapshot())
            log(f"[profile] {raw}: {monitor.describe(delta)}")
    if len(args.files) > 1:
        log(f"[read] Added {total} line(s) from {len(args.files)} file(s)")
    return 0


def cmd_reply(engine: BazEngine, args: argparse.Namespace) -> int:
    responder = Responder(engine, args.trigger, learn=False)
    text = responder.reply(" ".join(args.message))
    if text is None:
        log_verbose(2, f"[reply] Nothing to say about '{responder.trigger}'.")
        return 0
    log(text, prefix=False)
    return 0


COMMANDS = {
    "summary": cmd_summary,
    "migrate": cmd_migrate,
    "complete": cmd_complete,
    "add": cmd_add,
    "read": cmd_read,
    "reply": cmd_reply,
}


def main(argv: Sequence[str] | None = None) -> int:
    preliminary = argparse.ArgumentParser(add_help=False)
    preliminary.add_argument("--env-file", default=".env")
    known, _ = preliminary.parse_known_args(argv)
    settings: BazSettings = load_settings(known.env_file)
    configure_logging(settings.log_level)

    parser = build_parser(settings.words_path)
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 2
    log_verbose(3, f"[bazbot:v3] Parsed CLI arguments: {vars(args)}")

    rng = random.Random(args.seed) if args.seed is not None else None
    try:
        # summary must be able to report an unmigrated database as such
        engine = BazEngine(
            resolve_db_path(args.db),
            settings,
            rng=rng,
            migrate=args.command not in {"migrate", "summary"},
        )
    except (BazError, sqlite3.Error, OSError) as exc:
        log(f"[bazbot] Error: {exc}", file=sys.stderr)
        return 1
    try:
        return COMMANDS[args.command](engine, args)
    except (BazError, sqlite3.Error, OSError) as exc:
        log(f"[bazbot] Error: {exc}", file=sys.stderr)
        return 1
    finally:
        engine.close()


if __name__ == "__main__":
    sys.exit(main())
