"""CLI for orgrender - render Org documents to HTML."""

import argparse
import json
import logging
import platform
import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any

from . import __version__
from .adapters.org_frontmatter import YamlFrontmatter
from .config import RenderOptions, load_config
from .core.model import Clock, StateChange
from .core.utils import normalize_newlines
from .enhance.logbook import format_duration, format_total, parse_logbook, summarize
from .enhance.timestamps import classify
from .errors import OrgRenderError
from .render.pipeline import render_document


def _stamp_dict(entry: Any, now: datetime) -> dict[str, Any]:
    return {
        "kind": entry.kind,
        "start": entry.start.isoformat(),
        "end": entry.end.isoformat() if entry.end else None,
        "active": entry.active,
        "has_time": entry.has_time,
        "line": entry.source_line + 1,
        "text": entry.raw_text,
        "urgency": classify(entry, now).value,
    }


def cmd_render(args: argparse.Namespace, options: RenderOptions) -> int:
    """Render a document to HTML."""
    if args.no_highlight:
        options = replace(options, enable_syntax_highlight=False)
    if args.strict:
        options = replace(options, strict_validation=True)

    result = render_document(args.file.read_bytes(), options)

    if args.output:
        args.output.write_text(result.html + "\n", encoding="utf-8")
        if not args.quiet:
            print(f"Wrote {args.output}")
    else:
        print(result.html)
    return 0


def cmd_meta(args: argparse.Namespace, options: RenderOptions) -> int:
    """Print document metadata."""
    result = render_document(args.file.read_bytes(), options)
    meta = result.metadata.to_dict()
    if args.json:
        print(json.dumps(meta, indent=2, ensure_ascii=False))
    else:
        print(YamlFrontmatter().encode(meta), end="")
    return 0


def cmd_timestamps(args: argparse.Namespace, options: RenderOptions) -> int:
    """List planning timestamps with their urgency."""
    now = datetime.now()
    result = render_document(args.file.read_bytes(), options, now=now)
    entries = [_stamp_dict(e, now) for e in result.timestamps]

    if args.json:
        print(json.dumps(entries, indent=2, ensure_ascii=False))
        return 0

    for e in entries:
        print(f"{e['kind'].upper()}\t{e['text']}\t{e['urgency']}")
    return 0


def cmd_logbook(args: argparse.Namespace, options: RenderOptions) -> int:
    """List logbook entries and clocked time."""
    text = normalize_newlines(args.file.read_bytes().decode("utf-8"))
    entries = parse_logbook(text)
    summary = summarize(entries)

    if args.json:
        output = {
            "entries": [
                {"type": "state", "to": e.to_state, "from": e.from_state,
                 "timestamp": e.timestamp.isoformat(), "note": e.note}
                if isinstance(e, StateChange)
                else {"type": "clock", "start": e.start.isoformat(),
                      "end": e.end.isoformat() if e.end else None,
                      "minutes": int(e.duration.total_seconds() // 60) if e.duration is not None else None,
                      "note": e.note}
                for e in entries
            ],
            "summary": {
                "total_minutes": int(summary.total.total_seconds() // 60),
                "ongoing": summary.ongoing,
                "state_changes": summary.state_changes,
                "clocks": summary.clocks,
            },
        }
        print(json.dumps(output, indent=2, ensure_ascii=False))
        return 0

    for e in entries:
        if isinstance(e, Clock):
            took = format_duration(e.duration) if e.duration is not None else "running"
            print(f"CLOCK\t{e.start:%Y-%m-%d %H:%M}\t{took}")
        else:
            print(f"STATE\t{e.timestamp:%Y-%m-%d %H:%M}\t{e.from_state or '-'} -> {e.to_state}")
    if not args.quiet:
        print(f"Total: {format_total(summary.total)} ({summary.clocks} clocks, {summary.ongoing} running)")
    return 0


class _VersionAction(argparse.Action):
    def __init__(self, option_strings, dest=argparse.SUPPRESS, default=argparse.SUPPRESS, help=None):
        super().__init__(option_strings=option_strings, dest=dest, default=default, nargs=0, help=help)

    def __call__(self, parser, namespace, values, option_string=None):
        print(f"orgrender {__version__} (python {platform.python_version()}, platform {platform.platform()})")
        parser.exit()


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="orgrender", description="Render Org documents to HTML"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: search cwd/orgrender.toml)",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Log more (-vv for debug)"
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Minimize output"
    )
    parser.add_argument(
        "--version", action=_VersionAction, help="Show version information and exit"
    )

    subparsers = parser.add_subparsers(dest="cmd", required=True)

    # render command
    parser_render = subparsers.add_parser("render", help="Render a document to HTML")
    parser_render.add_argument("file", type=Path, help="Org file")
    parser_render.add_argument(
        "-o", "--output", type=Path, default=None, help="Write HTML here instead of stdout"
    )
    parser_render.add_argument(
        "--no-highlight", action="store_true", help="Disable syntax highlighting"
    )
    parser_render.add_argument(
        "--strict", action="store_true", help="Fail on the first error instead of recovering"
    )

    # meta command
    parser_meta = subparsers.add_parser("meta", help="Print document metadata")
    parser_meta.add_argument("file", type=Path, help="Org file")
    parser_meta.add_argument("--json", action="store_true", help="Machine-readable output")

    # timestamps command
    parser_ts = subparsers.add_parser("timestamps", help="List planning timestamps")
    parser_ts.add_argument("file", type=Path, help="Org file")
    parser_ts.add_argument("--json", action="store_true", help="Machine-readable output")

    # logbook command
    parser_logbook = subparsers.add_parser("logbook", help="List logbook entries")
    parser_logbook.add_argument("file", type=Path, help="Org file")
    parser_logbook.add_argument("--json", action="store_true", help="Machine-readable output")

    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    handlers = {
        "render": cmd_render,
        "meta": cmd_meta,
        "timestamps": cmd_timestamps,
        "logbook": cmd_logbook,
    }
    handler = handlers.get(args.cmd)
    if handler is None:
        print(f"Unknown command: {args.cmd}", file=sys.stderr)
        sys.exit(1)

    try:
        options = load_config(args.config)
        exit_code = handler(args, options)
    except FileNotFoundError as e:
        print(f"Error: {e.filename} not found", file=sys.stderr)
        sys.exit(1)
    except (OrgRenderError, OSError, UnicodeDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
