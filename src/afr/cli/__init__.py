"""afr CLI: run a broadcaster, send it messages, or serve a live-reloading site.

Entry point registered as ``afr`` in ``pyproject.toml``::

    [project.scripts]
    afr = "afr.cli:main"

Flags take exactly one value. Values are parsed as JSON where possible
(``--port 8000`` is a number, ``--verbose true`` a boolean) and kept as
strings otherwise.
"""

import argparse
import json
import logging
import re
import sys
from typing import Any

COMMANDS = ("serve", "send", "site", "echo")
HELP_ARGS = ("help", "--help", "-h")

_FLAG_RE = re.compile(r"--(\w+)")

USAGE = """\
Usage:

  afr serve --port N [--hostname H] [--namespace NS] [--verbose true]
  afr send  --port N [--type T] [--path P] [--key K] [--namespace NS]
  afr site  --port N --dir D [--dir D ...] [--watch false] [--verbose true]
  afr echo  [--flag value ...]
  afr help

"serve" runs a bare broadcaster, "send" broadcasts one message through a
running one, "site" serves directories and reloads pages on change.\
"""


def json_or_str(value: str) -> Any:
    """Parse *value* as JSON, falling back to the raw string."""
    try:
        return json.loads(value)
    except ValueError:
        return value


def parse_opts(args: list[str]) -> dict[str, Any]:
    """Parse ``--flag value`` pairs into a dict of JSON-or-string values."""
    opts: dict[str, Any] = {}
    args = list(args)
    while args:
        arg = args.pop(0)
        match = _FLAG_RE.fullmatch(arg)
        if match is None:
            msg = f'expected flag like "--arg", found {arg!r}'
            raise ValueError(msg)
        if not args:
            msg = f'expected value following flag "{arg}"'
            raise ValueError(msg)
        opts[match.group(1)] = json_or_str(args.pop(0))
    return opts


def _port(value: str) -> int:
    port = json_or_str(value)
    if isinstance(port, bool) or not isinstance(port, int) or port <= 0:
        msg = f"expected a positive port number, got {value!r}"
        raise argparse.ArgumentTypeError(msg)
    return port


def _flag(value: str) -> bool:
    parsed = json_or_str(value)
    if not isinstance(parsed, bool):
        msg = f"expected true or false, got {value!r}"
        raise argparse.ArgumentTypeError(msg)
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="afr", description="Live-reload broadcaster for development.")
    subparsers = parser.add_subparsers(dest="command")

    # -- afr serve --------------------------------------------------------
    serve_parser = subparsers.add_parser("serve", help="Run a broadcaster")
    serve_parser.add_argument("--port", type=_port, required=True, help="Bind port number")
    serve_parser.add_argument("--hostname", default="localhost", help="Bind host address")
    serve_parser.add_argument("--namespace", default="/afr/", help="URL prefix of the control routes")
    serve_parser.add_argument("--verbose", type=_flag, default=False, help="Log connections")

    # -- afr send ---------------------------------------------------------
    send_parser = subparsers.add_parser("send", help="Broadcast one message")
    send_parser.add_argument("--port", type=_port, required=True, help="Broadcaster port")
    send_parser.add_argument("--hostname", default="localhost", help="Broadcaster host")
    send_parser.add_argument("--namespace", default="/afr/", help="URL prefix of the control routes")
    send_parser.add_argument("--type", default="change", help="Message type")
    send_parser.add_argument("--path", default=None, help="Changed path")
    send_parser.add_argument("--key", default=None, help="Receiver key")

    # -- afr site ---------------------------------------------------------
    site_parser = subparsers.add_parser("site", help="Serve and live-reload directories")
    site_parser.add_argument("--port", type=_port, required=True, help="Bind port number")
    site_parser.add_argument("--hostname", default="localhost", help="Bind host address")
    site_parser.add_argument("--dir", action="append", required=True, help="Directory to serve (repeatable)")
    site_parser.add_argument("--watch", type=_flag, default=True, help="Watch the served directories")
    site_parser.add_argument("--namespace", default="/afr/", help="URL prefix of the control routes")
    site_parser.add_argument("--verbose", type=_flag, default=False, help="Log connections and changes")

    # -- afr echo ---------------------------------------------------------
    # Takes free-form "--flag value" pairs, parsed by parse_opts()
    subparsers.add_parser("echo", help="Print parsed options as JSON")

    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        format="[afr] %(message)s",
        level=logging.INFO if verbose else logging.WARNING,
    )


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``afr`` command."""
    argv = sys.argv[1:] if argv is None else list(argv)

    if not argv or argv[0] in HELP_ARGS:
        print(USAGE)
        sys.exit(0)

    if argv[0] not in COMMANDS:
        print(f'Unrecognized command "{argv[0]}".\n\n{USAGE}')
        sys.exit(1)

    if argv[0] == "echo":
        try:
            opts = parse_opts(argv[1:])
        except ValueError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            raise SystemExit(1) from exc
        print(json.dumps(opts))
        return

    args = build_parser().parse_args(argv)

    if args.command == "serve":
        from afr.cli._serve import run_broadcaster

        configure_logging(args.verbose)
        run_broadcaster(args)
    elif args.command == "send":
        from afr.cli._send import run_send

        configure_logging(False)
        run_send(args)
    elif args.command == "site":
        from afr.cli._site import run_site

        configure_logging(args.verbose)
        run_site(args)
