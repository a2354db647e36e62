"""``afr send``: broadcast one message through a running broadcaster."""

import argparse
import json
import sys
from typing import Any

import anyio
import httpx

from afr import remote
from afr.errors import SendError


def build_message(args: argparse.Namespace) -> dict[str, Any]:
    msg: dict[str, Any] = {"type": args.type}
    if args.path is not None:
        msg["path"] = args.path
    if args.key is not None:
        msg["key"] = args.key
    return msg


def run_send(args: argparse.Namespace) -> None:
    """Send the message and print the broadcaster's answer."""
    msg = build_message(args)

    async def _send() -> Any:
        return await remote.send(msg, port=args.port, hostname=args.hostname, namespace=args.namespace)

    try:
        result = anyio.run(_send)
    except (httpx.HTTPError, SendError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    print(json.dumps(result))
