"""``afr site``: serve directories and live-reload pages that use them."""

import argparse

from afr.app import App
from afr.config import AppConfig, BroadConfig
from afr.fs.dirs import Dir


def run_site(args: argparse.Namespace) -> None:
    config = AppConfig(
        host=args.hostname,
        port=args.port,
        broad=BroadConfig(namespace=args.namespace, verbose=args.verbose),
    )
    dirs = [Dir(path) for path in args.dir]

    app = App(config).serve(*dirs)
    if args.watch:
        app.watch(*dirs)
    app.run()
