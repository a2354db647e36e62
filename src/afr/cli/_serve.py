"""``afr serve``: a bare broadcaster."""

import argparse
import logging

from afr.config import BroadConfig
from afr.realtime.broad import Broad
from afr.server.dev import run_server
from afr.server.handler import BroadASGI

logger = logging.getLogger("afr.server")


def run_broadcaster(args: argparse.Namespace) -> None:
    """Serve the control routes of one broadcaster until interrupted."""
    broad = Broad(BroadConfig(namespace=args.namespace, verbose=args.verbose))
    logger.info("listening on http://%s:%d%s", args.hostname, args.port, broad.namespace)
    run_server(BroadASGI(broad), args.hostname, args.port)
