"""Command line tool exporting the state of Kubernetes objects as metrics."""

import argparse
import asyncio
import logging
import sys
import traceback

from kube_state.exceptions import KubeStateException
from . import serve

_LOGGER = logging.getLogger(__name__)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Command line utility exposing Kubernetes object state as Prometheus metrics.",
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )

    subparsers = parser.add_subparsers(dest="command", help="Command", required=True)

    serve.ServeAction.register(subparsers)
    return parser


def main() -> None:
    """kube-state command line tool main entry point."""
    parser = _make_parser()
    args = parser.parse_args()

    if args.log_level:
        logging.basicConfig(level=args.log_level)

    action = args.cls()
    try:
        asyncio.run(action.run(**vars(args)))
    except KubeStateException as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print("kube-state error: ", err, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
