"""Main CLI entry point."""

import argparse
import sys

from . import client, server

SUBPARSERS = [
    client,
    server,
]


def main():
    parser = argparse.ArgumentParser(
        prog="notekeep",
        description="Notekeep server and command line client",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")
    for subparser in SUBPARSERS:
        subparser.add_parser(subparsers)

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(1)

    # Dispatch
    if hasattr(args, "func"):
        args.func(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
