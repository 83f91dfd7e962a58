"""Server CLI commands."""

from notekeep.server import app


def add_parser(subparsers):
    parser_serve = subparsers.add_parser("serve", help="run the notekeep server")
    parser_serve.add_argument(
        "--config-dir",
        type=str,
        default=None,
        help="directory containing config.yaml (defaults to environment only)",
    )
    parser_serve.set_defaults(func=app.run)
