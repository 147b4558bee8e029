"""Command line launcher: ``envx-ui [DIRECTORY] [--port PORT]``."""

import argparse
import logging
import socket
import sys
import webbrowser
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

import uvicorn

from envx_ui.auth_utils import hash_password
from envx_ui.config import get_settings
from envx_ui.main import configure_logging, create_app

logger = logging.getLogger(__name__)


def _version() -> str:
    try:
        return version("envx-ui")
    except PackageNotFoundError:
        return "unknown"


def _port(value: str) -> int:
    port = int(value)
    if not 0 <= port < 65536:
        raise argparse.ArgumentTypeError(f"port must be between 0 and 65535, got {port}")
    return port


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="envx-ui",
        description="Local UI for managing dotenvx environment files.",
        epilog="Listens on localhost only. A random port is used unless --port is given.",
    )
    parser.add_argument("directory", nargs="?", default=".",
                        help="Folder to open (default: current directory)")
    parser.add_argument("-p", "--port", type=_port, default=None,
                        help="Port to listen on (default: random free port)")
    parser.add_argument("--host", default=None, help="Interface to bind (default: 127.0.0.1)")
    parser.add_argument("--no-browser", action="store_true", help="Do not open a browser window")
    parser.add_argument("--hash-password", metavar="PASSWORD",
                        help="Print a bcrypt hash for ENVX_UI_AUTH_PASSWORD and exit")
    parser.add_argument("-v", "--version", action="version", version=f"envx-ui {_version()}")
    return parser


def bind_socket(host: str, port: int) -> socket.socket:
    """Bind before starting uvicorn so port 0 resolves to a real port we can print."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    sock.bind((host, port))
    sock.listen()
    sock.set_inheritable(True)
    return sock


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.hash_password is not None:
        print(hash_password(args.hash_password))
        return 0

    settings = get_settings()
    configure_logging(settings.log_level)

    directory = Path(args.directory).expanduser().resolve()
    if not directory.is_dir():
        print(f"envx-ui: {directory} is not a directory", file=sys.stderr)
        return 1

    host = args.host or settings.host
    port = settings.port if args.port is None else args.port
    try:
        sock = bind_socket(host, port)
    except OSError as e:
        print(f"envx-ui: cannot listen on {host}:{port}: {e}", file=sys.stderr)
        return 1

    actual_port = sock.getsockname()[1]
    url = f"http://{host}:{actual_port}"
    print(f"\n  envx-ui {_version()}\n  Serving {directory}\n  Open {url}\n  Press Ctrl+C to stop\n")

    app = create_app(directory)
    if settings.open_browser and not args.no_browser:
        if not webbrowser.open(url):
            logger.info("No browser available, open %s manually", url)

    server = uvicorn.Server(uvicorn.Config(app, log_level=settings.log_level.lower()))
    server.run(sockets=[sock])
    return 0


if __name__ == "__main__":
    sys.exit(main())
