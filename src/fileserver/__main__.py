"""
=============================================================================
COMMAND-LINE INTERFACE
=============================================================================

    python -m fileserver [PORT] [--force] [--log-level LEVEL]
    fileserver [PORT] [--force] [--log-level LEVEL]

Serves the CURRENT directory. There is deliberately no directory option:
`cd` to what you want to share first.

=============================================================================
STARTUP SEQUENCE
=============================================================================

    parse arguments ───────────── bad port / unknown flag   → exit 2
          │
    canonicalize cwd
          │
    danger-zone guard ─────────── "/" or $HOME w/o --force  → exit 1
          │
    build ServerConfig ────────── invalid environment value → exit 1
          │
    bind ──────────────────────── port in use, no permission → exit 1
          │
    banner, serve until Ctrl+C                               → exit 0

=============================================================================
"""

import argparse
import os
import sys
from pathlib import Path
from typing import Mapping, Optional, Sequence

from . import __version__
from .config import LOG_LEVELS, ServerConfig
from .sandbox import is_dangerous_dir
from .server import FileServer


def port_number(value: str) -> int:
    """argparse type: a TCP port 1-65535."""
    try:
        port = int(value, 10)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Port must be a number between 1 and 65535, got {value!r}"
        )
    if not 0 < port < 65536:
        raise argparse.ArgumentTypeError(
            f"Port must be between 1 and 65535, got {port}"
        )
    return port


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fileserver",
        allow_abbrev=False,
        description="Share the current directory for direct file download. "
                    "No index pages, no directory listings.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  fileserver                 # Serve . on port 8000
  fileserver 9000            # Custom port
  fileserver --force         # Serve even if . is / or your home directory
  curl -O http://host:8000/path/to/file
        """
    )

    parser.add_argument(
        "port",
        nargs="?",
        type=port_number,
        default=None,
        metavar="PORT",
        help="Port to listen on (default: 8000)"
    )

    parser.add_argument(
        "--force",
        action="store_true",
        help="Serve the filesystem root or your home directory anyway"
    )

    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default=None,
        help="Diagnostic log level on stderr (default: INFO)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"fileserver {__version__}"
    )

    return parser


def main(
    argv: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> int:
    """
    Run the CLI.

    Returns:
        Process exit status. argparse exits by itself (status 2) on
        usage errors.
    """
    args = build_parser().parse_args(argv)
    environ = os.environ if environ is None else environ

    base_dir = Path.cwd().resolve()

    # ─────────────────────────────────────────────────────────────────────
    # DANGER-ZONE GUARD (exactly once, before anything is bound)
    # ─────────────────────────────────────────────────────────────────────
    if not args.force and is_dangerous_dir(base_dir, environ):
        print(f"Refusing to serve dangerous directory: {base_dir}", file=sys.stderr)
        print("Pass --force to override, or pick a safer directory.", file=sys.stderr)
        return 1

    overrides = {"base_dir": str(base_dir)}
    if args.port is not None:
        overrides["port"] = args.port
    if args.log_level is not None:
        overrides["log_level"] = args.log_level

    try:
        config = ServerConfig.from_env(**overrides)
        server = FileServer(config)
        server.bind()
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    server.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
