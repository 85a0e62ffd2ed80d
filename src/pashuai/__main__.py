"""PashuAI entry point.

Changes:
  - 2026-10-16: Log to <data_dir>/logs/pashuai.log as well as stderr.
  - 2026-10-15: Added --log-level.
  - 2026-10-14: `serve` is the default command.
"""

import argparse
import logging

from pashuai import __version__
from pashuai.config import get_config_dir, get_settings
from pashuai.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="🐄 PashuAI - agricultural and livestock advisory chat backend",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pashuai                            Start the API server
  pashuai serve --port 9000          Start on another port
  pashuai --dev                      Start with auto-reload (dev mode)
""",
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=["serve"],
        default="serve",
        help="Command to run (default: serve)",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host to bind (default: PASHUAI_HOST or 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        "-p",
        type=int,
        default=None,
        help="Port to bind (default: PASHUAI_PORT or 8000)",
    )
    parser.add_argument(
        "--dev",
        action="store_true",
        help="Development mode with auto-reload",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Console log level (default: INFO)",
    )
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    args = parser.parse_args()
    settings = get_settings()
    setup_logging(level=args.log_level, log_file=get_config_dir(settings) / "logs" / "pashuai.log")

    host = args.host or settings.host
    port = args.port or settings.port

    try:
        if args.command == "serve":
            from pashuai.api.serve import run_api_server

            run_api_server(host=host, port=port, dev=args.dev)
    except KeyboardInterrupt:
        logger.info("👋 PashuAI stopped.")


if __name__ == "__main__":
    main()
