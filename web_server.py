#!/usr/bin/env python3
"""
CLI tool to start the panel FastAPI web server.

Usage:
    python3 web_server.py                    # Start with defaults
    python3 web_server.py --host 0.0.0.0     # Listen on all interfaces
    python3 web_server.py --port 8080        # Use custom port
    python3 web_server.py --reload           # Enable auto-reload for development

Environment Variables:
    PANEL_DB_URL: Database URL
    PANEL_ENV: Environment (production/development, default: development)
    PANEL_LOG_LEVEL: Log level (DEBUG/INFO/WARNING/ERROR/CRITICAL)
    PANEL_ASSOCIATIONS_LOOKUP_LIST_LIMIT: Candidate list cap (default: 1000)
"""

import argparse
import os
import sys
from pathlib import Path


def load_env_file() -> None:
    """
    Load environment variables from panel/.env.

    Variables already set in the environment take precedence.
    """
    env_path = Path(__file__).parent / "panel" / ".env"
    if not env_path.exists():
        return

    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                if key and key not in os.environ:
                    os.environ[key] = value


def parse_arguments() -> argparse.Namespace:
    """
    Parse command-line arguments.

    Arguments:
        --host: Host to bind (default: 127.0.0.1)
        --port: Port to bind (default: 8000)
        --reload: Enable auto-reload for development (default: False)
    """
    parser = argparse.ArgumentParser(
        description="Start the panel FastAPI web server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start development server with auto-reload
  python3 web_server.py --reload

  # Limit belongs-to selects to 50 records
  PANEL_ASSOCIATIONS_LOOKUP_LIST_LIMIT=50 python3 web_server.py

Environment Variables:
  PANEL_DB_URL                          Database URL
  PANEL_ENV                             Environment (production/development)
  PANEL_LOG_LEVEL                       Log level (DEBUG/INFO/WARNING/ERROR/CRITICAL)
  PANEL_ASSOCIATIONS_LOOKUP_LIST_LIMIT  Candidate list cap (default: 1000)
        """
    )

    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind the server to (default: 127.0.0.1). "
             "Use 0.0.0.0 to listen on all interfaces."
    )

    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind the server to (default: 8000)"
    )

    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development. Not recommended for production."
    )

    return parser.parse_args()


def main() -> None:
    """
    Main entry point for the web server CLI tool.

    Exit Codes:
        0: Server stopped normally
        2: Uvicorn import error (dependency not installed)
    """
    args = parse_arguments()

    # Ensure the repo root is on sys.path so "panel.src.main" is importable
    repo_root = str(Path(__file__).parent)
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)

    load_env_file()

    # Import uvicorn late so --help works without dependencies
    try:
        import uvicorn
    except ImportError:
        print(
            "\n" + "=" * 70,
            "\nERROR: Cannot import uvicorn.",
            f"\n\nCurrent Python interpreter: {sys.executable} (Python {sys.version.split()[0]})",
            "\n\nInstall the project first:",
            "\n  pip install -e .",
            "\n" + "=" * 70 + "\n",
            file=sys.stderr
        )
        sys.exit(2)

    print("\nStarting panel web server...")
    print(f"Host: {args.host}")
    print(f"Port: {args.port}")
    print(f"Auto-reload: {'enabled' if args.reload else 'disabled'}")
    print(f"\nAPI documentation: http://{args.host}:{args.port}/docs")
    print(f"Health check: http://{args.host}:{args.port}/health")
    print("\nPress CTRL+C to stop the server\n")

    try:
        uvicorn.run(
            "panel.src.main:app",
            host=args.host,
            port=args.port,
            reload=args.reload,
            log_level="info",
        )
    except KeyboardInterrupt:
        print("\n\nServer stopped by user (CTRL+C)")
        sys.exit(0)


if __name__ == "__main__":
    main()
