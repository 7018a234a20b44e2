"""Production startup script for the SEO Live Audit API.

Reads host and port from settings (API_HOST / API_PORT, with PORT taking
precedence as set by most hosting platforms) and replaces the current
process with uvicorn.
"""

import os
import signal
import sys

from api.config import Settings, get_settings


def build_command(settings: Settings) -> list[str]:
    """Build the uvicorn command line for the configured host and port."""
    port = os.getenv("PORT", str(settings.api_port))
    workers = os.getenv("API_WORKERS", "1")

    return [
        "uvicorn",
        "api.main:app",
        "--host",
        settings.api_host,
        "--port",
        port,
        "--workers",
        workers,
        "--log-level",
        settings.log_level.lower(),
        "--proxy-headers",
        "--forwarded-allow-ips",
        "*",
    ]


def start_api() -> None:
    """Start the FastAPI application with uvicorn."""
    command = build_command(get_settings())
    host, port = command[3], command[5]

    print(f"Starting API server on {host}:{port} with {command[7]} worker(s)...")

    os.execvp(command[0], command)


def signal_handler(signum: int, _frame: object) -> None:
    """Handle shutdown signals gracefully."""
    print(f"Received signal {signum}, shutting down...")
    sys.exit(0)


def main() -> None:
    """Main entry point."""
    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    start_api()


if __name__ == "__main__":
    main()
