"""
=============================================================================
HTTP CLIENT DEMO ENTRY POINT
=============================================================================

Issues one request and dumps everything: the raw request bytes, the raw
response bytes, then the decoded status line, headers and body.

=============================================================================
USAGE
=============================================================================

    # Default: GET https://google.com/ over HTTP/1.1
    python -m httpclient

    # Another URL
    python -m httpclient http://example.com/

    # HTTP/1.0 framing
    python -m httpclient --http-version 1.0 http://example.com/

    # Verbose logging (connection details, parse summary)
    python -m httpclient --log-level DEBUG http://example.com/

Output looks like:

    >>> GET / HTTP/1.1
    >>> connection: close
    >>> host: example.com
    ...
    <<< HTTP/1.1 200 OK
    <<< content-type: text/html
    ...

    200 OK
    content-type: text/html
    ...

    <!doctype html>...

    Done!

=============================================================================
"""

import argparse
import logging
import sys

from . import __version__
from .client import HTTPClient, prefix_lines
from .config import ClientConfig
from .errors import HTTPClientError


DEFAULT_URL = "https://google.com/"


def print_traffic(direction: str, data: bytes) -> None:
    """Print one side of the exchange, every line prefixed with >>> or <<<."""
    if direction == "<<<":
        print()
    print(f"{direction} {len(data)} bytes")
    print(prefix_lines(data.decode("utf-8", errors="replace"), f"{direction} "))


def setup_logging(level_name: str) -> None:
    """Configure logging for the CLI. The library itself never does this."""
    level = getattr(logging, level_name.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    logging.getLogger("httpclient").setLevel(level)


def main(argv=None) -> int:
    """
    Main CLI entry point.

    =========================================================================
    ARGUMENT PARSING
    =========================================================================

    - url:                  Target URL (default: https://google.com/)
    - --http-version, -V:   1.0 or 1.1 (default: 1.1)
    - --timeout, -t:        Connect timeout in seconds
    - --log-level, -l:      Logging verbosity
    - --version, -v:        Show version

    Defaults come from ClientConfig.from_env(), so HTTPCLIENT_* environment
    variables apply unless overridden here.

    =========================================================================
    """
    try:
        env_config = ClientConfig.from_env()
    except ValueError as e:
        print(f"Error: invalid HTTPCLIENT_* environment variable: {e}", file=sys.stderr)
        return 1

    parser = argparse.ArgumentParser(
        prog="httpclient",
        description="Minimal HTTP/1.0 and HTTP/1.1 client built from scratch in Python",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m httpclient                                   # GET https://google.com/
  python -m httpclient http://example.com/               # Another URL
  python -m httpclient -V 1.0 http://example.com/        # HTTP/1.0 framing
  python -m httpclient -l DEBUG http://example.com/      # Verbose logging
        """
    )

    parser.add_argument(
        "url",
        nargs="?",
        default=DEFAULT_URL,
        help=f"URL to fetch (default: {DEFAULT_URL})"
    )

    parser.add_argument(
        "--http-version", "-V",
        choices=["1.0", "1.1"],
        default=env_config.http_version,
        help="Protocol version (default: 1.1)"
    )

    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=env_config.connect_timeout,
        help="Connect timeout in seconds (default: 30)"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=env_config.log_level.upper(),
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"httpclient {__version__}"
    )

    args = parser.parse_args(argv)

    # =========================================================================
    # CREATE CONFIGURATION
    # =========================================================================

    config = ClientConfig(
        http_version=args.http_version,
        connect_timeout=args.timeout,
        read_timeout=env_config.read_timeout,
        max_response_size=env_config.max_response_size,
        user_agent=env_config.user_agent,
        log_level=args.log_level,
    )

    setup_logging(config.log_level)

    # =========================================================================
    # SEND THE REQUEST
    # =========================================================================

    try:
        client = HTTPClient(config=config, on_traffic=print_traffic)
        response = client.get(args.url)
    except (HTTPClientError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # =========================================================================
    # PRINT THE DECODED RESPONSE
    # =========================================================================

    print()
    print()
    print(f"{response.status_code} {response.status_message}")
    for name, value in response.headers.entries():
        print(f"{name}: {value}")
    print()
    print(response.text())

    print()
    print()
    print("Done!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
