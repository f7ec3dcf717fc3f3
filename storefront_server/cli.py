"""CLI entry point for Storefront MCP server."""

import argparse
import asyncio
import sys


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Storefront MCP Server - Browse a CSV product feed and manage a shopping cart"
    )
    parser.add_argument(
        "--mode",
        choices=["stdio", "http"],
        default="stdio",
        help="Server mode: stdio (for MCP protocol) or http (for REST API)",
    )
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Host to bind to (HTTP mode only, default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (HTTP mode only, default: 8000)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable hot reloading (HTTP mode only, watches for file changes)",
    )
    parser.add_argument(
        "--feed-url",
        help="CSV product feed URL (overrides STOREFRONT_FEED_URL)",
    )
    parser.add_argument(
        "--state-file",
        help="Cart/preferences file (overrides STOREFRONT_STATE_FILE)",
    )

    args = parser.parse_args()

    from .config import StorefrontConfig

    config = StorefrontConfig.from_env(feed_url=args.feed_url, state_file=args.state_file)

    try:
        if args.mode == "http":
            from .http_server import run_http_server

            run_http_server(host=args.host, port=args.port, reload=args.reload, server_config=config)
        else:
            from .server import main as server_main

            asyncio.run(server_main(config))
    except KeyboardInterrupt:
        print("\nShutting down...", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    main()
