#!/usr/bin/env python3
"""github-subissues-mcp MCP Server entry point.

Run:
  python -m github_subissues_mcp                # start server (stdio)
  python -m github_subissues_mcp --read-only    # expose list_sub_issues only
  python -m github_subissues_mcp --test         # run lightweight self-tests then exit
"""

import argparse
import asyncio
import sys

from github_subissues_mcp.server import run_server, test_server


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(prog="github_subissues_mcp", add_help=True)
    parser.add_argument(
        "--test",
        action="store_true",
        help="Run built-in server self tests (tool & resource listing) then exit.",
    )
    parser.add_argument(
        "--read-only",
        action="store_true",
        help="Only expose read-only tools, whatever GITHUB_SUBISSUES_MCP_READ_ONLY says.",
    )
    return parser.parse_args(argv)


def main() -> None:
    """CLI dispatcher for the MCP server."""
    args = parse_args(sys.argv[1:])
    try:
        if args.test:
            asyncio.run(test_server())
        else:
            asyncio.run(run_server(read_only=args.read_only))
    except KeyboardInterrupt:
        print("\nServer stopped by user", file=sys.stderr)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        print(f"Server error: {exc}", file=sys.stderr)
        raise


if __name__ == "__main__":
    main()
