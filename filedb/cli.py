"""
FileDB CLI — Serve and maintain a JSON document directory.

Commands:
- filedb serve     — Start the HTTP server (uvicorn)
- filedb reset     — Rewrite the seed documents and empty the audit log
- filedb merge     — Merge every document into the merge file
- filedb list      — List stored documents
- filedb get       — Print a document, or one of its properties
- filedb set       — Set a property (value parsed as JSON, else kept as text)
- filedb compare   — union / intersect / difference of two documents' keys
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Optional

from filedb.engine.errors import ConfigError, FileDBError

logger = logging.getLogger("filedb.cli")


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="filedb",
        description="FileDB — JSON documents over HTTP",
    )
    parser.add_argument(
        "--config", default=None, help="Path to filedb.yaml (default: auto-discover)"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP server")
    serve_parser.add_argument("--host", help="Host to bind (default: server.host)")
    serve_parser.add_argument("--port", type=int, help="Port to bind (default: server.port)")

    subparsers.add_parser("reset", help="Rewrite seed documents and empty the audit log")
    subparsers.add_parser("merge", help="Merge all documents into the merge file")
    subparsers.add_parser("list", help="List stored documents")

    get_parser = subparsers.add_parser("get", help="Print a document or one property")
    get_parser.add_argument("file", help="Document name (e.g., user.json)")
    get_parser.add_argument("key", nargs="?", help="Property name")

    set_parser = subparsers.add_parser("set", help="Set a property on a document")
    set_parser.add_argument("file", help="Document name")
    set_parser.add_argument("key", help="Property name")
    set_parser.add_argument("value", help="New value (JSON, or plain text)")

    compare_parser = subparsers.add_parser("compare", help="Compare two documents' keys")
    compare_parser.add_argument("mode", choices=["union", "intersect", "difference"])
    compare_parser.add_argument("a", help="First document")
    compare_parser.add_argument("b", help="Second document")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    from filedb.engine.config import load_config
    from filedb.engine.logging import configure_logging

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"[ERROR] {e.message}")
        return 1
    configure_logging(config.logging)

    if args.command == "serve":
        return cmd_serve(args, config)

    from filedb.documents.service import DocumentStore

    store = DocumentStore.from_config(config)
    commands = {
        "reset": cmd_reset,
        "merge": cmd_merge,
        "list": cmd_list,
        "get": cmd_get,
        "set": cmd_set,
        "compare": cmd_compare,
    }
    try:
        return asyncio.run(commands[args.command](args, store))
    except FileDBError as e:
        print(f"[ERROR] {e.message}")
        return 1


def cmd_serve(args: argparse.Namespace, config) -> int:
    """Start the HTTP server."""
    from filedb.server import run

    try:
        run(config, host=args.host, port=args.port)
    except KeyboardInterrupt:
        print("\nServer stopped.")
    return 0


async def cmd_reset(args: argparse.Namespace, store) -> int:
    names = await store.reset()
    print(f"[OK] Reset {', '.join(names)}")
    return 0


async def cmd_merge(args: argparse.Namespace, store) -> int:
    merged = await store.merge_data()
    print(f"[OK] Merged {len(merged)} documents into {store.merge_file}")
    return 0


async def cmd_list(args: argparse.Namespace, store) -> int:
    for name in await store.list_files():
        print(name)
    return 0


async def cmd_get(args: argparse.Namespace, store) -> int:
    if args.key is None:
        raw = await store.get_file(args.file)
        sys.stdout.write(raw.decode("utf-8", errors="replace") + "\n")
        return 0
    value = await store.get(args.file, args.key)
    if value is None:
        print(f"[WARN] {args.key} not set on {args.file}")
        return 1
    print(json.dumps(value))
    return 0


def _parse_value(text: str) -> Any:
    """Interpret CLI input as JSON when possible: 42, true, {"a": 1}."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


async def cmd_set(args: argparse.Namespace, store) -> int:
    await store.set(args.file, args.key, _parse_value(args.value))
    print("[OK] File Written")
    return 0


async def cmd_compare(args: argparse.Namespace, store) -> int:
    operation = getattr(store, args.mode)
    keys = await operation(args.a, args.b)
    print(json.dumps(keys))
    return 0


if __name__ == "__main__":
    sys.exit(main())
