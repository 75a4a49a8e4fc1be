"""
CLI Module

Architectural Intent:
- Command-line interface for the relay
- Entry point for starting the listener and inspecting the association store
- Delegates wiring to the composition root
- Supports --verbose/--debug flags that override the configured log level
"""

import argparse
import json
import logging
import sys
import traceback
from typing import Optional, Sequence

from sdm_relay.infrastructure.config import RelayConfig, load_config
from sdm_relay.infrastructure.logging import configure_logging, parse_level


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sdm-relay",
        description="Relay monitoring problems into CA Service Desk Manager tickets",
    )
    parser.add_argument(
        "--config", "-c", default=None, help="Path to JSON config (default: sdm_relay.json)"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose output"
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug output with tracebacks"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser(
        "serve", help="Start the webhook listener"
    )
    serve_parser.add_argument("--host", default=None, help="Listener host")
    serve_parser.add_argument("--port", "-p", type=int, default=None, help="Listener port")

    lookup_parser = subparsers.add_parser(
        "lookup", help="Show the ticket recorded for a problem"
    )
    lookup_parser.add_argument("problem_id", help="Problem ID to look up")

    return parser


def _setup_logging(args: argparse.Namespace, config: RelayConfig) -> None:
    if args.debug:
        level = logging.DEBUG
    elif args.verbose:
        level = logging.INFO
    else:
        level = parse_level(config.log_level)
    configure_logging(
        level=level,
        json_format=config.log_json,
        log_file=config.log_file or None,
    )


def _serve(args: argparse.Namespace, config: RelayConfig) -> None:
    from sdm_relay.composition_root import create_container
    from sdm_relay.presentation.web.app import RelayWebApp

    try:
        container = create_container(config)
    except (OSError, ValueError) as e:
        print(f"[-] Could not start the relay: {e}")
        if args.debug:
            traceback.print_exc()
        sys.exit(1)

    host = args.host or config.listener.host
    port = args.port if args.port is not None else config.listener.port

    app = RelayWebApp(sync_problem=container.sync_problem)
    try:
        app.start(host, port)
    except OSError as e:
        print(f"[-] Could not listen on {host}:{port}: {e}")
        sys.exit(1)

    print(f"[*] Server started at {host}:{app.port}")
    try:
        app.wait()
    except KeyboardInterrupt:
        print("\n[*] Stopping relay.")
    finally:
        app.stop()
        container.shutdown()


def _lookup(args: argparse.Namespace, config: RelayConfig) -> None:
    from sdm_relay.infrastructure.repositories.json_association_store import (
        JsonAssociationStore,
    )

    record = JsonAssociationStore(config.store.path).lookup(args.problem_id)
    if record is None:
        print(f"[-] No ticket recorded for problem {args.problem_id}")
        sys.exit(1)
    print(json.dumps({record.problem_id: record.to_dict()}, indent=2))


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        _setup_logging(args, config)
    except ValueError as e:
        print(f"[-] {e}")
        sys.exit(1)

    if args.command == "serve":
        _serve(args, config)
        return

    if args.command == "lookup":
        _lookup(args, config)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
