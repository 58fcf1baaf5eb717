"""Tellescope MCP gateway CLI."""

import argparse
import json
import logging
import sys

import anyio
from dotenv import find_dotenv, load_dotenv

from ..logger import DEFAULT_LOG_DIR, LoggingConfig, configure_logging, get_logger
from .catalog import build_catalog
from .config import DEFAULT_LISTEN_HOST, GatewayConfig, load_config
from .dispatcher import CallFailure, Dispatcher
from .errors import ConfigError
from .rest import RestClient, build_capability_table
from .server import create_gateway


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tellescope-mcp", description="Tellescope MCP Gateway")
    parser.add_argument("--transport", default=None, choices=["stdio", "sse", "http"])
    parser.add_argument("--host", default=None, help=f"Listen address for sse (default: {DEFAULT_LISTEN_HOST})")
    parser.add_argument("--port", type=int, default=None, help="Listen port for sse (default: 3000)")
    parser.add_argument("--env-file", default=None, help="Path to a .env file (default: ./.env if present)")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-dir", default=DEFAULT_LOG_DIR)
    parser.add_argument("--no-file-log", action="store_true", help="Log to stderr only")
    parser.add_argument("--list-tools", action="store_true", help="Print the tool catalog as JSON and exit")
    parser.add_argument("--call", metavar="TOOL", default=None, help="Call one tool, print the response and exit")
    parser.add_argument("--args", dest="call_args", default="{}", help="JSON object of arguments for --call")
    return parser


async def _call_once(config: GatewayConfig, tool_name: str, raw_args: str) -> dict:
    catalog = build_catalog()
    client = RestClient(config.api_key, config.api_host, timeout=config.request_timeout)
    try:
        dispatcher = Dispatcher(
            catalog,
            build_capability_table(client, catalog.resource_types()),
            page_envelope=config.page_envelope,
        )
        try:
            arguments = json.loads(raw_args)
        except json.JSONDecodeError as exc:
            return CallFailure(f"--args is not valid JSON: {exc}").to_envelope()
        return await dispatcher.handle({"name": tool_name, "arguments": arguments})
    finally:
        client.close()


def main(argv: list[str] | None = None) -> None:
    args = build_arg_parser().parse_args(argv)

    configure_logging(
        LoggingConfig(
            level=getattr(logging, args.log_level),
            enable_file_logging=not args.no_file_log,
            log_dir=args.log_dir,
        )
    )
    log = get_logger("tellescope_mcp.gateway.cli")

    if args.list_tools:
        json.dump(build_catalog().to_list(), sys.stdout, indent=2)
        sys.stdout.write("\n")
        return

    load_dotenv(args.env_file or find_dotenv(usecwd=True))
    try:
        config = load_config(transport=args.transport, host=args.host, port=args.port)
    except ConfigError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        raise SystemExit(1) from exc

    if args.call:
        envelope = anyio.run(_call_once, config, args.call, args.call_args)
        json.dump(envelope, sys.stdout, indent=2)
        sys.stdout.write("\n")
        if envelope["isError"]:
            raise SystemExit(1)
        return

    mcp = create_gateway(config)

    if config.transport == "stdio":
        log.info("Tellescope MCP server running on stdio")
        mcp.run(transport="stdio")
    else:
        log.info(f"Tellescope MCP server running on http://{config.host}:{config.port}/sse")
        mcp.run(transport="sse", host=config.host, port=config.port)


if __name__ == "__main__":
    main()
