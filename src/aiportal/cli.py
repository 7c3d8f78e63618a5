"""CLI entry point for the aiportal agent core."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import uuid
from pathlib import Path
from typing import cast

from aiportal import __version__
from aiportal.agents.client import AgentClient, extract_content
from aiportal.agents.metadata import HealthMonitor, MetadataCache
from aiportal.agents.synthesizer import synthesize
from aiportal.config import PortalConfig, load_config
from aiportal.errors import RegistryUnavailable
from aiportal.registry.loader import AgentRegistry, normalize_alias


def _load(args: argparse.Namespace) -> PortalConfig:
    config_path = cast(Path | None, args.config)
    config = load_config(config_path)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return config


def _make_client(config: PortalConfig) -> AgentClient:
    return AgentClient(
        AgentRegistry.from_config(config),
        timeout=config.ask_timeout,
        retries=config.ask_retries,
        metadata_timeout=config.metadata_timeout,
    )


async def _list_agents(config: PortalConfig) -> int:
    async with _make_client(config) as client:
        try:
            descriptors = await client.registry.get_configs()
        except RegistryUnavailable as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        monitor = HealthMonitor(client, MetadataCache(ttl=config.metadata_cache_ttl))
        statuses = await monitor.describe_all(descriptors)

    if not statuses:
        print("No agents registered.")
        return 0
    print(f"Agents: {len(statuses)}")
    for status in statuses:
        target = status.domain_url or status.base_url or "-"
        print(f"  {status.alias:<16} {status.health.value:<10} {status.name}  ({target})")
    return 0


async def _ask(config: PortalConfig, args: argparse.Namespace) -> int:
    aliases = [normalize_alias(a) for a in cast(list[str], args.aliases)]
    payload = {
        "session_id": cast(str | None, args.session_id) or uuid.uuid4().hex,
        "model_id": cast(str, args.model_id),
        "user": cast(str, args.user),
        "prompt": cast(str, args.prompt),
    }
    retries = cast(int | None, args.retries)

    async with _make_client(config) as client:
        replies = await client.ask_many(aliases, payload, retries)

    if cast(bool, args.json):
        answer = synthesize(replies)
        print(json.dumps(answer.model_dump(mode="json", by_alias=True), ensure_ascii=False, indent=2))
        return 0 if answer.parts else 1

    if len(replies) == 1:
        reply = replies[0]
        if not reply.ok:
            print(f"Error: {reply.alias}: {reply.error}", file=sys.stderr)
            return 1
        print(extract_content(reply.data) or synthesize(replies).summary)
        print(f"\n[{reply.alias} {reply.time_ms} ms]", file=sys.stderr)
        return 0

    answer = synthesize(replies)
    print(answer.summary)
    for reply in replies:
        state = "ok" if reply.ok else f"failed: {reply.error}"
        print(f"[{reply.alias} {reply.time_ms} ms {state}]", file=sys.stderr)
    return 0 if answer.parts else 1


def _cmd_serve(args: argparse.Namespace) -> None:
    from aiportal.server.runner import run_server

    config = _load(args)
    port = cast(int | None, args.port)
    if port is not None:
        config.port = port
    run_server(config)


def _cmd_demo_agent(args: argparse.Namespace) -> None:
    from aiportal.demo_agent import run_demo_agent

    run_demo_agent(host=cast(str, args.host), port=cast(int, args.port))


def _cmd_agents(args: argparse.Namespace) -> None:
    config = _load(args)
    sys.exit(asyncio.run(_list_agents(config)))


def _cmd_ask(args: argparse.Namespace) -> None:
    config = _load(args)
    sys.exit(asyncio.run(_ask(config, args)))


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="aiportal",
        description="AI Portal agent registry, ask client and synthesizer",
    )
    _ = parser.add_argument(
        "-V", "--version", action="version", version=f"aiportal {__version__}"
    )
    _ = parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to portal config JSON (default: ./.aiportal.json)",
    )
    subparsers = parser.add_subparsers(dest="command")

    # serve subcommand
    serve_p = subparsers.add_parser("serve", help="Start the portal HTTP API server")
    _ = serve_p.add_argument("--port", type=int, default=None, help="Override listen port")

    # demo-agent subcommand
    demo_p = subparsers.add_parser("demo-agent", help="Run the reference agent")
    _ = demo_p.add_argument("--host", default="127.0.0.1")
    _ = demo_p.add_argument("--port", type=int, default=41781)

    # agents subcommand
    _ = subparsers.add_parser("agents", help="List registered agents with health")

    # ask subcommand
    ask_p = subparsers.add_parser("ask", help="Ask one or more agents a prompt")
    _ = ask_p.add_argument("prompt", help="Prompt text")
    _ = ask_p.add_argument(
        "-a",
        "--agent",
        action="append",
        required=True,
        dest="aliases",
        help="Agent alias (repeat for a multi-agent turn)",
    )
    _ = ask_p.add_argument("--model", default="default", dest="model_id", help="Model id")
    _ = ask_p.add_argument("--user", default="cli", help="User identifier")
    _ = ask_p.add_argument("--session", default=None, dest="session_id", help="Session id")
    _ = ask_p.add_argument(
        "--retries", type=int, default=None, help="Retry budget (default: from config)"
    )
    _ = ask_p.add_argument(
        "--json", action="store_true", help="Print the synthesized answer as JSON"
    )

    args = parser.parse_args()

    dispatch = {
        "serve": _cmd_serve,
        "demo-agent": _cmd_demo_agent,
        "agents": _cmd_agents,
        "ask": _cmd_ask,
    }
    command = cast(str | None, args.command)
    handler = dispatch.get(command) if command is not None else None
    if handler:
        handler(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
