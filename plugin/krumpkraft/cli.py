"""
Command-line tools: query the agent service the way the plugin does, or run the dev service.

  krumpkraft agents
  krumpkraft chat --player Alice !status
  krumpkraft serve-dev --port 8081
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from krumpkraft.api_client import ApiClient
from krumpkraft.config import ConfigHolder, env_source

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def _holder(api_url: str) -> ConfigHolder:
    def source():
        values = env_source()
        if api_url:
            values["api.url"] = api_url
        return values
    holder = ConfigHolder(source)
    holder.reload()
    return holder


def cmd_agents(args: argparse.Namespace) -> int:
    holder = _holder(args.api_url)
    result = ApiClient(holder).fetch_agents()
    if not result.ok:
        print(f"fetch failed: {result.error}", file=sys.stderr)
        return 1
    if not result.agents:
        print("(no agents)")
    for a in result.agents:
        print(f"{a.agent_id}\t{a.label(holder.config.show_role)}\t{a.status or '-'}\t{a.x},{a.y},{a.z}")
    return 0


def cmd_chat(args: argparse.Namespace) -> int:
    holder = _holder(args.api_url)
    reply = ApiClient(holder).send_chat(args.player, " ".join(args.message))
    for line in reply.lines():
        print(line)
    return 0 if reply.ok else 1


def cmd_serve_dev(args: argparse.Namespace) -> int:
    import uvicorn

    from krumpkraft.devserver import create_app

    uvicorn.run(create_app(), host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="krumpkraft", description="KrumpKraft agent service tools.")
    ap.add_argument("--api-url", type=str, default="", help="Agent service base URL (default: KRUMPKRAFT_API_URL or http://localhost:8081)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = ap.add_subparsers(dest="command", required=True)

    p_agents = sub.add_parser("agents", help="List agents as the marker sync sees them")
    p_agents.set_defaults(func=cmd_agents)

    p_chat = sub.add_parser("chat", help="Send a chat message and print the reply")
    p_chat.add_argument("--player", type=str, default="Console", help="Player name to send as")
    p_chat.add_argument("message", nargs="+", help="Message text, e.g. !status")
    p_chat.set_defaults(func=cmd_chat)

    p_serve = sub.add_parser("serve-dev", help="Run the local agent-service stand-in")
    p_serve.add_argument("--host", type=str, default="127.0.0.1")
    p_serve.add_argument("--port", type=int, default=8081)
    p_serve.set_defaults(func=cmd_serve_dev)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format=LOG_FORMAT)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
