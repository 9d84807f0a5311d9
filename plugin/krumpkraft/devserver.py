"""
Local stand-in for the KrumpKraft agent service.

Serves the two endpoints the plugin consumes (agent list, chat commands) from
an in-memory registry, with the same response shapes as the real service.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, FastAPI
from pydantic import BaseModel

from krumpkraft.api_client import AGENTS_PATH, CHAT_PATH
from krumpkraft.chat import COMMAND_PREFIX
from krumpkraft.models import AgentPayload, AgentsResponse, ChatRequest

_log = logging.getLogger(__name__)

HELP_TEXT = "KrumpKraft: !arena | !help | !status | !agents"


class UpsertAgentRequest(BaseModel):
    id: str
    name: Optional[str] = None
    role: Optional[str] = None
    state: Optional[str] = None
    x: Optional[int] = None
    y: Optional[int] = None
    z: Optional[int] = None


class AgentRegistry:
    def __init__(self):
        self.agents: Dict[str, AgentPayload] = {}

    def upsert(self, req: UpsertAgentRequest) -> AgentPayload:
        current = self.agents.get(req.id) or AgentPayload(id=req.id, name=req.id)
        updates = {k: v for k, v in req.model_dump(exclude={"id"}).items() if v is not None}
        agent = current.model_copy(update=updates)
        self.agents[req.id] = agent
        return agent

    def remove(self, agent_id: str) -> bool:
        return self.agents.pop(agent_id, None) is not None

    def list(self) -> List[AgentPayload]:
        return list(self.agents.values())


def _describe(a: AgentPayload) -> str:
    y = a.y if a.y is not None else "~"
    return f"{a.name or a.id} [{a.role or '-'}] {a.state or 'idle'} at {a.x},{y},{a.z}"


def chat_replies(registry: AgentRegistry, player: str, message: str) -> List[str]:
    trimmed = (message or "").strip()
    if not trimmed.startswith(COMMAND_PREFIX):
        return [f"Hi {player}! Say !arena for KrumpKraft commands."]
    parts = trimmed[len(COMMAND_PREFIX):].split()
    cmd = parts[0].lower() if parts else ""
    if cmd in ("arena", "help"):
        return [HELP_TEXT]
    if cmd == "status":
        return [f"Agents: {len(registry.agents)}"]
    if cmd == "agents":
        agents = registry.list()
        if not agents:
            return ["No agents online."]
        return [_describe(a) for a in agents]
    return ["Unknown command. Use !arena for help."]


def create_router(registry: AgentRegistry) -> APIRouter:
    router = APIRouter()

    @router.get("/health")
    def health():
        return {"ok": True, "agents": len(registry.agents)}

    @router.get(AGENTS_PATH, response_model=AgentsResponse)
    def list_agents():
        return AgentsResponse(agents=registry.list())

    @router.post(f"{AGENTS_PATH}/upsert")
    def upsert_agent(req: UpsertAgentRequest):
        agent = registry.upsert(req)
        return {"ok": True, "agent": agent.model_dump()}

    @router.delete(AGENTS_PATH + "/{agent_id}")
    def delete_agent(agent_id: str):
        if not registry.remove(agent_id):
            return {"error": "not_found", "agent_id": agent_id}
        return {"ok": True}

    @router.post(CHAT_PATH)
    def chat(req: ChatRequest):
        replies = chat_replies(registry, req.player or "Player", req.message)
        _log.info("chat from %s: %s -> %d line(s)", req.player, req.message[:120], len(replies))
        if len(replies) == 1:
            return {"reply": replies[0]}
        return {"replies": replies}

    return router


def create_app(registry: Optional[AgentRegistry] = None) -> FastAPI:
    app = FastAPI(title="KrumpKraft agent service (dev)")
    app.state.registry = registry or AgentRegistry()
    app.include_router(create_router(app.state.registry))
    return app
