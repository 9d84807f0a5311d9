"""
HTTP client for the KrumpKraft agent service.

Both calls are fail-soft: any transport, status or parse failure comes back as
a result value (AgentFetch / ChatReply) instead of an exception.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from krumpkraft.config import Config, ConfigHolder
from krumpkraft.models import (
    AgentFetch, AgentsResponse, ChatReply, ChatRequest, ChatResponse,
)

_log = logging.getLogger(__name__)

AGENTS_NAMESPACE = "bluemap"
AGENTS_PATH = f"/api/v1/{AGENTS_NAMESPACE}/agents"
CHAT_PATH = "/minecraft/chat"


class ApiClient:
    def __init__(self, config_holder: ConfigHolder, session: Optional[Any] = None):
        self._holder = config_holder
        if session is None:
            session = requests.Session()
            session.headers["Content-Type"] = "application/json"
        self._session = session

    @property
    def config(self) -> Config:
        return self._holder.config

    def fetch_agents(self) -> AgentFetch:
        """GET /api/v1/bluemap/agents. Empty agents plus an error on any failure."""
        cfg = self.config
        url = f"{cfg.api_url}{AGENTS_PATH}"
        try:
            r = self._session.get(url, timeout=cfg.timeout_seconds)
            if r.status_code != 200:
                _log.warning("fetch_agents: %s returned %s", url, r.status_code)
                return AgentFetch(error=f"status {r.status_code}")
            body = AgentsResponse.model_validate(r.json())
            return AgentFetch(agents=[a.to_record(cfg.default_y) for a in body.agents])
        except Exception as e:
            _log.warning("fetch_agents: request to %s failed", url, exc_info=True)
            return AgentFetch(error=str(e) or type(e).__name__)

    def send_chat(self, player: str, message: str) -> ChatReply:
        """POST /minecraft/chat with {player, message}; always returns a displayable reply."""
        cfg = self.config
        url = f"{cfg.api_url}{CHAT_PATH}"
        payload = ChatRequest(player=player, message=message).model_dump()
        try:
            r = self._session.post(url, json=payload, timeout=cfg.timeout_seconds)
            if r.status_code != 200:
                _log.warning("send_chat: %s returned %s", url, r.status_code)
                return ChatReply(
                    reply=f"API error: {r.status_code}", error=f"status {r.status_code}",
                )
            return ChatResponse.model_validate(r.json()).to_reply()
        except Exception as e:
            _log.warning("send_chat: request to %s failed", url, exc_info=True)
            return ChatReply(reply=f"Error: {e}", error=str(e) or type(e).__name__)
