"""
Data models: dataclasses for internal state and results, Pydantic models for the wire.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

NO_REPLY = "No reply."


# --- Internal dataclasses ---

@dataclass(frozen=True)
class Location:
    world: str
    x: float
    y: float
    z: float


@dataclass(frozen=True)
class MarkerStyle:
    """Spawn properties of an agent marker: a small floating name tag."""
    small: bool = True
    gravity: bool = False
    invulnerable: bool = True
    marker: bool = True
    name_visible: bool = True


@dataclass(frozen=True)
class AgentRecord:
    agent_id: str
    name: str
    role: str = ""
    status: str = ""
    x: int = 0
    y: int = 64
    z: int = 0

    def label(self, show_role: bool) -> str:
        if show_role and self.role:
            return f"{self.name} ({self.role})"
        return self.name

    def marker_location(self, world: str) -> Location:
        # centre of the block on x/z
        return Location(world=world, x=self.x + 0.5, y=float(self.y), z=self.z + 0.5)


@dataclass
class AgentFetch:
    """Result of listing agents: agents on success, an empty list and an error otherwise."""
    agents: List[AgentRecord] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ChatReply:
    reply: Optional[str] = None
    replies: Optional[List[str]] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def lines(self) -> List[str]:
        if self.replies:
            return list(self.replies)
        if self.reply is not None:
            return [self.reply]
        return []


# --- Wire models ---

class AgentPayload(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str = ""
    name: Optional[str] = None
    role: str = ""
    state: str = ""
    x: int = 0
    y: Optional[int] = None
    z: int = 0

    def to_record(self, default_y: int) -> AgentRecord:
        return AgentRecord(
            agent_id=self.id,
            name=self.name if self.name is not None else self.id,
            role=self.role,
            status=self.state,
            x=self.x,
            y=self.y if self.y is not None else default_y,
            z=self.z,
        )


class AgentsResponse(BaseModel):
    agents: List[AgentPayload] = []


class ChatRequest(BaseModel):
    player: str
    message: str


class ChatResponse(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    reply: Optional[str] = None
    replies: Optional[List[str]] = None

    def to_reply(self) -> ChatReply:
        if self.replies:
            return ChatReply(reply=self.replies[0], replies=list(self.replies))
        if self.reply is not None:
            return ChatReply(reply=self.reply)
        return ChatReply(reply=NO_REPLY)
