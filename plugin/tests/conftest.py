"""
Shared fixtures: an in-memory host (server, world, markers, players), a manual
scheduler that runs queued work on demand, and a fake agent service served
through FastAPI's TestClient.
"""
from __future__ import annotations

import uuid
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.testclient import TestClient

from krumpkraft.api_client import AGENTS_PATH, CHAT_PATH, ApiClient
from krumpkraft.config import ConfigHolder
from krumpkraft.markers import MarkerSynchronizer


# --- Host fakes ---

class FakeMarker:
    def __init__(self, world: "FakeWorld", location, label: str, style):
        self._handle = str(uuid.uuid4())
        self.world = world
        self.location = location
        self.label = label
        self.style = style
        self.valid = True
        self.teleports = 0

    @property
    def handle(self) -> str:
        return self._handle

    @property
    def is_valid(self) -> bool:
        return self.valid

    def teleport(self, location) -> None:
        self.location = location
        self.teleports += 1

    def set_label(self, label: str) -> None:
        self.label = label

    def remove(self) -> None:
        self.valid = False
        self.world.entities.pop(self._handle, None)


class FakeWorld:
    def __init__(self, name: str):
        self._name = name
        self.entities: Dict[str, FakeMarker] = {}
        self.spawned = 0

    @property
    def name(self) -> str:
        return self._name

    def spawn_marker(self, location, label, style) -> FakeMarker:
        m = FakeMarker(self, location, label, style)
        self.entities[m.handle] = m
        self.spawned += 1
        return m

    def markers(self) -> List[FakeMarker]:
        return list(self.entities.values())


class FakePlayer:
    def __init__(self, name: str):
        self._name = name
        self.messages: List[str] = []

    @property
    def name(self) -> str:
        return self._name

    def send_message(self, text: str) -> None:
        self.messages.append(text)


class FakeChatEvent:
    def __init__(self, player: FakePlayer, message: str):
        self._player = player
        self._message = message
        self.cancelled = False

    @property
    def player(self) -> FakePlayer:
        return self._player

    @property
    def message(self) -> str:
        return self._message

    def cancel(self) -> None:
        self.cancelled = True


class ManualTimer:
    def __init__(self, fn: Callable[[], None], initial_delay_ms: int, interval_ms: int):
        self.fn = fn
        self.initial_delay_ms = initial_delay_ms
        self.interval_ms = interval_ms
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self.fn()


class ManualScheduler:
    """Queues work per context; run_pending() drains worker then region queues."""

    def __init__(self):
        self.async_queue: List[Callable[[], None]] = []
        self.region_queue: List[Callable[[], None]] = []
        self.timers: List[ManualTimer] = []

    def run_async(self, fn: Callable[[], None]) -> None:
        self.async_queue.append(fn)

    def run_on_region(self, fn: Callable[[], None]) -> None:
        self.region_queue.append(fn)

    def run_at_fixed_rate(self, fn, initial_delay_ms, interval_ms) -> ManualTimer:
        t = ManualTimer(fn, initial_delay_ms, interval_ms)
        self.timers.append(t)
        return t

    def active_timers(self) -> List[ManualTimer]:
        return [t for t in self.timers if not t.cancelled]

    def tick(self) -> None:
        for t in self.active_timers():
            t.fire()

    def run_async_tasks(self) -> None:
        while self.async_queue:
            self.async_queue.pop(0)()

    def run_region_tasks(self) -> None:
        while self.region_queue:
            self.region_queue.pop(0)()

    def run_pending(self) -> None:
        while self.async_queue or self.region_queue:
            self.run_async_tasks()
            self.run_region_tasks()


class FakeServer:
    def __init__(self, worlds: Tuple[str, ...] = ("world",), with_scheduler: bool = True):
        self._scheduler = ManualScheduler() if with_scheduler else None
        self.worlds: Dict[str, FakeWorld] = {n: FakeWorld(n) for n in worlds}
        self.chat_listeners: List[Callable[[Any], None]] = []
        self.lookup_error: Optional[Exception] = None

    @property
    def scheduler(self) -> Optional[ManualScheduler]:
        return self._scheduler

    def get_world(self, name: str) -> Optional[FakeWorld]:
        return self.worlds.get(name)

    def get_entity(self, handle: str) -> Optional[FakeMarker]:
        if self.lookup_error is not None:
            raise self.lookup_error
        for w in self.worlds.values():
            if handle in w.entities:
                return w.entities[handle]
        return None

    def register_chat_listener(self, callback) -> None:
        self.chat_listeners.append(callback)

    def chat(self, player: FakePlayer, message: str) -> FakeChatEvent:
        ev = FakeChatEvent(player, message)
        for cb in self.chat_listeners:
            cb(ev)
        return ev


# --- Fake agent service ---

class FakeAgentService:
    """Agent service whose responses are set per test: (status, body); str bodies are sent as text."""

    def __init__(self):
        self.agents_response: Tuple[int, Any] = (200, {"agents": []})
        self.chat_response: Tuple[int, Any] = (200, {"reply": "ok"})
        self.chat_requests: List[dict] = []
        self.agent_requests = 0
        self.app = FastAPI()

        @self.app.get(AGENTS_PATH)
        def agents():
            self.agent_requests += 1
            return _respond(*self.agents_response)

        @self.app.post(CHAT_PATH)
        async def chat(request: Request):
            self.chat_requests.append(await request.json())
            return _respond(*self.chat_response)

    def set_agents(self, agents: List[dict]) -> None:
        self.agents_response = (200, {"agents": agents})


def _respond(status: int, body: Any):
    if isinstance(body, str):
        return PlainTextResponse(body, status_code=status)
    return JSONResponse(body, status_code=status)


# --- Fixtures ---

@pytest.fixture
def service() -> FakeAgentService:
    return FakeAgentService()


@pytest.fixture
def http(service) -> TestClient:
    return TestClient(service.app)


@pytest.fixture
def settings() -> dict:
    """Mutable host config store; call holder.reload() after changing it."""
    return {"api": {"url": "http://testserver/", "timeout-ms": 5000}}


@pytest.fixture
def holder(settings) -> ConfigHolder:
    h = ConfigHolder(lambda: settings)
    h.reload()
    return h


@pytest.fixture
def api(holder, http) -> ApiClient:
    return ApiClient(holder, session=http)


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def bare_server() -> FakeServer:
    """A host that brings no scheduling contexts."""
    return FakeServer(with_scheduler=False)


@pytest.fixture
def world(server) -> FakeWorld:
    return server.worlds["world"]


@pytest.fixture
def sync(server, api, holder) -> MarkerSynchronizer:
    s = MarkerSynchronizer(server, api, holder)
    s.start()
    return s


@pytest.fixture
def make_player() -> Callable[[str], FakePlayer]:
    return FakePlayer
