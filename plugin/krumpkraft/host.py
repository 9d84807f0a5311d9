"""Boundary for the game-server host: the narrow surface this plugin consumes.

The host owns worlds, entities, chat delivery and scheduling. Everything here
is an interface; concrete implementations come from the host integration (or,
for scheduling, from krumpkraft.scheduling).
"""
from __future__ import annotations

from typing import Callable, Optional, Protocol

from krumpkraft.models import Location, MarkerStyle


class TaskHandle(Protocol):
    def cancel(self) -> None:
        """Stop future runs; a run already in progress is allowed to finish."""


class Scheduler(Protocol):
    def run_async(self, fn: Callable[[], None]) -> None:
        """Run fn on a worker context where blocking I/O is acceptable."""

    def run_on_region(self, fn: Callable[[], None]) -> None:
        """Run fn on the single world-mutating context."""

    def run_at_fixed_rate(
        self, fn: Callable[[], None], initial_delay_ms: int, interval_ms: int
    ) -> TaskHandle:
        """Run fn repeatedly on a worker; a tick never starts before the previous one returned.

        Hosts may measure interval_ms start-to-start (the host-provided timer does) or,
        like ThreadedScheduler, from the end of one tick to the start of the next.
        Callers must only rely on ticks not overlapping.
        """


class MarkerEntity(Protocol):
    @property
    def handle(self) -> str: ...

    @property
    def is_valid(self) -> bool: ...

    def teleport(self, location: Location) -> None: ...

    def set_label(self, label: str) -> None: ...

    def remove(self) -> None: ...


class World(Protocol):
    @property
    def name(self) -> str: ...

    def spawn_marker(self, location: Location, label: str, style: MarkerStyle) -> MarkerEntity:
        """Spawn a labelled marker entity; must be called on the world-mutating context."""


class Player(Protocol):
    @property
    def name(self) -> str: ...

    def send_message(self, text: str) -> None: ...


class ChatEvent(Protocol):
    @property
    def player(self) -> Player: ...

    @property
    def message(self) -> str:
        """Plain-text rendering of the chat message."""

    def cancel(self) -> None:
        """Suppress the broadcast of this message."""


class Server(Protocol):
    @property
    def scheduler(self) -> Optional[Scheduler]:
        """The host's scheduling contexts, or None to have the plugin run its own threads."""

    def get_world(self, name: str) -> Optional[World]: ...

    def get_entity(self, handle: str) -> Optional[MarkerEntity]: ...

    def register_chat_listener(self, callback: Callable[[ChatEvent], None]) -> None: ...
