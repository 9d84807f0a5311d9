"""
Agent marker synchronizer: mirrors the agent service's agent list as in-world markers.

Threading contract: poll_and_sync() runs on a worker (timer) thread and only
touches the network and the pending flag. Everything that reads or writes the
binding map, and every entity mutation, runs on the host's single
world-mutating (region) context. That confinement is the map's only guard.
"""
from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional

from krumpkraft.api_client import ApiClient
from krumpkraft.config import MIN_SYNC_INTERVAL_MS, ConfigHolder
from krumpkraft.host import MarkerEntity, Scheduler, Server, TaskHandle
from krumpkraft.models import AgentRecord, MarkerStyle

_log = logging.getLogger(__name__)

INITIAL_DELAY_MS = 3000
MARKER_STYLE = MarkerStyle()


class MarkerSynchronizer:
    def __init__(self, server: Server, api_client: ApiClient, config_holder: ConfigHolder, scheduler: Optional[Scheduler] = None):
        self._server = server
        self._scheduler = scheduler or server.scheduler
        self._api = api_client
        self._holder = config_holder
        # agent id -> marker handle; region context only
        self._bindings: Dict[str, str] = {}
        self._task: Optional[TaskHandle] = None
        self._interval_ms = 0
        self._active = False
        self._reconcile_pending = threading.Event()

    @property
    def running(self) -> bool:
        return self._task is not None

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    @property
    def bindings(self) -> Dict[str, str]:
        return dict(self._bindings)

    def start(self) -> None:
        if self._task is not None:
            return
        self._interval_ms = max(MIN_SYNC_INTERVAL_MS, self._holder.config.sync_interval_ms)
        self._active = True
        self._task = self._scheduler.run_at_fixed_rate(
            self.poll_and_sync, INITIAL_DELAY_MS, self._interval_ms
        )
        _log.info("Agent markers started (every %d ms)", self._interval_ms)

    def restart(self) -> None:
        """Re-arm the timer with the current interval; bindings are kept."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self.start()

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._active = False
        self._scheduler.run_on_region(self.remove_all)
        _log.info("Agent markers stopped")

    def poll_and_sync(self) -> None:
        if not self._active:
            return
        if self._reconcile_pending.is_set():
            _log.debug("Previous marker sync still pending; skipping this tick")
            return
        result = self._api.fetch_agents()
        if not result.ok:
            _log.debug("Agent fetch failed (%s); syncing an empty agent list", result.error)
        agents = result.agents
        self._reconcile_pending.set()

        def reconcile() -> None:
            try:
                self.sync_markers(agents)
            finally:
                self._reconcile_pending.clear()

        self._scheduler.run_on_region(reconcile)

    def sync_markers(self, agents: List[AgentRecord]) -> None:
        """Bring markers in line with agents. Region context only."""
        if not self._active:
            return
        cfg = self._holder.config
        if not cfg.markers_enabled:
            self.remove_all()
            return
        world = self._server.get_world(cfg.spawn_world)
        if world is None:
            _log.debug("World '%s' not loaded; skipping marker sync", cfg.spawn_world)
            return

        by_id: Dict[str, AgentRecord] = {}
        for a in agents:
            by_id[a.agent_id] = a

        for agent_id, handle in list(self._bindings.items()):
            if agent_id in by_id:
                continue
            marker = self._find_marker(handle)
            if marker is not None:
                marker.remove()
            del self._bindings[agent_id]

        for a in by_id.values():
            loc = a.marker_location(world.name)
            label = a.label(cfg.show_role)
            marker = self._find_marker(self._bindings.get(a.agent_id))
            if marker is None:
                marker = world.spawn_marker(loc, label, MARKER_STYLE)
                self._bindings[a.agent_id] = marker.handle
            else:
                marker.teleport(loc)
                marker.set_label(label)

    def remove_all(self) -> None:
        """Remove every bound marker and clear the map. Region context only."""
        for handle in self._bindings.values():
            marker = self._find_marker(handle)
            if marker is not None:
                marker.remove()
        self._bindings.clear()

    def _find_marker(self, handle: Optional[str]) -> Optional[MarkerEntity]:
        if handle is None:
            return None
        try:
            marker = self._server.get_entity(handle)
        except Exception:
            _log.debug("Entity lookup failed for %s", handle, exc_info=True)
            return None
        if marker is None or not marker.is_valid:
            return None
        return marker
