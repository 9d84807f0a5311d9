"""
Plugin lifecycle: wires config, HTTP client, chat relay and marker synchronizer to the host.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from krumpkraft.api_client import ApiClient
from krumpkraft.chat import ChatRelay
from krumpkraft.config import Config, ConfigHolder, ConfigSource, env_source, validate_config
from krumpkraft.host import ChatEvent, Scheduler, Server
from krumpkraft.markers import MarkerSynchronizer
from krumpkraft.scheduling import ThreadedScheduler

_log = logging.getLogger(__name__)


class KrumpKraftPlugin:
    def __init__(self, server: Server, config_source: Optional[ConfigSource] = None, session: Optional[Any] = None):
        self._server = server
        self._holder = ConfigHolder(config_source or env_source)
        self._session = session
        self._enabled = False
        self._listening = False
        self._scheduler: Optional[Scheduler] = None
        self._own_scheduler: Optional[ThreadedScheduler] = None
        self._api: Optional[ApiClient] = None
        self._chat: Optional[ChatRelay] = None
        self._markers: Optional[MarkerSynchronizer] = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def config(self) -> Config:
        return self._holder.config

    @property
    def scheduler(self) -> Optional[Scheduler]:
        return self._scheduler

    @property
    def api_client(self) -> Optional[ApiClient]:
        return self._api

    @property
    def chat_relay(self) -> Optional[ChatRelay]:
        return self._chat

    @property
    def markers(self) -> Optional[MarkerSynchronizer]:
        return self._markers

    def on_enable(self) -> None:
        if self._enabled:
            return
        cfg = self._holder.reload()
        validate_config(cfg)
        self._scheduler = self._server.scheduler
        if self._scheduler is None:
            # host brings no scheduling contexts; run our own threads
            self._own_scheduler = ThreadedScheduler()
            self._scheduler = self._own_scheduler
        self._api = ApiClient(self._holder, session=self._session)
        self._chat = ChatRelay(self._scheduler, self._api)
        if not self._listening:
            # the host has no unregister; on_chat drops events while disabled
            self._server.register_chat_listener(self.on_chat)
            self._listening = True
        self._enabled = True
        if cfg.markers_enabled:
            self._start_markers()
        _log.info("KrumpKraft enabled. API: %s", cfg.api_url)

    def on_disable(self) -> None:
        if not self._enabled:
            return
        self._enabled = False
        if self._markers is not None:
            self._markers.cancel()
            self._markers = None
        self._chat = None
        self._api = None
        if self._own_scheduler is not None:
            self._own_scheduler.shutdown(wait=True)
            self._own_scheduler = None
        self._scheduler = None
        _log.info("KrumpKraft disabled")

    def on_chat(self, event: ChatEvent) -> None:
        chat = self._chat
        if not self._enabled or chat is None:
            return
        chat.on_chat(event)

    def reload(self) -> Config:
        """Reload the whole config snapshot and re-arm the marker timer if needed."""
        before = self._holder.config
        cfg = self._holder.reload()
        validate_config(cfg)
        if not self._enabled:
            return cfg
        if self._markers is None:
            if cfg.markers_enabled:
                self._start_markers()
        elif cfg.sync_interval_ms != before.sync_interval_ms:
            self._markers.restart()
        _log.info("KrumpKraft config reloaded. API: %s", cfg.api_url)
        return cfg

    def _start_markers(self) -> None:
        self._markers = MarkerSynchronizer(self._server, self._api, self._holder, scheduler=self._scheduler)
        self._markers.start()
