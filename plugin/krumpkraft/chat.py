"""In-game chat relay: `!` commands go to the agent service, replies go back to the sender."""
from __future__ import annotations

import logging

from krumpkraft.api_client import ApiClient
from krumpkraft.host import ChatEvent, Player, Scheduler
from krumpkraft.models import ChatReply

_log = logging.getLogger(__name__)

COMMAND_PREFIX = "!"
REPLY_PREFIX = "[KrumpKraft] "


class ChatRelay:
    def __init__(self, scheduler: Scheduler, api_client: ApiClient):
        self._scheduler = scheduler
        self._api = api_client

    def on_chat(self, event: ChatEvent) -> None:
        message = (event.message or "").strip()
        if not message.startswith(COMMAND_PREFIX):
            return

        event.cancel()
        player = event.player
        player_name = player.name
        _log.debug("Relaying command from %s: %s", player_name, message[:120])

        def relay() -> None:
            reply = self._api.send_chat(player_name, message)
            self._scheduler.run_on_region(lambda: self.deliver(player, reply))

        self._scheduler.run_async(relay)

    def deliver(self, player: Player, reply: ChatReply) -> None:
        """Send each reply line to the player. Region context only."""
        for line in reply.lines():
            player.send_message(f"{REPLY_PREFIX}{line}")
