"""
KrumpKraft game-server bridge: agent markers and `!` chat commands backed by the agent service.
"""
from __future__ import annotations

from krumpkraft.plugin import KrumpKraftPlugin
from krumpkraft.scheduling import ThreadedScheduler

__all__ = ["KrumpKraftPlugin", "ThreadedScheduler"]
__version__ = "0.1.0"
