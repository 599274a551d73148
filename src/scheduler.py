# scheduler.py
import logging
import random
from typing import Optional

from clock import LamportClock
from config import EVENT_LIMIT, TICK_INTERVAL
from directory import NodeDirectory
from messenger import format_frame


class EventScheduler:
    """
    Drives the local/send event rounds of one node.

    `events` counts both the rounds this node executed and the clock messages
    it received, and never goes past `limit`. The node is finished once the
    budget is used up.
    """

    def __init__(
        self,
        clock: LamportClock,
        directory: NodeDirectory,
        messenger,
        limit: int = EVENT_LIMIT,
        interval: float = TICK_INTERVAL,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.clock = clock
        self.directory = directory
        self.messenger = messenger
        self.limit = limit
        self.interval = interval
        self.rng = rng if rng is not None else clock.rng
        self.logger = logger or logging.getLogger(__name__)
        self.events = 0

    @property
    def finished(self) -> bool:
        return self.events >= self.limit

    def run_round(self) -> str:
        """Run one event and return its kind, "local" or "send"."""
        active = self.directory.eligible()
        if not active or self.rng.random() < 0.5:
            kind = self.local_event()
        else:
            kind = self.send_event(active)
        self.clock.count_event()
        self._count()
        return kind

    def local_event(self) -> str:
        self.clock.local_tick()
        self.log_event(f"l {self.clock.value}")
        return "local"

    def send_event(self, active) -> str:
        peer = self.directory.random_peer(active, self.rng)
        value = self.clock.send_tick()
        self.log_event(f"s {peer.id} {value}")
        self.messenger.send(
            format_frame(self.directory.self_id, value), peer.host, peer.port
        )
        return "send"

    def message_received(self, remote, sender_id) -> int:
        """Merge a received clock value; raises ProtocolError if it is malformed."""
        value = self.clock.observe(remote)
        self.log_event(f"r {sender_id} {remote} {value}")
        self._count()
        return value

    def _count(self):
        if self.events < self.limit:
            self.events += 1

    def log_event(self, event: str):
        self.logger.info(event)
