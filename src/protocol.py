# protocol.py
import logging
import time
from enum import Enum
from queue import Empty
from typing import Optional

from directory import NodeDirectory, Peer
from errors import NotFoundError, ProtocolError
from messenger import DONE, START, format_frame, parse_frame
from scheduler import EventScheduler


class NodeState(Enum):
    INIT = "init"
    BARRIER_WAIT = "barrier_wait"
    RUNNING = "running"
    DRAINING = "draining"
    TERMINATED = "terminated"


class CoordinationProtocol:
    """
    Readiness barrier and completion signalling for one node.

    Every frame from the messenger's inbox and every scheduler round is
    processed by `run()` on a single thread, one at a time, so the directory
    statuses and the clock are never touched concurrently.

    Frames are "<sender> <payload>" where payload is "start", "done" or a
    clock value:

    - "start": first one from a sender marks it received and is answered
      with our own "start" (to that sender only). When every peer has been
      received the node starts running.
    - "done": the sender is marked stopped and no longer picked for sends.
    - clock value: merged into the local clock, counts as one event.

    When the event budget is used up, "done" is sent to the peer whose
    "start" completed the barrier and the listener is closed.
    """

    def __init__(
        self,
        directory: NodeDirectory,
        scheduler: EventScheduler,
        messenger,
        logger: Optional[logging.Logger] = None,
    ):
        self.directory = directory
        self.scheduler = scheduler
        self.messenger = messenger
        self.logger = logger or logging.getLogger(__name__)
        self.state = NodeState.INIT
        self.last_acknowledged: Optional[Peer] = None
        self._next_round = None

    @property
    def self_id(self):
        return self.directory.self_id

    def start(self):
        """Bind the listener and announce readiness to every peer."""
        self.bind()
        self.announce()

    def bind(self):
        self.messenger.listen(self.directory.self_peer.port)

    def announce(self):
        self._set_state(NodeState.BARRIER_WAIT)
        message = format_frame(self.self_id, START)
        for peer in self.directory.peers():
            self.messenger.send(message, peer.host, peer.port)
        if self.directory.all_received():
            self._begin_running()

    def run(self) -> int:
        """Process frames and rounds until terminated; returns the final clock."""
        if self.state is NodeState.INIT:
            self.start()
        while self.state is not NodeState.TERMINATED:
            self.step()
        return self.scheduler.clock.value

    def step(self):
        """Handle at most one inbound frame, then run a round if one is due."""
        timeout = None
        if self.state is NodeState.RUNNING:
            timeout = max(0.0, self._next_round - time.monotonic())
        try:
            frame = self.messenger.inbox.get(timeout=timeout)
        except Empty:
            frame = None
        if frame is not None:
            self.handle_frame(frame)
        if self.state is NodeState.RUNNING and time.monotonic() >= self._next_round:
            self.scheduler.run_round()
            self._next_round = time.monotonic() + self.scheduler.interval
            self._check_finished()

    def handle_frame(self, frame):
        if self.state not in (NodeState.BARRIER_WAIT, NodeState.RUNNING):
            self.logger.debug(f"Ignoring {frame!r} in state {self.state.value}")
            return
        try:
            sender_id, payload = parse_frame(frame)
            if payload == START:
                self.on_start(sender_id)
            elif payload == DONE:
                self.on_done(sender_id)
            else:
                self.on_clock(sender_id, payload)
        except ProtocolError as e:
            self.logger.warning(f"Dropping frame {frame!r}: {e}")

    def on_start(self, sender_id):
        peer = self._sender(sender_id)
        if self.directory.status(sender_id).received:
            self.logger.debug(f"Duplicate start from {sender_id}")
            return
        self.directory.mark_received(sender_id)
        self.last_acknowledged = peer
        self.messenger.send(format_frame(self.self_id, START), peer.host, peer.port)
        if self.state is NodeState.BARRIER_WAIT and self.directory.all_received():
            self._begin_running()

    def on_done(self, sender_id):
        self._sender(sender_id)
        self.directory.mark_stopped(sender_id)
        self.logger.debug(f"Node {sender_id} is done")

    def on_clock(self, sender_id, payload):
        self._sender(sender_id)
        self.scheduler.message_received(payload, sender_id)
        if self.state is NodeState.RUNNING:
            self._check_finished()

    def _sender(self, sender_id) -> Peer:
        if sender_id == self.self_id:
            raise ProtocolError(f"Frame claims to come from this node ({sender_id})")
        try:
            return self.directory.by_id(sender_id)
        except NotFoundError as e:
            raise ProtocolError(str(e)) from e

    def _begin_running(self):
        self._set_state(NodeState.RUNNING)
        self._next_round = time.monotonic()
        self._check_finished()

    def _check_finished(self):
        if self.scheduler.finished:
            self.drain()

    def drain(self):
        self._set_state(NodeState.DRAINING)
        peer = self.last_acknowledged
        if peer is not None:
            self.messenger.send(format_frame(self.self_id, DONE), peer.host, peer.port)
        self.messenger.close()
        self._set_state(NodeState.TERMINATED)

    def _set_state(self, state: NodeState):
        self.logger.debug(f"State {self.state.value} -> {state.value}")
        self.state = state
