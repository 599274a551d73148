# directory.py
import logging
import random
from typing import Dict, List, NamedTuple, Optional, Sequence

from errors import ConfigError, InvalidArgument, NotFoundError


class Peer(NamedTuple):
    id: str
    host: str
    port: int


class PeerStatus(NamedTuple):
    received: bool = False
    stopped: bool = False


def load_roster(path, logger: Optional[logging.Logger] = None) -> List[Peer]:
    """
    Read a roster file with one "id host port" record per line.

    Blank lines, lines without exactly three fields and lines whose port is
    not a valid port number are skipped. File order is preserved.
    """
    logger = logger or logging.getLogger(__name__)
    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = f.read().splitlines()
    except OSError as e:
        raise ConfigError(f"Cannot read roster file {path}: {e}") from e

    roster = []
    for lineno, line in enumerate(lines, start=1):
        fields = line.split()
        if len(fields) != 3:
            if fields:
                logger.debug(f"Skipping roster line {lineno}: {line!r}")
            continue
        node_id, host, port = fields
        try:
            port_number = int(port)
        except ValueError:
            logger.debug(f"Skipping roster line {lineno}: bad port {port!r}")
            continue
        if not 0 < port_number < 65536:
            logger.debug(f"Skipping roster line {lineno}: port out of range")
            continue
        roster.append(Peer(node_id, host, port_number))
    return roster


class NodeDirectory:
    """
    Static roster plus the runtime status of every peer.

    Statuses live in a map from peer id to an immutable PeerStatus; marking a
    peer replaces its entry. Only the coordination protocol's handler calls
    the mark_* methods.
    """

    def __init__(self, roster: Sequence[Peer], self_id: str):
        matches = [peer for peer in roster if peer.id == self_id]
        if not matches:
            raise ConfigError(f"No roster entry for node {self_id}")
        if len(matches) > 1:
            raise ConfigError(f"Node {self_id} appears {len(matches)} times in roster")
        self.roster = list(roster)
        self.self_id = self_id
        self._status: Dict[str, PeerStatus] = {
            peer.id: PeerStatus() for peer in self.roster
        }

    @classmethod
    def from_file(cls, path, self_id, logger=None):
        return cls(load_roster(path, logger), self_id)

    @property
    def self_peer(self) -> Peer:
        return self.by_id(self.self_id)

    def peers(self) -> List[Peer]:
        return [peer for peer in self.roster if peer.id != self.self_id]

    def by_id(self, peer_id) -> Peer:
        for peer in self.roster:
            if peer.id == peer_id:
                return peer
        raise NotFoundError(f"Unknown node id: {peer_id}")

    def status(self, peer_id) -> PeerStatus:
        try:
            return self._status[peer_id]
        except KeyError:
            raise NotFoundError(f"Unknown node id: {peer_id}") from None

    def mark_received(self, peer_id):
        self._status[peer_id] = self.status(peer_id)._replace(received=True)

    def mark_stopped(self, peer_id):
        self._status[peer_id] = self.status(peer_id)._replace(stopped=True)

    def all_received(self) -> bool:
        return all(self._status[peer.id].received for peer in self.peers())

    def eligible(self) -> List[Peer]:
        """Peers that have not reported done, in roster order."""
        return [peer for peer in self.peers() if not self._status[peer.id].stopped]

    @staticmethod
    def random_peer(subset: Sequence[Peer], rng: Optional[random.Random] = None) -> Peer:
        if not subset:
            raise InvalidArgument("Cannot pick a peer from an empty set")
        rng = rng or random
        return subset[rng.randrange(len(subset))]
