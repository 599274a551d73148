# clock.py
import random
from typing import Optional, Union

from config import MAX_TICK, MIN_TICK
from errors import ProtocolError


class LamportClock:
    """
    Lamport clock for ordering events across nodes.

    The value starts at 1 and never decreases. Local events add a random
    amount in [MIN_TICK, MAX_TICK], received clocks are merged with
    max(remote, local) + 1, and sending leaves the value as it is: the send
    event's timestamp is whatever the clock currently holds.
    """

    def __init__(self, name, rng: Optional[random.Random] = None):
        self.name = name
        self.value = 1
        self.events = 0
        self.rng = rng if rng is not None else random.Random()

    def observe(self, remote: Union[int, str]) -> int:
        remote_value = parse_clock(remote)
        self.value = max(remote_value, self.value) + 1
        return self.value

    def local_tick(self) -> int:
        step = self.rng.randint(MIN_TICK, MAX_TICK)
        self.value += step
        return step

    def send_tick(self) -> int:
        return self.value

    def count_event(self):
        self.events += 1

    def __str__(self):
        return f"{self.name}: {self.value}"


def parse_clock(raw: Union[int, str]) -> int:
    """Return raw as a non-negative int or raise ProtocolError."""
    if isinstance(raw, bool):
        raise ProtocolError(f"Invalid clock value: {raw!r}")
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and raw.isascii() and raw.isdigit():
        value = int(raw)
    else:
        raise ProtocolError(f"Invalid clock value: {raw!r}")
    if value < 0:
        raise ProtocolError(f"Negative clock value: {value}")
    return value
