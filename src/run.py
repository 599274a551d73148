# run.py
import argparse
import random
import sys

import logger
from clock import LamportClock
from config import BIND_HOST, EVENT_LIMIT, LOG_DIR, TICK_INTERVAL
from directory import NodeDirectory
from errors import ConfigError, TransportError
from messenger import Messenger
from protocol import CoordinationProtocol
from scheduler import EventScheduler


def build_parser():
    parser = argparse.ArgumentParser(
        description="Run one node of the Lamport logical clock simulation"
    )
    parser.add_argument("config", help="roster file with 'id host port' lines")
    parser.add_argument("node_id", help="id of this node in the roster")
    parser.add_argument("--events", type=int, default=EVENT_LIMIT)
    parser.add_argument("--interval", type=float, default=TICK_INTERVAL)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--log-dir", default=LOG_DIR)
    parser.add_argument("--bind-host", default=BIND_HOST)
    return parser


def build_node(directory, args, log=None):
    """Wire clock, messenger, scheduler and protocol for one node."""
    rng = random.Random(args.seed)
    clock = LamportClock(directory.self_id, rng)
    if log is None:
        log = logger.setup_logger(
            directory.self_id, clock, log_dir=args.log_dir, console=True
        )
    messenger = Messenger(args.bind_host, logger=log)
    scheduler = EventScheduler(
        clock,
        directory,
        messenger,
        limit=args.events,
        interval=args.interval,
        rng=rng,
        logger=log,
    )
    return CoordinationProtocol(directory, scheduler, messenger, logger=log)


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        directory = NodeDirectory.from_file(args.config, args.node_id)
    except ConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    node = build_node(directory, args)
    try:
        final_clock = node.run()
    except TransportError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        node.messenger.close()
        return 130
    print(f"Node {args.node_id} finished with clock {final_clock}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
