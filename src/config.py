# config.py
import os

# Number of events (own rounds plus received clock messages) before a node stops
EVENT_LIMIT = int(os.environ.get("LAMPORT_EVENT_LIMIT", "100"))
# Seconds to wait between two scheduler rounds
TICK_INTERVAL = float(os.environ.get("LAMPORT_TICK_INTERVAL", "0.2"))
BIND_HOST = os.environ.get("LAMPORT_BIND_HOST", "0.0.0.0")
LOG_DIR = os.environ.get("LAMPORT_LOG_DIR", "./logs")
LOG_LEVEL = os.environ.get("LAMPORT_LOG_LEVEL", "INFO").upper()
RECV_BUFFER = int(os.environ.get("LAMPORT_RECV_BUFFER", "1024"))

# Local tick increment range, inclusive
MIN_TICK = 1
MAX_TICK = 5
