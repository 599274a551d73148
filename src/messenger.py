# messenger.py
import logging
import socket
import threading
from queue import Queue
from typing import Optional, Tuple

from config import BIND_HOST, RECV_BUFFER
from errors import ProtocolError, TransportError

START = "start"
DONE = "done"


def format_frame(sender: str, payload) -> str:
    return f"{sender} {payload}"


def parse_frame(data) -> Tuple[str, str]:
    """Split a frame into (sender, payload); anything but two tokens is rejected."""
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProtocolError(f"Frame is not UTF-8: {data!r}") from e
    tokens = data.split(" ")
    if len(tokens) != 2 or not all(tokens):
        raise ProtocolError(f"Expected two tokens, got {data!r}")
    return tokens[0], tokens[1]


class Messenger:
    """
    Best-effort UDP transport for one node.

    Outbound frames each use a short-lived socket. Inbound frames are read by
    a listener thread and pushed, as text, onto the inbox queue, which a
    single consumer drains.
    """

    def __init__(self, bind_host: str = BIND_HOST, logger: Optional[logging.Logger] = None):
        self.bind_host = bind_host
        self.logger = logger or logging.getLogger(__name__)
        self.inbox = Queue()
        self.server_socket = None
        self.port = None
        self._running = threading.Event()
        self._listener_thread = None

    def send(self, payload: str, host: str, port: int) -> bool:
        """Send one frame; failures are logged and reported as False."""
        try:
            self.sendto(payload, host, port)
        except TransportError as e:
            self.logger.warning(str(e))
            return False
        self.logger.debug(f"Sent {payload!r} to {host}:{port}")
        return True

    def sendto(self, payload: str, host: str, port: int):
        message = payload.encode("utf-8")
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
                sock.sendto(message, (host, port))
        except OSError as e:
            raise TransportError(f"Error sending {payload!r} to {host}:{port}: {e}") from e

    def listen(self, port: int):
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.bind((self.bind_host, port))
        except OSError as e:
            sock.close()
            raise TransportError(f"Cannot bind {self.bind_host}:{port}: {e}") from e
        # wake up periodically so close() can stop the thread
        sock.settimeout(0.1)
        self.server_socket = sock
        self.port = sock.getsockname()[1]
        self._running.set()
        self._listener_thread = threading.Thread(target=self.handle_datagrams, daemon=True)
        self._listener_thread.start()
        self.logger.info(f"Listening on {self.bind_host}:{self.port}")

    def handle_datagrams(self):
        while self._running.is_set():
            try:
                data, addr = self.server_socket.recvfrom(RECV_BUFFER)
            except socket.timeout:
                continue
            except OSError as e:
                if self._running.is_set():
                    self.logger.error(f"Listener error: {e}")
                break
            try:
                self.inbox.put(data.decode("utf-8"))
            except UnicodeDecodeError:
                self.logger.debug(f"Dropping non UTF-8 datagram from {addr}")

    @property
    def listening(self) -> bool:
        return self._running.is_set()

    def close(self):
        if self.server_socket is None:
            return
        self._running.clear()
        if self._listener_thread is not None and self._listener_thread is not threading.current_thread():
            self._listener_thread.join(timeout=1)
        self.server_socket.close()
        self.server_socket = None
        self.logger.info("Listener closed")
