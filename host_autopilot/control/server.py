"""
Line-oriented TCP control channel.

The accept loop runs on its own thread and every connection gets a thread of
its own, so one slow client cannot hold up the others. Within a connection
each command is executed fully before the next line is read.
"""

from __future__ import annotations

import logging
import socketserver
import threading
from typing import Iterable, Optional, Tuple

from .commands import CommandProcessor, parse_command

logger = logging.getLogger(__name__)


class _CommandRequestHandler(socketserver.StreamRequestHandler):
    server: "_CommandServer"

    def handle(self) -> None:
        peer = self.client_address[0]
        logger.debug("Control connection from %s", peer)
        for raw in self.rfile:
            line = raw.decode("utf-8", errors="replace")
            command = parse_command(line)
            if command is None:
                continue
            try:
                result = self.server.processor.execute(command, peer=peer)
            except Exception:
                logger.exception("Command %s failed", command.verb)
                self._reply("ERROR internal error")
                continue
            self._reply(result.response)
            if result.close_connection:
                break
        logger.debug("Control connection from %s closed", peer)

    def _reply(self, text: str) -> None:
        self.wfile.write((text + "\n").encode("utf-8"))
        self.wfile.flush()


class _CommandServer(socketserver.ThreadingTCPServer):
    daemon_threads = True
    allow_reuse_address = True

    def __init__(self, address: Tuple[str, int], processor: CommandProcessor, allowed: Iterable[str]) -> None:
        self.processor = processor
        self.allowed = {item.strip() for item in allowed if item and item.strip()}
        super().__init__(address, _CommandRequestHandler)

    def verify_request(self, request, client_address) -> bool:  # type: ignore[no-untyped-def]
        host = client_address[0]
        if not self.allowed or host in self.allowed:
            return True
        logger.warning("Control connection from %s rejected (not in ControlFrom)", host)
        return False


class CommandChannel:
    """Owns the control server and its accept-loop thread."""

    def __init__(
        self,
        processor: CommandProcessor,
        *,
        host: str = "127.0.0.1",
        port: int = 7462,
        control_from: Iterable[str] = (),
    ) -> None:
        self._processor = processor
        self._host = host
        self._port = port
        self._allowed = list(control_from)
        if self._allowed and host in ("127.0.0.1", "localhost"):
            self._allowed.append("127.0.0.1")
        self._server: Optional[_CommandServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def address(self) -> Optional[Tuple[str, int]]:
        if self._server is None:
            return None
        host, port = self._server.server_address[:2]
        return str(host), int(port)

    @property
    def running(self) -> bool:
        return self._server is not None

    def start(self) -> Tuple[str, int]:
        if self._server is not None:
            raise RuntimeError("Command channel already started.")
        self._server = _CommandServer((self._host, self._port), self._processor, self._allowed)
        self._thread = threading.Thread(target=self._server.serve_forever, name="command-server", daemon=True)
        self._thread.start()
        address = self.address
        logger.info("Command server listening on %s:%s", *address)
        return address

    def stop(self) -> None:
        server = self._server
        if server is None:
            return
        server.shutdown()
        server.server_close()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
        self._server = None
        self._thread = None
        logger.info("Command server stopped")
