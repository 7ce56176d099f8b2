"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from typing import Generator, List, Tuple
import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from minihttpd import HTTPServer, ServerConfig
from minihttpd.core import Connection


INDEX_PAGE = b"<html><body>Welcome</body></html>"
NOT_FOUND_PAGE = b"<html><body>404: no such page</body></html>"
ERROR_PAGE = b"<html><body>500: server error</body></html>"
STYLESHEET = b"body { color: #333; }\n" * 40  # larger than one 256-byte chunk


class RecordingLog:
    """Access log sink that keeps every call for inspection."""

    def __init__(self):
        self.calls: List[Tuple[str, ...]] = []
        self._lock = threading.Lock()

    def __call__(self, *messages):
        with self._lock:
            self.calls.append(tuple(str(m) for m in messages))

    @property
    def text(self) -> str:
        return "\n".join("\n".join(call) for call in self.calls)


@pytest.fixture
def docroot(tmp_path: Path) -> Path:
    """Document root with the three standard pages and a few files."""
    (tmp_path / "index.htm").write_bytes(INDEX_PAGE)
    (tmp_path / "404.htm").write_bytes(NOT_FOUND_PAGE)
    (tmp_path / "500.htm").write_bytes(ERROR_PAGE)
    (tmp_path / "style.css").write_bytes(STYLESHEET)
    (tmp_path / "logo.png").write_bytes(bytes(range(256)) * 3 + b"\x00\x01")
    (tmp_path / "empty.txt").write_bytes(b"")
    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / "guide.htm").write_bytes(b"<h1>Guide</h1>")
    return tmp_path


@pytest.fixture
def config(docroot: Path) -> ServerConfig:
    """Test configuration: loopback, OS-assigned port, no log file."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,
        base_path=str(docroot),
        log_to_file=False,
        log_level="WARNING",
    )


@pytest.fixture
def access_log() -> RecordingLog:
    return RecordingLog()


@pytest.fixture
def conn_pair() -> Generator[Tuple[Connection, socket.socket], None, None]:
    """
    A server-side Connection and the client socket talking to it.

    No listening socket involved: socket.socketpair() gives both ends.
    """
    server_sock, client_sock = socket.socketpair()
    conn = Connection(socket=server_sock, address=("127.0.0.1", 50000))
    yield conn, client_sock
    conn.close()
    client_sock.close()


def send_as_client(client: socket.socket, data: bytes, finish: bool = True) -> None:
    """Send request bytes; optionally signal end of request stream."""
    client.sendall(data)
    if finish:
        client.shutdown(socket.SHUT_WR)


def read_all(client: socket.socket) -> bytes:
    """Read until the server closes its side."""
    chunks = []
    while True:
        chunk = client.recv(4096)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


def split_response(data: bytes) -> Tuple[List[str], bytes]:
    """Split raw response bytes into header lines and body."""
    head, _, body = data.partition(b"\r\n\r\n")
    return head.decode("latin-1").split("\r\n"), body


def header_value(lines: List[str], name: str) -> str:
    prefix = f"{name}: "
    for line in lines:
        if line.startswith(prefix):
            return line[len(prefix):]
    raise KeyError(name)


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False  # not a test class

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def request(self, data: bytes, timeout: float = 5.0) -> bytes:
        """Open a connection, send `data`, return everything received."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=timeout) as client:
            client.sendall(data)
            return read_all(client)


@pytest.fixture
def test_server(config: ServerConfig, access_log: RecordingLog) -> Generator[TestServer, None, None]:
    """A running server on a free port, serving `docroot`."""
    test_srv = TestServer(HTTPServer(config, log=access_log))
    test_srv.start()

    yield test_srv

    test_srv.stop()
