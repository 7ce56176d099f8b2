"""
Integration tests: a real server on a loopback port, real client sockets.
"""

import dataclasses
import socket
import threading
import time
from pathlib import Path

import pytest

from conftest import (
    ERROR_PAGE,
    INDEX_PAGE,
    NOT_FOUND_PAGE,
    STYLESHEET,
    TestServer,
    header_value,
    read_all,
    split_response,
)
from minihttpd import HTTPServer
from minihttpd.__main__ import build_parser


def wait_for(predicate, timeout: float = 5.0) -> bool:
    """Poll until predicate() is true; logging happens after the close."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return False


def send_and_finish(port: int, data: bytes) -> bytes:
    """Send `data`, end the request stream, return the whole response."""
    with socket.create_connection(("127.0.0.1", port), timeout=5.0) as client:
        client.sendall(data)
        client.shutdown(socket.SHUT_WR)
        return read_all(client)


# =============================================================================
# GET / HEAD / POST
# =============================================================================

class TestRequests:
    """End-to-end request/response tests."""

    def test_get_file(self, test_server):
        data = test_server.request(b"GET /style.css HTTP/1.0\r\nHost: localhost\r\n\r\n")
        lines, body = split_response(data)

        assert lines[0] == "HTTP/1.0 200/OK"
        assert [line.split(":")[0] for line in lines[1:]] == [
            "Date", "Server", "Last-modified", "Content-type", "Content-Length",
        ]
        assert header_value(lines, "Content-Length") == str(len(STYLESHEET))
        assert body == STYLESHEET

    def test_get_root(self, test_server):
        _, body = split_response(test_server.request(b"GET / HTTP/1.0\r\n\r\n"))
        assert body == INDEX_PAGE

    def test_get_missing(self, test_server):
        lines, body = split_response(test_server.request(b"GET /missing.htm HTTP/1.0\r\n\r\n"))

        assert lines == ["HTTP/1.0 404/Object Not Found", "Server: My Server"]
        assert body == NOT_FOUND_PAGE

    def test_head(self, test_server):
        lines, body = split_response(test_server.request(b"HEAD /logo.png HTTP/1.0\r\n\r\n"))

        assert lines[0] == "HTTP/1.0 200/OK"
        assert header_value(lines, "Content-type") == "image/png"
        assert header_value(lines, "Content-Length") == "770"
        assert body == b""

    def test_post(self, test_server):
        data = test_server.request(
            b"POST /submit HTTP/1.0\r\n"
            b"Content-Type: application/x-www-form-urlencoded\r\n"
            b"Content-Length: 21\r\n"
            b"\r\n"
            b"name=Jane+Doe&age=%34"
        )
        lines, body = split_response(data)

        assert lines[0] == "HTTP/1.0 200/OK"
        assert body == b"Post parameters:\nname: Jane Doe<br>\nage: 4<br>\n"

    def test_post_body_in_separate_segment(self, test_server):
        """Test that a body arriving after the head is still read whole."""
        with socket.create_connection(("127.0.0.1", test_server.port), timeout=5.0) as client:
            client.sendall(b"POST / HTTP/1.0\r\nContent-Length: 7\r\n\r\n")
            time.sleep(0.1)
            client.sendall(b"a=1&b=2")
            data = read_all(client)

        assert split_response(data)[1] == b"Post parameters:\na: 1<br>\nb: 2<br>\n"

    def test_header_split_across_segments(self, test_server):
        with socket.create_connection(("127.0.0.1", test_server.port), timeout=5.0) as client:
            for piece in (b"GET /sty", b"le.css HTTP/1.0\r", b"\n\r\n"):
                client.sendall(piece)
                time.sleep(0.05)
            data = read_all(client)

        assert split_response(data)[1] == STYLESHEET


# =============================================================================
# FAILURES
# =============================================================================

class TestFailures:
    """Unknown methods, malformed requests and error pages."""

    def test_unknown_method_gets_no_response(self, test_server):
        assert test_server.request(b"DELETE /index.htm HTTP/1.0\r\n\r\n") == b""

    def test_lowercase_method_is_unknown(self, test_server):
        assert test_server.request(b"get / HTTP/1.0\r\n\r\n") == b""

    def test_server_survives_unknown_method(self, test_server):
        test_server.request(b"PUT / HTTP/1.0\r\n\r\n")
        _, body = split_response(test_server.request(b"GET / HTTP/1.0\r\n\r\n"))
        assert body == INDEX_PAGE

    def test_truncated_head_is_500(self, test_server):
        """Test that a client closing before the blank line gets a 500."""
        lines, body = split_response(send_and_finish(test_server.port, b"GET / HTTP/1.0\r\n"))

        assert lines == ["HTTP/1.0 500/Internal Server Error", "Server: My Server"]
        assert body.startswith(ERROR_PAGE)
        assert b"Traceback (most recent call last):" in body
        assert b"MalformedRequestError" in body

    def test_short_post_body_is_500(self, test_server):
        data = send_and_finish(test_server.port, b"POST / HTTP/1.0\r\nContent-Length: 40\r\n\r\na=1")
        lines, body = split_response(data)

        assert lines[0] == "HTTP/1.0 500/Internal Server Error"
        assert b"ReadError" in body

    def test_overlong_path_is_404(self, test_server):
        """Test that a path the filesystem rejects is a 404, not a 500."""
        data = test_server.request(b"GET /" + b"a" * 5000 + b" HTTP/1.0\r\n\r\n")
        lines, body = split_response(data)

        assert lines[0] == "HTTP/1.0 404/Object Not Found"
        assert body == NOT_FOUND_PAGE

    def test_missing_500_page(self, test_server, docroot):
        """Test that only the 500 header goes out when 500.htm is gone."""
        (docroot / "500.htm").unlink()

        data = send_and_finish(test_server.port, b"HEAD / HTTP/1.0\r\n")

        assert data == b"HTTP/1.0 500/Internal Server Error\r\nServer: My Server\r\n\r\n"

    def test_missing_404_page(self, test_server, docroot):
        """Test that a missing 404.htm turns into a 500 after the 404 header."""
        (docroot / "404.htm").unlink()

        data = test_server.request(b"GET /nope HTTP/1.0\r\n\r\n")

        assert data.startswith(b"HTTP/1.0 404/Object Not Found\r\nServer: My Server\r\n\r\n")
        assert b"HTTP/1.0 500/Internal Server Error" in data
        assert b"MissingErrorPageError" in data


# =============================================================================
# CONCURRENCY AND LIMITS
# =============================================================================

class TestConcurrency:

    def test_parallel_requests(self, test_server):
        """Test that simultaneous clients each get their own file."""
        targets = {
            "/index.htm": INDEX_PAGE,
            "/style.css": STYLESHEET,
            "/docs/guide.htm": b"<h1>Guide</h1>",
            "/404.htm": NOT_FOUND_PAGE,
        }
        results = {}

        def fetch(n, target):
            data = test_server.request(f"GET {target} HTTP/1.0\r\n\r\n".encode())
            results[n] = (target, split_response(data)[1])

        threads = [
            threading.Thread(target=fetch, args=(n, target))
            for n, target in enumerate(list(targets) * 5)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10.0)

        assert len(results) == 20
        for target, body in results.values():
            assert body == targets[target]

    def test_slow_client_does_not_block_others(self, test_server):
        with socket.create_connection(("127.0.0.1", test_server.port), timeout=5.0) as slow:
            slow.sendall(b"GET / HTTP/1.0\r\n")

            _, body = split_response(test_server.request(b"GET /style.css HTTP/1.0\r\n\r\n"))
            assert body == STYLESHEET

            slow.sendall(b"\r\n")
            assert split_response(read_all(slow))[1] == INDEX_PAGE

    def test_max_connections(self, config, access_log):
        """Test that a second client waits until the first is done."""
        server = TestServer(HTTPServer(dataclasses.replace(config, max_connections=1), log=access_log))
        server.start()
        try:
            first = socket.create_connection(("127.0.0.1", server.port), timeout=5.0)
            first.sendall(b"GET / HTTP/1.0\r\n")
            time.sleep(0.2)

            second = socket.create_connection(("127.0.0.1", server.port), timeout=5.0)
            second.sendall(b"GET /style.css HTTP/1.0\r\n\r\n")
            second.settimeout(0.5)
            with pytest.raises(socket.timeout):
                second.recv(1)

            first.sendall(b"\r\n")
            assert split_response(read_all(first))[1] == INDEX_PAGE

            second.settimeout(5.0)
            assert split_response(read_all(second))[1] == STYLESHEET

            first.close()
            second.close()
        finally:
            server.stop()

    def test_read_timeout(self, config, access_log):
        """Test that a silent client gets a 500 once the read times out."""
        server = TestServer(HTTPServer(dataclasses.replace(config, read_timeout=0.3), log=access_log))
        server.start()
        try:
            with socket.create_connection(("127.0.0.1", server.port), timeout=5.0) as client:
                lines, body = split_response(read_all(client))
        finally:
            server.stop()

        assert lines[0] == "HTTP/1.0 500/Internal Server Error"
        assert b"ReadError" in body


# =============================================================================
# LOGGING
# =============================================================================

class TestLogging:

    def test_banner(self, test_server, access_log, docroot):
        banner = access_log.calls[0]

        assert test_server.server.is_running
        assert banner[0].startswith("Server started at ")
        assert banner[1] == f"base path: {docroot}"
        assert banner[2] == "port: 0"

    def test_transcript(self, test_server, access_log):
        raw = b"GET /style.css HTTP/1.0\r\nUser-Agent: test\r\n\r\n"
        test_server.request(raw)

        assert wait_for(lambda: any(c[0] == "===REQUEST===" for c in access_log.calls))
        call = next(c for c in access_log.calls if c[0] == "===REQUEST===")
        assert call[1] == raw.decode()
        assert call[2] == "===RESPONSE==="
        assert call[3].startswith("HTTP/1.0 200/OK\r\n")

    def test_log_file(self, config):
        """Test that the default access log appends transcripts to log.txt."""
        file_config = dataclasses.replace(config, log_to_file=True, log_level="INFO")
        server = TestServer(HTTPServer(file_config))
        server.start()
        try:
            server.request(b"GET /missing HTTP/1.0\r\n\r\n")
            log_path = Path(file_config.log_path)
            assert wait_for(lambda: "Object Not Found" in log_path.read_text())
        finally:
            server.stop()

        content = Path(file_config.log_path).read_text()
        assert "Server started at " in content
        assert "===REQUEST===\nGET /missing HTTP/1.0\n===RESPONSE===\nHTTP/1.0 404/Object Not Found" in content

    def test_log_file_keeps_non_utf8_request(self, config):
        """Test that request bytes that are not UTF-8 reach log.txt unchanged."""
        file_config = dataclasses.replace(config, log_to_file=True, log_level="INFO")
        log_path = Path(file_config.log_path)
        server = TestServer(HTTPServer(file_config))
        server.start()
        try:
            data = server.request(b"GET /caf\xe9.htm HTTP/1.0\r\n\r\n")
            assert wait_for(lambda: b"Object Not Found" in log_path.read_bytes())
        finally:
            server.stop()

        assert split_response(data)[0][0] == "HTTP/1.0 404/Object Not Found"
        assert b"===REQUEST===\nGET /caf\xe9.htm HTTP/1.0\n===RESPONSE===\n" in log_path.read_bytes()


# =============================================================================
# CLI
# =============================================================================

class TestCommandLine:

    def test_positionals(self):
        args = build_parser().parse_args(["8080", "/var/www"])

        assert args.port == 8080
        assert args.base_path == "/var/www"
        assert args.max_connections is None
        assert args.no_log_file is False

    def test_options(self):
        args = build_parser().parse_args([
            "9000", "site", "--max-connections", "4", "--read-timeout", "2.5", "--hide-tracebacks",
        ])

        assert args.max_connections == 4
        assert args.read_timeout == 2.5
        assert args.hide_tracebacks is True

    def test_missing_base_path(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["8080"])
