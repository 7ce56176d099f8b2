"""
=============================================================================
ACCESS LOG
=============================================================================

The request handlers report what they did through a single sink:

    log("===REQUEST===", raw_request, "===RESPONSE===", header_text)

Each message becomes one line. The sink goes to the console and, unless
disabled, is appended to log.txt inside the document root.

=============================================================================
CONCURRENT WRITERS
=============================================================================

Every connection runs in its own thread and they all share this sink.
If each message were logged separately, two threads could interleave:

    Thread A: ===REQUEST===
    Thread B: ===RESPONSE===        ← belongs to B, lands inside A's entry
    Thread A: GET /a.css HTTP/1.0

So one call produces ONE logging record (messages joined by newlines).
logging.Handler takes its lock around each emit(), which serializes the
records and keeps every call contiguous in the output.

=============================================================================
"""

import logging
from typing import Optional

from .config import ServerConfig


# ═══════════════════════════════════════════════════════════════════════════
# LOGGER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════
# Request/response transcripts go to a namespaced logger so they can be
# routed separately from the operational module loggers:
#   logging.getLogger("minihttpd.access").addHandler(file_handler)
# ═══════════════════════════════════════════════════════════════════════════
ACCESS_LOGGER_NAME = "minihttpd.access"

logger = logging.getLogger(ACCESS_LOGGER_NAME)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class AccessLog:
    """
    The log(*messages) sink shared by all connection threads.

    Calling it never raises: failures inside a handler's emit() are
    reported by logging.Handler.handleError() and swallowed there.
    """

    def __init__(self, target: Optional[logging.Logger] = None, level: int = logging.INFO):
        self.logger = target or logger
        self.level = level

    def __call__(self, *messages: object) -> None:
        if not messages:
            return
        text = "\n".join(str(message).rstrip("\r\n") for message in messages)
        self.logger.log(self.level, text)


def setup_logging(config: ServerConfig) -> Optional[logging.Handler]:
    """
    Configure console logging and, if enabled, the log.txt file handler.

    Args:
        config: Server configuration (log level, document root).

    Returns:
        The file handler attached to the access logger, or None. The
        caller removes it again on shutdown.
    """
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
    logging.getLogger("minihttpd").setLevel(level)

    if not config.log_to_file:
        return None

    # Transcripts only; the file keeps the raw request/response text
    file_handler = logging.FileHandler(config.log_path, encoding="utf-8", errors="surrogateescape")
    file_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(file_handler)
    return file_handler


def teardown_logging(handler: Optional[logging.Handler]) -> None:
    """Detach and close a handler returned by setup_logging()."""
    if handler is None:
        return
    logger.removeHandler(handler)
    handler.close()
