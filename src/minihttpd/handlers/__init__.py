"""
=============================================================================
REQUEST HANDLERS
=============================================================================

One handler per outcome:

    GET   ──►  StaticFileHandler.handle_get     file, or 404.htm
    HEAD  ──►  StaticFileHandler.handle_head    header only, or 404.htm
    POST  ──►  FormHandler.handle               form fields echoed back
    (any failure) ──► ErrorReporter.report      500.htm + exception text

Every handler writes exactly one header, at most one body, closes the
connection, and then logs.

=============================================================================
"""

from .static import StaticFileHandler, StaticFile, resolve_file, stream_file, stream_page
from .form import FormHandler, parse_form, render_form
from .errors import ErrorReporter, describe_exception

__all__ = [
    "StaticFileHandler",
    "StaticFile",
    "resolve_file",
    "stream_file",
    "stream_page",
    "FormHandler",
    "parse_form",
    "render_form",
    "ErrorReporter",
    "describe_exception",
]
