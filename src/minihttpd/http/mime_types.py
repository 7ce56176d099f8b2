"""
=============================================================================
CONTENT TYPE RESOLUTION
=============================================================================

Maps a file extension to the Content-type header value.

The table is deliberately tiny: stylesheets and the three common image
formats. Everything else, HTML included, is served as text/html.

    ┌────────────────────────────────────────────────────────────────────┐
    │  Extension          MIME type                                      │
    ├────────────────────────────────────────────────────────────────────┤
    │  .css               text/css                                       │
    │  .jpeg, .jpg        image/jpeg                                     │
    │  .png               image/png                                      │
    │  .gif               image/gif                                      │
    │  (anything else)    text/html                                      │
    └────────────────────────────────────────────────────────────────────┘

Matching is case-sensitive: "photo.PNG" is text/html.

=============================================================================
"""

from pathlib import Path


MIME_TYPES = {
    ".css": "text/css",
    ".jpeg": "image/jpeg",
    ".jpg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
}

# Fallback for .htm, .html and every extension not listed above
DEFAULT_MIME_TYPE = "text/html"


def get_content_type(path: str | Path) -> str:
    """
    Get the Content-type header value for a file path.

    Only the last path component is considered, so a dot in a directory
    name does not count as an extension.

    Args:
        path: File path or name with extension

    Returns:
        The MIME type string

    Examples:
        >>> get_content_type("/www/style.css")
        'text/css'

        >>> get_content_type("/www/photo.jpeg")
        'image/jpeg'

        >>> get_content_type("/www/readme.txt")
        'text/html'
    """
    if isinstance(path, str):
        path = Path(path)

    return MIME_TYPES.get(path.suffix, DEFAULT_MIME_TYPE)
