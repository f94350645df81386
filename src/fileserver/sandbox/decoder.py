"""
=============================================================================
PATH DECODER
=============================================================================

Turns the raw, percent-encoded path from the request line into the string
the resolver joins onto the base directory.

    "q3%20final.pdf"      →  "q3 final.pdf"
    "caf%C3%A9.txt"       →  "café.txt"
    "bad%FFbyte"          →  "bad\\ufffdbyte"   (invalid UTF-8 → U+FFFD)
    "100%.txt"            →  "100%.txt"         (not a valid escape: kept)
    "a%00b"               →  SandboxError(400)

Decoding is lossy and never fails on its own; the ONLY thing refused here
is a NUL byte, which no filesystem API accepts in a path.

".." is NOT filtered. Traversal is judged by the resolver after the
filesystem has canonicalized the path.

=============================================================================
"""

from urllib.parse import unquote

from .errors import SandboxError


def decode_path(raw: str) -> str:
    """
    Percent-decode a raw URL path segment as UTF-8.

    Args:
        raw: Path as it appeared on the request line (query removed).

    Returns:
        The decoded path, or `raw` itself when it holds no "%".

    Raises:
        SandboxError: 400 if the decoded path contains a NUL character.
    """
    if "%" not in raw:
        decoded = raw
    else:
        decoded = unquote(raw, encoding="utf-8", errors="replace")

    if "\x00" in decoded:
        raise SandboxError("Path contains a NUL byte", status_code=400)

    return decoded
