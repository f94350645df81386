"""
=============================================================================
SANDBOX RESOLVER
=============================================================================

Maps a decoded request path to a real file INSIDE the base directory, or
refuses it.

=============================================================================
SECURITY: PATH TRAVERSAL
=============================================================================

    ATTACK ATTEMPTS:
    ┌─────────────────────────────────────────────────────────────────────┐
    │  GET /../../etc/passwd              literal dot-dot                 │
    │  GET /%2e%2e/%2e%2e/etc/passwd      encoded dot-dot                 │
    │  GET /%2Fetc%2Fpasswd               encoded absolute path           │
    │  GET /innocent-link                 symlink pointing at /etc        │
    └─────────────────────────────────────────────────────────────────────┘

Looking for ".." in the string catches the first two and misses the last.
Instead we let the FILESYSTEM answer:

    1. Join the relative path onto the base directory
    2. Canonicalize it (follows every "..", ".", and symlink; must exist)
    3. Check the canonical path still has the base as a prefix,
       component by component

    PYTHON PROTECTION:

        candidate = os.path.join(base_dir, relative)   # not normalized
        os.stat(candidate)                  # the kernel walks it as written
        resolved = Path(candidate).resolve(strict=True)
        resolved.relative_to(base_dir)      # Raises if outside base!

Component-wise matters: "/srv/files-private" starts with the STRING
"/srv/files" but is not inside the directory /srv/files. relative_to()
compares path components, so it gets this right.

=============================================================================
THE PIPELINE
=============================================================================

    raw path
       │
       ▼
    check_path_shape()   "/" or ".../" or empty        → 403
       │
       ▼
    decode_path()        NUL byte                      → 400
       │
       ▼
    resolve_in_sandbox() canonicalize fails            → 404
       │                 escapes the base directory    → 403
       │                 is a directory                → 403
       ▼
    Resolved Path (safe to stat and open)

=============================================================================
"""

import logging
import os
from pathlib import Path

from .errors import SandboxError


logger = logging.getLogger(__name__)


def check_path_shape(raw_path: str) -> str:
    """
    Reject paths that can only name a directory, before touching the disk.

    Args:
        raw_path: Raw (still percent-encoded) path from the request line.

    Returns:
        The path with its leading slashes removed.

    Raises:
        SandboxError: 403 for "/", anything ending in "/", or a path made
                      only of slashes.
    """
    if raw_path == "/" or raw_path.endswith("/"):
        raise SandboxError(f"Directory-shaped path: {raw_path!r}")

    relative = raw_path.lstrip("/")
    if not relative:
        raise SandboxError(f"Empty path: {raw_path!r}")

    return relative


def join_under(base_dir: Path, relative: str) -> str:
    """
    Join a decoded relative path onto the base directory, as a string.

    An encoded slash can make the decoded path absolute ("%2Fetc" becomes
    "/etc"). Joining would then DISCARD the base, so any anchor (drive,
    leading separators) is dropped first and the base stays a prefix.

    The result is NOT normalized: "hello.txt/." keeps its "." so the
    filesystem, not pathlib, decides what each component means.
    """
    _, rest = os.path.splitdrive(relative)
    return os.path.join(base_dir, rest.lstrip("/" + os.sep))


def resolve_in_sandbox(relative: str, base_dir: Path) -> Path:
    """
    Canonicalize a decoded relative path and verify it is a file under
    base_dir.

    Args:
        relative: Decoded path relative to the base directory.
        base_dir: Canonical, absolute base directory.

    Returns:
        The canonical path of an existing non-directory inside base_dir.

    Raises:
        SandboxError: 404 when the path cannot be canonicalized,
                      403 when it escapes base_dir or is a directory.
    """
    candidate = join_under(base_dir, relative)

    # ─────────────────────────────────────────────────────────────────
    # CANONICALIZE
    # ─────────────────────────────────────────────────────────────────
    # stat() on the raw join lets the kernel walk every component as
    # written: "hello.txt/.", "hello.txt/../x" and "hello.txt/" fail with
    # ENOTDIR here, where pathlib alone would fold them away. Missing
    # paths, permission problems and symlink loops end up here too.
    try:
        os.stat(candidate)
        resolved = Path(candidate).resolve(strict=True)
    except (OSError, RuntimeError) as e:
        logger.debug(f"Cannot resolve {candidate}: {e}")
        raise SandboxError(f"Not found: {relative!r}", status_code=404)

    # ─────────────────────────────────────────────────────────────────
    # SECURITY: PREFIX CHECK
    # ─────────────────────────────────────────────────────────────────
    try:
        resolved.relative_to(base_dir)
    except ValueError:
        logger.warning(f"Path traversal attempt: {relative!r} -> {resolved}")
        raise SandboxError(f"Outside base directory: {relative!r}")

    if resolved.is_dir():
        raise SandboxError(f"Directory requested: {relative!r}")

    return resolved
