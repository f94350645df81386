"""
=============================================================================
SANDBOX: FROM UNTRUSTED URL TO VERIFIED FILE
=============================================================================

Everything that decides whether a request path may touch the disk.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ decoder.py    percent-decoding, NUL rejection                       │
    │ resolver.py   shape check, join, canonicalize, prefix check         │
    │ guard.py      startup refusal of "/" and the home directory         │
    │ errors.py     SandboxError(message, status_code)                    │
    └─────────────────────────────────────────────────────────────────────┘

Usage:

    relative = check_path_shape(request.path)
    resolved = resolve_in_sandbox(decode_path(relative), base_dir)

=============================================================================
"""

from .errors import SandboxError
from .decoder import decode_path
from .resolver import check_path_shape, join_under, resolve_in_sandbox
from .guard import home_dir, is_dangerous_dir

__all__ = [
    "SandboxError",
    "decode_path",
    "check_path_shape",
    "join_under",
    "resolve_in_sandbox",
    "home_dir",
    "is_dangerous_dir",
]
