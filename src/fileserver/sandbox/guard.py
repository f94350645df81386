"""
=============================================================================
DANGER-ZONE GUARD
=============================================================================

A startup check: some directories are almost never meant to be shared in
full, and running the server from them by accident exposes everything.

    ┌───────────────────────┬─────────────────────────────────────────────┐
    │  /   (or C:\\)         │ The whole machine                           │
    │  $HOME / %USERPROFILE%│ SSH keys, browser profiles, shell history   │
    └───────────────────────┴─────────────────────────────────────────────┘

The CLI refuses these unless --force is given. Subdirectories of home are
fine: `cd ~/Downloads && fileserver` is the intended use.

=============================================================================
"""

import os
from pathlib import Path
from typing import Mapping, Optional


def home_dir(environ: Mapping[str, str] = os.environ) -> Optional[Path]:
    """
    The invoking user's home directory from the environment.

    HOME wins over USERPROFILE; an empty variable counts as unset.
    Returns None when neither is set.
    """
    for name in ("HOME", "USERPROFILE"):
        value = environ.get(name)
        if value:
            return Path(value)
    return None


def is_dangerous_dir(path: Path, environ: Mapping[str, str] = os.environ) -> bool:
    """
    True if serving `path` would expose the filesystem root or home.

    Args:
        path:    Canonical directory about to be served.
        environ: Environment to read HOME/USERPROFILE from.
    """
    # Root of a filesystem or drive has no parent other than itself.
    if path.parent == path:
        return True

    home = home_dir(environ)
    if home is None:
        return False

    if path == home:
        return True

    # HOME may be a symlink or carry a trailing "/.."; compare canonical too.
    try:
        return path == home.resolve()
    except (OSError, RuntimeError):
        return False
