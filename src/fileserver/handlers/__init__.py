"""
=============================================================================
REQUEST HANDLERS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │ DOWNLOAD HANDLER (download.py)                                      │
    │ ─────────────────────────────────────────────────────────────────── │
    │ GET/HEAD of an exact file path under the base directory.            │
    │ Everything else is rejected with an empty-bodied status.            │
    │                                                                      │
    │     handler = DownloadHandler("/srv/share")                         │
    │     response = handler.handle(request)                              │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .download import DownloadHandler

__all__ = ["DownloadHandler"]
