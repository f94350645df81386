"""Rejections raised while turning a URL path into a file path."""


class SandboxError(Exception):
    """
    A request path was refused.

    Carries the HTTP status code that should be returned to the client:

        400 Bad Request - Path decodes to something unusable (NUL byte)
        403 Forbidden   - Directory, bare "/", or outside the base directory
        404 Not Found   - Nothing on disk at that path

    The message is for the server log only; clients get an empty body.
    """

    def __init__(self, message: str, status_code: int = 403):
        super().__init__(message)
        self.status_code = status_code
