"""Network error classification for the GitHub API transport.

Translates httpx transport failures into the client's exception hierarchy
so callers never need to import httpx to handle them.
"""

import httpx


class NetworkError(Exception):
    """Raised when a request never produced an HTTP response."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class NetworkConnectionError(NetworkError):
    """The remote host could not be reached."""

    pass


class NetworkTimeoutError(NetworkError):
    """The request exceeded the configured timeout."""

    pass


def classify_network_error(error: httpx.RequestError, path: str) -> NetworkError:
    """Map an httpx request error onto a NetworkError subclass.

    Args:
        error: The httpx exception raised while sending the request
        path: API path of the failing request

    Returns:
        NetworkError instance ready to be raised
    """
    if isinstance(error, httpx.TimeoutException):
        return NetworkTimeoutError(f"Request to {path} timed out: {error}", path)
    if isinstance(error, httpx.NetworkError):
        return NetworkConnectionError(
            f"Failed to connect for {path}: {error}", path
        )
    return NetworkError(f"Request to {path} failed: {error}", path)
