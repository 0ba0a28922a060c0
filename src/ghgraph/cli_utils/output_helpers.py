"""Output helpers for ghgraph CLI commands.

JSON mode wraps every result in one envelope::

    {"success": true, "data": ..., "metadata": {"timestamp": ...}}
    {"success": false, "error": ..., "error_type": ..., "status_code": ...}
"""

import json
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..api_clients.base_client import (
    APIClientError,
    AuthenticationError,
    NotFoundError,
    PathExistsError,
    RefConflictError,
    TruncatedTreeError,
)
from ..api_clients.network_error_handler import (
    NetworkConnectionError,
    NetworkError,
    NetworkTimeoutError,
)
from ..git_data.models import MutationResult


def format_json_success(data: Any, metadata: Optional[Dict[str, Any]] = None) -> str:
    """Render a success envelope; ``metadata`` is merged after the timestamp."""
    envelope_metadata: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
    envelope_metadata.update(metadata or {})
    return json.dumps(
        {"success": True, "data": data, "metadata": envelope_metadata},
        indent=2,
        default=str,
    )


def format_json_error(
    error_message: str,
    error_type: Optional[str] = None,
    status_code: Optional[int] = None,
) -> str:
    """Render a failure envelope; ``status_code`` only appears for HTTP failures."""
    envelope: Dict[str, Any] = {
        "success": False,
        "error": error_message,
        "error_type": error_type or "Error",
    }
    if status_code is not None:
        envelope["status_code"] = status_code
    return json.dumps(envelope, indent=2)


def mutation_data(result: Optional[MutationResult]) -> Optional[Dict[str, str]]:
    """JSON data for a write/rm/mv result; None when nothing was committed."""
    return asdict(result) if result is not None else None


def handle_api_error(error: Exception) -> str:
    """Turn a failure into the one-line message shown to the user."""
    if isinstance(error, AuthenticationError):
        return (
            f"Authentication failed (HTTP {error.status_code}). "
            "Set GHGRAPH_TOKEN or configure a token."
        )
    if isinstance(error, RefConflictError):
        return f"Branch changed concurrently: {error}. Retry the command."
    if isinstance(error, NotFoundError):
        return f"Not found: {error.path}"
    if isinstance(error, PathExistsError):
        return f"Target exists: {error.path}. Remove it first or pick another path."
    if isinstance(error, TruncatedTreeError):
        return f"{error}. The tree is too large to rewrite in one request."
    if isinstance(error, NetworkTimeoutError):
        return f"Request timed out: {error}"
    if isinstance(error, NetworkConnectionError):
        return f"Network connection error: {error}"
    if isinstance(error, NetworkError):
        return f"Network error: {error}"
    if isinstance(error, APIClientError):
        if error.status_code:
            return f"API error (HTTP {error.status_code}): {error}"
        return f"API error: {error}"
    return f"Unexpected error: {error}"
