"""
Logging helpers for ghgraph.

Error logs carry a code of the form ``{AREA}-{CATEGORY}-{NNN}`` followed by
``key=value`` context, e.g.::

    logger.warning(format_error_log("GIT-REF-002", "Branch moved", branch="main"))

Request bodies go through ``sanitize_for_logging`` before debug logging so that
credentials, file contents and full tree listings stay out of the log.
"""

from typing import Any, Dict, Optional

REDACTED = "***REDACTED***"

# Keys whose values never reach the log
SENSITIVE_FIELDS = frozenset(
    {"password", "token", "authorization", "access_token", "client_secret"}
)

SHA_LENGTH = 40


def short_sha(sha: Optional[str], length: int = 7) -> Optional[str]:
    """Abbreviate a full 40-character object SHA; anything else is returned as is."""
    if sha and len(sha) == SHA_LENGTH:
        return sha[:length]
    return sha


def format_error_log(error_code: str, message: str, **context: Any) -> str:
    """
    Build ``"[CODE] message k1=v1 k2=v2"``.

    Context keeps call order. Full object SHAs are abbreviated.

    >>> format_error_log("API-HTTP-001", "Request failed")
    '[API-HTTP-001] Request failed'
    """
    line = f"[{error_code}] {message}"
    if not context:
        return line
    pairs = " ".join(
        f"{key}={short_sha(value) if isinstance(value, str) else value}"
        for key, value in context.items()
    )
    return f"{line} {pairs}"


def sanitize_for_logging(data: Any) -> Any:
    """
    Return a copy of a request body that is safe to log.

    Credentials are redacted, blob ``content`` is reduced to its length and a
    ``tree`` listing to its entry count. Non-dict values pass through.

    >>> sanitize_for_logging({"content": "aGVsbG8=", "encoding": "base64"})
    {'content': '<8 chars>', 'encoding': 'base64'}
    """
    if not isinstance(data, dict):
        return data

    sanitized: Dict[str, Any] = {}
    for key, value in data.items():
        if key.lower() in SENSITIVE_FIELDS:
            sanitized[key] = REDACTED
        elif key == "content" and isinstance(value, str):
            sanitized[key] = f"<{len(value)} chars>"
        elif key == "tree" and isinstance(value, list):
            sanitized[key] = f"<{len(value)} entries>"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_for_logging(value)
        else:
            sanitized[key] = value
    return sanitized
