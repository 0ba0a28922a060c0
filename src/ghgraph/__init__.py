"""ghgraph - file-level commits over the GitHub Git Data API."""

__version__ = "0.9.0"

from .api_clients.base_client import (
    APIClientError,
    AuthenticationError,
    GitHubAPIClient,
    NotFoundError,
    PathExistsError,
    RefConflictError,
    StatusError,
    TruncatedTreeError,
)
from .api_clients.network_error_handler import NetworkError
from .git_data import CommitOptions, FileContent, MutationResult, Repository
from .github import GitHub
from .utils.config_manager import ClientConfig, ConfigManager

__all__ = [
    "APIClientError",
    "AuthenticationError",
    "ClientConfig",
    "CommitOptions",
    "ConfigManager",
    "FileContent",
    "GitHub",
    "GitHubAPIClient",
    "MutationResult",
    "NetworkError",
    "NotFoundError",
    "PathExistsError",
    "RefConflictError",
    "Repository",
    "StatusError",
    "TruncatedTreeError",
]
