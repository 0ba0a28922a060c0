"""Top-level entry point: one API client shared by many repository handles."""

from typing import Optional

import httpx

from .api_clients.base_client import GitHubAPIClient
from .git_data.repository import Repository
from .utils.config_manager import ClientConfig


class GitHub:
    """
    Entry point for the GitHub Git Data API.

    Usage:
        async with GitHub(config) as gh:
            repo = gh.get_repo("octocat", "hello-world")
            await repo.write("main", "README.md", "hi", "Update README")
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or ClientConfig()
        self.client = GitHubAPIClient(self.config, transport=transport)

    def get_repo(self, owner: str, name: str) -> Repository:
        """Return a new handle; each handle caches its own branch tip."""
        return Repository(self.client, owner, name, self.config)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "GitHub":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
