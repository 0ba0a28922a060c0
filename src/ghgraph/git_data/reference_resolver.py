"""Branch name to tip commit resolution with a per-handle cache."""

import logging
from typing import Any

from ..api_clients.base_client import GitHubAPIClient
from .models import BranchTip

logger = logging.getLogger(__name__)


class ReferenceResolver:
    """Reads and creates refs under one repository path."""

    def __init__(self, client: GitHubAPIClient, repo_path: str, tip: BranchTip):
        self._client = client
        self._repo_path = repo_path
        self._tip = tip

    @property
    def tip(self) -> BranchTip:
        return self._tip

    async def resolve_tip(self, branch: str) -> str:
        """
        Return the commit SHA ``branch`` points to.

        Served from the cached tip when it holds a SHA for the same branch;
        otherwise the ref is read and the cache rekeyed to ``branch``. Call this
        immediately before building a tree for a new commit.
        """
        if self._tip.matches(branch):
            logger.debug(f"Tip cache hit for {branch}: {self._tip.sha}")
            assert self._tip.sha is not None
            return self._tip.sha

        sha = await self.get_ref(f"heads/{branch}")
        self._tip.set(branch, sha)
        return sha

    def invalidate(self) -> None:
        """Forget the cached tip so the next resolve reads the ref."""
        self._tip.clear()

    async def get_ref(self, ref: str) -> str:
        """Return the SHA a ref such as ``heads/main`` or ``tags/v1`` targets."""
        res = await self._client.request("GET", f"{self._repo_path}/git/refs/{ref}")
        return res["object"]["sha"]

    async def create_ref(self, ref_name: str, sha: str) -> Any:
        """Create ``ref_name`` (fully qualified, e.g. ``refs/heads/topic``) at ``sha``."""
        return await self._client.request(
            "POST", f"{self._repo_path}/git/refs", {"ref": ref_name, "sha": sha}
        )

    async def delete_ref(self, ref: str) -> Any:
        """Delete a ref such as ``heads/gh-pages`` or ``tags/v1.0``."""
        return await self._client.request(
            "DELETE", f"{self._repo_path}/git/refs/{ref}"
        )
