"""Commit creation and branch ref advancement."""

import logging
from typing import Any, Dict, Optional

from ..api_clients.base_client import (
    GitHubAPIClient,
    NotFoundError,
    RefConflictError,
    StatusError,
)
from ..logging_utils import format_error_log, short_sha
from ..utils.config_manager import CommitConfig
from .models import BranchTip, CommitOptions
from .reference_resolver import ReferenceResolver

logger = logging.getLogger(__name__)


class CommitWriter:
    """Writes commits and moves branch refs for one repository handle."""

    def __init__(
        self,
        client: GitHubAPIClient,
        repo_path: str,
        resolver: ReferenceResolver,
        commit_config: Optional[CommitConfig] = None,
    ):
        self._client = client
        self._repo_path = repo_path
        self._resolver = resolver
        self._commit_config = commit_config or CommitConfig()

    @property
    def tip(self) -> BranchTip:
        return self._resolver.tip

    def _author(self, options: CommitOptions) -> Optional[Dict[str, str]]:
        author = options.author()
        if author is not None:
            return author
        configured = CommitOptions(
            message=options.message,
            author_name=self._commit_config.author_name or self._client.username,
            author_email=self._commit_config.author_email,
        )
        # None lets the remote attribute the commit to the authenticated user
        return configured.author()

    async def commit(
        self,
        parent_sha: str,
        tree_sha: str,
        options: CommitOptions,
        branch: Optional[str] = None,
    ) -> str:
        """
        Create a single-parent commit and return its SHA.

        The handle's cached tip is moved to the new commit right away, before
        the branch ref itself is updated. With ``branch`` the tip is rekeyed to
        that branch; without it only the SHA changes.
        """
        data: Dict[str, Any] = {
            "message": options.message,
            "parents": [parent_sha],
            "tree": tree_sha,
        }
        author = self._author(options)
        if author is not None:
            data["author"] = author

        res = await self._client.request(
            "POST", f"{self._repo_path}/git/commits", data
        )
        sha = res["sha"]
        if branch is not None:
            self.tip.set(branch, sha)
        else:
            self.tip.sha = sha
        logger.debug(
            f"Created commit {short_sha(sha)} "
            f"(parent {short_sha(parent_sha)}, tree {short_sha(tree_sha)})"
        )
        return sha

    async def update_head(
        self, branch: str, commit_sha: str, expected_sha: Optional[str] = None
    ) -> Any:
        """
        Point ``heads/{branch}`` at ``commit_sha``.

        With ``expected_sha`` the live ref is compared first and a mismatch
        raises RefConflictError instead of touching the ref. The update is never
        forced, so a non-fast-forward rejection is reported the same way.

        Raises:
            RefConflictError: If the branch no longer points at ``expected_sha``
            StatusError: For any other rejected request
        """
        if expected_sha is not None:
            actual_sha = await self._resolver.get_ref(f"heads/{branch}")
            if actual_sha != expected_sha:
                self._log_conflict(branch, expected_sha, actual_sha)
                raise RefConflictError(branch, expected_sha, actual_sha)

        try:
            return await self._client.request(
                "PATCH",
                f"{self._repo_path}/git/refs/heads/{branch}",
                {"sha": commit_sha, "force": False},
            )
        except NotFoundError:
            raise
        except StatusError as e:
            if expected_sha is not None and e.status_code in (409, 422):
                self._log_conflict(branch, expected_sha, None)
                raise RefConflictError(
                    branch, expected_sha, status_code=e.status_code
                ) from e
            raise

    def _log_conflict(
        self, branch: str, expected_sha: str, actual_sha: Optional[str]
    ) -> None:
        logger.warning(
            format_error_log(
                "GIT-REF-002",
                "Branch moved since its tip was resolved",
                branch=branch,
                expected=expected_sha,
                actual=actual_sha,
            )
        )
