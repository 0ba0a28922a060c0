"""
Repository handle: file-level mutations over the Git Data API.

Every mutation (write, remove, move) runs the same sequential pipeline:

    resolve tip -> build tree -> create commit -> update ref

Each stage awaits the previous one; a failure at any stage propagates
unchanged and leaves the remaining stages unrun. Blobs, trees and commits
created before the failure stay on the remote unreferenced.

Nothing serializes concurrent mutations of one branch. Two overlapping calls
build on the same tip and the second ref update is rejected (or, with
``verify_tip`` enabled, detected as a RefConflictError). Callers that need
several mutations on one branch must await them one after another.
"""

import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from ..api_clients.base_client import (
    APIClientError,
    GitHubAPIClient,
    PathExistsError,
    RefConflictError,
)
from ..api_clients.network_error_handler import NetworkError
from ..logging_utils import format_error_log, short_sha
from ..utils.config_manager import ClientConfig
from .commit_writer import CommitWriter
from .models import BlobContent, BranchTip, CommitOptions, FileContent, MutationResult
from .object_graph_builder import (
    ObjectGraphBuilder,
    locate_entry,
    remove_path,
    rename_path,
)
from .reference_resolver import ReferenceResolver

logger = logging.getLogger(__name__)

MessageArg = Union[str, CommitOptions]


def _commit_options(message: Optional[MessageArg], default: str) -> CommitOptions:
    if isinstance(message, CommitOptions):
        return message
    return CommitOptions(message=message or default)


def _isoformat(value: Union[str, datetime]) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class Repository:
    """One GitHub repository, with its own cached branch tip."""

    def __init__(
        self,
        client: GitHubAPIClient,
        owner: str,
        name: str,
        config: Optional[ClientConfig] = None,
    ):
        self.owner = owner
        self.name = name
        self.repo_path = f"/repos/{owner}/{name}"
        self.config = config or client.config
        self._client = client
        self.tip = BranchTip()
        self._resolver = ReferenceResolver(client, self.repo_path, self.tip)
        self._builder = ObjectGraphBuilder(client, self.repo_path)
        self._writer = CommitWriter(
            client, self.repo_path, self._resolver, self.config.commit_config
        )

    @property
    def resolver(self) -> ReferenceResolver:
        return self._resolver

    @property
    def builder(self) -> ObjectGraphBuilder:
        return self._builder

    @property
    def writer(self) -> CommitWriter:
        return self._writer

    async def _mutate(
        self,
        branch: str,
        build_tree: Callable[[str], Awaitable[Optional[str]]],
        options: CommitOptions,
    ) -> Optional[MutationResult]:
        """Run the four-stage pipeline; ``build_tree`` returning None ends it early."""
        stage = "resolve_tip"
        try:
            parent_sha = await self._resolver.resolve_tip(branch)

            stage = "build_tree"
            tree_sha = await build_tree(parent_sha)
            if tree_sha is None:
                return None

            stage = "commit"
            commit_sha = await self._writer.commit(
                parent_sha, tree_sha, options, branch=branch
            )

            stage = "update_ref"
            assert self.config.commit_config is not None
            expected_sha = parent_sha if self.config.commit_config.verify_tip else None
            await self._writer.update_head(branch, commit_sha, expected_sha)
        except RefConflictError:
            self._resolver.invalidate()
            raise
        except (APIClientError, NetworkError) as e:
            logger.error(
                format_error_log(
                    "GIT-MUTATE-001",
                    f"Pipeline stopped: {e}",
                    repo=self.repo_path,
                    branch=branch,
                    stage=stage,
                )
            )
            raise

        logger.info(f"{self.repo_path}@{branch} advanced to {short_sha(commit_sha)}")
        return MutationResult(
            branch=branch,
            parent_sha=parent_sha,
            tree_sha=tree_sha,
            commit_sha=commit_sha,
        )

    async def write(
        self,
        branch: str,
        path: str,
        content: Union[str, bytes, BlobContent],
        message: MessageArg,
    ) -> MutationResult:
        """Write file contents to ``path`` on ``branch``."""

        async def build_tree(parent_sha: str) -> str:
            blob_sha = await self._builder.create_blob(content)
            base_tree = await self._builder.get_commit_tree(parent_sha)
            return await self._builder.update_tree(base_tree, path, blob_sha)

        result = await self._mutate(
            branch, build_tree, _commit_options(message, f"Updated {path}")
        )
        assert result is not None
        return result

    async def remove(
        self, branch: str, path: str, message: Optional[MessageArg] = None
    ) -> Optional[MutationResult]:
        """
        Remove a file or directory from ``branch``.

        Returns None without creating any object when ``path`` is absent.
        """

        async def build_tree(parent_sha: str) -> Optional[str]:
            tree = await self._builder.fetch_flat_tree(
                parent_sha, require_complete=True
            )
            if locate_entry(tree, path) is None:
                logger.info(f"{path} not found on {branch}, nothing to remove")
                return None
            return await self._builder.create_tree(remove_path(tree, path))

        return await self._mutate(
            branch, build_tree, _commit_options(message, f"Deleted {path}")
        )

    async def delete(
        self, branch: str, path: str, message: Optional[MessageArg] = None
    ) -> Optional[MutationResult]:
        """Alias of remove()."""
        return await self.remove(branch, path, message)

    async def move(
        self,
        branch: str,
        path: str,
        new_path: str,
        message: Optional[MessageArg] = None,
    ) -> Optional[MutationResult]:
        """
        Move a file or directory to ``new_path`` on ``branch``.

        Returns None without creating any object when ``path`` is absent.

        Raises:
            PathExistsError: If ``new_path`` is already on the branch
        """

        async def build_tree(parent_sha: str) -> Optional[str]:
            tree = await self._builder.fetch_flat_tree(
                parent_sha, require_complete=True
            )
            if locate_entry(tree, path) is None:
                logger.info(f"{path} not found on {branch}, nothing to move")
                return None
            if locate_entry(tree, new_path) is not None:
                raise PathExistsError(branch, new_path)
            return await self._builder.create_tree(rename_path(tree, path, new_path))

        return await self._mutate(
            branch,
            build_tree,
            _commit_options(message, f"Moved {path} to {new_path}"),
        )

    async def get_sha(self, branch: str, path: str) -> Optional[str]:
        """
        SHA for a path on a branch: blob for files, tree for directories.

        An empty path returns the branch head commit. None when not found.
        """
        if path == "":
            return await self._resolver.get_ref(f"heads/{branch}")
        tree = await self._builder.fetch_flat_tree(branch)
        entry = locate_entry(tree, path)
        return entry.sha if entry else None

    async def read(self, branch: str, path: str) -> Optional[FileContent]:
        """
        Read the file at ``path`` on ``branch``.

        None when the path is absent or names a directory.
        """
        entry = locate_entry(await self._builder.fetch_flat_tree(branch), path)
        if entry is None or entry.type != "blob":
            return None
        assert entry.sha is not None
        data = await self._builder.get_blob(entry.sha)
        return FileContent(sha=entry.sha, data=data)

    async def branch(self, old_branch: str, new_branch: Optional[str] = None) -> Any:
        """
        Create ``new_branch`` at the head of ``old_branch``.

        Called with one name, branches from the configured default branch.
        """
        if new_branch is None:
            new_branch = old_branch
            old_branch = self.config.default_branch
        sha = await self._resolver.get_ref(f"heads/{old_branch}")
        return await self._resolver.create_ref(f"refs/heads/{new_branch}", sha)

    async def list_branches(self) -> List[str]:
        heads = await self._client.request_all_pages(f"{self.repo_path}/git/refs/heads")
        return [head["ref"][len("refs/heads/"):] for head in heads]

    async def get_commits(
        self,
        sha: Optional[str] = None,
        path: Optional[str] = None,
        since: Optional[Union[str, datetime]] = None,
        until: Optional[Union[str, datetime]] = None,
    ) -> Any:
        """
        List commits.

        Args:
            sha: SHA or branch to start listing commits from
            path: Only commits touching this path
            since: Only commits after this date (datetime or ISO 8601)
            until: Only commits before this date (datetime or ISO 8601)
        """
        params: Dict[str, str] = {}
        if sha:
            params["sha"] = sha
        if path:
            params["path"] = path
        if since:
            params["since"] = _isoformat(since)
        if until:
            params["until"] = _isoformat(until)
        return await self._client.request(
            "GET", f"{self.repo_path}/commits", params=params or None
        )

    async def contents(self, branch: str, path: str = "") -> Any:
        """Contents API lookup: raw text for files, a JSON listing for directories."""
        path = path.lstrip("/")
        raw = path != "" and not path.endswith("/")
        return await self._client.request(
            "GET",
            f"{self.repo_path}/contents/{path}",
            raw=raw,
            params={"ref": branch},
        )

    async def show(self) -> Any:
        return await self._client.request("GET", self.repo_path)
