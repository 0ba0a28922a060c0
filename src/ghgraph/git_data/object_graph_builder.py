"""
Object graph construction over the Git Data API.

Trees are handled in their flat form: the full recursive listing of a commit's
file tree. Edits are applied to that listing in memory and the result is
resubmitted wholesale; the remote rebuilds the nested trees from it. Any
``tree`` entry left in a resubmitted listing must have its SHA cleared, or the
remote reuses the old subtree and the edit is lost.
"""

import base64
import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Union

from ..api_clients.base_client import GitHubAPIClient, TruncatedTreeError
from ..logging_utils import format_error_log
from .models import BLOB_FILE_MODE, BlobContent, TreeEntry, to_blob_content

logger = logging.getLogger(__name__)


def locate_entry(tree: Sequence[TreeEntry], path: str) -> Optional[TreeEntry]:
    """Return the first entry whose path equals ``path``, or None."""
    for entry in tree:
        if entry.path == path:
            return entry
    return None


def _is_at_or_under(entry_path: str, path: str) -> bool:
    return entry_path == path or entry_path.startswith(path + "/")


def _clear_tree_shas(entries: List[TreeEntry]) -> List[TreeEntry]:
    return [replace(e, sha=None) if e.type == "tree" else e for e in entries]


def remove_path(tree: Sequence[TreeEntry], path: str) -> List[TreeEntry]:
    """
    Drop ``path`` from a flat tree.

    When ``path`` names a directory its descendants go with it, otherwise the
    remote would recreate the directory from the surviving children.
    """
    kept = [replace(e) for e in tree if not _is_at_or_under(e.path, path)]
    return _clear_tree_shas(kept)


def rename_path(tree: Sequence[TreeEntry], path: str, new_path: str) -> List[TreeEntry]:
    """Rewrite ``path`` (and every path under it) to live at ``new_path``."""
    renamed = []
    for entry in tree:
        if _is_at_or_under(entry.path, path):
            renamed.append(replace(entry, path=new_path + entry.path[len(path):]))
        else:
            renamed.append(replace(entry))
    return _clear_tree_shas(renamed)


class ObjectGraphBuilder:
    """Creates and reads blobs and trees under one repository path."""

    def __init__(self, client: GitHubAPIClient, repo_path: str):
        self._client = client
        self._repo_path = repo_path

    async def fetch_flat_tree(
        self, tree_ish: str, require_complete: bool = False
    ) -> List[TreeEntry]:
        """
        Fetch the recursive listing of a tree, commit or branch name.

        Listings that will be resubmitted as a whole tree must pass
        ``require_complete``; a truncated listing then raises instead of being
        returned.

        Raises:
            TruncatedTreeError: If the listing is truncated and ``require_complete``
        """
        res = await self._client.request(
            "GET",
            f"{self._repo_path}/git/trees/{tree_ish}",
            params={"recursive": "true"},
        )
        entries = [TreeEntry.from_api(item) for item in res["tree"]]
        if res.get("truncated"):
            logger.warning(
                format_error_log(
                    "GIT-TREE-001",
                    "Recursive tree listing truncated by the remote",
                    tree=tree_ish,
                    entries=len(entries),
                )
            )
            if require_complete:
                raise TruncatedTreeError(tree_ish, len(entries))
        return entries

    async def get_commit_tree(self, commit_sha: str) -> str:
        """Return the SHA of the root tree a commit points to."""
        res = await self._client.request(
            "GET", f"{self._repo_path}/git/commits/{commit_sha}"
        )
        return res["tree"]["sha"]

    async def create_blob(self, content: Union[str, bytes, BlobContent]) -> str:
        """Post a new blob and return its SHA."""
        payload = to_blob_content(content).to_wire()
        res = await self._client.request(
            "POST", f"{self._repo_path}/git/blobs", payload
        )
        return res["sha"]

    async def get_blob(self, sha: str) -> bytes:
        """Return the raw bytes stored in a blob."""
        res = await self._client.request("GET", f"{self._repo_path}/git/blobs/{sha}")
        return decode_blob_response(res)

    async def create_tree(
        self, entries: Sequence[TreeEntry], base_tree: Optional[str] = None
    ) -> str:
        """
        Post a tree and return its SHA.

        Without ``base_tree`` the entries are the complete new content; with it
        they are applied on top of the base.
        """
        data: Dict[str, Any] = {"tree": [entry.to_api() for entry in entries]}
        if base_tree is not None:
            data["base_tree"] = base_tree
        res = await self._client.request("POST", f"{self._repo_path}/git/trees", data)
        return res["sha"]

    async def update_tree(
        self, base_tree: str, path: str, blob_sha: str, mode: str = BLOB_FILE_MODE
    ) -> str:
        """Add or replace a single blob on top of ``base_tree``."""
        entry = TreeEntry(path=path, mode=mode, type="blob", sha=blob_sha)
        return await self.create_tree([entry], base_tree=base_tree)


def decode_blob_response(res: Any) -> bytes:
    """
    Decode a git/blobs response body.

    The JSON form carries base64 content wrapped at 60 columns; a raw media
    type response arrives as text.
    """
    if isinstance(res, (bytes, bytearray)):
        return bytes(res)
    if isinstance(res, str):
        return res.encode("utf-8")

    content = res.get("content", "")
    encoding = res.get("encoding", "base64")
    if encoding == "base64":
        return base64.b64decode("".join(content.split()))
    if encoding == "utf-8":
        return content.encode("utf-8")
    raise ValueError(f"Unsupported blob encoding: {encoding}")
