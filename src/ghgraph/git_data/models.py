"""Value types for the Git Data tree-mutation workflow."""

import base64
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

BLOB_FILE_MODE = "100644"
TREE_MODE = "040000"


@dataclass
class BranchTip:
    """
    Single-slot cache of the commit a branch points to.

    Owned by one Repository handle. Valid only while ``branch`` is the branch
    most recently operated on; it goes stale silently when another writer
    advances the remote ref.
    """

    branch: Optional[str] = None
    sha: Optional[str] = None

    def matches(self, branch: str) -> bool:
        return self.branch == branch and self.sha is not None

    def set(self, branch: str, sha: str) -> None:
        self.branch = branch
        self.sha = sha

    def clear(self) -> None:
        self.branch = None
        self.sha = None


@dataclass
class TreeEntry:
    """One entry of a flat (recursive) tree listing."""

    path: str
    mode: str
    type: str
    # None asks the remote to recompute the subtree from its children
    sha: Optional[str] = None
    size: Optional[int] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "TreeEntry":
        return cls(
            path=data["path"],
            mode=data["mode"],
            type=data["type"],
            sha=data.get("sha"),
            size=data.get("size"),
        )

    def to_api(self) -> Dict[str, Any]:
        """Wire form for POST git/trees; the sha key is dropped when unset."""
        payload: Dict[str, Any] = {
            "path": self.path,
            "mode": self.mode,
            "type": self.type,
        }
        if self.sha is not None:
            payload["sha"] = self.sha
        return payload


@dataclass(frozen=True)
class TextContent:
    """UTF-8 text blob payload."""

    text: str

    def to_wire(self) -> Dict[str, str]:
        return {"content": self.text, "encoding": "utf-8"}


@dataclass(frozen=True)
class BinaryContent:
    """Arbitrary bytes blob payload, sent base64 encoded."""

    data: bytes

    def to_wire(self) -> Dict[str, str]:
        return {
            "content": base64.b64encode(self.data).decode("ascii"),
            "encoding": "base64",
        }


BlobContent = Union[TextContent, BinaryContent]


def to_blob_content(value: Union[str, bytes, bytearray, BlobContent]) -> BlobContent:
    """Resolve a caller-supplied payload into the tagged blob union.

    Raises:
        TypeError: If the value is neither text nor bytes
    """
    if isinstance(value, (TextContent, BinaryContent)):
        return value
    if isinstance(value, str):
        return TextContent(value)
    if isinstance(value, (bytes, bytearray)):
        return BinaryContent(bytes(value))
    raise TypeError(f"Blob content must be str or bytes, got {type(value).__name__}")


@dataclass
class CommitOptions:
    """Per-commit settings; unset author fields fall back to the configured identity."""

    message: str
    author_name: Optional[str] = None
    author_email: Optional[str] = None

    def author(self) -> Optional[Dict[str, str]]:
        """Commit author payload; the remote requires both name and email."""
        if not (self.author_name and self.author_email):
            return None
        return {"name": self.author_name, "email": self.author_email}


@dataclass
class MutationResult:
    """Outcome of a completed write/remove/move pipeline."""

    branch: str
    parent_sha: str
    tree_sha: str
    commit_sha: str


@dataclass
class FileContent:
    """Blob read back from a branch."""

    sha: str
    data: bytes = field(repr=False)

    @property
    def text(self) -> str:
        return self.data.decode("utf-8")
