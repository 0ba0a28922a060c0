"""Tree-mutation workflow over the GitHub Git Data API."""

from .models import (
    BinaryContent,
    BranchTip,
    CommitOptions,
    FileContent,
    MutationResult,
    TextContent,
    TreeEntry,
    to_blob_content,
)
from .object_graph_builder import locate_entry, remove_path, rename_path
from .repository import Repository

__all__ = [
    "BinaryContent",
    "BranchTip",
    "CommitOptions",
    "FileContent",
    "MutationResult",
    "Repository",
    "TextContent",
    "TreeEntry",
    "locate_entry",
    "remove_path",
    "rename_path",
    "to_blob_content",
]
