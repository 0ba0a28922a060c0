"""Shared fixtures for ghgraph unit tests.

Provides FakeGitHub, an in-memory stand-in for the GitHub Git Data API served
through httpx.MockTransport. It stores content-addressed blobs, trees and
commits, so tests exercise the real request sequence without network access.

Tree model: each tree is stored as a flat mapping of file path to blob SHA.
Recursive listings synthesize one ``tree`` entry per directory whose SHA is the
hash of that directory's own file mapping. When a full listing is posted
without ``base_tree``, a ``tree`` entry that still carries a SHA is expanded
from the stored subtree, the same way the real endpoint reuses the subtree it
names.
"""

import base64
import hashlib
import json
import re
from typing import Any, Dict, List, Optional, Tuple, Union

import httpx
import pytest

from ghgraph.github import GitHub
from ghgraph.utils.config_manager import ClientConfig


def _hash(kind: str, payload: bytes) -> str:
    return hashlib.sha1(kind.encode() + b" " + payload).hexdigest()


class FakeGitHub:
    """In-memory Git Data API for one repository."""

    def __init__(self, owner: str = "octocat", repo: str = "hello"):
        self.prefix = f"/repos/{owner}/{repo}"
        self.blobs: Dict[str, bytes] = {}
        self.trees: Dict[str, Dict[str, str]] = {}
        self.commits: Dict[str, Dict[str, Any]] = {}
        self.refs: Dict[str, str] = {}
        self.requests: List[Tuple[str, str, Any]] = []
        # (method, path regex) -> status code returned instead of handling
        self.failures: Dict[Tuple[str, str], int] = {}
        # When set, recursive listings keep only this many entries and are
        # flagged truncated
        self.listing_limit: Optional[int] = None

    # Object store helpers

    def add_blob(self, data: bytes) -> str:
        sha = _hash("blob", data)
        self.blobs[sha] = data
        return sha

    def store_tree(self, files: Dict[str, str]) -> str:
        sha = _hash("tree", json.dumps(sorted(files.items())).encode())
        self.trees[sha] = dict(files)
        return sha

    def add_commit(
        self, tree: str, parents: List[str], message: str, author: Any = None
    ) -> str:
        record = {"tree": tree, "parents": parents, "message": message}
        sha = _hash("commit", json.dumps(record, sort_keys=True).encode())
        self.commits[sha] = {**record, "author": author}
        return sha

    def seed(
        self, branch: str, files: Dict[str, Union[str, bytes]], message: str = "initial"
    ) -> str:
        blob_map = {}
        for path, content in files.items():
            data = content.encode() if isinstance(content, str) else content
            blob_map[path] = self.add_blob(data)
        commit = self.add_commit(self.store_tree(blob_map), [], message)
        self.refs[f"heads/{branch}"] = commit
        return commit

    def head(self, branch: str) -> str:
        return self.refs[f"heads/{branch}"]

    def tree_of(self, commit_sha: str) -> str:
        return self.commits[commit_sha]["tree"]

    def files_at(self, branch: str) -> Dict[str, bytes]:
        files = self.trees[self.tree_of(self.head(branch))]
        return {path: self.blobs[sha] for path, sha in files.items()}

    def listing(self, tree_sha: str) -> List[Dict[str, Any]]:
        files = self.trees[tree_sha]
        dirs = set()
        for path in files:
            parts = path.split("/")[:-1]
            for i in range(1, len(parts) + 1):
                dirs.add("/".join(parts[:i]))

        entries = []
        for d in dirs:
            sub = {p[len(d) + 1:]: s for p, s in files.items() if p.startswith(d + "/")}
            entries.append(
                {"path": d, "mode": "040000", "type": "tree", "sha": self.store_tree(sub)}
            )
        for path, sha in files.items():
            entries.append(
                {
                    "path": path,
                    "mode": "100644",
                    "type": "blob",
                    "sha": sha,
                    "size": len(self.blobs[sha]),
                }
            )
        return sorted(entries, key=lambda e: e["path"])

    def calls(self, method: str, pattern: str) -> List[Any]:
        """Bodies of recorded requests matching method and path regex."""
        return [
            body
            for m, path, body in self.requests
            if m == method and re.search(pattern, path)
        ]

    def _is_ancestor(self, ancestor: str, sha: str) -> bool:
        pending = [sha]
        while pending:
            current = pending.pop()
            if current == ancestor:
                return True
            pending.extend(self.commits.get(current, {}).get("parents", []))
        return False

    def _resolve_tree_ish(self, tree_ish: str) -> Optional[str]:
        if tree_ish in self.trees:
            return tree_ish
        if tree_ish in self.commits:
            return self.tree_of(tree_ish)
        if f"heads/{tree_ish}" in self.refs:
            return self.tree_of(self.refs[f"heads/{tree_ish}"])
        return None

    # HTTP handling

    def handler(self, request: httpx.Request) -> httpx.Response:
        method = request.method
        path = request.url.path
        body = json.loads(request.content) if request.content else None
        self.requests.append((method, path, body))

        for (fail_method, pattern), status in self.failures.items():
            if fail_method == method and re.search(pattern, path):
                return httpx.Response(status, json={"message": "injected failure"})

        if not path.startswith(self.prefix):
            return self._not_found()
        rest = path[len(self.prefix):]

        if method == "GET" and rest == "/git/refs/heads":
            return httpx.Response(
                200,
                json=[
                    {"ref": f"refs/{name}", "object": {"sha": sha, "type": "commit"}}
                    for name, sha in sorted(self.refs.items())
                    if name.startswith("heads/")
                ],
            )

        if match := re.fullmatch(r"/git/refs/(.+)", rest):
            return self._handle_ref(method, match.group(1), body)

        if method == "POST" and rest == "/git/refs":
            name = body["ref"][len("refs/"):]
            if name in self.refs:
                return httpx.Response(422, json={"message": "Reference already exists"})
            self.refs[name] = body["sha"]
            return httpx.Response(
                201, json={"ref": body["ref"], "object": {"sha": body["sha"]}}
            )

        if method == "GET" and (match := re.fullmatch(r"/git/trees/(.+)", rest)):
            tree_sha = self._resolve_tree_ish(match.group(1))
            if tree_sha is None:
                return self._not_found()
            entries = self.listing(tree_sha)
            truncated = (
                self.listing_limit is not None and len(entries) > self.listing_limit
            )
            if truncated:
                entries = entries[: self.listing_limit]
            return httpx.Response(
                200,
                json={"sha": tree_sha, "tree": entries, "truncated": truncated},
            )

        if method == "POST" and rest == "/git/trees":
            return self._create_tree(body)

        if method == "POST" and rest == "/git/blobs":
            if body["encoding"] == "base64":
                data = base64.b64decode(body["content"])
            else:
                data = body["content"].encode("utf-8")
            return httpx.Response(201, json={"sha": self.add_blob(data)})

        if method == "GET" and (match := re.fullmatch(r"/git/blobs/(.+)", rest)):
            data = self.blobs.get(match.group(1))
            if data is None:
                return self._not_found()
            encoded = base64.b64encode(data).decode()
            wrapped = "\n".join(encoded[i:i + 60] for i in range(0, len(encoded), 60))
            return httpx.Response(
                200,
                json={
                    "sha": match.group(1),
                    "size": len(data),
                    "content": wrapped + "\n",
                    "encoding": "base64",
                },
            )

        if method == "GET" and (match := re.fullmatch(r"/git/commits/(.+)", rest)):
            commit = self.commits.get(match.group(1))
            if commit is None:
                return self._not_found()
            return httpx.Response(
                200,
                json={
                    "sha": match.group(1),
                    "tree": {"sha": commit["tree"]},
                    "parents": [{"sha": p} for p in commit["parents"]],
                    "message": commit["message"],
                },
            )

        if method == "POST" and rest == "/git/commits":
            if body["tree"] not in self.trees:
                return httpx.Response(422, json={"message": "Tree SHA does not exist"})
            author = body.get("author")
            if author is not None and not (author.get("name") and author.get("email")):
                return httpx.Response(
                    422, json={"message": "Invalid request: author requires name and email"}
                )
            sha = self.add_commit(
                body["tree"], body["parents"], body["message"], body.get("author")
            )
            return httpx.Response(201, json={"sha": sha})

        return self._not_found()

    def _not_found(self) -> httpx.Response:
        return httpx.Response(404, json={"message": "Not Found"})

    def _handle_ref(self, method: str, name: str, body: Any) -> httpx.Response:
        if method == "GET":
            if name not in self.refs:
                return self._not_found()
            return httpx.Response(
                200,
                json={
                    "ref": f"refs/{name}",
                    "object": {"sha": self.refs[name], "type": "commit"},
                },
            )
        if method == "DELETE":
            if self.refs.pop(name, None) is None:
                return httpx.Response(422, json={"message": "Reference does not exist"})
            return httpx.Response(204)
        if method == "PATCH":
            if name not in self.refs:
                return httpx.Response(422, json={"message": "Reference does not exist"})
            new_sha = body["sha"]
            if not body.get("force") and not self._is_ancestor(self.refs[name], new_sha):
                return httpx.Response(
                    422, json={"message": "Update is not a fast forward"}
                )
            self.refs[name] = new_sha
            return httpx.Response(
                200, json={"ref": f"refs/{name}", "object": {"sha": new_sha}}
            )
        return self._not_found()

    def _create_tree(self, body: Dict[str, Any]) -> httpx.Response:
        base = body.get("base_tree")
        if base is not None and base not in self.trees:
            return httpx.Response(422, json={"message": "base_tree is not a tree"})
        files = dict(self.trees[base]) if base else {}

        for entry in body["tree"]:
            path = entry["path"]
            if entry["type"] == "blob":
                if "sha" in entry and entry["sha"] is None:
                    files.pop(path, None)
                elif entry.get("sha") in self.blobs:
                    files[path] = entry["sha"]
                else:
                    return httpx.Response(422, json={"message": f"Invalid sha for {path}"})
            elif entry["type"] == "tree" and entry.get("sha"):
                for sub_path, sub_sha in self.trees[entry["sha"]].items():
                    files[f"{path}/{sub_path}"] = sub_sha

        return httpx.Response(201, json={"sha": self.store_tree(files)})


@pytest.fixture
def fake_github():
    """Empty fake remote for octocat/hello."""
    return FakeGitHub()


@pytest.fixture
def client_config():
    """Client configuration with a token and a fixed author."""
    config = ClientConfig()
    config.auth_config.token = "ghp_test123"
    config.commit_config.author_name = "Test Author"
    config.commit_config.author_email = "author@example.com"
    return config


@pytest.fixture
def github(fake_github, client_config):
    """GitHub entry point wired to the fake remote."""
    return GitHub(client_config, transport=httpx.MockTransport(fake_github.handler))


@pytest.fixture
def repository(github):
    """Repository handle for octocat/hello on the fake remote."""
    return github.get_repo("octocat", "hello")
