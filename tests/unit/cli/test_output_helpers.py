"""Tests for CLI output helpers."""

import json

import pytest

from ghgraph.api_clients.base_client import (
    APIClientError,
    AuthenticationError,
    NotFoundError,
    PathExistsError,
    RefConflictError,
    StatusError,
    TruncatedTreeError,
)
from ghgraph.api_clients.network_error_handler import (
    NetworkConnectionError,
    NetworkTimeoutError,
)
from ghgraph.cli_utils.output_helpers import (
    format_json_error,
    format_json_success,
    handle_api_error,
    mutation_data,
)
from ghgraph.git_data.models import MutationResult


class TestJSONOutputFormatting:
    def test_success_structure(self):
        parsed = json.loads(format_json_success({"sha": "c1"}, {"branch": "main"}))

        assert parsed["success"] is True
        assert parsed["data"] == {"sha": "c1"}
        assert parsed["metadata"]["branch"] == "main"
        assert "timestamp" in parsed["metadata"]

    def test_error_structure(self):
        parsed = json.loads(format_json_error("boom", "StatusError"))

        assert parsed == {"success": False, "error": "boom", "error_type": "StatusError"}

    def test_error_default_type(self):
        assert json.loads(format_json_error("boom"))["error_type"] == "Error"

    def test_error_status_code(self):
        parsed = json.loads(format_json_error("boom", "StatusError", 422))

        assert parsed["status_code"] == 422


class TestMutationData:
    def test_result_fields(self):
        result = MutationResult("main", "c1", "t2", "c2")

        assert mutation_data(result) == {
            "branch": "main",
            "parent_sha": "c1",
            "tree_sha": "t2",
            "commit_sha": "c2",
        }

    def test_nothing_committed(self):
        assert mutation_data(None) is None


class TestHandleApiError:
    @pytest.mark.parametrize(
        "error, expected",
        [
            (AuthenticationError(401, "/user"), "Authentication failed (HTTP 401)"),
            (RefConflictError("main", "c1", "c2"), "Branch changed concurrently"),
            (NotFoundError(404, "/repos/o/r"), "Not found: /repos/o/r"),
            (PathExistsError("main", "b.txt"), "Target exists: b.txt"),
            (TruncatedTreeError("c1", 100000), "too large to rewrite"),
            (NetworkTimeoutError("slow", "/x"), "Request timed out"),
            (NetworkConnectionError("down", "/x"), "Network connection error"),
            (StatusError(500, "/x", "boom"), "API error (HTTP 500)"),
            (APIClientError("odd"), "API error: odd"),
            (RuntimeError("bug"), "Unexpected error: bug"),
        ],
    )
    def test_messages(self, error, expected):
        assert expected in handle_api_error(error)
