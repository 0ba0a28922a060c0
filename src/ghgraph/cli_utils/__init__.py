"""Shared output formatting for ghgraph CLI commands."""

from .output_helpers import (
    format_json_error,
    format_json_success,
    handle_api_error,
    mutation_data,
)

__all__ = [
    "format_json_error",
    "format_json_success",
    "handle_api_error",
    "mutation_data",
]
