"""API clients for the GitHub REST API."""
