"""
Client Configuration Management for ghgraph.

Handles client configuration creation, validation, environment variable
overrides and JSON persistence for the GitHub Git Data client.
"""

import json
import logging
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional


DEFAULT_API_URL = "https://api.github.com"


@dataclass
class ApiConfig:
    """GitHub REST API connection settings."""

    api_url: str = DEFAULT_API_URL
    # Bounds every request; the remote has no server-side deadline
    timeout_seconds: float = 30.0
    api_version: str = "2022-11-28"
    # Page size requested from list endpoints before following rel="next"
    per_page: int = 100


@dataclass
class AuthConfig:
    """
    Credentials for the GitHub API.

    A token takes precedence over username/password basic auth.
    """

    token: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None


@dataclass
class CommitConfig:
    """Commit identity and ref update behavior."""

    author_name: Optional[str] = None
    author_email: Optional[str] = None
    # Read the live ref before advancing it and fail with RefConflictError
    # when it no longer matches the parent commit
    verify_tip: bool = True


@dataclass
class ClientConfig:
    """
    Client configuration data structure.

    Contains all configurable client settings including API connection,
    credentials, commit identity and logging.
    """

    default_branch: str = "main"
    log_level: str = "WARNING"
    api_config: Optional[ApiConfig] = None
    auth_config: Optional[AuthConfig] = None
    commit_config: Optional[CommitConfig] = None

    def __post_init__(self):
        """Initialize nested config objects if not provided."""
        if self.api_config is None:
            self.api_config = ApiConfig()
        if self.auth_config is None:
            self.auth_config = AuthConfig()
        if self.commit_config is None:
            self.commit_config = CommitConfig()


class ConfigManager:
    """
    Manages ghgraph client configuration.

    Handles configuration creation, validation, file persistence and
    environment variable overrides.
    """

    def __init__(self, config_dir_path: Optional[str] = None):
        """
        Initialize configuration manager.

        Args:
            config_dir_path: Path to config directory (defaults to GHGRAPH_CONFIG_DIR env var or ~/.ghgraph)
        """
        if config_dir_path:
            self.config_dir = Path(config_dir_path)
        else:
            default_dir = os.environ.get(
                "GHGRAPH_CONFIG_DIR", str(Path.home() / ".ghgraph")
            )
            self.config_dir = Path(default_dir)

        self.config_file_path = self.config_dir / "config.json"

    def create_default_config(self) -> ClientConfig:
        """Create default client configuration."""
        return ClientConfig()

    def save_config(self, config: ClientConfig) -> None:
        """
        Save configuration to file.

        The file may hold a token, so it is written owner-readable only.

        Args:
            config: ClientConfig object to save
        """
        self.config_dir.mkdir(parents=True, exist_ok=True)

        config_dict = asdict(config)

        with open(self.config_file_path, "w") as f:
            json.dump(config_dict, f, indent=2)
        os.chmod(self.config_file_path, 0o600)

    def load_config(self) -> Optional[ClientConfig]:
        """
        Load configuration from file.

        Returns:
            ClientConfig if file exists and is valid, None otherwise

        Raises:
            ValueError: If configuration file is malformed
        """
        if not self.config_file_path.exists():
            return None

        try:
            with open(self.config_file_path, "r") as f:
                config_dict = json.load(f)

            if "api_config" in config_dict and isinstance(
                config_dict["api_config"], dict
            ):
                config_dict["api_config"] = ApiConfig(**config_dict["api_config"])

            if "auth_config" in config_dict and isinstance(
                config_dict["auth_config"], dict
            ):
                config_dict["auth_config"] = AuthConfig(**config_dict["auth_config"])

            if "commit_config" in config_dict and isinstance(
                config_dict["commit_config"], dict
            ):
                config_dict["commit_config"] = CommitConfig(
                    **config_dict["commit_config"]
                )

            return ClientConfig(**config_dict)

        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {e}")
        except TypeError as e:
            raise ValueError(f"Invalid configuration format: {e}")

    def load_or_default(self) -> ClientConfig:
        """
        Load configuration from file, fall back to defaults, then apply
        environment overrides and validate the result.
        """
        config = self.load_config() or self.create_default_config()
        config = self.apply_env_overrides(config)
        self.validate_config(config)
        return config

    def apply_env_overrides(self, config: ClientConfig) -> ClientConfig:
        """
        Apply environment variable overrides to configuration.

        Supported environment variables:
        - GHGRAPH_TOKEN (or GITHUB_TOKEN): API token
        - GHGRAPH_API_URL: Override API root URL
        - GHGRAPH_TIMEOUT: Override request timeout in seconds
        - GHGRAPH_LOG_LEVEL: Override log level
        - GHGRAPH_DEFAULT_BRANCH: Override default branch
        - GHGRAPH_AUTHOR_NAME / GHGRAPH_AUTHOR_EMAIL: Commit author identity

        Args:
            config: Base configuration to apply overrides to

        Returns:
            Updated configuration with environment overrides
        """
        assert config.api_config is not None  # Guaranteed by __post_init__
        assert config.auth_config is not None
        assert config.commit_config is not None

        if token_env := (
            os.environ.get("GHGRAPH_TOKEN") or os.environ.get("GITHUB_TOKEN")
        ):
            config.auth_config.token = token_env

        if api_url_env := os.environ.get("GHGRAPH_API_URL"):
            config.api_config.api_url = api_url_env.rstrip("/")

        if timeout_env := os.environ.get("GHGRAPH_TIMEOUT"):
            try:
                config.api_config.timeout_seconds = float(timeout_env)
            except ValueError:
                logging.warning(
                    f"Invalid GHGRAPH_TIMEOUT environment variable value '{timeout_env}'. Using default {config.api_config.timeout_seconds} seconds"
                )

        if log_level_env := os.environ.get("GHGRAPH_LOG_LEVEL"):
            config.log_level = log_level_env.upper()

        if branch_env := os.environ.get("GHGRAPH_DEFAULT_BRANCH"):
            config.default_branch = branch_env

        if author_name_env := os.environ.get("GHGRAPH_AUTHOR_NAME"):
            config.commit_config.author_name = author_name_env

        if author_email_env := os.environ.get("GHGRAPH_AUTHOR_EMAIL"):
            config.commit_config.author_email = author_email_env

        return config

    def validate_config(self, config: ClientConfig) -> None:
        """
        Validate configuration settings.

        Args:
            config: Configuration to validate

        Raises:
            ValueError: If any configuration value is invalid
        """
        assert config.api_config is not None
        assert config.auth_config is not None

        if not config.api_config.api_url.startswith(("http://", "https://")):
            raise ValueError(
                f"api_url must be an http(s) URL, got {config.api_config.api_url}"
            )

        if config.api_config.timeout_seconds <= 0:
            raise ValueError(
                f"timeout_seconds must be greater than 0, got {config.api_config.timeout_seconds}"
            )

        if not (1 <= config.api_config.per_page <= 100):
            raise ValueError(
                f"per_page must be between 1 and 100, got {config.api_config.per_page}"
            )

        valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if config.log_level.upper() not in valid_log_levels:
            raise ValueError(
                f"Log level must be one of {valid_log_levels}, got {config.log_level}"
            )

        if not config.default_branch:
            raise ValueError("default_branch must not be empty")

        if bool(config.auth_config.username) != bool(config.auth_config.password):
            raise ValueError("username and password must be configured together")
