"""Bot configuration using pydantic-settings.

This module defines the BotSettings class that reads configuration from
environment variables. The three GitHub Actions variables (GITHUB_TOKEN,
GITHUB_REPOSITORY, GITHUB_WORKSPACE) are read under their standard names;
everything else uses the LYRICBOT_ prefix.

Settings are read once at process start and passed to every component.
The process fails before any network call if a required value is missing.
"""

from pathlib import Path
from typing import List, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SUBMISSION_LABEL = "实验性歌词提交/修正"
DEFAULT_BOT_LOGIN = "github-actions[bot]"
DEFAULT_MAX_DOCUMENT_BYTES = 5 * 1024 * 1024


class BotSettings(BaseSettings):
    """Submission bot configuration from environment variables.

    Required fields (must be set via environment variables):
    - GITHUB_TOKEN: token used for issue comments and pull requests
    - GITHUB_REPOSITORY: target repository in "owner/name" form
    - GITHUB_WORKSPACE: checkout of the target repository
    - LYRICBOT_ENGINE: import path of the lyric document engine
    """

    model_config = SettingsConfigDict(
        env_prefix="LYRICBOT_",
        case_sensitive=False,
        frozen=True,
    )

    # -------------------------------------------------------------------------
    # GitHub Configuration
    # -------------------------------------------------------------------------
    github_token: str = Field(validation_alias="GITHUB_TOKEN")

    # "owner/name" of the repository holding the submission issues
    github_repository: str = Field(validation_alias="GITHUB_REPOSITORY")

    # Base URL for GitHub API (supports GitHub Enterprise)
    github_base_url: str = "https://api.github.com"

    # Issues carrying this label are submission candidates
    submission_label: str = DEFAULT_SUBMISSION_LABEL

    # Comments authored by this login mark an issue as handled
    bot_login: str = DEFAULT_BOT_LOGIN

    # Labels added to every submission pull request
    pr_labels: List[str] = Field(
        default_factory=lambda: ["experimental-submission"]
    )

    # -------------------------------------------------------------------------
    # Workspace Configuration
    # -------------------------------------------------------------------------
    # Checkout of the target repository; submission files are written here
    workspace_root: Path = Field(validation_alias="GITHUB_WORKSPACE")

    # Branch that submission branches start from and pull requests target
    base_branch: str = "main"

    # Directory, relative to the workspace root, receiving submitted files
    submission_dir: str = "raw-lyrics"

    # -------------------------------------------------------------------------
    # Document Configuration
    # -------------------------------------------------------------------------
    # "package.module:attribute" of the lyric document engine
    engine: str

    # Total timeout for downloading a submitted document
    fetch_timeout_seconds: float = 30.0

    # Downloads larger than this are rejected
    max_document_bytes: int = DEFAULT_MAX_DOCUMENT_BYTES

    # -------------------------------------------------------------------------
    # Logging Configuration
    # -------------------------------------------------------------------------
    log_level: str = "INFO"

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("github_token")
    @classmethod
    def validate_github_token(cls, v: str) -> str:
        """Validate that GitHub token is not empty."""
        if not v or not v.strip():
            raise ValueError("GITHUB_TOKEN cannot be empty")
        return v

    @field_validator("github_repository")
    @classmethod
    def validate_repository(cls, v: str) -> str:
        """Validate the "owner/name" repository format."""
        owner, sep, name = v.strip().partition("/")
        if not sep or not owner or not name or "/" in name:
            raise ValueError("GITHUB_REPOSITORY must be in 'owner/name' form")
        return v.strip()

    @field_validator("workspace_root")
    @classmethod
    def validate_workspace_root(cls, v: Path) -> Path:
        """Validate that the workspace root is an absolute path."""
        if not v.is_absolute():
            raise ValueError("GITHUB_WORKSPACE must be an absolute path")
        return v

    @field_validator("submission_dir")
    @classmethod
    def validate_submission_dir(cls, v: str) -> str:
        """Validate that the submission directory stays inside the workspace."""
        path = Path(v)
        if path.is_absolute() or ".." in path.parts:
            raise ValueError("submission_dir must be a relative path inside the workspace")
        return v

    @field_validator("engine")
    @classmethod
    def validate_engine(cls, v: str) -> str:
        """Validate the "module:attribute" engine path format."""
        module, sep, attribute = v.strip().partition(":")
        if not sep or not module or not attribute:
            raise ValueError("engine must be in 'package.module:attribute' form")
        return v.strip()

    @field_validator("fetch_timeout_seconds")
    @classmethod
    def validate_fetch_timeout(cls, v: float) -> float:
        """Validate that the fetch timeout is positive."""
        if v <= 0:
            raise ValueError("fetch_timeout_seconds must be positive")
        return v

    @field_validator("max_document_bytes")
    @classmethod
    def validate_max_document_bytes(cls, v: int) -> int:
        """Validate that the download size cap is positive."""
        if v < 1:
            raise ValueError("max_document_bytes must be at least 1")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize the logging level name."""
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError("log_level must be DEBUG, INFO, WARNING, ERROR or CRITICAL")
        return level

    @property
    def repository_parts(self) -> Tuple[str, str]:
        """Split the repository into (owner, name)."""
        owner, _, name = self.github_repository.partition("/")
        return owner, name


def get_settings() -> BotSettings:
    """Create and return BotSettings instance.

    Returns:
        BotSettings: Configured settings instance.

    Raises:
        pydantic.ValidationError: If required fields are missing or invalid.
    """
    return BotSettings()
