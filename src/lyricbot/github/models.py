"""GitHub data models for the submission bot.

Issues are parsed from the REST API issue listing; pull request models
describe the change request opened for an accepted submission.

The models use Pydantic for validation, consistent with config.py.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


class Issue(BaseModel):
    """Snapshot of a submission issue, fetched once per pass.

    Attributes:
        number: The issue number within the repository.
        title: The issue title text.
        body: The issue body (issue-form rendering). May be empty.
        author: Login of the user who opened the issue. May be empty.
        labels: Label names attached to the issue.
    """

    model_config = ConfigDict(frozen=True)

    number: int = Field(..., gt=0)
    title: str = ""
    body: str = ""
    author: str = ""
    labels: List[str] = Field(default_factory=list)

    @classmethod
    def from_github_response(cls, data: Dict[str, Any]) -> "Issue":
        """Build an Issue from a GitHub REST API issue object.

        The API returns null for an empty body and for deleted users.
        """
        user = data.get("user") or {}
        return cls(
            number=data["number"],
            title=data.get("title") or "",
            body=data.get("body") or "",
            author=user.get("login") or "",
            labels=[
                label["name"]
                for label in data.get("labels") or []
                if isinstance(label, dict) and label.get("name")
            ],
        )


class PRCreateRequest(BaseModel):
    """Request to open a pull request.

    Attributes:
        title: Pull request title.
        body: Pull request body in markdown format.
        head_branch: Branch holding the changes.
        base_branch: Branch the changes should be merged into.
        labels: Labels to add once the PR exists.
    """

    title: str = Field(..., min_length=1)
    body: str = ""
    head_branch: str = Field(..., min_length=1)
    base_branch: str = Field(..., min_length=1)
    labels: List[str] = Field(default_factory=list)


class PRCreateResult(BaseModel):
    """Result of opening a pull request."""

    pr_number: int
    pr_url: str

    @classmethod
    def from_github_response(cls, data: Dict[str, Any]) -> "PRCreateResult":
        return cls(pr_number=data["number"], pr_url=data.get("html_url") or "")


class ChangeRequest(BaseModel):
    """A pull request carrying files for an originating issue.

    Attributes:
        issue_number: The issue the change request belongs to.
        branch: Head branch the files are committed on.
        title: Pull request title.
        body: Pull request body in markdown format.
        commit_message: Message of the commit adding the files.
        files: Mapping of workspace-relative path to file content.
        labels: Labels to add to the pull request.
    """

    issue_number: int = Field(..., gt=0)
    branch: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    body: str = ""
    commit_message: str = Field(..., min_length=1)
    files: Dict[str, str] = Field(default_factory=dict)
    labels: List[str] = Field(default_factory=list)
