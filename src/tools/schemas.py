"""Pydantic input models for every Bitbucket tool.

Each tool validates its raw arguments against one of these models before
any network call. Numeric windows (page size, line window, browse limit)
are clamped to their ceiling and defaulted rather than rejected; required
identifiers must be non-empty strings.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from pydantic import ValidationError as PydanticValidationError

from clients.bitbucket.inputs import (
    DEFAULT_BROWSE_ITEMS,
    DEFAULT_FILE_LINES,
    DEFAULT_PAGE_SIZE,
    MAX_BROWSE_ITEMS,
    MAX_FILE_LINES,
    MAX_PAGE_SIZE,
    clamp,
)
from core.errors import ValidationError

Identifier = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Text = Annotated[str, StringConstraints(strip_whitespace=True)]

PullRequestState = Literal["OPEN", "MERGED", "DECLINED", "SUPERSEDED"]
IssueState = Literal["new", "open", "resolved", "on hold", "invalid", "duplicate", "wontfix", "closed"]
IssueKind = Literal["bug", "enhancement", "proposal", "task"]

M = TypeVar("M", bound=BaseModel)


class ToolInput(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore")


class WorkspaceInput(ToolInput):
    workspace: Identifier = Field(description="The workspace or username")


class RepoInput(WorkspaceInput):
    repo_slug: Identifier = Field(description="The repository name")


class PageInput(ToolInput):
    page: Optional[int] = Field(default=None, description="Page number for pagination")
    pagelen: Optional[int] = Field(
        default=DEFAULT_PAGE_SIZE,
        description=f"Number of items per page (default {DEFAULT_PAGE_SIZE}, max {MAX_PAGE_SIZE})",
    )

    @field_validator("page")
    @classmethod
    def _page_floor(cls, v: Optional[int]) -> Optional[int]:
        return None if v is None else max(1, v)

    @field_validator("pagelen")
    @classmethod
    def _clamp_pagelen(cls, v: Optional[int]) -> int:
        return DEFAULT_PAGE_SIZE if v is None else clamp(v, MAX_PAGE_SIZE)


class PullRequestInput(RepoInput):
    pull_request_id: int = Field(ge=1, description="The pull request ID")


# --- Repository ---


class GetRepositoryInput(RepoInput):
    pass


class ListRepositoriesInput(WorkspaceInput, PageInput):
    pass


class GetBranchesInput(RepoInput, PageInput):
    pass


class GetBranchInput(RepoInput):
    name: Identifier = Field(description="The branch name")


class GetTagsInput(RepoInput, PageInput):
    pass


class GetTagInput(RepoInput):
    name: Identifier = Field(description="The tag name")


class GetCommitsInput(RepoInput, PageInput):
    branch: Optional[Text] = Field(default=None, description="Branch name (defaults to main branch)")


class BrowseRepositoryInput(RepoInput):
    path: Optional[Text] = Field(default=None, description="Directory path within the repository (default: repo root)")
    ref: Optional[Text] = Field(default=None, description="Branch, tag, or commit hash (defaults to main branch)")
    limit: Optional[int] = Field(
        default=DEFAULT_BROWSE_ITEMS,
        description=f"Maximum number of items to return (default: {DEFAULT_BROWSE_ITEMS}, max: {MAX_BROWSE_ITEMS})",
    )

    @field_validator("limit")
    @classmethod
    def _clamp_limit(cls, v: Optional[int]) -> int:
        return DEFAULT_BROWSE_ITEMS if v is None else clamp(v, MAX_BROWSE_ITEMS)


class GetFileContentInput(RepoInput):
    file_path: Identifier = Field(description="Path to the file in the repository")
    ref: Optional[Text] = Field(default=None, description="Branch, tag, or commit hash (defaults to main branch)")
    start: Optional[int] = Field(default=1, description="Starting line number (1-based, default: 1)")
    limit: Optional[int] = Field(
        default=DEFAULT_FILE_LINES,
        description=f"Maximum number of lines to return (default: {DEFAULT_FILE_LINES}, max: {MAX_FILE_LINES})",
    )

    @field_validator("start")
    @classmethod
    def _start_floor(cls, v: Optional[int]) -> int:
        return 1 if v is None else max(1, v)

    @field_validator("limit")
    @classmethod
    def _clamp_limit(cls, v: Optional[int]) -> int:
        return DEFAULT_FILE_LINES if v is None else clamp(v, MAX_FILE_LINES)


# --- Pull requests ---


class GetPullRequestsInput(RepoInput, PageInput):
    state: Optional[PullRequestState] = Field(default=None, description="Filter by pull request state")


class GetPullRequestInput(PullRequestInput):
    pass


class GetPullRequestCommentsInput(PullRequestInput, PageInput):
    pass


class GetPullRequestCommentInput(PullRequestInput):
    comment_id: int = Field(ge=1, description="The comment ID")


class GetCommentThreadInput(PullRequestInput):
    comment_id: int = Field(ge=1, description="The root comment ID to get the thread for (includes all replies)")


class GetPullRequestActivityInput(PullRequestInput, PageInput):
    pass


class GetPullRequestCommitsInput(PullRequestInput, PageInput):
    pass


class GetPullRequestStatusesInput(PullRequestInput, PageInput):
    pass


class ListUserPullRequestsInput(PageInput):
    selected_user: Identifier = Field(description="The username or UUID of the user to list pull requests for")
    state: Optional[PullRequestState] = Field(default=None, description="Filter by pull request state")


# --- Diffs ---


class GetPullRequestDiffInput(PullRequestInput):
    context: Optional[int] = Field(default=None, ge=0, description="Number of context lines around changes")
    path: Optional[Text] = Field(default=None, description="Filter diff to a single file path")


class GetPullRequestDiffstatInput(PullRequestInput):
    path: Optional[Text] = Field(default=None, description="Filter diffstat to a single file path")


class GetDiffstatInput(RepoInput):
    spec: Identifier = Field(
        description='Commit spec: a single commit hash (diffs against parent), or two commits as "commit1..commit2"'
    )
    path: Optional[Text] = Field(default=None, description="Filter to a single file path")
    ignore_whitespace: Optional[bool] = Field(default=None, description="Ignore whitespace changes")
    topic: Optional[bool] = Field(
        default=None, description="With a two-commit spec, produce a 3-dot diff (source vs merge-base)"
    )


class GetDiffInput(GetDiffstatInput):
    context: Optional[int] = Field(default=None, ge=0, description="Number of context lines around changes")


# --- Commits ---


class GetCommitInput(RepoInput):
    commit: Identifier = Field(description="The commit hash, branch name, or tag")


class GetCommitStatusesInput(RepoInput, PageInput):
    commit: Identifier = Field(description="The commit hash")


class GetMergeBaseInput(RepoInput):
    revspec: Identifier = Field(description='Two commits or branch names separated by ".." (e.g. "main..feature")')


class GetFileHistoryInput(RepoInput, PageInput):
    commit: Identifier = Field(description="Commit hash, branch, or tag to start history from")
    path: Identifier = Field(description="Path to the file in the repository")


# --- Issues ---


class GetIssuesInput(RepoInput, PageInput):
    state: Optional[IssueState] = Field(default=None, description="Filter by issue state")
    kind: Optional[IssueKind] = Field(default=None, description="Filter by issue kind")


class GetIssueInput(RepoInput):
    issue_id: int = Field(ge=1, description="The issue ID")


# --- Workspaces / users ---


class ListWorkspacesInput(PageInput):
    pass


class GetWorkspaceInput(WorkspaceInput):
    pass


class GetUserInput(ToolInput):
    username: Optional[Text] = Field(
        default=None, description="Username or UUID to look up (defaults to the authenticated user)"
    )


class GetCurrentUserInput(ToolInput):
    pass


# --- Search ---


class SearchRepositoriesInput(WorkspaceInput, PageInput):
    query: Identifier = Field(description="Text to match against repository name or description")
    sort: Optional[Text] = Field(default=None, description='Sort field, e.g. "-updated_on"')


class SearchCodeInput(WorkspaceInput, PageInput):
    search_query: Identifier = Field(description="Search query for code content")
    repo_slug: Optional[Identifier] = Field(default=None, description="Limit search to a specific repository")
    language: Optional[Text] = Field(default=None, description="Filter by programming language")
    extension: Optional[Text] = Field(default=None, description="Filter by file extension")


# --- Pipelines ---


class ListPipelinesInput(RepoInput, PageInput):
    pass


class GetPipelineInput(RepoInput):
    pipeline_uuid: Identifier = Field(description="The pipeline UUID (with or without curly braces)")


class GetPipelineStepsInput(GetPipelineInput, PageInput):
    pass


class GetPipelineStepLogInput(GetPipelineInput):
    step_uuid: Identifier = Field(description="The step UUID (with or without curly braces)")


def validate_args(model: Type[M], raw: Optional[Mapping[str, Any]]) -> M:
    """Validate raw tool arguments, reporting every offending field at once."""
    try:
        return model.model_validate(dict(raw or {}))
    except PydanticValidationError as e:
        problems = []
        for err in e.errors():
            field = ".".join(str(part) for part in err["loc"]) or "arguments"
            problems.append(f"{field}: {err['msg']}")
        raise ValidationError("Invalid arguments: " + "; ".join(problems)) from e
