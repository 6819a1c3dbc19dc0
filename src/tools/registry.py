"""Tool registry: the name, description, input model and handler of every tool.

`build_tools(client)` binds each handler to a client, giving the dispatcher
handlers that take only the raw argument mapping.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Type

from pydantic import BaseModel

from clients.bitbucket import BitbucketClient
from config import FORMAT_ALIASES, OUTPUT_FORMATS
from core.models import ToolHandler, ToolResult
from core.output import FILTER_ARG, FORMAT_ARG
from tools import commit, diff, issue, pipeline, pullrequest, repository, schemas, search, workspace

ClientHandler = Callable[[BitbucketClient, Mapping[str, Any]], Awaitable[ToolResult]]


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_model: Type[BaseModel]
    handler: ClientHandler


@dataclass(frozen=True)
class BoundTool:
    name: str
    description: str
    input_schema: Dict[str, Any]
    handler: ToolHandler


TOOL_SPECS: List[ToolSpec] = [
    # Repositories
    ToolSpec("bb_get_repository", "Get detailed information about a specific repository",
             schemas.GetRepositoryInput, repository.get_repository),
    ToolSpec("bb_list_repositories", "List repositories in a workspace",
             schemas.ListRepositoriesInput, repository.list_repositories),
    ToolSpec("bb_get_branches", "Get branches for a repository",
             schemas.GetBranchesInput, repository.get_branches),
    ToolSpec("bb_get_branch", "Get a single branch and its latest commit",
             schemas.GetBranchInput, repository.get_branch),
    ToolSpec("bb_get_tags", "Get tags for a repository",
             schemas.GetTagsInput, repository.get_tags),
    ToolSpec("bb_get_tag", "Get a single tag and the commit it points to",
             schemas.GetTagInput, repository.get_tag),
    ToolSpec("bb_get_commits", "Get commits for a repository branch",
             schemas.GetCommitsInput, repository.get_commits),
    ToolSpec("bb_browse_repository", "Browse files and directories in a repository to explore structure",
             schemas.BrowseRepositoryInput, repository.browse_repository),
    ToolSpec("bb_get_file_content", "Get the content of a file from a repository with line-window pagination",
             schemas.GetFileContentInput, repository.get_file_content),
    # Pull requests
    ToolSpec("bb_get_pull_requests", "Get pull requests for a repository",
             schemas.GetPullRequestsInput, pullrequest.get_pull_requests),
    ToolSpec("bb_get_pull_request", "Get detailed information about a specific pull request",
             schemas.GetPullRequestInput, pullrequest.get_pull_request),
    ToolSpec("bb_get_pull_request_comments", "Get comments for a specific pull request",
             schemas.GetPullRequestCommentsInput, pullrequest.get_pull_request_comments),
    ToolSpec("bb_get_pull_request_comment", "Get a single comment on a pull request by ID",
             schemas.GetPullRequestCommentInput, pullrequest.get_pull_request_comment),
    ToolSpec("bb_get_comment_thread", "Get a pull request comment together with all nested replies",
             schemas.GetCommentThreadInput, pullrequest.get_comment_thread),
    ToolSpec("bb_get_pull_request_activity", "Get activity (reviews, approvals, comments) for a specific pull request",
             schemas.GetPullRequestActivityInput, pullrequest.get_pull_request_activity),
    ToolSpec("bb_get_pr_commits", "List the commits that belong to a pull request",
             schemas.GetPullRequestCommitsInput, pullrequest.get_pull_request_commits),
    ToolSpec("bb_get_pr_statuses", "Get CI/CD build statuses for a pull request",
             schemas.GetPullRequestStatusesInput, pullrequest.get_pull_request_statuses),
    ToolSpec("bb_list_user_pull_requests", "List pull requests authored by a user across repositories",
             schemas.ListUserPullRequestsInput, pullrequest.list_user_pull_requests),
    # Diffs
    ToolSpec("bb_get_pull_request_diff", "Get the unified diff of a pull request",
             schemas.GetPullRequestDiffInput, diff.get_pull_request_diff),
    ToolSpec("bb_get_pull_request_diffstat", "Get per-file change statistics for a pull request",
             schemas.GetPullRequestDiffstatInput, diff.get_pull_request_diffstat),
    ToolSpec("bb_get_diff", "Get the unified diff for a commit or a commit range",
             schemas.GetDiffInput, diff.get_diff),
    ToolSpec("bb_get_diffstat", "Get per-file change statistics for a commit or a commit range",
             schemas.GetDiffstatInput, diff.get_diffstat),
    # Commits
    ToolSpec("bb_get_commit", "Get detailed information about a single commit",
             schemas.GetCommitInput, commit.get_commit),
    ToolSpec("bb_get_commit_statuses", "Get CI/CD build statuses for a commit",
             schemas.GetCommitStatusesInput, commit.get_commit_statuses),
    ToolSpec("bb_get_merge_base", "Find the best common ancestor of two commits or branches",
             schemas.GetMergeBaseInput, commit.get_merge_base),
    ToolSpec("bb_get_file_history", "List the commits that modified a file",
             schemas.GetFileHistoryInput, commit.get_file_history),
    # Issues
    ToolSpec("bb_get_issues", "Get issues for a repository",
             schemas.GetIssuesInput, issue.get_issues),
    ToolSpec("bb_get_issue", "Get detailed information about a specific issue",
             schemas.GetIssueInput, issue.get_issue),
    # Workspaces and users
    ToolSpec("bb_list_workspaces", "List all accessible workspaces for discovery and exploration",
             schemas.ListWorkspacesInput, workspace.list_workspaces),
    ToolSpec("bb_get_workspace", "Get information about a workspace",
             schemas.GetWorkspaceInput, workspace.get_workspace),
    ToolSpec("bb_get_user", "Get information about a Bitbucket user, or the authenticated user when no username is given",
             schemas.GetUserInput, workspace.get_user),
    ToolSpec("bb_get_current_user", "Get information about the currently authenticated user",
             schemas.GetCurrentUserInput, workspace.get_current_user),
    # Search
    ToolSpec("bb_search_repositories", "Search for repositories within a workspace by name or description",
             schemas.SearchRepositoriesInput, search.search_repositories),
    ToolSpec("bb_search_code", "Search code within a workspace, optionally filtered by repository, language and extension",
             schemas.SearchCodeInput, search.search_code),
    # Pipelines
    ToolSpec("bb_list_pipelines", "List pipeline runs for a repository, newest first",
             schemas.ListPipelinesInput, pipeline.list_pipelines),
    ToolSpec("bb_get_pipeline", "Get details of a single pipeline run",
             schemas.GetPipelineInput, pipeline.get_pipeline),
    ToolSpec("bb_get_pipeline_steps", "List the steps of a pipeline run",
             schemas.GetPipelineStepsInput, pipeline.get_pipeline_steps),
    ToolSpec("bb_get_pipeline_step_log", "Get the log output of a pipeline step (long logs keep their tail)",
             schemas.GetPipelineStepLogInput, pipeline.get_pipeline_step_log),
]


def input_schema(model: Type[BaseModel]) -> Dict[str, Any]:
    """JSON schema of a tool's input model plus the shared output options."""
    schema = model.model_json_schema()
    schema.pop("title", None)
    properties = dict(schema.get("properties") or {})
    properties[FORMAT_ARG] = {
        "type": "string",
        "enum": list(OUTPUT_FORMATS) + list(FORMAT_ALIASES),
        "description": "Output format: text (default), json, or toon (compact tabular)",
    }
    properties[FILTER_ARG] = {
        "type": "string",
        "description": "JMESPath expression applied to the structured response before formatting",
    }
    schema["type"] = "object"
    schema["properties"] = properties
    return schema


def build_tools(client: BitbucketClient, specs: List[ToolSpec] = TOOL_SPECS) -> Dict[str, BoundTool]:
    tools: Dict[str, BoundTool] = {}
    for spec in specs:
        if spec.name in tools:
            raise ValueError(f"Duplicate tool name: {spec.name}")
        tools[spec.name] = BoundTool(
            name=spec.name,
            description=spec.description,
            input_schema=input_schema(spec.input_model),
            handler=functools.partial(spec.handler, client),
        )
    return tools
