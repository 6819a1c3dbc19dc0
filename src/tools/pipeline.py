"""Pipeline tools: runs, steps and step logs."""

from __future__ import annotations

from typing import Any, Mapping

from clients.bitbucket import BitbucketClient
from clients.bitbucket.inputs import MAX_LOG_CHARS, encode_segment, normalize_uuid
from core.models import ToolResult
from tools.schemas import (
    GetPipelineInput,
    GetPipelineStepLogInput,
    GetPipelineStepsInput,
    ListPipelinesInput,
    validate_args,
)
from tools.text import display_name, first_line, format_duration, repo_path, short_hash, total_of, values_of

_STATE_LABELS = {
    "SUCCESSFUL": "✅ SUCCESSFUL",
    "FAILED": "❌ FAILED",
    "ERROR": "❌ ERROR",
    "RUNNING": "🔄 RUNNING",
    "PENDING": "⏳ PENDING",
    "STOPPED": "⏹️ STOPPED",
    "PAUSED": "⏸️ PAUSED",
}


def pipeline_path(workspace: str, repo_slug: str, pipeline_uuid: str) -> str:
    return f"{repo_path(workspace, repo_slug)}/pipelines/{encode_segment(normalize_uuid(pipeline_uuid))}"


def format_pipeline_state(state: Any) -> str:
    state = state if isinstance(state, Mapping) else {}
    name = (state.get("result") or {}).get("name") or (state.get("stage") or {}).get("name") or state.get("name")
    return _STATE_LABELS.get((name or "").upper(), name or "UNKNOWN")


async def list_pipelines(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(ListPipelinesInput, raw)
    data = await client.request_json(
        f"{repo_path(args.workspace, args.repo_slug)}/pipelines",
        # Newest first
        params={"page": args.page, "pagelen": args.pagelen, "sort": "-created_on"},
    )

    pipelines = values_of(data)
    if not pipelines:
        return ToolResult(f"No pipelines found for {args.workspace}/{args.repo_slug}.", data)

    listing = "\n\n".join(
        f"- #{p.get('build_number')} {format_pipeline_state(p.get('state'))}\n"
        f"  Branch: {(p.get('target') or {}).get('ref_name') or 'N/A'}\n"
        f"  Trigger: {(p.get('trigger') or {}).get('name') or 'Unknown'}\n"
        f"  Duration: {format_duration(p.get('duration_in_seconds'))}\n"
        f"  Created: {p.get('created_on')}\n"
        f"  UUID: {p.get('uuid')}"
        for p in pipelines
    )
    return ToolResult(f"Pipelines for {args.workspace}/{args.repo_slug} ({total_of(data)} total):\n\n{listing}", data)


async def get_pipeline(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetPipelineInput, raw)
    data = await client.request_json(pipeline_path(args.workspace, args.repo_slug, args.pipeline_uuid))

    target = data.get("target") or {}
    commit = target.get("commit") or {}
    message = first_line(commit.get("message"))
    lines = [
        f"Pipeline #{data.get('build_number')}",
        f"Status: {format_pipeline_state(data.get('state'))}",
        f"Branch: {target.get('ref_name') or 'N/A'}",
        f"Commit: {short_hash(commit.get('hash')) or 'N/A'}" + (f" ({message})" if message else ""),
        f"Trigger: {(data.get('trigger') or {}).get('name') or 'Unknown'}",
        f"Creator: {display_name(data.get('creator'))}",
        f"Duration: {format_duration(data.get('duration_in_seconds'))}",
        f"Created: {data.get('created_on')}",
    ]
    if data.get("completed_on"):
        lines.append(f"Completed: {data['completed_on']}")
    lines.append(f"UUID: {data.get('uuid')}")
    return ToolResult("\n".join(lines), data)


async def get_pipeline_steps(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    args = validate_args(GetPipelineStepsInput, raw)
    data = await client.request_json(
        f"{pipeline_path(args.workspace, args.repo_slug, args.pipeline_uuid)}/steps",
        params={"page": args.page, "pagelen": args.pagelen},
    )

    steps = values_of(data)
    if not steps:
        return ToolResult(f"No steps found for pipeline {args.pipeline_uuid}.", data)

    rendered = []
    for index, step in enumerate(steps, start=1):
        state = step.get("state") or {}
        lines = [
            f"- {step.get('name') or f'Step {index}'}: {(state.get('result') or {}).get('name') or state.get('name')}",
            f"  Image: {(step.get('image') or {}).get('name') or 'default'}",
            f"  Duration: {format_duration(step.get('duration_in_seconds'))}",
        ]
        if step.get("started_on"):
            lines.append(f"  Started: {step['started_on']}")
        if step.get("completed_on"):
            lines.append(f"  Completed: {step['completed_on']}")
        lines.append(f"  UUID: {step.get('uuid')}")
        rendered.append("\n".join(lines))

    listing = "\n\n".join(rendered)
    return ToolResult(f"Pipeline steps ({len(steps)} total):\n\n{listing}", data)


async def get_pipeline_step_log(client: BitbucketClient, raw: Mapping[str, Any]) -> ToolResult:
    """Fetch a step log, keeping only its tail when it is very long."""
    args = validate_args(GetPipelineStepLogInput, raw)
    step = encode_segment(normalize_uuid(args.step_uuid))
    log = await client.request_text(f"{pipeline_path(args.workspace, args.repo_slug, args.pipeline_uuid)}/steps/{step}/log")

    if not log.strip():
        return ToolResult(f"No log output found for step {args.step_uuid}.")

    truncated = len(log) > MAX_LOG_CHARS
    content = log[-MAX_LOG_CHARS:] if truncated else log
    note = f" (truncated to last {MAX_LOG_CHARS} chars)" if truncated else ""
    return ToolResult(
        f"Pipeline step log{note}:\n\n{content}",
        {"log": content, "truncated": truncated, "total_chars": len(log)},
    )
