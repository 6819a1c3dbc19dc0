import pytest

from clients.bitbucket.inputs import MAX_LOG_CHARS
from tools import pipeline

from conftest import raw_path

REPO = "/repositories/acme/widgets"
PIPE = f"{REPO}/pipelines/%7Bp-1%7D"


@pytest.mark.asyncio
async def test_list_pipelines_sorted_newest_first(make_client):
    runs = {
        "size": 1,
        "values": [
            {
                "build_number": 42,
                "state": {"name": "COMPLETED", "result": {"name": "SUCCESSFUL"}},
                "target": {"ref_name": "main"},
                "trigger": {"name": "PUSH"},
                "duration_in_seconds": 125,
                "created_on": "t",
                "uuid": "{p-1}",
            }
        ],
    }
    client, seen = make_client({f"{REPO}/pipelines": runs})

    result = await pipeline.list_pipelines(client, {"workspace": "acme", "repo_slug": "widgets"})

    assert seen[0].url.params.get("sort") == "-created_on"
    assert "- #42 ✅ SUCCESSFUL" in result.text
    assert "Duration: 2m 5s" in result.text


@pytest.mark.asyncio
@pytest.mark.parametrize("uuid", ["p-1", "{p-1}"])
async def test_get_pipeline_normalizes_uuid(make_client, uuid):
    run = {"build_number": 7, "state": {"name": "IN_PROGRESS", "stage": {"name": "RUNNING"}}, "uuid": "{p-1}"}
    client, seen = make_client({PIPE: run})

    result = await pipeline.get_pipeline(client, {"workspace": "acme", "repo_slug": "widgets", "pipeline_uuid": uuid})

    assert raw_path(seen[0]) == PIPE
    assert "Status: 🔄 RUNNING" in result.text
    assert "Duration: N/A" in result.text


@pytest.mark.asyncio
async def test_get_pipeline_steps(make_client):
    steps = {"values": [{"state": {"name": "COMPLETED", "result": {"name": "FAILED"}}, "uuid": "{s-1}"}]}
    client, _ = make_client({f"{PIPE}/steps": steps})

    result = await pipeline.get_pipeline_steps(
        client, {"workspace": "acme", "repo_slug": "widgets", "pipeline_uuid": "p-1"}
    )

    assert "- Step 1: FAILED" in result.text
    assert "Image: default" in result.text


@pytest.mark.asyncio
async def test_step_log_keeps_tail_of_long_logs(make_client):
    log = "HEAD" + "x" * MAX_LOG_CHARS + "TAIL"
    client, _ = make_client({f"{PIPE}/steps/%7Bs-1%7D/log": log})

    result = await pipeline.get_pipeline_step_log(
        client, {"workspace": "acme", "repo_slug": "widgets", "pipeline_uuid": "p-1", "step_uuid": "s-1"}
    )

    assert result.text.startswith("Pipeline step log (truncated to last")
    assert result.text.endswith("TAIL")
    assert "HEAD" not in result.text
    assert len(result.data["log"]) == MAX_LOG_CHARS
    assert result.data["truncated"] is True


@pytest.mark.asyncio
async def test_step_log_empty(make_client):
    client, _ = make_client({f"{PIPE}/steps/%7Bs-1%7D/log": ""})
    result = await pipeline.get_pipeline_step_log(
        client, {"workspace": "acme", "repo_slug": "widgets", "pipeline_uuid": "p-1", "step_uuid": "s-1"}
    )
    assert result.text == "No log output found for step s-1."
